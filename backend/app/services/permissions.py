"""
Ownership rules.

The room owner (room.created_by) may mutate anything. Anyone else may only remove
entries they added themselves or the entry linked to their own account.
"""
from typing import Optional

from app.models.player import Player
from app.models.room import Room
from app.services.errors import PermissionDeniedError


def is_room_owner(room: Room, user_id: Optional[str]) -> bool:
    return user_id is not None and room.created_by == user_id


def can_remove_player(room: Room, player: Player, user_id: Optional[str]) -> bool:
    if not user_id:
        return False
    if is_room_owner(room, user_id):
        return True
    return player.added_by == user_id or player.user_id == user_id


def require_room_owner(room: Room, user_id: Optional[str]) -> None:
    if not is_room_owner(room, user_id):
        raise PermissionDeniedError(f"Only the room owner can do this (room {room.id})")
