"""
Player API Routes
Join a room (by id or join code), list the roster, leave/remove entries.
"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field
from sqlmodel import Session, select

from app.database import get_session
from app.identity import get_current_user_id
from app.models.player import Player, PlayerStatus
from app.services.capacity_coordinator import join_room, remove_player
from app.services.errors import PermissionDeniedError, RoomEngineError
from app.services.permissions import can_remove_player
from app.services.room_service import get_room_by_code
from app.services.unit_of_work import load_room, room_mutation
from app.utils.engine_errors import to_http_exception

router = APIRouter()


# ============================================================================
# Request/Response Models
# ============================================================================


class PlayerJoinRequest(BaseModel):
    player_name: str = Field(min_length=1)
    is_self: bool = False  # link the entry to the caller's own account


class PlayerResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    room_id: int
    player_name: str
    added_at: Optional[datetime] = None
    added_by: Optional[str] = None
    user_id: Optional[str] = None
    status: PlayerStatus
    position: int
    team_id: Optional[int] = None


def _join(session: Session, room_id: int, request: PlayerJoinRequest, user_id: Optional[str]) -> Player:
    if request.is_self and not user_id:
        raise HTTPException(status_code=401, detail="X-User-Id header required to join as yourself")

    try:
        with room_mutation(session, room_id) as room:
            player = join_room(
                session,
                room,
                request.player_name,
                added_by=user_id,
                user_id=user_id if request.is_self else None,
            )
    except RoomEngineError as e:
        raise to_http_exception(e)

    session.refresh(player)
    return player


# ============================================================================
# Player Endpoints
# ============================================================================


@router.post("/rooms/{room_id}/players", response_model=PlayerResponse, status_code=201)
def add_player(
    room_id: int,
    request: PlayerJoinRequest,
    user_id: Optional[str] = Depends(get_current_user_id),
    session: Session = Depends(get_session),
):
    """
    Add a player to a room.

    The new player is appended to the join order: active while the room has free
    active slots, otherwise waiting. Anonymous callers add guest entries.
    """
    return _join(session, room_id, request, user_id)


@router.post("/rooms/code/{code}/players", response_model=PlayerResponse, status_code=201)
def join_by_code(
    code: str,
    request: PlayerJoinRequest,
    user_id: Optional[str] = Depends(get_current_user_id),
    session: Session = Depends(get_session),
):
    """Join a room using its shareable code."""
    try:
        room_id = get_room_by_code(session, code).id
    except RoomEngineError as e:
        raise to_http_exception(e)
    return _join(session, room_id, request, user_id)


@router.get("/rooms/{room_id}/players", response_model=List[PlayerResponse])
def get_players(
    room_id: int,
    status: Optional[PlayerStatus] = None,
    session: Session = Depends(get_session),
):
    """Players in position order, optionally filtered by status."""
    try:
        load_room(session, room_id)
    except RoomEngineError as e:
        raise to_http_exception(e)

    query = select(Player).where(Player.room_id == room_id)
    if status is not None:
        query = query.where(Player.status == status.value)
    return session.exec(query.order_by(Player.position, Player.id)).all()


@router.delete("/rooms/{room_id}/players/{player_id}", status_code=204)
def delete_player(
    room_id: int,
    player_id: int,
    user_id: Optional[str] = Depends(get_current_user_id),
    session: Session = Depends(get_session),
):
    """
    Remove a player and promote the earliest waiting players into the freed slot.

    Allowed for the room owner, whoever added the entry, and the linked account.
    Removing a player that is already gone is a no-op.
    """
    try:
        with room_mutation(session, room_id) as room:
            player = session.get(Player, player_id)
            if player is not None and player.room_id == room.id and not can_remove_player(room, player, user_id):
                raise PermissionDeniedError(f"Not allowed to remove player {player_id}")
            remove_player(session, room, player_id)
    except RoomEngineError as e:
        raise to_http_exception(e)

    return None
