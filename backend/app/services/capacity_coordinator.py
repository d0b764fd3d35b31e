"""
Room Capacity Coordinator: keeps roster state consistent with room settings.

Trigger points for the roster policy:
- join: the new player is appended at the end of the join order; active only while
  fewer than effective-capacity players are active.
- removal: full recalculation, promoting the earliest waiting players into freed slots.
- capacity setting change (accepted_capacity, num_teams, players_per_team): full
  recalculation at the new effective capacity, demoting the latest joiners when it
  shrinks.

All writes for one trigger happen in the caller's transaction (room_mutation).
"""

import logging
from typing import Any, Dict, List, Optional

from sqlmodel import Session

from app.models.player import Player, PlayerStatus
from app.models.room import Room
from app.services.allocation_engine import get_room_players
from app.services.errors import InvalidInputError, InvalidSettingsError
from app.services.roster_policy import (
    RosterSlot,
    apply_roster,
    effective_capacity,
    recalculate_statuses,
    status_for_new_player,
)

logger = logging.getLogger(__name__)

CAPACITY_FIELDS = ("accepted_capacity", "num_teams", "players_per_team")
SETTINGS_FIELDS = ("play_date", "description", "location_url", "play_mode") + CAPACITY_FIELDS

# Lower bounds for capacity settings
_MINIMUMS = {"accepted_capacity": 1, "num_teams": 2, "players_per_team": 1}


def room_effective_capacity(room: Room) -> int:
    return effective_capacity(room.accepted_capacity, room.num_teams, room.players_per_team)


def validate_capacity_settings(accepted_capacity: Any, num_teams: Any, players_per_team: Any) -> None:
    """Raise InvalidSettingsError unless every capacity setting is an integer at or above its minimum."""
    values = {
        "accepted_capacity": accepted_capacity,
        "num_teams": num_teams,
        "players_per_team": players_per_team,
    }
    for name, value in values.items():
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidSettingsError(f"{name} must be an integer, got {value!r}")
        if value < _MINIMUMS[name]:
            raise InvalidSettingsError(f"{name} must be >= {_MINIMUMS[name]}, got {value}")


def recalculate_room_roster(session: Session, room: Room) -> List[RosterSlot]:
    """Full position/status rewrite for every player in the room."""
    capacity = room_effective_capacity(room)
    players = get_room_players(session, room.id)
    slots = recalculate_statuses(players, capacity)
    apply_roster(slots)
    for slot in slots:
        session.add(slot.player)
    session.flush()

    changed = [slot for slot in slots if slot.status_changed]
    for slot in changed:
        logger.debug(
            f"Room {room.id}: {slot.player.player_name} {slot.previous_status} -> {slot.status.value} "
            f"(position {slot.position})"
        )
    logger.info(
        f"Room {room.id}: recalculated {len(slots)} players at capacity {capacity}, {len(changed)} status changes"
    )
    return slots


def join_room(
    session: Session,
    room: Room,
    player_name: str,
    added_by: Optional[str] = None,
    user_id: Optional[str] = None,
) -> Player:
    """Append a player to the room's join order."""
    name = (player_name or "").strip()
    if not name:
        raise InvalidInputError("player_name must not be empty")

    players = get_room_players(session, room.id)
    active_count = sum(1 for p in players if p.status == PlayerStatus.active)
    status = status_for_new_player(active_count, room_effective_capacity(room))

    player = Player(
        room_id=room.id,
        player_name=name,
        added_by=added_by,
        user_id=user_id,
        status=status,
        position=len(players) + 1,
        team_id=None,
    )
    session.add(player)
    session.flush()

    logger.info(f"Room {room.id}: {name} joined as {status.value} at position {player.position}")
    return player


def remove_player(session: Session, room: Room, player_id: int) -> bool:
    """
    Remove a player and promote waiting players into the freed slot.

    Removing a player that no longer exists is a no-op; returns False in that case.
    """
    player = session.get(Player, player_id)
    if player is None or player.room_id != room.id:
        logger.info(f"Room {room.id}: player {player_id} already gone, nothing to remove")
        return False

    session.delete(player)
    session.flush()
    recalculate_room_roster(session, room)
    return True


def update_room_settings(session: Session, room: Room, changes: Dict[str, Any]) -> Room:
    """
    Apply settings changes; recalculate the roster when any capacity field is present.

    Capacity values are validated against the merged (current + changed) settings
    before anything is written.
    """
    unknown = set(changes) - set(SETTINGS_FIELDS)
    if unknown:
        raise InvalidInputError(f"Unknown room settings: {sorted(unknown)}")

    merged = {name: changes.get(name, getattr(room, name)) for name in CAPACITY_FIELDS}
    validate_capacity_settings(**merged)

    for name, value in changes.items():
        setattr(room, name, value)
    session.add(room)
    session.flush()

    if any(name in changes for name in CAPACITY_FIELDS):
        recalculate_room_roster(session, room)
    return room
