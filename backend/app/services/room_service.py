"""
Room lifecycle: creation with a unique join code, lookup, status and deletion.

Room status is a coarse lifecycle marker for UI gating:
    open -> allocating (teams created) -> in-progress (fixtures generated) -> completed
The engine moves it forward on those events; the owner may also set any status
directly, so no transition is rejected here.
"""

import logging
import random
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from sqlmodel import Session, select

from app.models.match import Match
from app.models.player import Player, PlayerStatus
from app.models.room import PlayMode, Room, RoomStatus
from app.models.team import Team
from app.services.capacity_coordinator import room_effective_capacity, validate_capacity_settings
from app.services.errors import InvalidInputError, RoomNotFoundError
from app.services.join_code import allocate_join_code, normalize_join_code

logger = logging.getLogger(__name__)


@dataclass
class RosterSummary:
    effective_capacity: int
    active_count: int
    waiting_count: int


def create_room(
    session: Session,
    created_by: str,
    play_date: datetime,
    accepted_capacity: int,
    num_teams: int,
    players_per_team: int,
    play_mode: PlayMode = PlayMode.league,
    description: str = "",
    location_url: Optional[str] = None,
    rng: Optional[random.Random] = None,
) -> Room:
    """Create an open room owned by `created_by`. Caller commits."""
    if not created_by:
        raise InvalidInputError("created_by is required")
    validate_capacity_settings(accepted_capacity, num_teams, players_per_team)

    room = Room(
        code=allocate_join_code(session, rng),
        play_date=play_date,
        description=description or "",
        location_url=location_url,
        accepted_capacity=accepted_capacity,
        num_teams=num_teams,
        players_per_team=players_per_team,
        play_mode=play_mode,
        status=RoomStatus.open,
        created_by=created_by,
    )
    session.add(room)
    session.flush()

    logger.info(f"Room {room.id} created by {created_by} with code {room.code}")
    return room


def get_room_by_code(session: Session, code: str) -> Room:
    normalized = normalize_join_code(code)
    room = session.exec(select(Room).where(Room.code == normalized)).first()
    if room is None:
        raise RoomNotFoundError(normalized)
    return room


def list_rooms(session: Session, created_by: Optional[str] = None) -> List[Room]:
    """Rooms, newest first; optionally only those owned by `created_by`."""
    query = select(Room)
    if created_by is not None:
        query = query.where(Room.created_by == created_by)
    return list(session.exec(query.order_by(Room.created_at.desc(), Room.id.desc())).all())


def set_room_status(session: Session, room: Room, status: RoomStatus) -> Room:
    room.status = RoomStatus(status)
    session.add(room)
    session.flush()
    logger.info(f"Room {room.id}: status set to {room.status.value}")
    return room


def delete_room(session: Session, room: Room) -> None:
    """Delete a room with all of its matches, players and teams (children first)."""
    for match in session.exec(select(Match).where(Match.room_id == room.id)).all():
        session.delete(match)
    for player in session.exec(select(Player).where(Player.room_id == room.id)).all():
        session.delete(player)
    session.flush()

    for team in session.exec(select(Team).where(Team.room_id == room.id)).all():
        session.delete(team)
    session.flush()

    session.delete(room)
    session.flush()
    logger.info(f"Room {room.id} deleted")


def roster_summary(session: Session, room: Room) -> RosterSummary:
    statuses = session.exec(select(Player.status).where(Player.room_id == room.id)).all()
    active = sum(1 for status in statuses if status == PlayerStatus.active)
    return RosterSummary(
        effective_capacity=room_effective_capacity(room),
        active_count=active,
        waiting_count=len(statuses) - active,
    )
