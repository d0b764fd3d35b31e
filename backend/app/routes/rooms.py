"""
Room API Routes
Create rooms, look them up by id or join code, change settings and status, delete.
"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from app.database import get_session
from app.identity import get_current_user_id, require_current_user_id
from app.models.room import PlayMode, Room, RoomStatus
from app.services.capacity_coordinator import update_room_settings
from app.services.errors import RoomEngineError
from app.services.permissions import require_room_owner
from app.services.room_service import (
    create_room,
    delete_room,
    get_room_by_code,
    list_rooms,
    roster_summary,
    set_room_status,
)
from app.services.unit_of_work import load_room, room_mutation
from app.utils.engine_errors import to_http_exception

router = APIRouter()


# ============================================================================
# Request/Response Models
# ============================================================================


class RoomCreateRequest(BaseModel):
    play_date: datetime
    description: str = ""
    location_url: Optional[str] = None
    accepted_capacity: int = Field(ge=1)
    num_teams: int = Field(ge=2)
    players_per_team: int = Field(ge=1)
    play_mode: PlayMode = PlayMode.league


class RoomSettingsUpdate(BaseModel):
    play_date: Optional[datetime] = None
    description: Optional[str] = None
    location_url: Optional[str] = None
    accepted_capacity: Optional[int] = Field(default=None, ge=1)
    num_teams: Optional[int] = Field(default=None, ge=2)
    players_per_team: Optional[int] = Field(default=None, ge=1)
    play_mode: Optional[PlayMode] = None

    @field_validator("description")
    @classmethod
    def strip_description(cls, v):
        return v.strip() if v is not None else v


class RoomStatusUpdate(BaseModel):
    status: RoomStatus


class RoomResponse(BaseModel):
    id: int
    code: str
    play_date: datetime
    description: str
    location_url: Optional[str] = None
    accepted_capacity: int
    num_teams: int
    players_per_team: int
    play_mode: PlayMode
    status: RoomStatus
    created_by: str
    created_at: datetime
    # Derived roster summary
    effective_capacity: int
    active_count: int
    waiting_count: int


def room_to_response(session: Session, room: Room) -> RoomResponse:
    summary = roster_summary(session, room)
    return RoomResponse(
        id=room.id,
        code=room.code,
        play_date=room.play_date,
        description=room.description,
        location_url=room.location_url,
        accepted_capacity=room.accepted_capacity,
        num_teams=room.num_teams,
        players_per_team=room.players_per_team,
        play_mode=room.play_mode,
        status=room.status,
        created_by=room.created_by,
        created_at=room.created_at,
        effective_capacity=summary.effective_capacity,
        active_count=summary.active_count,
        waiting_count=summary.waiting_count,
    )


# ============================================================================
# Room Endpoints
# ============================================================================


@router.post("/rooms", response_model=RoomResponse, status_code=201)
def create_room_endpoint(
    request: RoomCreateRequest,
    user_id: str = Depends(require_current_user_id),
    session: Session = Depends(get_session),
):
    """Create a room owned by the caller. A unique join code is generated."""
    try:
        room = create_room(
            session,
            created_by=user_id,
            play_date=request.play_date,
            accepted_capacity=request.accepted_capacity,
            num_teams=request.num_teams,
            players_per_team=request.players_per_team,
            play_mode=request.play_mode,
            description=request.description,
            location_url=request.location_url,
        )
        session.commit()
    except RoomEngineError as e:
        session.rollback()
        raise to_http_exception(e)
    except IntegrityError:
        # Another room took the same code between the check and the insert
        session.rollback()
        raise HTTPException(status_code=409, detail="Join code collision, please retry")

    session.refresh(room)
    return room_to_response(session, room)


@router.get("/rooms", response_model=List[RoomResponse])
def get_rooms(
    mine: bool = Query(False, description="Only rooms owned by the caller"),
    user_id: Optional[str] = Depends(get_current_user_id),
    session: Session = Depends(get_session),
):
    """List rooms, newest first."""
    if mine and not user_id:
        raise HTTPException(status_code=401, detail="X-User-Id header required")
    rooms = list_rooms(session, created_by=user_id if mine else None)
    return [room_to_response(session, room) for room in rooms]


@router.get("/rooms/code/{code}", response_model=RoomResponse)
def get_room_by_join_code(code: str, session: Session = Depends(get_session)):
    """Look a room up by its join code (case-insensitive)."""
    try:
        room = get_room_by_code(session, code)
    except RoomEngineError as e:
        raise to_http_exception(e)
    return room_to_response(session, room)


@router.get("/rooms/{room_id}", response_model=RoomResponse)
def get_room(room_id: int, session: Session = Depends(get_session)):
    try:
        room = load_room(session, room_id)
    except RoomEngineError as e:
        raise to_http_exception(e)
    return room_to_response(session, room)


@router.patch("/rooms/{room_id}/settings", response_model=RoomResponse)
def update_settings(
    room_id: int,
    request: RoomSettingsUpdate,
    user_id: str = Depends(require_current_user_id),
    session: Session = Depends(get_session),
):
    """
    Update room settings (owner only).

    Changing accepted_capacity, num_teams or players_per_team recalculates every
    player's position and status in the same transaction.
    """
    changes = request.model_dump(exclude_unset=True)
    # Only location_url may be cleared explicitly
    changes = {k: v for k, v in changes.items() if v is not None or k == "location_url"}

    try:
        with room_mutation(session, room_id) as room:
            require_room_owner(room, user_id)
            update_room_settings(session, room, changes)
    except RoomEngineError as e:
        raise to_http_exception(e)

    return room_to_response(session, load_room(session, room_id))


@router.patch("/rooms/{room_id}/status", response_model=RoomResponse)
def update_status(
    room_id: int,
    request: RoomStatusUpdate,
    user_id: str = Depends(require_current_user_id),
    session: Session = Depends(get_session),
):
    """Set the room status directly (owner only). Any status may be set."""
    try:
        with room_mutation(session, room_id) as room:
            require_room_owner(room, user_id)
            set_room_status(session, room, request.status)
    except RoomEngineError as e:
        raise to_http_exception(e)

    return room_to_response(session, load_room(session, room_id))


@router.delete("/rooms/{room_id}", status_code=204)
def delete_room_endpoint(
    room_id: int,
    user_id: str = Depends(require_current_user_id),
    session: Session = Depends(get_session),
):
    """Delete a room with all of its players, teams and matches (owner only)."""
    try:
        with room_mutation(session, room_id) as room:
            require_room_owner(room, user_id)
            delete_room(session, room)
    except RoomEngineError as e:
        raise to_http_exception(e)

    return None
