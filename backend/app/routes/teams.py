"""
Team Management API Routes
Create/recreate teams, rename them, and allocate players (manual, sequential fill,
full reshuffle). Team rosters are derived from each player's team_id.
"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlmodel import Session

from app.database import get_session
from app.identity import require_current_user_id
from app.models.team import Team
from app.routes.players import PlayerResponse
from app.services.allocation_engine import (
    assign_player_to_team,
    create_teams,
    delete_all_teams,
    fully_random_allocate,
    get_room_teams,
    randomly_allocate_players,
    recreate_teams,
    remove_player_from_team,
    team_rosters,
    update_team_name,
)
from app.services.errors import RoomEngineError
from app.services.permissions import require_room_owner
from app.services.unit_of_work import load_room, room_mutation
from app.utils.engine_errors import to_http_exception

router = APIRouter()


# ============================================================================
# Request/Response Models
# ============================================================================


class TeamResponse(BaseModel):
    id: int
    room_id: int
    team_name: str
    created_at: datetime
    player_ids: List[int]  # derived, position order
    player_count: int
    is_full: bool


class TeamRenameRequest(BaseModel):
    team_name: str = Field(min_length=1)


class TeamAssignmentRequest(BaseModel):
    team_id: Optional[int] = None  # None unassigns the player


class ReshuffleRequest(BaseModel):
    pull_from_waiting_list: bool = False


class AllocationResponse(BaseModel):
    assigned_count: int
    promoted_count: int
    unassigned_active_count: int
    teams: List[TeamResponse]


class DeleteTeamsResponse(BaseModel):
    deleted_teams: int


def _teams_response(session: Session, room_id: int, players_per_team: int) -> List[TeamResponse]:
    rosters = team_rosters(session, room_id)
    return [
        _team_to_response(team, [p.id for p in rosters.get(team.id, [])], players_per_team)
        for team in get_room_teams(session, room_id)
    ]


def _team_to_response(team: Team, player_ids: List[int], players_per_team: int) -> TeamResponse:
    return TeamResponse(
        id=team.id,
        room_id=team.room_id,
        team_name=team.team_name,
        created_at=team.created_at,
        player_ids=player_ids,
        player_count=len(player_ids),
        is_full=len(player_ids) >= players_per_team,
    )


def _load_teams(session: Session, room_id: int) -> List[TeamResponse]:
    room = load_room(session, room_id)
    return _teams_response(session, room.id, room.players_per_team)


# ============================================================================
# Team Endpoints
# ============================================================================


@router.get("/rooms/{room_id}/teams", response_model=List[TeamResponse])
def get_teams(room_id: int, session: Session = Depends(get_session)):
    """Teams in creation order with their derived rosters."""
    try:
        return _load_teams(session, room_id)
    except RoomEngineError as e:
        raise to_http_exception(e)


@router.post("/rooms/{room_id}/teams", response_model=List[TeamResponse], status_code=201)
def create_teams_endpoint(
    room_id: int,
    user_id: str = Depends(require_current_user_id),
    session: Session = Depends(get_session),
):
    """Create num_teams empty teams ("Team 1".."Team N"). Room moves to allocating."""
    try:
        with room_mutation(session, room_id) as room:
            require_room_owner(room, user_id)
            create_teams(session, room)
        return _load_teams(session, room_id)
    except RoomEngineError as e:
        raise to_http_exception(e)


@router.post("/rooms/{room_id}/teams/recreate", response_model=List[TeamResponse])
def recreate_teams_endpoint(
    room_id: int,
    confirm: bool = Query(False, description="Required when teams already exist; clears all assignments"),
    user_id: str = Depends(require_current_user_id),
    session: Session = Depends(get_session),
):
    """
    Delete all teams (and assignments and matches) and create a fresh set.

    Destructive: returns 409 unless confirm=true when teams already exist.
    """
    try:
        with room_mutation(session, room_id) as room:
            require_room_owner(room, user_id)
            recreate_teams(session, room, confirm=confirm)
        return _load_teams(session, room_id)
    except RoomEngineError as e:
        raise to_http_exception(e)


@router.delete("/rooms/{room_id}/teams", response_model=DeleteTeamsResponse)
def delete_teams_endpoint(
    room_id: int,
    user_id: str = Depends(require_current_user_id),
    session: Session = Depends(get_session),
):
    try:
        with room_mutation(session, room_id) as room:
            require_room_owner(room, user_id)
            deleted = delete_all_teams(session, room)
    except RoomEngineError as e:
        raise to_http_exception(e)

    return DeleteTeamsResponse(deleted_teams=deleted)


@router.patch("/rooms/{room_id}/teams/{team_id}", response_model=TeamResponse)
def rename_team(
    room_id: int,
    team_id: int,
    request: TeamRenameRequest,
    user_id: str = Depends(require_current_user_id),
    session: Session = Depends(get_session),
):
    try:
        with room_mutation(session, room_id) as room:
            require_room_owner(room, user_id)
            update_team_name(session, room, team_id, request.team_name)
        teams = _load_teams(session, room_id)
    except RoomEngineError as e:
        raise to_http_exception(e)

    return next(team for team in teams if team.id == team_id)


# ============================================================================
# Allocation Endpoints
# ============================================================================


@router.put("/rooms/{room_id}/players/{player_id}/team", response_model=PlayerResponse)
def set_player_team(
    room_id: int,
    player_id: int,
    request: TeamAssignmentRequest,
    user_id: str = Depends(require_current_user_id),
    session: Session = Depends(get_session),
):
    """
    Manually move a player to a team, or unassign with team_id=null.

    Team capacity is not enforced here; check is_full on the teams listing.
    """
    try:
        with room_mutation(session, room_id) as room:
            require_room_owner(room, user_id)
            if request.team_id is None:
                player = remove_player_from_team(session, room, player_id)
            else:
                player = assign_player_to_team(session, room, player_id, request.team_id)
    except RoomEngineError as e:
        raise to_http_exception(e)

    session.refresh(player)
    return player


@router.post("/rooms/{room_id}/teams/allocate", response_model=AllocationResponse)
def allocate_players(
    room_id: int,
    user_id: str = Depends(require_current_user_id),
    session: Session = Depends(get_session),
):
    """Randomly seat unassigned active players, filling teams one at a time in name order."""
    try:
        with room_mutation(session, room_id) as room:
            require_room_owner(room, user_id)
            result = randomly_allocate_players(session, room)
        teams = _load_teams(session, room_id)
    except RoomEngineError as e:
        raise to_http_exception(e)

    return AllocationResponse(
        assigned_count=result.assigned_count,
        promoted_count=result.promoted_count,
        unassigned_active_count=result.unassigned_active_count,
        teams=teams,
    )


@router.post("/rooms/{room_id}/teams/reshuffle", response_model=AllocationResponse)
def reshuffle_players(
    room_id: int,
    request: Optional[ReshuffleRequest] = None,
    user_id: str = Depends(require_current_user_id),
    session: Session = Depends(get_session),
):
    """
    Clear every assignment and reseat everyone at random.

    With pull_from_waiting_list, spare seats go to waiting players in position order
    and those players become active.
    """
    if request is None:
        request = ReshuffleRequest()

    try:
        with room_mutation(session, room_id) as room:
            require_room_owner(room, user_id)
            result = fully_random_allocate(session, room, pull_from_waiting_list=request.pull_from_waiting_list)
        teams = _load_teams(session, room_id)
    except RoomEngineError as e:
        raise to_http_exception(e)

    return AllocationResponse(
        assigned_count=result.assigned_count,
        promoted_count=result.promoted_count,
        unassigned_active_count=result.unassigned_active_count,
        teams=teams,
    )
