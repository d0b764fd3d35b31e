"""
Match API Routes
Round-robin fixture generation, result entry, display order, league standings and
the rotational-mode schedule.
"""

from datetime import datetime
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlmodel import Session

from app.database import get_session
from app.identity import require_current_user_id
from app.models.match import Match, MatchStatus
from app.services.allocation_engine import get_room_teams, team_rosters
from app.services.errors import RoomEngineError
from app.services.permissions import require_room_owner
from app.services.schedule_engine import (
    clear_match_result,
    generate_round_robin_matches,
    get_room_matches,
    league_standings,
    rotation_schedule,
    swap_match_order,
    team_names,
    update_match_result,
)
from app.services.unit_of_work import load_room, room_mutation
from app.utils.engine_errors import to_http_exception

router = APIRouter()


# ============================================================================
# Request/Response Models
# ============================================================================


class MatchResponse(BaseModel):
    id: int
    room_id: int
    team1_id: int
    team1_name: Optional[str] = None
    team2_id: int
    team2_name: Optional[str] = None
    status: MatchStatus
    team1_score: Optional[int] = None
    team2_score: Optional[int] = None
    round: int
    order: int
    created_at: datetime


class MatchResultRequest(BaseModel):
    team1_score: int = Field(ge=0)
    team2_score: int = Field(ge=0)


class MatchSwapRequest(BaseModel):
    match1_id: int
    match2_id: int


class StandingResponse(BaseModel):
    rank: int
    team_id: int
    team_name: str
    played: int
    won: int
    drawn: int
    lost: int
    goals_for: int
    goals_against: int
    goal_difference: int
    points: int


class RotationColumn(BaseModel):
    team_id: int
    team_name: str
    player_ids: List[int]


class RotationRound(BaseModel):
    round: int
    columns: List[RotationColumn]


def match_to_response(match: Match, names: Dict[int, str]) -> MatchResponse:
    return MatchResponse(
        id=match.id,
        room_id=match.room_id,
        team1_id=match.team1_id,
        team1_name=names.get(match.team1_id),
        team2_id=match.team2_id,
        team2_name=names.get(match.team2_id),
        status=match.status,
        team1_score=match.team1_score,
        team2_score=match.team2_score,
        round=match.round,
        order=match.order,
        created_at=match.created_at,
    )


def _matches_response(session: Session, room_id: int) -> List[MatchResponse]:
    names = team_names(session, room_id)
    return [match_to_response(match, names) for match in get_room_matches(session, room_id)]


# ============================================================================
# Match Endpoints
# ============================================================================


@router.post("/rooms/{room_id}/matches/generate", response_model=List[MatchResponse], status_code=201)
def generate_matches(
    room_id: int,
    confirm: bool = Query(False, description="Required when matches already exist; discards all results"),
    user_id: str = Depends(require_current_user_id),
    session: Session = Depends(get_session),
):
    """
    Generate a round-robin schedule between all of the room's teams.

    Replaces any existing matches. Returns 409 unless confirm=true when the room
    already has matches.
    """
    try:
        with room_mutation(session, room_id) as room:
            require_room_owner(room, user_id)
            generate_round_robin_matches(session, room, confirm=confirm)
    except RoomEngineError as e:
        raise to_http_exception(e)

    return _matches_response(session, room_id)


@router.get("/rooms/{room_id}/matches", response_model=List[MatchResponse])
def get_matches(room_id: int, session: Session = Depends(get_session)):
    """Matches in display order."""
    try:
        load_room(session, room_id)
    except RoomEngineError as e:
        raise to_http_exception(e)
    return _matches_response(session, room_id)


@router.put("/rooms/{room_id}/matches/{match_id}/result", response_model=MatchResponse)
def set_match_result(
    room_id: int,
    match_id: int,
    request: MatchResultRequest,
    user_id: str = Depends(require_current_user_id),
    session: Session = Depends(get_session),
):
    """Record both scores and mark the match completed. Re-entering overwrites."""
    try:
        with room_mutation(session, room_id) as room:
            require_room_owner(room, user_id)
            match = update_match_result(session, room, match_id, request.team1_score, request.team2_score)
    except RoomEngineError as e:
        raise to_http_exception(e)

    session.refresh(match)
    return match_to_response(match, team_names(session, room_id))


@router.delete("/rooms/{room_id}/matches/{match_id}/result", response_model=MatchResponse)
def delete_match_result(
    room_id: int,
    match_id: int,
    user_id: str = Depends(require_current_user_id),
    session: Session = Depends(get_session),
):
    """Clear the scores and put the match back to scheduled."""
    try:
        with room_mutation(session, room_id) as room:
            require_room_owner(room, user_id)
            match = clear_match_result(session, room, match_id)
    except RoomEngineError as e:
        raise to_http_exception(e)

    session.refresh(match)
    return match_to_response(match, team_names(session, room_id))


@router.post("/rooms/{room_id}/matches/swap", response_model=List[MatchResponse])
def swap_matches(
    room_id: int,
    request: MatchSwapRequest,
    user_id: str = Depends(require_current_user_id),
    session: Session = Depends(get_session),
):
    """Exchange the display order of two matches. Returns the full reordered list."""
    try:
        with room_mutation(session, room_id) as room:
            require_room_owner(room, user_id)
            swap_match_order(session, room, request.match1_id, request.match2_id)
    except RoomEngineError as e:
        raise to_http_exception(e)

    return _matches_response(session, room_id)


# ============================================================================
# Derived views
# ============================================================================


@router.get("/rooms/{room_id}/standings", response_model=List[StandingResponse])
def get_standings(room_id: int, session: Session = Depends(get_session)):
    """League table computed from completed matches."""
    try:
        load_room(session, room_id)
    except RoomEngineError as e:
        raise to_http_exception(e)

    return [
        StandingResponse(
            rank=rank,
            team_id=standing.team_id,
            team_name=standing.team_name,
            played=standing.played,
            won=standing.won,
            drawn=standing.drawn,
            lost=standing.lost,
            goals_for=standing.goals_for,
            goals_against=standing.goals_against,
            goal_difference=standing.goal_difference,
            points=standing.points,
        )
        for rank, standing in enumerate(league_standings(session, room_id), start=1)
    ]


@router.get("/rooms/{room_id}/rotation", response_model=List[RotationRound])
def get_rotation(room_id: int, session: Session = Depends(get_session)):
    """Rotational mode: which team roster sits in each column, round by round."""
    try:
        load_room(session, room_id)
    except RoomEngineError as e:
        raise to_http_exception(e)

    teams = get_room_teams(session, room_id)
    names = {team.id: team.team_name for team in teams}
    rosters = team_rosters(session, room_id)

    return [
        RotationRound(
            round=round_number,
            columns=[
                RotationColumn(
                    team_id=team_id,
                    team_name=names[team_id],
                    player_ids=[p.id for p in rosters.get(team_id, [])],
                )
                for team_id in column_team_ids
            ],
        )
        for round_number, column_team_ids in enumerate(rotation_schedule([team.id for team in teams]), start=1)
    ]
