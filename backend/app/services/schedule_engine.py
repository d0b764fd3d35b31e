"""
Schedule Engine: round-robin fixtures and derived league standings.

Fixtures use the circle method. With n teams (padded with one BYE when n is odd) the
schedule has n' - 1 rounds of n' / 2 slots; for round r and slot m (both 0-based):
    home = (r + m) mod (n' - 1)
    away = n' - 1                      when m == 0 (last entry never rotates)
         = (n' - 1 - m + r) mod (n' - 1) otherwise
Fixtures against the BYE are dropped. `order` is a strictly increasing counter in
generation sequence.

Standings are never stored: they are recomputed from completed matches on every read.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Sequence

from sqlmodel import Session, select

from app.models.match import Match, MatchStatus
from app.models.room import Room, RoomStatus
from app.models.team import Team
from app.services.allocation_engine import get_room_teams
from app.services.errors import (
    ConfirmationRequiredError,
    InvalidScoreError,
    MatchNotFoundError,
    PreconditionError,
)

logger = logging.getLogger(__name__)

# Sentinel padding entry when the team count is odd
BYE = object()

POINTS_FOR_WIN = 3
POINTS_FOR_DRAW = 1


@dataclass
class Fixture:
    round: int  # 1-based
    order: int  # 1-based, global
    team1_id: Any
    team2_id: Any


@dataclass
class LeagueStanding:
    team_id: Any
    team_name: str
    played: int = 0
    won: int = 0
    drawn: int = 0
    lost: int = 0
    goals_for: int = 0
    goals_against: int = 0
    goal_difference: int = 0
    points: int = 0


# ============================================================================
# Pure functions
# ============================================================================


def round_robin_pairings(team_ids: Sequence[Any]) -> List[Fixture]:
    """
    Every team plays every other team exactly once.

    Deterministic: the same team list always yields the same fixtures.
    Fewer than two teams yields no fixtures.
    """
    if len(team_ids) < 2:
        return []

    slots: List[Any] = list(team_ids)
    if len(slots) % 2 == 1:
        slots.append(BYE)
    size = len(slots)
    rounds = size - 1
    matches_per_round = size // 2

    fixtures: List[Fixture] = []
    order = 0
    for rnd in range(rounds):
        for m in range(matches_per_round):
            home = (rnd + m) % (size - 1)
            away = size - 1 if m == 0 else (size - 1 - m + rnd) % (size - 1)

            team1, team2 = slots[home], slots[away]
            if team1 is BYE or team2 is BYE:
                continue

            order += 1
            fixtures.append(Fixture(round=rnd + 1, order=order, team1_id=team1, team2_id=team2))
    return fixtures


def validate_score(value: Any, label: str = "score") -> int:
    """Scores are non-negative integers (bools rejected)."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidScoreError(f"{label} must be an integer, got {value!r}")
    if value < 0:
        raise InvalidScoreError(f"{label} must be >= 0, got {value}")
    return value


def calculate_league_standings(teams: Sequence[Team], matches: Sequence[Match]) -> List[LeagueStanding]:
    """
    League table from completed matches.

    Win = 3 points, draw = 1 point each. Sorted by points, goal difference, then goals
    scored, all descending; remaining ties keep the order of `teams` (stable sort), so
    the order of `matches` never affects the result.
    """
    standings: Dict[Any, LeagueStanding] = {}
    for team in teams:
        standings[team.id] = LeagueStanding(team_id=team.id, team_name=team.team_name)

    for match in matches:
        if match.status != MatchStatus.completed or match.team1_score is None or match.team2_score is None:
            continue

        team1 = standings.get(match.team1_id)
        team2 = standings.get(match.team2_id)
        if team1 is None or team2 is None:
            continue

        team1.played += 1
        team2.played += 1
        team1.goals_for += match.team1_score
        team1.goals_against += match.team2_score
        team2.goals_for += match.team2_score
        team2.goals_against += match.team1_score

        if match.team1_score > match.team2_score:
            team1.won += 1
            team1.points += POINTS_FOR_WIN
            team2.lost += 1
        elif match.team2_score > match.team1_score:
            team2.won += 1
            team2.points += POINTS_FOR_WIN
            team1.lost += 1
        else:
            team1.drawn += 1
            team2.drawn += 1
            team1.points += POINTS_FOR_DRAW
            team2.points += POINTS_FOR_DRAW

    for standing in standings.values():
        standing.goal_difference = standing.goals_for - standing.goals_against

    return sorted(
        standings.values(),
        key=lambda s: (-s.points, -s.goal_difference, -s.goals_for),
    )


def rotation_round_count(team_count: int) -> int:
    return team_count - 1 if team_count > 1 else 1


def rotation_schedule(team_ids: Sequence[Any]) -> List[List[Any]]:
    """
    Rotational mode: in round r (1-based), column i shows the roster of team
    (i + r - 1) mod n. Returns one list of team ids per round.
    """
    n = len(team_ids)
    if n == 0:
        return []
    return [
        [team_ids[(index + round_number - 1) % n] for index in range(n)]
        for round_number in range(1, rotation_round_count(n) + 1)
    ]


# ============================================================================
# Persistence (caller owns the transaction, see unit_of_work.room_mutation)
# ============================================================================


def get_room_matches(session: Session, room_id: int) -> List[Match]:
    """Matches in display order."""
    return list(
        session.exec(select(Match).where(Match.room_id == room_id).order_by(Match.order, Match.id)).all()
    )


def get_room_match(session: Session, room_id: int, match_id: int) -> Match:
    match = session.get(Match, match_id)
    if not match or match.room_id != room_id:
        raise MatchNotFoundError(match_id)
    return match


def generate_round_robin_matches(session: Session, room: Room, confirm: bool = False) -> List[Match]:
    """
    Replace all of a room's matches with a fresh round-robin schedule.

    Not idempotent: existing matches and their results are deleted, so regenerating
    over existing matches requires confirm=True. Room moves to in-progress.
    """
    teams = get_room_teams(session, room.id)
    if len(teams) < 2:
        raise PreconditionError(f"Need at least 2 teams to generate matches, room has {len(teams)}")

    existing = get_room_matches(session, room.id)
    if existing and not confirm:
        raise ConfirmationRequiredError(
            f"Room already has {len(existing)} matches; regenerating discards all results"
        )
    for match in existing:
        session.delete(match)
    session.flush()

    fixtures = round_robin_pairings([team.id for team in teams])
    matches = [
        Match(
            room_id=room.id,
            team1_id=fixture.team1_id,
            team2_id=fixture.team2_id,
            status=MatchStatus.scheduled,
            team1_score=None,
            team2_score=None,
            round=fixture.round,
            order=fixture.order,
        )
        for fixture in fixtures
    ]
    for match in matches:
        session.add(match)

    room.status = RoomStatus.in_progress
    session.add(room)
    session.flush()

    logger.info(
        f"Room {room.id}: generated {len(matches)} matches over "
        f"{max((f.round for f in fixtures), default=0)} rounds for {len(teams)} teams "
        f"(replaced {len(existing)})"
    )
    return matches


def update_match_result(
    session: Session, room: Room, match_id: int, team1_score: Any, team2_score: Any
) -> Match:
    """Set both scores together and mark the match completed."""
    score1 = validate_score(team1_score, "team1_score")
    score2 = validate_score(team2_score, "team2_score")
    match = get_room_match(session, room.id, match_id)

    match.team1_score = score1
    match.team2_score = score2
    match.status = MatchStatus.completed
    session.add(match)
    session.flush()
    return match


def clear_match_result(session: Session, room: Room, match_id: int) -> Match:
    match = get_room_match(session, room.id, match_id)
    match.team1_score = None
    match.team2_score = None
    match.status = MatchStatus.scheduled
    session.add(match)
    session.flush()
    return match


def swap_match_order(session: Session, room: Room, match1_id: int, match2_id: int) -> List[Match]:
    match1 = get_room_match(session, room.id, match1_id)
    match2 = get_room_match(session, room.id, match2_id)
    match1.order, match2.order = match2.order, match1.order
    session.add(match1)
    session.add(match2)
    session.flush()
    return [match1, match2]


def league_standings(session: Session, room_id: int) -> List[LeagueStanding]:
    return calculate_league_standings(get_room_teams(session, room_id), get_room_matches(session, room_id))


def team_names(session: Session, room_id: int) -> Dict[int, str]:
    return {team.id: team.team_name for team in get_room_teams(session, room_id)}

