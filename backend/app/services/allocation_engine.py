"""
Allocation Engine: maps active players onto teams.

Player -> team (Player.team_id) is the single source of truth. Team rosters are always
derived from it by query, so there is no member list to keep in sync.

Operations:
- Sequential fill: shuffle unassigned active players, fill teams in name order up to
  players_per_team each, skipping full teams. Existing assignments are untouched.
- Full reshuffle: clear every assignment, shuffle the active players, optionally append
  waiting players in position order (not shuffled), keep the first
  team_count * players_per_team candidates, fill sequentially. Seated waiting players
  are promoted to active.
- Manual assignment: move one player to one team. No capacity check.
- Team (re)creation: "Team 1".."Team N" with empty rosters.
"""

import logging
import random
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from sqlmodel import Session, select

from app.models.match import Match
from app.models.player import Player, PlayerStatus
from app.models.room import Room, RoomStatus
from app.models.team import Team
from app.services.errors import (
    ConfirmationRequiredError,
    InvalidInputError,
    PlayerNotFoundError,
    PreconditionError,
    TeamNotFoundError,
)

logger = logging.getLogger(__name__)


@dataclass
class SeatAssignment:
    player: Player
    team: Team
    promoted: bool = False  # seat taken by a player drawn from the waiting list


@dataclass
class AllocationResult:
    assigned_count: int
    promoted_count: int
    unassigned_active_count: int


# ============================================================================
# Pure planning
# ============================================================================


def sort_teams_for_fill(teams: Sequence[Team]) -> List[Team]:
    """
    Fill order is plain string comparison of team names, so "Team 10" < "Team 2".

    Code-point order, not locale collation: uppercase sorts before lowercase, so
    "Team A" < "team b" but also "Team Z" < "team a".
    """
    return sorted(teams, key=lambda team: team.team_name)


def _fill_sequentially(
    candidates: Sequence[Player],
    teams: Sequence[Team],
    players_per_team: int,
    current_sizes: Dict[int, int],
) -> List[SeatAssignment]:
    assignments: List[SeatAssignment] = []
    index = 0
    for team in sort_teams_for_fill(teams):
        free_seats = players_per_team - current_sizes.get(team.id, 0)
        while free_seats > 0 and index < len(candidates):
            player = candidates[index]
            assignments.append(
                SeatAssignment(player=player, team=team, promoted=player.status == PlayerStatus.waiting)
            )
            index += 1
            free_seats -= 1
    return assignments


def team_sizes(players: Sequence[Player]) -> Dict[int, int]:
    sizes: Dict[int, int] = {}
    for player in players:
        if player.team_id is not None:
            sizes[player.team_id] = sizes.get(player.team_id, 0) + 1
    return sizes


def plan_sequential_fill(
    players: Sequence[Player],
    teams: Sequence[Team],
    players_per_team: int,
    rng: Optional[random.Random] = None,
) -> List[SeatAssignment]:
    """
    Plan seats for unassigned active players.

    Players already on a team are never moved and count towards their team's size.
    Leftovers (more candidates than free seats) are simply not in the plan.
    """
    rng = rng or random.Random()
    candidates = [p for p in players if p.status == PlayerStatus.active and p.team_id is None]
    rng.shuffle(candidates)
    return _fill_sequentially(candidates, teams, players_per_team, team_sizes(players))


def plan_full_reshuffle(
    players: Sequence[Player],
    teams: Sequence[Team],
    players_per_team: int,
    pull_from_waiting_list: bool = False,
    rng: Optional[random.Random] = None,
) -> List[SeatAssignment]:
    """
    Plan seats from scratch, ignoring current assignments.

    Only the active portion is shuffled. Waiting players keep their position order and
    are appended after it, so the earliest-waiting player gets the first spare seat.
    """
    rng = rng or random.Random()
    pool = [p for p in players if p.status == PlayerStatus.active]
    rng.shuffle(pool)

    if pull_from_waiting_list:
        waiting = sorted(
            (p for p in players if p.status == PlayerStatus.waiting),
            key=lambda p: p.position,
        )
        pool.extend(waiting)

    total_seats = len(teams) * players_per_team
    return _fill_sequentially(pool[:total_seats], teams, players_per_team, {})


# ============================================================================
# Queries
# ============================================================================


def get_room_players(session: Session, room_id: int) -> List[Player]:
    """All players of a room in insertion order."""
    return list(session.exec(select(Player).where(Player.room_id == room_id).order_by(Player.id)).all())


def get_room_teams(session: Session, room_id: int) -> List[Team]:
    """All teams of a room in creation order."""
    return list(session.exec(select(Team).where(Team.room_id == room_id).order_by(Team.id)).all())


def get_room_player(session: Session, room_id: int, player_id: int) -> Player:
    player = session.get(Player, player_id)
    if not player or player.room_id != room_id:
        raise PlayerNotFoundError(player_id)
    return player


def get_room_team(session: Session, room_id: int, team_id: int) -> Team:
    team = session.get(Team, team_id)
    if not team or team.room_id != room_id:
        raise TeamNotFoundError(team_id)
    return team


def team_rosters(session: Session, room_id: int) -> Dict[int, List[Player]]:
    """Derived roster per team id, players in position order."""
    rosters: Dict[int, List[Player]] = {team.id: [] for team in get_room_teams(session, room_id)}
    players = session.exec(
        select(Player).where(Player.room_id == room_id, Player.team_id.is_not(None)).order_by(Player.position)
    ).all()
    for player in players:
        if player.team_id in rosters:
            rosters[player.team_id].append(player)
    return rosters


# ============================================================================
# Mutations (caller owns the transaction, see unit_of_work.room_mutation)
# ============================================================================


def _apply_assignments(session: Session, assignments: Sequence[SeatAssignment]) -> int:
    promoted = 0
    for seat in assignments:
        seat.player.team_id = seat.team.id
        if seat.promoted:
            seat.player.status = PlayerStatus.active
            promoted += 1
        session.add(seat.player)
    session.flush()
    return promoted


def _count_unassigned_active(players: Sequence[Player]) -> int:
    return sum(1 for p in players if p.status == PlayerStatus.active and p.team_id is None)


def randomly_allocate_players(
    session: Session, room: Room, rng: Optional[random.Random] = None
) -> AllocationResult:
    """Sequential fill of unassigned active players. No-op without teams or active players."""
    teams = get_room_teams(session, room.id)
    players = get_room_players(session, room.id)

    if not teams or not any(p.status == PlayerStatus.active for p in players):
        logger.info(f"Room {room.id}: nothing to allocate ({len(teams)} teams, {len(players)} players)")
        return AllocationResult(0, 0, _count_unassigned_active(players))

    assignments = plan_sequential_fill(players, teams, room.players_per_team, rng)
    _apply_assignments(session, assignments)

    leftover = _count_unassigned_active(players)
    logger.info(f"Room {room.id}: sequential fill seated {len(assignments)} players, {leftover} left unassigned")
    return AllocationResult(len(assignments), 0, leftover)


def fully_random_allocate(
    session: Session,
    room: Room,
    pull_from_waiting_list: bool = False,
    rng: Optional[random.Random] = None,
) -> AllocationResult:
    """Full reshuffle. No-op without teams or active players."""
    teams = get_room_teams(session, room.id)
    players = get_room_players(session, room.id)

    if not teams or not any(p.status == PlayerStatus.active for p in players):
        logger.info(f"Room {room.id}: nothing to reshuffle ({len(teams)} teams, {len(players)} players)")
        return AllocationResult(0, 0, _count_unassigned_active(players))

    for player in players:
        if player.team_id is not None:
            player.team_id = None
            session.add(player)

    assignments = plan_full_reshuffle(players, teams, room.players_per_team, pull_from_waiting_list, rng)
    promoted = _apply_assignments(session, assignments)

    leftover = _count_unassigned_active(players)
    logger.info(
        f"Room {room.id}: full reshuffle seated {len(assignments)} players "
        f"({promoted} promoted from waiting list), {leftover} active left unassigned"
    )
    return AllocationResult(len(assignments), promoted, leftover)


def assign_player_to_team(session: Session, room: Room, player_id: int, team_id: int) -> Player:
    """Move one player to a team regardless of its fill level. Idempotent."""
    player = get_room_player(session, room.id, player_id)
    team = get_room_team(session, room.id, team_id)

    player.team_id = team.id
    session.add(player)
    session.flush()

    size = len(team_rosters(session, room.id)[team.id])
    if size > room.players_per_team:
        logger.warning(f"Room {room.id}: team '{team.team_name}' now has {size}/{room.players_per_team} players")
    return player


def remove_player_from_team(session: Session, room: Room, player_id: int) -> Player:
    player = get_room_player(session, room.id, player_id)
    player.team_id = None
    session.add(player)
    session.flush()
    return player


def update_team_name(session: Session, room: Room, team_id: int, team_name: str) -> Team:
    team = get_room_team(session, room.id, team_id)
    name = (team_name or "").strip()
    if not name:
        raise InvalidInputError("team_name must not be empty")
    team.team_name = name
    session.add(team)
    session.flush()
    return team


def create_teams(session: Session, room: Room) -> List[Team]:
    """Create room.num_teams empty teams named "Team 1".."Team N"; room moves to allocating."""
    if room.num_teams < 2 or room.players_per_team < 1:
        raise PreconditionError(
            f"Cannot create teams: num_teams={room.num_teams}, players_per_team={room.players_per_team}"
        )
    if get_room_teams(session, room.id):
        raise PreconditionError("Teams already exist for this room; recreate them instead")

    teams = [Team(room_id=room.id, team_name=f"Team {i}") for i in range(1, room.num_teams + 1)]
    for team in teams:
        session.add(team)

    room.status = RoomStatus.allocating
    session.add(room)
    session.flush()

    logger.info(f"Room {room.id}: created {len(teams)} teams")
    return teams


def delete_all_teams(session: Session, room: Room) -> int:
    """
    Delete every team of a room.

    Clears all player assignments and deletes the room's matches first, since both
    reference team ids. Returns the number of teams deleted.
    """
    for player in get_room_players(session, room.id):
        if player.team_id is not None:
            player.team_id = None
            session.add(player)

    for match in session.exec(select(Match).where(Match.room_id == room.id)).all():
        session.delete(match)

    # Flush children before deleting teams so FK constraints are satisfied
    session.flush()

    teams = get_room_teams(session, room.id)
    for team in teams:
        session.delete(team)
    session.flush()
    return len(teams)


def recreate_teams(session: Session, room: Room, confirm: bool = False) -> List[Team]:
    """Destructive: replaces all teams (and assignments) with a fresh set."""
    if room.num_teams < 2 or room.players_per_team < 1:
        raise PreconditionError(
            f"Cannot create teams: num_teams={room.num_teams}, players_per_team={room.players_per_team}"
        )
    if get_room_teams(session, room.id) and not confirm:
        raise ConfirmationRequiredError("Recreating teams clears all team assignments; confirm to proceed")

    deleted = delete_all_teams(session, room)
    logger.info(f"Room {room.id}: deleted {deleted} teams before recreation")
    return create_teams(session, room)
