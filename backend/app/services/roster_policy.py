"""
Roster Policy: decides active/waiting status and slot position for every player.

A room's roster is a pure function of (players, effective capacity):
1. Players are ordered by join time ascending. Players with no join time sort first;
   ties keep their incoming relative order (stable sort).
2. position = index + 1 (dense, 1-based, no gaps).
3. status = active when position <= effective capacity, else waiting.

Recalculation is a full overwrite of position and status, never an incremental patch,
so the result converges no matter what state the rows were in before.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Sequence

from app.models.player import Player, PlayerStatus


@dataclass
class RosterSlot:
    player: Player
    position: int
    status: PlayerStatus
    previous_position: Optional[int]
    previous_status: Optional[str]

    @property
    def status_changed(self) -> bool:
        return self.previous_status != self.status

    @property
    def changed(self) -> bool:
        return self.status_changed or self.previous_position != self.position


def effective_capacity(accepted_capacity: int, num_teams: int, players_per_team: int) -> int:
    """A room never holds more active players than its teams have seats."""
    return min(accepted_capacity, num_teams * players_per_team)


def status_for_position(position: int, capacity: int) -> PlayerStatus:
    return PlayerStatus.active if position <= capacity else PlayerStatus.waiting


def order_by_join_time(players: Sequence[Player]) -> List[Player]:
    def sort_key(player: Player):
        # added_at: nulls first, ascending
        return (
            player.added_at is not None,
            player.added_at if player.added_at is not None else datetime.min,
        )

    return sorted(players, key=sort_key)


def recalculate_statuses(players: Sequence[Player], capacity: int) -> List[RosterSlot]:
    """
    Compute position and status for every player in a room.

    Args:
        players: All players currently recorded for the room, in insertion order
        capacity: Effective capacity (see effective_capacity)

    Returns:
        One RosterSlot per player, in position order. The players themselves are not
        modified; use apply_roster to write the result back.
    """
    slots: List[RosterSlot] = []
    for index, player in enumerate(order_by_join_time(players)):
        position = index + 1
        slots.append(
            RosterSlot(
                player=player,
                position=position,
                status=status_for_position(position, capacity),
                previous_position=player.position,
                previous_status=player.status,
            )
        )
    return slots


def apply_roster(slots: Sequence[RosterSlot]) -> None:
    """Overwrite position and status on every player from a computed roster."""
    for slot in slots:
        slot.player.position = slot.position
        slot.player.status = slot.status


def status_for_new_player(active_count: int, capacity: int) -> PlayerStatus:
    """
    Status for a single new arrival appended at the end of the join order.

    Active only while fewer than `capacity` players are active; an arrival never
    displaces an existing active player.
    """
    return PlayerStatus.active if active_count < capacity else PlayerStatus.waiting
