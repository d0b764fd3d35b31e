"""
Roster policy: join order decides position, position decides active/waiting.
Pure functions, no database.
"""
from datetime import datetime, timedelta

from app.models.player import Player, PlayerStatus
from app.services.roster_policy import (
    apply_roster,
    effective_capacity,
    order_by_join_time,
    recalculate_statuses,
    status_for_new_player,
)

BASE = datetime(2026, 3, 1, 12, 0, 0)


def _players(count, **kwargs):
    return [
        Player(id=i, room_id=1, player_name=f"P{i}", added_at=BASE + timedelta(minutes=i), **kwargs)
        for i in range(1, count + 1)
    ]


def test_effective_capacity_is_min_of_accepted_and_seats():
    assert effective_capacity(10, 2, 5) == 10
    assert effective_capacity(12, 2, 5) == 10
    assert effective_capacity(7, 3, 5) == 7


def test_positions_are_dense_permutation():
    players = _players(6)
    slots = recalculate_statuses(players, capacity=4)

    assert sorted(slot.position for slot in slots) == [1, 2, 3, 4, 5, 6]
    assert {slot.player.id for slot in slots} == {p.id for p in players}


def test_active_count_matches_capacity():
    slots = recalculate_statuses(_players(12), capacity=10)

    active = [s for s in slots if s.status == PlayerStatus.active]
    assert len(active) == 10
    assert all(s.position <= 10 for s in active)
    assert [s.player.player_name for s in slots if s.status == PlayerStatus.waiting] == ["P11", "P12"]


def test_fewer_players_than_capacity_all_active():
    slots = recalculate_statuses(_players(3), capacity=10)
    assert all(s.status == PlayerStatus.active for s in slots)


def test_order_follows_join_time_not_insertion_order():
    players = _players(3)
    players[0].added_at = BASE + timedelta(hours=1)  # P1 joined last

    ordered = order_by_join_time(players)
    assert [p.player_name for p in ordered] == ["P2", "P3", "P1"]


def test_missing_join_time_sorts_first_and_ties_keep_input_order():
    players = _players(4)
    players[2].added_at = None
    players[3].added_at = players[1].added_at

    ordered = order_by_join_time(players)
    assert [p.player_name for p in ordered] == ["P3", "P1", "P2", "P4"]


def test_shrinking_capacity_demotes_latest_joiners():
    players = _players(10)
    apply_roster(recalculate_statuses(players, capacity=10))

    slots = recalculate_statuses(players, capacity=8)
    demoted = [s.player.player_name for s in slots if s.status_changed]
    assert demoted == ["P9", "P10"]
    assert all(s.status == PlayerStatus.waiting for s in slots if s.status_changed)


def test_recalculation_is_idempotent():
    players = _players(7)
    apply_roster(recalculate_statuses(players, capacity=5))

    second = recalculate_statuses(players, capacity=5)
    assert not any(slot.changed for slot in second)


def test_recalculation_does_not_mutate_players_until_applied():
    players = _players(3, status=PlayerStatus.waiting, position=0)
    slots = recalculate_statuses(players, capacity=2)

    assert all(p.status == PlayerStatus.waiting for p in players)
    apply_roster(slots)
    assert [p.status for p in players] == [PlayerStatus.active, PlayerStatus.active, PlayerStatus.waiting]
    assert [p.position for p in players] == [1, 2, 3]


def test_new_player_status_never_displaces_active():
    assert status_for_new_player(active_count=9, capacity=10) == PlayerStatus.active
    assert status_for_new_player(active_count=10, capacity=10) == PlayerStatus.waiting
    assert status_for_new_player(active_count=11, capacity=10) == PlayerStatus.waiting
