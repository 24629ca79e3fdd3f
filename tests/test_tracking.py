"""Tests for :mod:`memecoin_trading_system.launch.tracking`."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from memecoin_trading_system.launch import TrackedLaunch, TrackingArena

DETECTED = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def _tracked(launch_id: str) -> TrackedLaunch:
    return TrackedLaunch(
        launch_id=launch_id,
        token_id=f'token-{launch_id}',
        symbol=launch_id.upper(),
        initial_price=0.01,
        initial_market_cap=100_000,
        detected_at=DETECTED,
    )


def test_tracked_launch_seeds_detection_snapshot() -> None:
    tracked = _tracked('a')

    assert len(tracked.snapshots) == 1
    assert tracked.last_price == 0.01

    tracked.add_snapshot(DETECTED + timedelta(minutes=2), 0.015, 150_000)
    assert tracked.last_price == 0.015
    assert tracked.elapsed_seconds(DETECTED + timedelta(minutes=2)) == 120


def test_arena_rejects_duplicates() -> None:
    arena = TrackingArena()

    assert arena.add(_tracked('a'))
    assert not arena.add(_tracked('a'))
    assert len(arena) == 1
    assert 'a' in arena


def test_evicted_slots_are_reused() -> None:
    arena = TrackingArena()
    for launch_id in ('a', 'b', 'c'):
        arena.add(_tracked(launch_id))

    evicted = arena.evict('b')
    arena.add(_tracked('d'))

    assert evicted.launch_id == 'b'
    assert arena.capacity == 3
    assert 'b' not in arena
    assert arena.get('b') is None
    assert [tracked.launch_id for tracked in arena] == ['a', 'd', 'c']
    assert arena.evict('missing') is None
