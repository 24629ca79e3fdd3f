"""Tests for :mod:`memecoin_trading_system.utils.scheduler`."""

from __future__ import annotations

import asyncio

import pytest

from memecoin_trading_system.utils import ManualClock, PeriodicTask, Scheduler, async_retry


def test_tasks_run_on_their_own_interval() -> None:
    clock = ManualClock()
    scheduler = Scheduler(clock)
    fast_runs: list = []
    slow_runs: list = []

    async def fast() -> None:
        fast_runs.append(clock.monotonic())

    async def slow() -> None:
        slow_runs.append(clock.monotonic())

    scheduler.add('fast', fast, 60, run_on_start=True)
    scheduler.add('slow', slow, 120)

    async def _exercise() -> None:
        scheduler.start()
        await asyncio.sleep(0)
        for _ in range(4):
            await clock.advance(60)
        await scheduler.stop()

    asyncio.run(_exercise())

    assert fast_runs == [0.0, 60.0, 120.0, 180.0, 240.0]
    assert slow_runs == [120.0, 240.0]
    assert all(not task.is_running for task in scheduler.tasks)


def test_failing_run_is_counted_and_schedule_continues() -> None:
    clock = ManualClock()
    attempts: list[int] = []

    async def flaky() -> None:
        attempts.append(len(attempts))
        if len(attempts) == 1:
            raise RuntimeError('feed down')

    task = PeriodicTask('flaky', flaky, 30, clock=clock, run_on_start=True)

    async def _exercise() -> None:
        task.start()
        await asyncio.sleep(0)
        await clock.advance(30)
        await task.stop()

    asyncio.run(_exercise())

    status = task.status()
    assert status['runs'] == 2
    assert status['failures'] == 1
    assert 'feed down' in status['last_error']


def test_stop_cancels_pending_sleep() -> None:
    clock = ManualClock()
    runs: list = []

    async def record() -> None:
        runs.append(1)

    task = PeriodicTask('idle', record, 3600, clock=clock)

    async def _exercise() -> None:
        task.start()
        await asyncio.sleep(0)
        assert task.is_running
        await task.stop()

    asyncio.run(_exercise())

    assert runs == []
    assert not task.is_running


def test_invalid_registration_is_rejected() -> None:
    scheduler = Scheduler(ManualClock())

    async def noop() -> None:
        return None

    scheduler.add('detector', noop, 120)
    with pytest.raises(ValueError):
        scheduler.add('detector', noop, 120)
    with pytest.raises(ValueError):
        scheduler.add('monitor', noop, 0)
    assert list(scheduler.status()) == ['detector']


def test_async_retry_backs_off_then_gives_up() -> None:
    clock = ManualClock(auto_advance=True)
    calls: list[int] = []

    @async_retry(retries=3, delay=1.0, exceptions=(ConnectionError,), sleep=clock.sleep)
    async def connect() -> None:
        calls.append(1)
        raise ConnectionError('refused')

    with pytest.raises(ConnectionError):
        asyncio.run(connect())

    assert len(calls) == 3
    assert clock.sleeps == [1.0, 2.0]
