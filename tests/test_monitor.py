"""Tests for :mod:`memecoin_trading_system.launch.monitor`."""

from __future__ import annotations

import asyncio
from datetime import timedelta

from memecoin_trading_system.config import MonitorConfig
from memecoin_trading_system.database import LaunchStatus, LaunchStore
from memecoin_trading_system.launch import PerformanceMonitor
from memecoin_trading_system.launch.analysis import analyze_launch
from memecoin_trading_system.monitoring import LAUNCH_DETECTED, NotificationCenter

CONFIG = MonitorConfig(tick_interval=600, observation_window=3600)


class FlakyStore(LaunchStore):
    """Fails the first analysis write."""

    def __init__(self, database) -> None:
        super().__init__(database)
        self.analysis_attempts = 0

    async def create_launch_analysis(self, analysis, *, created_at=None):
        self.analysis_attempts += 1
        if self.analysis_attempts == 1:
            raise RuntimeError('database is locked')
        return await super().create_launch_analysis(analysis, created_at=created_at)


def _launch(database, clock, price: float = 0.01, market_cap: float = 200_000):
    token = database.create_token(
        symbol='PEPE2',
        name='Pepe Two',
        external_id='coingecko:pepe-two',
        current_price=price,
        market_cap=market_cap,
    )
    return database.create_launch_coin(
        token_id=token.id,
        launch_price=price,
        initial_market_cap=market_cap,
        initial_volume=25_000,
        minutes_on_market=0,
        detected_at=clock.now(),
    )


def _set_price(database, price: float, market_cap: float) -> None:
    database.upsert_market_token(
        external_id='coingecko:pepe-two',
        symbol='PEPE2',
        name='Pepe Two',
        current_price=price,
        market_cap=market_cap,
        volume_24h=25_000,
        price_change_24h=50.0,
    )


async def _run_window(monitor: PerformanceMonitor, database, clock, prices: list[float]) -> list:
    outcomes = []
    for price in prices:
        await clock.advance(CONFIG.tick_interval)
        _set_price(database, price, price * 20_000_000)
        outcomes.extend(await monitor.tick())
    return outcomes


def test_launch_that_doubles_by_window_end_is_success(database, store, clock) -> None:
    launch = _launch(database, clock)
    monitor = PerformanceMonitor(store, CONFIG, clock=clock)
    assert monitor.track_launch(launch, launch.launch_price, launch.initial_market_cap)

    outcomes = asyncio.run(
        _run_window(monitor, database, clock, [0.011, 0.013, 0.015, 0.017, 0.019, 0.021])
    )

    assert [outcome.outcome for outcome in outcomes] == ['success']
    stored = database.get_launch_coin(launch.id)
    assert stored.status == LaunchStatus.SUCCESS.value
    assert stored.outcome_price == 0.021
    assert stored.evaluated_at == clock.now()
    assert database.get_launch_analysis_by_launch_id(launch.id).outcome_type == 'success'
    assert len(monitor.arena) == 0
    assert monitor.completed == 1
    assert monitor.successes == 1


def test_peak_that_fades_is_failure(database, store, clock) -> None:
    launch = _launch(database, clock)
    monitor = PerformanceMonitor(store, CONFIG, clock=clock)
    monitor.track_launch(launch, launch.launch_price, launch.initial_market_cap)

    outcomes = asyncio.run(
        _run_window(monitor, database, clock, [0.015, 0.025, 0.022, 0.02, 0.018, 0.015])
    )

    assert outcomes[0].outcome == 'failure'
    assert outcomes[0].peak_gain > 1.0
    assert database.get_launch_coin(launch.id).status == LaunchStatus.FAILURE.value
    assert monitor.successes == 0


def test_launches_inside_window_are_not_finalized(database, store, clock) -> None:
    launch = _launch(database, clock)
    monitor = PerformanceMonitor(store, CONFIG, clock=clock)
    monitor.track_launch(launch, launch.launch_price, launch.initial_market_cap)

    outcomes = asyncio.run(_run_window(monitor, database, clock, [0.02, 0.03]))

    assert outcomes == []
    assert len(monitor.arena.get(launch.id).snapshots) == 3
    assert monitor.momentum_for(launch.id) == 0.0
    assert database.get_launch_coin(launch.id).status == LaunchStatus.MONITORING.value


def test_traded_launch_is_still_classified(database, store, clock) -> None:
    launch = _launch(database, clock)
    database.transition_launch_status(launch.id, LaunchStatus.TRADED.value, [LaunchStatus.MONITORING.value])
    monitor = PerformanceMonitor(store, CONFIG, clock=clock)
    monitor.track_launch(launch, launch.launch_price, launch.initial_market_cap)

    asyncio.run(_run_window(monitor, database, clock, [0.012] * 5 + [0.025]))

    assert database.get_launch_coin(launch.id).status == LaunchStatus.SUCCESS.value


def test_existing_analysis_is_not_overwritten(database, store, clock) -> None:
    launch = _launch(database, clock)
    monitor = PerformanceMonitor(store, CONFIG, clock=clock)
    monitor.track_launch(launch, launch.launch_price, launch.initial_market_cap)
    earlier = analyze_launch(monitor.arena.get(launch.id))
    database.create_launch_analysis(earlier.to_record(launch.id), created_at=clock.now())

    asyncio.run(_run_window(monitor, database, clock, [0.03] * 6))

    assert len(database.list_launch_analyses()) == 1
    assert database.get_launch_analysis_by_launch_id(launch.id).outcome_type == 'failure'
    assert database.get_launch_coin(launch.id).status == LaunchStatus.SUCCESS.value
    assert monitor.completed == 0
    assert len(monitor.arena) == 0


def test_failed_finalization_is_retried_next_tick(database, clock) -> None:
    store = FlakyStore(database)
    launch = _launch(database, clock)
    monitor = PerformanceMonitor(store, CONFIG, clock=clock)
    monitor.track_launch(launch, launch.launch_price, launch.initial_market_cap)

    first = asyncio.run(_run_window(monitor, database, clock, [0.011] * 6))
    assert first == []
    assert launch.id in monitor.arena

    second = asyncio.run(_run_window(monitor, database, clock, [0.011]))
    assert [outcome.outcome for outcome in second] == ['failure']
    assert store.analysis_attempts == 2
    assert launch.id not in monitor.arena


def test_start_rehydrates_launches_inside_window(database, store, clock) -> None:
    recent = _launch(database, clock)
    stale_token = database.create_token(symbol='OLD', name='Old', current_price=1.0, market_cap=100_000)
    database.create_launch_coin(
        token_id=stale_token.id,
        launch_price=1.0,
        initial_market_cap=100_000,
        initial_volume=1_000,
        minutes_on_market=0,
        detected_at=clock.now() - timedelta(hours=2),
    )
    monitor = PerformanceMonitor(store, CONFIG, clock=clock)

    resumed = asyncio.run(monitor.start())

    assert resumed == 1
    assert recent.id in monitor.arena
    assert len(monitor.arena.get(recent.id).snapshots) == 2
    assert monitor.status()['is_running'] is True


def test_launch_detected_notification_starts_tracking(database, store, clock) -> None:
    launch = _launch(database, clock)
    notifications = NotificationCenter(clock=clock)
    monitor = PerformanceMonitor(store, CONFIG, clock=clock, notifications=notifications)

    async def _exercise() -> None:
        await monitor.start()
        monitor.arena.evict(launch.id)
        await notifications.emit(LAUNCH_DETECTED, {'launch_id': launch.id})
        await notifications.emit(LAUNCH_DETECTED, {'launch_id': 'missing'})
        await monitor.stop()

    asyncio.run(_exercise())

    tracked = monitor.arena.get(launch.id)
    assert tracked is not None
    assert tracked.initial_price == 0.01
    assert len(monitor.arena) == 1
