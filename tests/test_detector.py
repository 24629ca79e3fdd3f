"""Tests for :mod:`memecoin_trading_system.launch.detector`."""

from __future__ import annotations

import asyncio

from memecoin_trading_system.config import DetectorConfig
from memecoin_trading_system.data import MarketToken
from memecoin_trading_system.database import LaunchStatus
from memecoin_trading_system.launch import LaunchDetector
from memecoin_trading_system.monitoring import LAUNCH_DETECTED, NotificationCenter


def _token(coin_id: str, **fields) -> MarketToken:
    values = {
        'coin_id': coin_id,
        'symbol': coin_id[:4].upper(),
        'name': coin_id.title(),
        'current_price': 0.01,
        'market_cap': 500_000.0,
        'volume_24h': 25_000.0,
        'price_change_24h': 30.0,
    }
    values.update(fields)
    return MarketToken(**values)


class StubGateway:
    def __init__(self, tokens: list[MarketToken]) -> None:
        self.tokens = tokens
        self.calls = 0

    async def list_active_tokens(self) -> list[MarketToken]:
        self.calls += 1
        return list(self.tokens)


def test_matches_applies_every_criterion(store, clock) -> None:
    detector = LaunchDetector(StubGateway([]), store, DetectorConfig(), clock=clock)

    assert detector.matches(_token('fresh'))
    assert detector.matches(_token('dumping', price_change_24h=-45.0))
    assert not detector.matches(_token('free', current_price=0.0))
    assert not detector.matches(_token('dust', market_cap=5_000.0))
    assert not detector.matches(_token('giant', market_cap=80_000_000.0))
    assert not detector.matches(_token('flat', price_change_24h=4.0))
    assert not detector.matches(_token('quiet', volume_24h=100.0))


def test_scan_registers_each_token_once(database, store, clock) -> None:
    gateway = StubGateway([_token('pepe-two'), _token('flat', price_change_24h=1.0)])
    detector = LaunchDetector(gateway, store, clock=clock)

    async def _exercise() -> tuple[list, list]:
        first = await detector.scan()
        await clock.advance(120)
        second = await detector.scan()
        return first, second

    first, second = asyncio.run(_exercise())

    assert [launch.symbol for launch in first] == ['PEPE']
    assert second == []
    launches = database.get_monitoring_launch_coins()
    assert len(launches) == 1
    assert launches[0].launch_price == 0.01
    assert launches[0].status == LaunchStatus.MONITORING.value
    assert database.get_token_by_external_id('coingecko:pepe-two') is not None
    assert detector.launches_detected == 1


def test_finalized_launch_is_registered_again(database, store, clock) -> None:
    detector = LaunchDetector(StubGateway([_token('pepe-two')]), store, clock=clock)

    async def _exercise() -> tuple[list, list, list]:
        first = await detector.scan()
        await clock.advance(120)
        blocked = await detector.scan()
        await store.transition_launch_status(
            first[0].id, LaunchStatus.FAILURE.value, [LaunchStatus.MONITORING.value]
        )
        await clock.advance(120)
        again = await detector.scan()
        return first, blocked, again

    first, blocked, again = asyncio.run(_exercise())

    assert blocked == []
    assert len(again) == 1
    assert again[0].id != first[0].id
    assert again[0].token_id == first[0].token_id
    assert again[0].status == LaunchStatus.MONITORING.value
    assert [launch.id for launch in database.get_monitoring_launch_coins()] == [again[0].id]
    assert database.get_launch_coin(first[0].id).status == LaunchStatus.FAILURE.value


def test_minutes_on_market_counts_from_first_sighting(database, store, clock) -> None:
    gateway = StubGateway([_token('slow', price_change_24h=2.0)])
    detector = LaunchDetector(gateway, store, clock=clock)

    async def _exercise() -> list:
        await detector.scan()
        await clock.advance(600)
        gateway.tokens = [_token('slow', price_change_24h=25.0)]
        return await detector.scan()

    created = asyncio.run(_exercise())

    assert created[0].minutes_on_market == 10


def test_existing_symbol_token_is_reused(database, store, clock) -> None:
    seeded = database.create_token(symbol='PEPE', name='Pepe Two')
    detector = LaunchDetector(StubGateway([_token('pepe-two')]), store, clock=clock)

    created = asyncio.run(detector.scan())

    assert created[0].token_id == seeded.id


def test_symbol_bound_to_another_coin_gets_its_own_token(database, store, clock) -> None:
    other = database.create_token(symbol='PEPE', name='Pepe', external_id='coingecko:pepe', current_price=5.0)
    detector = LaunchDetector(StubGateway([_token('pepe-sol', symbol='PEPE')]), store, clock=clock)

    created = asyncio.run(detector.scan())

    assert created[0].token_id != other.id
    stored = database.get_token(created[0].token_id)
    assert stored.external_id == 'coingecko:pepe-sol'
    assert stored.current_price == 0.01
    assert database.get_token(other.id).current_price == 5.0


def test_detection_emits_notification(store, clock) -> None:
    notifications = NotificationCenter(clock=clock)
    received = []
    notifications.subscribe(LAUNCH_DETECTED, received.append)
    detector = LaunchDetector(StubGateway([_token('pepe-two')]), store, clock=clock, notifications=notifications)

    created = asyncio.run(detector.scan())

    assert len(received) == 1
    payload = received[0].payload
    assert payload['launch_id'] == created[0].id
    assert payload['symbol'] == 'PEPE'
    assert payload['market_cap'] == 500_000.0


def test_empty_feed_creates_nothing(database, store, clock) -> None:
    detector = LaunchDetector(StubGateway([]), store, clock=clock)

    assert asyncio.run(detector.scan()) == []
    assert detector.status()['last_scan_at'] == clock.now().isoformat()


def test_first_seen_entries_expire(store, clock) -> None:
    gateway = StubGateway([_token('quiet', volume_24h=0.0)])
    detector = LaunchDetector(gateway, store, DetectorConfig(first_seen_retention=3600), clock=clock)

    async def _exercise() -> None:
        await detector.scan()
        gateway.tokens = []
        await clock.advance(3601)
        await detector.scan()

    asyncio.run(_exercise())

    assert detector.status()['tracked_coins'] == 0
