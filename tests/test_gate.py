"""Tests for :mod:`memecoin_trading_system.strategies.gate`."""

from __future__ import annotations

import asyncio

from memecoin_trading_system.config import GateConfig
from memecoin_trading_system.strategies import StrategyGate


def _active_strategy(database, **performance):
    strategy = database.create_strategy(name='Early Momentum', is_active=True)
    if performance:
        database.upsert_strategy_performance(strategy.id, **performance)
    return strategy


def test_no_active_strategy_is_not_ready(store, clock) -> None:
    gate = StrategyGate(store, clock=clock)

    decision = asyncio.run(gate.evaluate())

    assert decision.ready is False
    assert decision.reason == 'no active strategy'
    assert decision.checked_at == clock.now()


def test_missing_performance_is_not_ready(database, store, clock) -> None:
    _active_strategy(database)
    gate = StrategyGate(store, clock=clock)

    decision = asyncio.run(gate.evaluate())

    assert decision.ready is False
    assert decision.reason == 'no performance data for Early Momentum'


def test_thresholds_met_but_not_flagged_is_not_ready(database, store, clock) -> None:
    _active_strategy(database, win_rate=70.0, avg_profit_per_trade=60.0, is_ready_for_live=False)
    gate = StrategyGate(store, clock=clock)

    decision = asyncio.run(gate.evaluate())

    assert decision.ready is False
    assert 'not flagged ready for live' in decision.reason


def test_flagged_but_below_win_rate_is_not_ready(database, store, clock) -> None:
    _active_strategy(database, win_rate=60.0, avg_profit_per_trade=80.0, is_ready_for_live=True)
    gate = StrategyGate(store, clock=clock)

    decision = asyncio.run(gate.evaluate())

    assert decision.ready is False
    assert 'win rate 60.0% < 65.0%' in decision.reason


def test_all_conditions_met_is_ready(database, store, clock) -> None:
    strategy = _active_strategy(database, win_rate=65.0, avg_profit_per_trade=50.0, is_ready_for_live=True)
    gate = StrategyGate(store, GateConfig(min_win_rate=65.0, min_avg_profit=50.0), clock=clock)

    decision = asyncio.run(gate.evaluate())

    assert decision.ready is True
    assert decision.strategy.id == strategy.id
    status = gate.status()
    assert status['is_ready'] is True
    assert status['active_strategy']['name'] == 'Early Momentum'
    assert status['win_rate'] == 65.0


def test_status_before_first_evaluation(store) -> None:
    gate = StrategyGate(store)

    status = gate.status()

    assert status['is_ready'] is False
    assert status['last_check'] is None
    assert status['thresholds'] == {'min_win_rate': 65.0, 'min_avg_profit': 50.0}
