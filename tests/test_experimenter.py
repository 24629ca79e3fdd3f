"""Tests for :mod:`memecoin_trading_system.strategies.experimenter`."""

from __future__ import annotations

import asyncio

from memecoin_trading_system.config import ExperimenterConfig
from memecoin_trading_system.strategies import StrategyExperimenter


def _strategy(database, name: str, *, active: bool = False, **performance):
    strategy = database.create_strategy(name=name, is_active=active)
    if performance:
        database.upsert_strategy_performance(strategy.id, **performance)
    return strategy


def test_best_qualified_strategy_is_activated(database, store, clock) -> None:
    _strategy(database, 'Current', active=True, total_trades=30, win_rate=66.0, avg_profit_per_trade=51.0)
    best = _strategy(database, 'Challenger', total_trades=25, win_rate=75.0, avg_profit_per_trade=70.0)
    _strategy(database, 'Too Young', total_trades=5, win_rate=95.0, avg_profit_per_trade=200.0)
    _strategy(database, 'Loser', total_trades=40, win_rate=40.0, avg_profit_per_trade=10.0)
    experimenter = StrategyExperimenter(store, ExperimenterConfig(min_trades=20), clock=clock)

    evaluation = asyncio.run(experimenter.evaluate())

    assert evaluation.strategy.id == best.id
    assert database.get_active_strategy().id == best.id
    performance = database.get_strategy_performance(best.id)
    assert performance.is_ready_for_live is True
    assert performance.meets_win_rate_threshold is True
    assert experimenter.status()['last_activated'] == best.id


def test_no_qualified_strategy_leaves_active_unchanged(database, store, clock) -> None:
    current = _strategy(database, 'Current', active=True, total_trades=30, win_rate=50.0, avg_profit_per_trade=20.0)
    experimenter = StrategyExperimenter(store, clock=clock)

    assert asyncio.run(experimenter.evaluate()) is None
    assert database.get_active_strategy().id == current.id
    assert database.get_strategy_performance(current.id).is_ready_for_live is False


def test_variants_are_created_once(database, store, clock) -> None:
    _strategy(database, 'Early Momentum', active=True)
    experimenter = StrategyExperimenter(store, clock=clock)

    created = asyncio.run(experimenter.create_variants())
    again = asyncio.run(experimenter.create_variants())

    assert [record.name for record in created] == [
        'Early Momentum Aggressive Variant',
        'Early Momentum Conservative Variant',
    ]
    assert again == []
    assert all(not record.is_active for record in created)
    assert created[0].entry_percent == 3.0
    assert database.get_strategy_performance(created[1].id).total_trades == 0


def test_comparison_sorts_by_score(database, store, clock) -> None:
    _strategy(database, 'Alpha', total_trades=3, win_rate=50.0, avg_profit_per_trade=10.0)
    _strategy(database, 'Beta', total_trades=3, win_rate=70.0, avg_profit_per_trade=60.0)
    _strategy(database, 'Untested')
    experimenter = StrategyExperimenter(store, clock=clock)

    comparison = asyncio.run(experimenter.strategy_comparison())

    assert [row['name'] for row in comparison] == ['Beta', 'Alpha']
    assert comparison[0]['meets_thresholds'] is True
    assert comparison[0]['score'] == 130.0
