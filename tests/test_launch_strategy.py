"""Tests for :mod:`memecoin_trading_system.strategies.launch_strategy`."""

from __future__ import annotations

import pytest

from memecoin_trading_system.database import StrategyRecord
from memecoin_trading_system.strategies import AtLeast, AtMost, NoLimit, StrategyFilters


def _strategy(**fields) -> StrategyRecord:
    values = {
        'id': 'strategy-1',
        'name': 'Early Momentum',
        'version': 1,
        'description': '',
        'min_market_cap': 50_000.0,
        'max_market_cap': 5_000_000.0,
        'min_volume': 2_000.0,
        'min_momentum': None,
        'entry_percent': 2.0,
        'max_position_size': 500.0,
        'is_active': True,
    }
    values.update(fields)
    return StrategyRecord(**values)


def test_missing_bounds_become_no_limit() -> None:
    filters = StrategyFilters.from_record(_strategy(max_market_cap=None))

    assert filters.min_market_cap == AtLeast(50_000.0)
    assert filters.max_market_cap == NoLimit()
    assert filters.min_volume == AtLeast(2_000.0)
    assert filters.min_momentum == NoLimit()
    assert filters.describe()['max_market_cap'] == 'no limit'


def test_market_cap_above_range_is_rejected() -> None:
    filters = StrategyFilters.from_record(_strategy())

    result = filters.evaluate(6_000_000, 50_000, 0.0)

    assert not result.passed
    assert result.filter == 'market_cap'
    assert '6000000' in result.reason


def test_filters_stop_at_first_failure() -> None:
    filters = StrategyFilters.from_record(_strategy(min_momentum=0.2))

    assert filters.evaluate(1_000_000, 500, -1.0).filter == 'volume'
    assert filters.evaluate(1_000_000, 5_000, 0.1).filter == 'momentum'
    assert filters.evaluate(1_000_000, 5_000, 0.25).passed


def test_momentum_defaults_to_no_constraint() -> None:
    filters = StrategyFilters.from_record(_strategy())

    assert filters.evaluate(1_000_000, 5_000, -0.9).passed


def test_bounds_are_inclusive() -> None:
    assert AtLeast(10).allows(10)
    assert AtMost(10).allows(10)
    assert not AtMost(10).allows(10.01)


@pytest.mark.parametrize(
    'fields',
    [
        {'min_market_cap': -1.0},
        {'min_volume': -5.0},
        {'min_market_cap': 1_000_000.0, 'max_market_cap': 10.0},
        {'min_momentum': float('nan')},
    ],
)
def test_malformed_strategy_is_rejected(fields) -> None:
    with pytest.raises(ValueError):
        StrategyFilters.from_record(_strategy(**fields))
