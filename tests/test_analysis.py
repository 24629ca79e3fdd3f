"""Tests for :mod:`memecoin_trading_system.launch.analysis`."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from memecoin_trading_system.launch import TrackedLaunch, analyze_launch
from memecoin_trading_system.launch.analysis import (
    VOLUME_DECREASING,
    VOLUME_INCREASING,
    VOLUME_SPIKE,
    VOLUME_STABLE,
    classify_volume_pattern,
    first_quarter_momentum,
)

DETECTED = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def _tracked(prices: list[float], market_cap: float = 100_000) -> TrackedLaunch:
    tracked = TrackedLaunch(
        launch_id='launch-1',
        token_id='token-1',
        symbol='PEPE2',
        initial_price=prices[0],
        initial_market_cap=market_cap,
        detected_at=DETECTED,
    )
    for minute, price in enumerate(prices[1:], start=1):
        tracked.add_snapshot(DETECTED + timedelta(minutes=2 * minute), price, market_cap * price / prices[0])
    return tracked


def test_doubling_at_close_is_success() -> None:
    outcome = analyze_launch(_tracked([0.01, 0.012, 0.015, 0.018, 0.021]))

    assert outcome.outcome == 'success'
    assert outcome.is_success
    assert outcome.final_gain == pytest.approx(1.1)
    assert outcome.final_price == pytest.approx(0.021)


def test_peak_above_threshold_but_weak_close_is_failure() -> None:
    outcome = analyze_launch(_tracked([0.01, 0.025, 0.019]))

    assert outcome.outcome == 'failure'
    assert outcome.peak_gain == pytest.approx(1.5)
    assert outcome.final_gain == pytest.approx(0.9)
    assert outcome.time_to_peak_minutes == 2
    assert outcome.max_drawdown == pytest.approx((0.01 - 0.025) / 0.025)


def test_exactly_double_is_success() -> None:
    assert analyze_launch(_tracked([1.0, 2.0])).outcome == 'success'


def test_custom_threshold() -> None:
    outcome = analyze_launch(_tracked([1.0, 1.6]), success_threshold=0.5)

    assert outcome.outcome == 'success'


def test_first_quarter_momentum() -> None:
    assert first_quarter_momentum([]) == 0.0
    assert first_quarter_momentum([1.0]) == 0.0
    assert first_quarter_momentum([1.0, 1.2, 1.5, 1.4, 1.3, 1.1, 1.0, 0.9]) == pytest.approx(0.5)


def test_volume_patterns() -> None:
    assert classify_volume_pattern([100, 110, 95], 100) == VOLUME_STABLE
    assert classify_volume_pattern([250, 260, 270], 100) == VOLUME_INCREASING
    assert classify_volume_pattern([40, 30, 45], 100) == VOLUME_DECREASING
    assert classify_volume_pattern([10, 10, 10, 10, 10, 200], 100) == VOLUME_SPIKE


def test_record_conversion_carries_features() -> None:
    outcome = analyze_launch(_tracked([0.01, 0.03, 0.025, 0.022]))

    record = outcome.to_record('launch-1')

    assert record.launch_coin_id == 'launch-1'
    assert record.outcome_type == 'success'
    assert record.max_price_reached == pytest.approx(0.03)
    assert record.price_volatility == pytest.approx(abs(outcome.max_drawdown))
    assert 'early_peak' in record.identified_patterns
