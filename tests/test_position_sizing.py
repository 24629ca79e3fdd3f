"""Tests for :mod:`memecoin_trading_system.risk.position_sizing`."""

import pytest

from memecoin_trading_system.risk import PositionSizer, SizingLimits, compute_position_size


def test_entry_percent_of_total_value() -> None:
    assert compute_position_size(10_000, 10_000, 2.0, 500) == pytest.approx(200.0)


def test_max_position_size_caps_entry() -> None:
    assert compute_position_size(100_000, 100_000, 2.0, 500) == pytest.approx(500.0)


def test_cash_buffer_caps_entry() -> None:
    assert compute_position_size(10_000, 100, 2.0, 500) == pytest.approx(90.0)


def test_multiplier_scales_and_never_goes_negative() -> None:
    assert compute_position_size(10_000, 10_000, 2.0, 500, multiplier=0.5) == pytest.approx(100.0)
    assert compute_position_size(10_000, -50, 2.0, 500) == 0.0


def test_validate_rejects_small_positions_and_bad_prices() -> None:
    sizer = PositionSizer(SizingLimits(min_position_size=50))

    assert sizer.validate(200, 0.01) == (True, 'OK')

    allowed, reason = sizer.validate(49.99, 0.01)
    assert not allowed
    assert reason.startswith('Position too small')

    allowed, reason = sizer.validate(200, 0.0)
    assert not allowed
    assert reason.startswith('Invalid entry price')


def test_sizer_uses_configured_cash_buffer() -> None:
    sizer = PositionSizer(SizingLimits(cash_buffer=0.5))

    assert sizer.size(10_000, 300, 2.0, 500) == pytest.approx(150.0)
