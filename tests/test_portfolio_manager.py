"""Tests for :mod:`memecoin_trading_system.risk.portfolio_manager`."""

import pytest

from memecoin_trading_system.risk import blend_fill


def test_first_fill_opens_at_fill_price() -> None:
    quantity, average = blend_fill(0.0, 0.0, 20_000.0, 0.01)

    assert quantity == pytest.approx(20_000.0)
    assert average == pytest.approx(0.01)


def test_same_direction_fill_accumulates_average_price() -> None:
    quantity, average = blend_fill(1.0, 100.0, 1.0, 110.0)

    assert quantity == pytest.approx(2.0)
    assert average == pytest.approx(105.0)


def test_closing_fill_resets_position() -> None:
    quantity, average = blend_fill(1.0, 100.0, -1.0, 100.0)

    assert quantity == pytest.approx(0.0)
    assert average == pytest.approx(0.0)


def test_partial_close_keeps_average_price() -> None:
    quantity, average = blend_fill(2.0, 100.0, -1.0, 110.0)

    assert quantity == pytest.approx(1.0)
    assert average == pytest.approx(100.0)


def test_position_flip_uses_new_fill_price() -> None:
    quantity, average = blend_fill(1.0, 100.0, -2.0, 120.0)

    assert quantity == pytest.approx(-1.0)
    assert average == pytest.approx(120.0)


def test_zero_fill_is_a_no_op() -> None:
    assert blend_fill(3.0, 42.0, 0.0, 99.0) == (3.0, 42.0)
