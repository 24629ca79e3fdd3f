"""Position sizing guardrails for launch trades."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass
class SizingLimits:
    min_position_size: float = 50.0
    cash_buffer: float = 0.9


def compute_position_size(
    total_value: float,
    cash_balance: float,
    entry_percent: float,
    max_position_size: float,
    *,
    cash_buffer: float = 0.9,
    multiplier: float = 1.0,
) -> float:
    """``min(total_value * entry_percent / 100, max_position_size, cash_balance * cash_buffer)``.

    ``entry_percent`` is a percentage (2.0 means 2 %). The result is scaled by
    ``multiplier`` and never negative.
    """
    size = min(
        total_value * entry_percent / 100,
        max_position_size,
        cash_balance * cash_buffer,
    )
    return max(size * multiplier, 0.0)


class PositionSizer:
    def __init__(self, limits: SizingLimits | None = None) -> None:
        self.limits = limits or SizingLimits()

    def size(
        self,
        total_value: float,
        cash_balance: float,
        entry_percent: float,
        max_position_size: float,
        multiplier: float = 1.0,
    ) -> float:
        return compute_position_size(
            total_value,
            cash_balance,
            entry_percent,
            max_position_size,
            cash_buffer=self.limits.cash_buffer,
            multiplier=multiplier,
        )

    def validate(self, size: float, price: float) -> Tuple[bool, str]:
        if size < self.limits.min_position_size:
            return False, f'Position too small: {size:.2f} < {self.limits.min_position_size:.2f}'
        if price <= 0:
            return False, f'Invalid entry price {price}'
        return True, 'OK'


__all__ = ['PositionSizer', 'SizingLimits', 'compute_position_size']
