"""Numeric entry filters of a launch strategy."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Union

from ..database import StrategyRecord


@dataclass(frozen=True)
class NoLimit:
    """Constraint that accepts every value."""

    def allows(self, value: float) -> bool:
        return True

    def describe(self) -> str:
        return 'no limit'


@dataclass(frozen=True)
class AtLeast:
    bound: float

    def allows(self, value: float) -> bool:
        return value >= self.bound

    def describe(self) -> str:
        return f'>= {self.bound:g}'


@dataclass(frozen=True)
class AtMost:
    bound: float

    def allows(self, value: float) -> bool:
        return value <= self.bound

    def describe(self) -> str:
        return f'<= {self.bound:g}'


Constraint = Union[NoLimit, AtLeast, AtMost]


def _bound(value: Optional[float], kind: type, name: str) -> Constraint:
    if value is None:
        return NoLimit()
    number = float(value)
    if math.isnan(number):
        raise ValueError(f'{name} must be a number, got {value!r}')
    return kind(number)


@dataclass(frozen=True)
class FilterResult:
    passed: bool
    filter: Optional[str] = None
    reason: str = ''


ACCEPTED = FilterResult(passed=True)


@dataclass(frozen=True)
class StrategyFilters:
    """Market-cap range, volume floor and momentum floor, each an explicit constraint."""

    min_market_cap: Constraint = NoLimit()
    max_market_cap: Constraint = NoLimit()
    min_volume: Constraint = NoLimit()
    min_momentum: Constraint = NoLimit()

    @classmethod
    def from_record(cls, strategy: StrategyRecord) -> 'StrategyFilters':
        """Build filters from persisted values; ``None`` bounds become :class:`NoLimit`.

        Raises ``ValueError`` for negative floors or an inverted market-cap range.
        """

        if strategy.min_market_cap is not None and strategy.min_market_cap < 0:
            raise ValueError(f'min_market_cap must be >= 0, got {strategy.min_market_cap}')
        if strategy.min_volume is not None and strategy.min_volume < 0:
            raise ValueError(f'min_volume must be >= 0, got {strategy.min_volume}')
        if (
            strategy.max_market_cap is not None
            and strategy.min_market_cap is not None
            and strategy.max_market_cap < strategy.min_market_cap
        ):
            raise ValueError(
                f'max_market_cap {strategy.max_market_cap} is below min_market_cap {strategy.min_market_cap}'
            )
        return cls(
            min_market_cap=_bound(strategy.min_market_cap, AtLeast, 'min_market_cap'),
            max_market_cap=_bound(strategy.max_market_cap, AtMost, 'max_market_cap'),
            min_volume=_bound(strategy.min_volume, AtLeast, 'min_volume'),
            min_momentum=_bound(strategy.min_momentum, AtLeast, 'min_momentum'),
        )

    def evaluate(self, market_cap: float, volume: float, momentum: float) -> FilterResult:
        """Apply market cap, volume and momentum filters in order; stop at the first failure."""

        if not (self.min_market_cap.allows(market_cap) and self.max_market_cap.allows(market_cap)):
            return FilterResult(
                passed=False,
                filter='market_cap',
                reason=(
                    f'market cap {market_cap:.0f} outside range '
                    f'({self.min_market_cap.describe()}, {self.max_market_cap.describe()})'
                ),
            )
        if not self.min_volume.allows(volume):
            return FilterResult(
                passed=False,
                filter='volume',
                reason=f'volume {volume:.0f} not {self.min_volume.describe()}',
            )
        if not self.min_momentum.allows(momentum):
            return FilterResult(
                passed=False,
                filter='momentum',
                reason=f'momentum {momentum * 100:.1f}% not {self.min_momentum.describe()}',
            )
        return ACCEPTED

    def describe(self) -> dict:
        return {
            'min_market_cap': self.min_market_cap.describe(),
            'max_market_cap': self.max_market_cap.describe(),
            'min_volume': self.min_volume.describe(),
            'min_momentum': self.min_momentum.describe(),
        }


__all__ = ['AtLeast', 'AtMost', 'Constraint', 'FilterResult', 'NoLimit', 'StrategyFilters']
