"""Outcome classification and trend features for a completed observation window."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from ..database.models import LaunchAnalysisRecord, LaunchStatus
from ..utils import mean, peak_to_trough, simple_return
from .tracking import Snapshot, TrackedLaunch

VOLUME_STABLE = 'stable'
VOLUME_INCREASING = 'increasing'
VOLUME_DECREASING = 'decreasing'
VOLUME_SPIKE = 'spike'


@dataclass(slots=True)
class LaunchOutcome:
    outcome: str
    final_price: float
    final_gain: float
    peak_price: float
    trough_price: float
    peak_gain: float
    max_drawdown: float
    time_to_peak_minutes: int
    volume_pattern: str
    initial_momentum: float
    volume_vs_market_cap: float
    patterns: List[str] = field(default_factory=list)
    success_factors: Dict[str, object] = field(default_factory=dict)

    @property
    def is_success(self) -> bool:
        return self.outcome == LaunchStatus.SUCCESS.value

    def to_record(self, launch_id: str) -> LaunchAnalysisRecord:
        return LaunchAnalysisRecord(
            launch_coin_id=launch_id,
            outcome_type=self.outcome,
            max_price_reached=self.peak_price,
            max_gain_percent=self.peak_gain,
            final_gain_percent=self.final_gain,
            time_to_max_gain=self.time_to_peak_minutes,
            price_volatility=abs(self.max_drawdown),
            initial_momentum=self.initial_momentum,
            volume_pattern=self.volume_pattern,
            volume_vs_market_cap=self.volume_vs_market_cap,
            identified_patterns=list(self.patterns),
            success_factors=dict(self.success_factors),
        )


def first_quarter_momentum(prices: Sequence[float]) -> float:
    """Fractional price change from the first sample to the one a quarter of the way in."""
    if not prices:
        return 0.0
    index = min(len(prices) // 4, len(prices) - 1)
    return simple_return(prices[0], prices[index])


def classify_volume_pattern(market_caps: Sequence[float], initial_market_cap: float) -> str:
    average = mean(market_caps)
    pattern = VOLUME_STABLE
    if average > initial_market_cap * 2:
        pattern = VOLUME_INCREASING
    elif average < initial_market_cap * 0.5:
        pattern = VOLUME_DECREASING
    # a spike overrides the trend classification
    if market_caps and max(market_caps) > average * 3:
        pattern = VOLUME_SPIKE
    return pattern


def _peak_index(prices: Sequence[float]) -> int:
    peak = max(prices)
    return prices.index(peak)


def analyze_launch(tracked: TrackedLaunch, success_threshold: float = 1.0) -> LaunchOutcome:
    """Classify a launch by its final snapshot and extract its trend features.

    The outcome is ``success`` only when the last price is at least
    ``1 + success_threshold`` times the initial price; the peak never decides it.
    """

    snapshots: List[Snapshot] = list(tracked.snapshots)
    prices = [snapshot.price for snapshot in snapshots]
    market_caps = [snapshot.market_cap for snapshot in snapshots]

    final_price = prices[-1]
    final_gain = simple_return(tracked.initial_price, final_price)
    peak_price = max(prices)
    trough_price = min(prices)
    peak_gain = simple_return(tracked.initial_price, peak_price)
    drawdown = peak_to_trough(prices)

    peak_index = _peak_index(prices)
    time_to_peak = math.floor(
        (snapshots[peak_index].timestamp - tracked.detected_at).total_seconds() / 60
    )

    volume_pattern = classify_volume_pattern(market_caps, tracked.initial_market_cap)
    momentum = first_quarter_momentum(prices)
    average_cap = mean(market_caps)
    volume_ratio = average_cap / tracked.initial_market_cap if tracked.initial_market_cap > 0 else 0.0

    patterns: List[str] = []
    if peak_index < len(snapshots) / 3:
        patterns.append('early_peak')
    elif peak_index > len(snapshots) * 0.66:
        patterns.append('late_pump')
    if momentum > 0.5:
        patterns.append('strong_open')
    elif momentum < 0:
        patterns.append('weak_open')
    if volume_pattern == VOLUME_SPIKE:
        patterns.append('volume_spike')

    outcome = LaunchStatus.SUCCESS if final_gain >= success_threshold else LaunchStatus.FAILURE
    return LaunchOutcome(
        outcome=outcome.value,
        final_price=final_price,
        final_gain=final_gain,
        peak_price=peak_price,
        trough_price=trough_price,
        peak_gain=peak_gain,
        max_drawdown=drawdown,
        time_to_peak_minutes=max(time_to_peak, 0),
        volume_pattern=volume_pattern,
        initial_momentum=momentum,
        volume_vs_market_cap=volume_ratio,
        patterns=patterns,
        success_factors={
            'initial_momentum': momentum,
            'volume_pattern': volume_pattern,
            'peak_timing': peak_index / len(snapshots),
            'volume_ratio': volume_ratio,
        },
    )


__all__ = [
    'LaunchOutcome',
    'VOLUME_DECREASING',
    'VOLUME_INCREASING',
    'VOLUME_SPIKE',
    'VOLUME_STABLE',
    'analyze_launch',
    'classify_volume_pattern',
    'first_quarter_momentum',
]
