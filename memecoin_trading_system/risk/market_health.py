"""Market-wide health score and trading posture."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence, Tuple

from ..config import MarketHealthConfig
from ..utils import Clock, SystemClock, mean

if TYPE_CHECKING:
    from ..database import LaunchStore, TokenRecord

logger = logging.getLogger(__name__)

TRADE_NORMALLY = 'trade_normally'
TRADE_CAUTIOUSLY = 'trade_cautiously'
MINIMIZE_TRADING = 'minimize_trading'
HALT_TRADING = 'halt_trading'

CONFIDENCE_FLOORS = {
    TRADE_NORMALLY: 80.0,
    TRADE_CAUTIOUSLY: 85.0,
    MINIMIZE_TRADING: 90.0,
}
SIZE_MULTIPLIERS = {
    TRADE_NORMALLY: 1.0,
    TRADE_CAUTIOUSLY: 0.6,
    MINIMIZE_TRADING: 0.3,
    HALT_TRADING: 0.0,
}
NO_DATA_CONFIDENCE = 85.0
NO_DATA_MULTIPLIER = 0.5


@dataclass
class MarketHealthReport:
    health_score: float
    volatility: float
    trend: str
    breadth: float
    volume_health: float
    correlation: float
    recommendation: str
    factors: List[str] = field(default_factory=list)
    token_count: int = 0
    is_default: bool = False
    computed_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'health_score': self.health_score,
            'volatility': self.volatility,
            'trend': self.trend,
            'breadth': self.breadth,
            'volume_health': self.volume_health,
            'correlation': self.correlation,
            'recommendation': self.recommendation,
            'factors': list(self.factors),
            'token_count': self.token_count,
            'is_default': self.is_default,
            'computed_at': self.computed_at.isoformat() if self.computed_at else None,
        }


def default_report(reason: str, computed_at: Optional[datetime] = None) -> MarketHealthReport:
    return MarketHealthReport(
        health_score=50.0,
        volatility=0.0,
        trend='neutral',
        breadth=50.0,
        volume_health=50.0,
        correlation=50.0,
        recommendation=TRADE_CAUTIOUSLY,
        factors=[f'Market health unavailable: {reason}', 'Trading with caution'],
        is_default=True,
        computed_at=computed_at,
    )


def volatility_of(changes: Sequence[float]) -> float:
    return mean(abs(change) for change in changes)


def trend_of(changes: Sequence[float]) -> str:
    advance_ratio = sum(1 for change in changes if change > 0) / len(changes)
    if advance_ratio >= 0.6:
        return 'bullish'
    if advance_ratio <= 0.4:
        return 'bearish'
    return 'neutral'


def breadth_of(changes: Sequence[float]) -> float:
    return sum(1 for change in changes if change > 0) / len(changes) * 100


def volume_health_of(volumes: Sequence[float], market_caps: Sequence[float]) -> float:
    """Share of tokens trading at least 1 % of their market cap per day, as 0-100."""
    pairs = [(volume, cap) for volume, cap in zip(volumes, market_caps) if cap > 0]
    if not pairs:
        return 0.0
    healthy = sum(1 for volume, cap in pairs if volume >= cap * 0.01)
    return healthy / len(pairs) * 100


def correlation_of(changes: Sequence[float]) -> float:
    average = mean(changes)
    variance = mean((change - average) ** 2 for change in changes)
    return max(0.0, 100 - math.sqrt(variance) * 2)


def health_score(volatility: float, trend: str, breadth: float, volume_health: float, correlation: float) -> float:
    score = 0.0
    if volatility <= 8:
        score += 25
    elif volatility <= 15:
        score += 25 - ((volatility - 8) / 7) * 15
    else:
        score += 10 - min(10.0, (volatility - 15) * 0.5)

    score += {'bullish': 25, 'neutral': 15}.get(trend, 5)
    score += breadth / 100 * 25
    score += volume_health / 100 * 15

    if 40 <= correlation <= 70:
        score += 10
    elif 20 <= correlation <= 80:
        score += 5
    return max(0.0, min(100.0, score))


def recommend(score: float, volatility: float, breadth: float, volume_health: float, trend: str) -> Tuple[str, List[str]]:
    factors: List[str] = []
    if volatility > 20:
        factors.append('Extreme volatility detected')
    if breadth < 20 and trend == 'bearish':
        factors.append('Severe bearish market breadth')
    if volume_health < 30:
        factors.append('Unhealthy volume patterns')

    if score >= 70 and not factors:
        return TRADE_NORMALLY, ['Market conditions favorable']
    if score >= 50 and len(factors) <= 1:
        return TRADE_CAUTIOUSLY, factors or ['Moderate market conditions']
    if score >= 30 and len(factors) <= 2:
        return MINIMIZE_TRADING, factors or ['Poor market conditions']
    return HALT_TRADING, factors or ['Critical market conditions']


def build_report(tokens: Sequence['TokenRecord'], computed_at: Optional[datetime] = None) -> MarketHealthReport:
    changes = [token.price_change_24h for token in tokens]
    volatility = volatility_of(changes)
    trend = trend_of(changes)
    breadth = breadth_of(changes)
    volume_health = volume_health_of([token.volume_24h for token in tokens], [token.market_cap for token in tokens])
    correlation = correlation_of(changes)
    score = health_score(volatility, trend, breadth, volume_health, correlation)
    recommendation, factors = recommend(score, volatility, breadth, volume_health, trend)
    return MarketHealthReport(
        health_score=score,
        volatility=volatility,
        trend=trend,
        breadth=breadth,
        volume_health=volume_health,
        correlation=correlation,
        recommendation=recommendation,
        factors=factors,
        token_count=len(tokens),
        computed_at=computed_at,
    )


class MarketHealthSignal:
    """Cached market health derived from the store's active tokens."""

    def __init__(
        self,
        store: 'LaunchStore',
        config: Optional[MarketHealthConfig] = None,
        *,
        clock: Optional[Clock] = None,
    ) -> None:
        self._store = store
        self._config = config or MarketHealthConfig()
        self._clock = clock or SystemClock()
        self._last: Optional[MarketHealthReport] = None
        self._last_at: Optional[float] = None

    @property
    def last_report(self) -> Optional[MarketHealthReport]:
        return self._last

    async def analyze(self) -> MarketHealthReport:
        if (
            self._last is not None
            and self._last_at is not None
            and self._clock.monotonic() - self._last_at < self._config.cache_ttl
        ):
            return self._last

        now = self._clock.now()
        tokens = [
            token
            for token in await self._store.list_active_tokens()
            if token.current_price > 0 and math.isfinite(token.price_change_24h)
        ]
        if len(tokens) < self._config.min_tokens:
            logger.warning('Insufficient data for market health (%d < %d tokens)', len(tokens), self._config.min_tokens)
            return default_report('insufficient_data', now)

        report = build_report(tokens, now)
        self._last = report
        self._last_at = self._clock.monotonic()
        logger.info(
            'Market health %.1f/100 %s (trend %s, volatility %.1f%%, breadth %.1f%%)',
            report.health_score,
            report.recommendation,
            report.trend,
            report.volatility,
            report.breadth,
        )
        return report

    async def refresh(self) -> None:
        await self.analyze()

    def should_trade(self, confidence: float) -> bool:
        if self._last is None:
            return confidence >= NO_DATA_CONFIDENCE
        if self._last.recommendation == HALT_TRADING:
            return False
        return confidence >= CONFIDENCE_FLOORS.get(self._last.recommendation, NO_DATA_CONFIDENCE)

    def position_size_multiplier(self) -> float:
        if self._last is None:
            return NO_DATA_MULTIPLIER
        return SIZE_MULTIPLIERS.get(self._last.recommendation, NO_DATA_MULTIPLIER)

    def status(self) -> Dict[str, Any]:
        return {
            'has_data': self._last is not None,
            'report': self._last.to_dict() if self._last else None,
            'position_size_multiplier': self.position_size_multiplier(),
            'cache_ttl_seconds': self._config.cache_ttl,
        }


__all__ = [
    'HALT_TRADING',
    'MINIMIZE_TRADING',
    'MarketHealthReport',
    'MarketHealthSignal',
    'TRADE_CAUTIOUSLY',
    'TRADE_NORMALLY',
    'build_report',
    'default_report',
    'health_score',
    'recommend',
]
