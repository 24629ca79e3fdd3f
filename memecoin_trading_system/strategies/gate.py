"""Decides whether the active launch strategy may drive execution."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from ..config import GateConfig
from ..database import LaunchStore, StrategyPerformanceRecord, StrategyRecord
from ..utils import Clock, SystemClock

logger = logging.getLogger(__name__)


@dataclass
class GateDecision:
    ready: bool
    strategy: Optional[StrategyRecord] = None
    performance: Optional[StrategyPerformanceRecord] = None
    reason: str = ''
    checked_at: Optional[datetime] = None


class StrategyGate:
    """Readiness requires the win rate floor, the profit floor and the persisted live flag.

    The two numeric thresholds are checked here even though ``is_ready_for_live``
    is expected to already encode them.
    """

    def __init__(
        self,
        store: LaunchStore,
        config: Optional[GateConfig] = None,
        *,
        clock: Optional[Clock] = None,
    ) -> None:
        self._store = store
        self._config = config or GateConfig()
        self._clock = clock or SystemClock()
        self._last: GateDecision = GateDecision(ready=False, reason='not evaluated')

    @property
    def config(self) -> GateConfig:
        return self._config

    @property
    def last_decision(self) -> GateDecision:
        return self._last

    async def evaluate(self) -> GateDecision:
        now = self._clock.now()
        strategy = await self._store.get_active_strategy()
        if strategy is None:
            decision = GateDecision(ready=False, reason='no active strategy', checked_at=now)
        else:
            performance = await self._store.get_strategy_performance(strategy.id)
            decision = self.decide(strategy, performance)
            decision.checked_at = now
        if decision.ready != self._last.ready or decision.reason != self._last.reason:
            logger.info('Strategy gate: %s', decision.reason)
        self._last = decision
        return decision

    def decide(
        self,
        strategy: StrategyRecord,
        performance: Optional[StrategyPerformanceRecord],
    ) -> GateDecision:
        if performance is None:
            return GateDecision(ready=False, strategy=strategy, reason=f'no performance data for {strategy.name}')
        config = self._config
        failures = []
        if performance.win_rate < config.min_win_rate:
            failures.append(f'win rate {performance.win_rate:.1f}% < {config.min_win_rate:.1f}%')
        if performance.avg_profit_per_trade < config.min_avg_profit:
            failures.append(f'avg profit {performance.avg_profit_per_trade:.1f}% < {config.min_avg_profit:.1f}%')
        if not performance.is_ready_for_live:
            failures.append('not flagged ready for live')
        if failures:
            return GateDecision(
                ready=False,
                strategy=strategy,
                performance=performance,
                reason=f'{strategy.name} not ready: ' + '; '.join(failures),
            )
        return GateDecision(
            ready=True,
            strategy=strategy,
            performance=performance,
            reason=(
                f'{strategy.name} ready (win rate {performance.win_rate:.1f}%, '
                f'avg profit {performance.avg_profit_per_trade:.1f}%)'
            ),
        )

    async def refresh(self) -> None:
        await self.evaluate()

    def status(self) -> Dict[str, Any]:
        decision = self._last
        return {
            'is_ready': decision.ready,
            'reason': decision.reason,
            'active_strategy': (
                {'id': decision.strategy.id, 'name': decision.strategy.name, 'description': decision.strategy.description}
                if decision.strategy
                else None
            ),
            'win_rate': decision.performance.win_rate if decision.performance else None,
            'avg_profit_per_trade': decision.performance.avg_profit_per_trade if decision.performance else None,
            'thresholds': {'min_win_rate': self._config.min_win_rate, 'min_avg_profit': self._config.min_avg_profit},
            'last_check': decision.checked_at.isoformat() if decision.checked_at else None,
        }


__all__ = ['GateDecision', 'StrategyGate']
