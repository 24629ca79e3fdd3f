"""Promotes the best performing launch strategy to active."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..config import ExperimenterConfig, GateConfig
from ..database import LaunchStore, StrategyRecord
from ..utils import Clock, SystemClock

logger = logging.getLogger(__name__)

VARIANTS = (
    {
        'suffix': 'Aggressive Variant',
        'description': 'Larger positions with a lower momentum floor',
        'entry_percent': 3.0,
        'max_position_size': 750.0,
        'min_momentum': 0.15,
    },
    {
        'suffix': 'Conservative Variant',
        'description': 'Smaller positions with a higher momentum floor',
        'entry_percent': 1.0,
        'max_position_size': 250.0,
        'min_momentum': 0.3,
    },
)


@dataclass
class StrategyEvaluation:
    strategy: StrategyRecord
    total_trades: int
    win_rate: float
    avg_profit_per_trade: float
    meets_win_rate: bool
    meets_profit: bool

    @property
    def qualified(self) -> bool:
        return self.meets_win_rate and self.meets_profit

    @property
    def score(self) -> float:
        return self.win_rate + self.avg_profit_per_trade

    def to_dict(self) -> Dict[str, Any]:
        return {
            'strategy_id': self.strategy.id,
            'name': self.strategy.name,
            'is_active': self.strategy.is_active,
            'total_trades': self.total_trades,
            'win_rate': self.win_rate,
            'avg_profit_per_trade': self.avg_profit_per_trade,
            'meets_thresholds': self.qualified,
            'score': self.score,
        }


class StrategyExperimenter:
    def __init__(
        self,
        store: LaunchStore,
        config: Optional[ExperimenterConfig] = None,
        gate_config: Optional[GateConfig] = None,
        *,
        clock: Optional[Clock] = None,
    ) -> None:
        self._store = store
        self._config = config or ExperimenterConfig()
        self._thresholds = gate_config or GateConfig()
        self._clock = clock or SystemClock()
        self.last_activated: Optional[str] = None

    @property
    def config(self) -> ExperimenterConfig:
        return self._config

    async def _evaluations(self, *, min_trades: int) -> List[StrategyEvaluation]:
        evaluations: List[StrategyEvaluation] = []
        for strategy in await self._store.list_strategies():
            performance = await self._store.get_strategy_performance(strategy.id)
            if performance is None:
                logger.debug('No performance data for strategy %s', strategy.name)
                continue
            if performance.total_trades < min_trades:
                logger.debug(
                    'Strategy %s has insufficient trades (%d/%d)',
                    strategy.name,
                    performance.total_trades,
                    min_trades,
                )
                continue
            evaluations.append(
                StrategyEvaluation(
                    strategy=strategy,
                    total_trades=performance.total_trades,
                    win_rate=performance.win_rate,
                    avg_profit_per_trade=performance.avg_profit_per_trade,
                    meets_win_rate=performance.win_rate >= self._thresholds.min_win_rate,
                    meets_profit=performance.avg_profit_per_trade >= self._thresholds.min_avg_profit,
                )
            )
        return evaluations

    async def evaluate(self) -> Optional[StrategyEvaluation]:
        """Activate the highest scoring qualified strategy, if any."""

        evaluations = await self._evaluations(min_trades=self._config.min_trades)
        if not evaluations:
            logger.info('No strategies with sufficient trade history')
            return None
        qualified = sorted((item for item in evaluations if item.qualified), key=lambda item: item.score, reverse=True)
        if not qualified:
            logger.info('No strategy meets performance thresholds yet')
            return None
        best = qualified[0]
        await self._store.activate_strategy(best.strategy.id)
        await self._store.upsert_strategy_performance(
            best.strategy.id,
            meets_win_rate_threshold=best.meets_win_rate,
            meets_profit_threshold=best.meets_profit,
            is_ready_for_live=True,
            updated_at=self._clock.now(),
        )
        if self.last_activated != best.strategy.id:
            logger.info(
                'Activated strategy %s (%.1f%% win rate, %.1f%% avg profit)',
                best.strategy.name,
                best.win_rate,
                best.avg_profit_per_trade,
            )
        self.last_activated = best.strategy.id
        return best

    async def create_variants(self) -> List[StrategyRecord]:
        """Derive inactive variants of the active strategy that do not exist yet."""

        active = await self._store.get_active_strategy()
        if active is None:
            logger.info('No active strategy to base variants on')
            return []
        existing = {strategy.name for strategy in await self._store.list_strategies()}
        created: List[StrategyRecord] = []
        for variant in VARIANTS:
            name = f'{active.name} {variant["suffix"]}'
            if name in existing:
                continue
            record = await self._store.create_strategy(
                name=name,
                description=str(variant['description']),
                min_market_cap=active.min_market_cap,
                max_market_cap=active.max_market_cap,
                min_volume=active.min_volume,
                min_momentum=float(variant['min_momentum']),
                entry_percent=float(variant['entry_percent']),
                max_position_size=float(variant['max_position_size']),
                is_active=False,
            )
            await self._store.upsert_strategy_performance(record.id, updated_at=self._clock.now())
            created.append(record)
            logger.info('Created strategy variant %s', name)
        return created

    async def strategy_comparison(self) -> List[Dict[str, Any]]:
        evaluations = await self._evaluations(min_trades=0)
        evaluations.sort(key=lambda item: item.score, reverse=True)
        return [item.to_dict() for item in evaluations]

    def status(self) -> Dict[str, Any]:
        return {
            'evaluation_interval_seconds': self._config.evaluation_interval,
            'min_trades': self._config.min_trades,
            'last_activated': self.last_activated,
        }


__all__ = ['StrategyEvaluation', 'StrategyExperimenter']
