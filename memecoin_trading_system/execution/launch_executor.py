"""Matches monitored launches against the active strategy and executes paper buys."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from ..config import ExecutorConfig
from ..database import LaunchRecord, LaunchStatus, LaunchStore, PortfolioRecord, StrategyRecord
from ..monitoring.notifications import LAUNCH_TRADE_EXECUTED, NotificationCenter
from ..risk import MarketHealthSignal, PositionSizer, SizingLimits
from ..strategies import StrategyFilters, StrategyGate
from ..utils import Clock, SystemClock
from .order_manager import OrderRequest, PaperOrderManager

logger = logging.getLogger(__name__)

MomentumLookup = Callable[[str], Optional[float]]


class LaunchExecutor:
    """Runs the filter chain over recent launches and buys into every eligible portfolio.

    A launch moves to ``traded`` only when at least one portfolio trade succeeded.
    """

    def __init__(
        self,
        store: LaunchStore,
        gate: StrategyGate,
        config: Optional[ExecutorConfig] = None,
        *,
        order_manager: Optional[PaperOrderManager] = None,
        market_health: Optional[MarketHealthSignal] = None,
        momentum_lookup: Optional[MomentumLookup] = None,
        notifications: Optional[NotificationCenter] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self._store = store
        self._gate = gate
        self._config = config or ExecutorConfig()
        self._orders = order_manager or PaperOrderManager()
        self._market_health = market_health
        self._momentum_lookup = momentum_lookup
        self._notifications = notifications
        self._clock = clock or SystemClock()
        self._sizer = PositionSizer(
            SizingLimits(
                min_position_size=self._config.min_position_size,
                cash_buffer=self._config.cash_buffer,
            )
        )
        self._is_running = False
        self.trades_executed = 0
        self.launches_traded = 0
        self.last_evaluation: Optional[datetime] = None

    @property
    def config(self) -> ExecutorConfig:
        return self._config

    def start(self) -> None:
        self._is_running = True
        logger.info('Launch executor started')

    def stop(self) -> None:
        self._is_running = False
        logger.info('Launch executor stopped')

    def size_multiplier(self) -> float:
        if self._market_health is None or not self._config.use_market_health:
            return 1.0
        return self._market_health.position_size_multiplier()

    async def evaluate(self) -> int:
        """One evaluation pass; returns the number of trades written."""

        self.last_evaluation = self._clock.now()
        decision = await self._gate.evaluate()
        if not decision.ready or decision.strategy is None:
            logger.debug('Skipping evaluation: %s', decision.reason)
            return 0
        strategy = decision.strategy
        try:
            filters = StrategyFilters.from_record(strategy)
        except ValueError as error:
            logger.error('Strategy %s has malformed filters: %s', strategy.name, error)
            return 0

        candidates = await self._store.get_monitoring_launch_coins(
            self._config.candidate_limit,
            newest_first=True,
        )
        if not candidates:
            return 0
        logger.info('Evaluating %d launch opportunities', len(candidates))

        multiplier = self.size_multiplier()
        executed = 0
        for launch in candidates:
            try:
                executed += await self.evaluate_candidate(launch, strategy, filters, multiplier)
            except Exception:
                logger.exception('Failed to evaluate launch %s', launch.symbol)
        return executed

    async def evaluate_candidate(
        self,
        launch: LaunchRecord,
        strategy: StrategyRecord,
        filters: StrategyFilters,
        multiplier: float = 1.0,
    ) -> int:
        momentum = self._momentum(launch.id)
        result = filters.evaluate(launch.initial_market_cap, launch.initial_volume, momentum)
        if not result.passed:
            logger.info('%s rejected - %s', launch.symbol, result.reason)
            return 0
        logger.info('%s qualifies for %s', launch.symbol, strategy.name)

        portfolios = await self._store.list_launch_trading_portfolios()
        if not portfolios:
            logger.info('No portfolios with launch trading enabled')
            return 0

        executed = 0
        for portfolio in portfolios:
            try:
                if await self._execute_for_portfolio(portfolio, launch, strategy, multiplier):
                    executed += 1
            except Exception:
                logger.exception('Trade for portfolio %s on %s failed', portfolio.owner, launch.symbol)

        if executed:
            changed = await self._store.transition_launch_status(
                launch.id,
                LaunchStatus.TRADED.value,
                (LaunchStatus.MONITORING.value,),
                traded_at=self._clock.now(),
            )
            if changed:
                self.launches_traded += 1
            else:
                logger.info('%s was finalized before it could be marked traded', launch.symbol)
            logger.info('Executed %d trades for %s', executed, launch.symbol)
        else:
            logger.info('No trades executed for %s; leaving it in monitoring', launch.symbol)
        return executed

    async def _execute_for_portfolio(
        self,
        portfolio: PortfolioRecord,
        launch: LaunchRecord,
        strategy: StrategyRecord,
        multiplier: float,
    ) -> bool:
        size = self._sizer.size(
            portfolio.total_value,
            portfolio.cash_balance,
            strategy.entry_percent,
            strategy.max_position_size,
            multiplier,
        )
        allowed, reason = self._sizer.validate(size, launch.launch_price)
        if not allowed:
            logger.info('[%s] %s skipped: %s', portfolio.owner, launch.symbol, reason)
            return False

        quantity = size / launch.launch_price
        order = await self._orders.submit(
            OrderRequest(symbol=launch.symbol, side='BUY', quantity=quantity, price=launch.launch_price)
        )
        trade = await self._store.record_buy(
            portfolio_id=portfolio.id,
            token_id=launch.token_id,
            quantity=order.filled_quantity,
            price=order.filled_price,
            total_value=order.filled_quantity * order.filled_price,
            timestamp=self._clock.now(),
            launch_coin_id=launch.id,
            order_id=order.order_id,
        )
        self.trades_executed += 1
        logger.info(
            '[%s] BUY %.4f %s @ %.8f = %.2f',
            portfolio.owner,
            trade.quantity,
            launch.symbol,
            trade.price,
            trade.total_value,
        )
        if self._notifications is not None:
            await self._notifications.emit(
                LAUNCH_TRADE_EXECUTED,
                {
                    'portfolio_id': portfolio.id,
                    'owner': portfolio.owner,
                    'launch_id': launch.id,
                    'token_id': launch.token_id,
                    'symbol': launch.symbol,
                    'trade_id': trade.id,
                    'quantity': trade.quantity,
                    'entry_price': trade.price,
                    'position_size': trade.total_value,
                },
            )
        return True

    def _momentum(self, launch_id: str) -> float:
        if self._momentum_lookup is None:
            return 0.0
        value = self._momentum_lookup(launch_id)
        return value if value is not None else 0.0

    def status(self) -> Dict[str, Any]:
        gate_status = self._gate.status()
        return {
            'is_running': self._is_running,
            'is_ready': gate_status['is_ready'],
            'active_strategy': gate_status['active_strategy'],
            'thresholds': gate_status['thresholds'],
            'evaluation_interval_seconds': self._config.evaluation_interval,
            'candidate_limit': self._config.candidate_limit,
            'min_position_size': self._config.min_position_size,
            'size_multiplier': self.size_multiplier(),
            'trades_executed': self.trades_executed,
            'launches_traded': self.launches_traded,
            'last_evaluation': self.last_evaluation.isoformat() if self.last_evaluation else None,
        }


__all__ = ['LaunchExecutor', 'MomentumLookup']
