"""Async facade over :class:`DatabaseManager` for the event-loop components."""

from __future__ import annotations

import asyncio
import functools
from datetime import datetime
from typing import Any, Callable, Iterable, List, Optional, Sequence, TypeVar

from .db_manager import DatabaseManager
from .models import (
    LaunchAnalysisRecord,
    LaunchRecord,
    PortfolioRecord,
    PositionRecord,
    StrategyPerformanceRecord,
    StrategyRecord,
    TokenRecord,
    TradeRecord,
)

T = TypeVar('T')


class LaunchStore:
    """Runs every blocking database call in a worker thread."""

    def __init__(self, database: DatabaseManager) -> None:
        self._database = database

    @property
    def database(self) -> DatabaseManager:
        return self._database

    async def _call(self, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        return await asyncio.to_thread(functools.partial(func, *args, **kwargs))

    # Tokens
    async def create_token(self, **fields: Any) -> TokenRecord:
        return await self._call(self._database.create_token, **fields)

    async def get_token(self, token_id: str) -> Optional[TokenRecord]:
        return await self._call(self._database.get_token, token_id)

    async def get_token_by_symbol(self, symbol: str) -> Optional[TokenRecord]:
        return await self._call(self._database.get_token_by_symbol, symbol)

    async def get_token_by_external_id(self, external_id: str) -> Optional[TokenRecord]:
        return await self._call(self._database.get_token_by_external_id, external_id)

    async def list_active_tokens(self) -> List[TokenRecord]:
        return await self._call(self._database.list_active_tokens)

    async def upsert_market_token(self, **fields: Any) -> TokenRecord:
        return await self._call(self._database.upsert_market_token, **fields)

    # Launch coins
    async def create_launch_coin(self, **fields: Any) -> LaunchRecord:
        return await self._call(self._database.create_launch_coin, **fields)

    async def get_launch_coin(self, launch_id: str) -> Optional[LaunchRecord]:
        return await self._call(self._database.get_launch_coin, launch_id)

    async def get_launch_coin_by_token(
        self,
        token_id: str,
        statuses: Optional[Sequence[str]] = None,
    ) -> Optional[LaunchRecord]:
        return await self._call(self._database.get_launch_coin_by_token, token_id, statuses)

    async def get_monitoring_launch_coins(
        self,
        limit: Optional[int] = None,
        *,
        newest_first: bool = False,
    ) -> List[LaunchRecord]:
        return await self._call(
            self._database.get_monitoring_launch_coins,
            limit,
            newest_first=newest_first,
        )

    async def update_launch_coin(self, launch_id: str, **fields: Any) -> Optional[LaunchRecord]:
        return await self._call(self._database.update_launch_coin, launch_id, **fields)

    async def transition_launch_status(
        self,
        launch_id: str,
        new_status: str,
        expected: Iterable[str],
        **fields: Any,
    ) -> bool:
        return await self._call(
            self._database.transition_launch_status,
            launch_id,
            new_status,
            tuple(expected),
            **fields,
        )

    # Analyses
    async def create_launch_analysis(
        self,
        analysis: LaunchAnalysisRecord,
        *,
        created_at: Optional[datetime] = None,
    ) -> Optional[LaunchAnalysisRecord]:
        return await self._call(self._database.create_launch_analysis, analysis, created_at=created_at)

    async def get_launch_analysis_by_launch_id(self, launch_id: str) -> Optional[LaunchAnalysisRecord]:
        return await self._call(self._database.get_launch_analysis_by_launch_id, launch_id)

    async def list_launch_analyses(self) -> List[LaunchAnalysisRecord]:
        return await self._call(self._database.list_launch_analyses)

    # Strategies
    async def create_strategy(self, **fields: Any) -> StrategyRecord:
        return await self._call(self._database.create_strategy, **fields)

    async def get_active_strategy(self) -> Optional[StrategyRecord]:
        return await self._call(self._database.get_active_strategy)

    async def list_strategies(self) -> List[StrategyRecord]:
        return await self._call(self._database.list_strategies)

    async def activate_strategy(self, strategy_id: str) -> bool:
        return await self._call(self._database.activate_strategy, strategy_id)

    async def upsert_strategy_performance(self, strategy_id: str, **fields: Any) -> StrategyPerformanceRecord:
        return await self._call(self._database.upsert_strategy_performance, strategy_id, **fields)

    async def get_strategy_performance(self, strategy_id: str) -> Optional[StrategyPerformanceRecord]:
        return await self._call(self._database.get_strategy_performance, strategy_id)

    # Portfolios and trades
    async def create_portfolio(self, **fields: Any) -> PortfolioRecord:
        return await self._call(self._database.create_portfolio, **fields)

    async def get_portfolio(self, portfolio_id: str) -> Optional[PortfolioRecord]:
        return await self._call(self._database.get_portfolio, portfolio_id)

    async def list_launch_trading_portfolios(self) -> List[PortfolioRecord]:
        return await self._call(self._database.list_launch_trading_portfolios)

    async def record_buy(self, **fields: Any) -> TradeRecord:
        return await self._call(self._database.record_buy, **fields)

    async def list_trades(self, portfolio_id: Optional[str] = None) -> List[TradeRecord]:
        return await self._call(self._database.list_trades, portfolio_id)

    async def get_position(self, portfolio_id: str, token_id: str) -> Optional[PositionRecord]:
        return await self._call(self._database.get_position, portfolio_id, token_id)


__all__ = ['LaunchStore']
