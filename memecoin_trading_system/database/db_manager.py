"""SQLAlchemy-backed persistence manager."""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Iterator, List, Optional, Sequence

from sqlalchemy import Select, create_engine, select, update
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ..risk.portfolio_manager import blend_fill
from .models import (
    Base,
    LaunchAnalysis,
    LaunchAnalysisRecord,
    LaunchCoin,
    LaunchRecord,
    LaunchStatus,
    LaunchStrategy,
    Portfolio,
    PortfolioRecord,
    Position,
    PositionRecord,
    StrategyPerformance,
    StrategyPerformanceRecord,
    StrategyRecord,
    Token,
    TokenRecord,
    Trade,
    TradeRecord,
)

_LAUNCH_FIELDS = {
    'launch_price',
    'initial_market_cap',
    'initial_volume',
    'minutes_on_market',
    'status',
    'outcome_price',
    'price_change_1h',
    'evaluated_at',
    'traded_at',
}
_PERFORMANCE_FIELDS = {
    'total_trades',
    'successful_trades',
    'failed_trades',
    'win_rate',
    'avg_profit_per_trade',
    'total_profit_loss',
    'meets_win_rate_threshold',
    'meets_profit_threshold',
    'is_ready_for_live',
}


def _as_utc(value: datetime) -> datetime:
    """Ensure datetimes are timezone-aware in UTC."""

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _opt_utc(value: Optional[datetime]) -> Optional[datetime]:
    return _as_utc(value) if value is not None else None


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


def _is_memory_url(database_url: str) -> bool:
    return database_url in {'sqlite://', 'sqlite:///:memory:'}


class DatabaseManager:
    """High level helper around a SQLAlchemy engine and session factory."""

    def __init__(self, database_url: str, *, echo: bool = False) -> None:
        self._database_url = database_url
        connect_args: dict[str, object] = {}
        engine_kwargs: dict[str, Any] = {}
        if database_url.startswith('sqlite'):
            connect_args['check_same_thread'] = False
            if _is_memory_url(database_url):
                engine_kwargs['poolclass'] = StaticPool
            elif database_url.startswith('sqlite:///'):
                db_path = Path(database_url.replace('sqlite:///', '', 1))
                db_path.parent.mkdir(parents=True, exist_ok=True)
        self._engine: Engine = create_engine(
            database_url,
            echo=echo,
            future=True,
            connect_args=connect_args,
            **engine_kwargs,
        )
        self._session_factory = sessionmaker(
            self._engine,
            expire_on_commit=False,
            future=True,
        )
        self.create_schema()

    def create_schema(self) -> None:
        """Create database tables if they do not already exist."""

        Base.metadata.create_all(self._engine)

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Context manager returning a database session with automatic commit."""

        session: Session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:  # pragma: no cover - re-raise after rollback
            session.rollback()
            raise
        finally:
            session.close()

    # Tokens -------------------------------------------------------------

    def create_token(
        self,
        *,
        symbol: str,
        name: str,
        external_id: Optional[str] = None,
        current_price: float = 0.0,
        market_cap: float = 0.0,
        volume_24h: float = 0.0,
        price_change_24h: float = 0.0,
        is_active: bool = True,
        last_updated: Optional[datetime] = None,
    ) -> TokenRecord:
        with self.session() as session:
            token = Token(
                symbol=symbol.upper(),
                name=name,
                external_id=external_id,
                current_price=current_price,
                market_cap=market_cap,
                volume_24h=volume_24h,
                price_change_24h=price_change_24h,
                is_active=is_active,
                last_updated=_as_utc(last_updated or _utcnow()),
            )
            session.add(token)
            session.flush()
            return self._token_record(token)

    def get_token(self, token_id: str) -> Optional[TokenRecord]:
        with self.session() as session:
            token = session.get(Token, token_id)
            return self._token_record(token) if token else None

    def get_token_by_symbol(self, symbol: str) -> Optional[TokenRecord]:
        stmt = select(Token).where(Token.symbol == symbol.upper()).limit(1)
        with self.session() as session:
            token = session.execute(stmt).scalars().first()
            return self._token_record(token) if token else None

    def get_token_by_external_id(self, external_id: str) -> Optional[TokenRecord]:
        stmt = select(Token).where(Token.external_id == external_id).limit(1)
        with self.session() as session:
            token = session.execute(stmt).scalars().first()
            return self._token_record(token) if token else None

    def list_active_tokens(self) -> List[TokenRecord]:
        stmt = select(Token).where(Token.is_active.is_(True)).order_by(Token.market_cap.desc())
        with self.session() as session:
            return [self._token_record(token) for token in session.execute(stmt).scalars()]

    def upsert_market_token(
        self,
        *,
        external_id: str,
        symbol: str,
        name: str,
        current_price: float,
        market_cap: float,
        volume_24h: float,
        price_change_24h: float,
        last_updated: Optional[datetime] = None,
    ) -> TokenRecord:
        """Refresh a token's market fields, creating the token when unknown."""

        stmt = select(Token).where(Token.external_id == external_id).limit(1)
        with self.session() as session:
            token = session.execute(stmt).scalars().first()
            if token is None:
                token = session.execute(
                    select(Token).where(Token.symbol == symbol.upper(), Token.external_id.is_(None)).limit(1)
                ).scalars().first()
            if token is None:
                token = Token(symbol=symbol.upper(), name=name, external_id=external_id)
                session.add(token)
            elif token.external_id is None:
                token.external_id = external_id
            token.current_price = current_price
            token.market_cap = market_cap
            token.volume_24h = volume_24h
            token.price_change_24h = price_change_24h
            token.is_active = True
            token.last_updated = _as_utc(last_updated or _utcnow())
            session.flush()
            return self._token_record(token)

    # Launch coins -------------------------------------------------------

    def create_launch_coin(
        self,
        *,
        token_id: str,
        launch_price: float,
        initial_market_cap: float,
        initial_volume: float,
        minutes_on_market: int,
        detected_at: datetime,
        status: str = LaunchStatus.MONITORING.value,
    ) -> LaunchRecord:
        with self.session() as session:
            launch = LaunchCoin(
                token_id=token_id,
                launch_price=launch_price,
                initial_market_cap=initial_market_cap,
                initial_volume=initial_volume,
                minutes_on_market=minutes_on_market,
                status=status,
                detected_at=_as_utc(detected_at),
            )
            session.add(launch)
            session.flush()
            token = session.get(Token, token_id)
            return self._launch_record(launch, token.symbol if token else '')

    def get_launch_coin(self, launch_id: str) -> Optional[LaunchRecord]:
        stmt = self._launch_select().where(LaunchCoin.id == launch_id)
        with self.session() as session:
            row = session.execute(stmt).first()
            return self._launch_record(row[0], row[1]) if row else None

    def get_launch_coin_by_token(
        self,
        token_id: str,
        statuses: Optional[Sequence[str]] = None,
    ) -> Optional[LaunchRecord]:
        """Return the most recent launch record of a token, optionally by status."""

        stmt = self._launch_select().where(LaunchCoin.token_id == token_id)
        if statuses:
            stmt = stmt.where(LaunchCoin.status.in_(list(statuses)))
        stmt = stmt.order_by(LaunchCoin.detected_at.desc()).limit(1)
        with self.session() as session:
            row = session.execute(stmt).first()
            return self._launch_record(row[0], row[1]) if row else None

    def get_monitoring_launch_coins(
        self,
        limit: Optional[int] = None,
        *,
        newest_first: bool = False,
    ) -> List[LaunchRecord]:
        order = LaunchCoin.detected_at.desc() if newest_first else LaunchCoin.detected_at.asc()
        stmt = (
            self._launch_select()
            .where(LaunchCoin.status == LaunchStatus.MONITORING.value)
            .order_by(order)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        with self.session() as session:
            return [self._launch_record(launch, symbol) for launch, symbol in session.execute(stmt)]

    def update_launch_coin(self, launch_id: str, **fields: Any) -> Optional[LaunchRecord]:
        """Unconditionally overwrite the given launch fields."""

        unknown = set(fields) - _LAUNCH_FIELDS
        if unknown:
            raise ValueError(f'Unknown launch coin fields: {sorted(unknown)}')
        with self.session() as session:
            launch = session.get(LaunchCoin, launch_id)
            if launch is None:
                return None
            for key, value in fields.items():
                setattr(launch, key, value)
            session.flush()
            token = session.get(Token, launch.token_id)
            return self._launch_record(launch, token.symbol if token else '')

    def transition_launch_status(
        self,
        launch_id: str,
        new_status: str,
        expected: Iterable[str],
        **fields: Any,
    ) -> bool:
        """Set ``status`` only when the current status is one of ``expected``.

        Returns ``True`` when the row changed.
        """

        unknown = set(fields) - _LAUNCH_FIELDS
        if unknown or 'status' in fields:
            raise ValueError(f'Invalid launch coin fields: {sorted(unknown | ({"status"} & set(fields)))}')
        stmt = (
            update(LaunchCoin)
            .where(LaunchCoin.id == launch_id, LaunchCoin.status.in_(list(expected)))
            .values(status=new_status, **fields)
            .execution_options(synchronize_session=False)
        )
        with self.session() as session:
            result = session.execute(stmt)
            return result.rowcount == 1

    # Launch analyses ----------------------------------------------------

    def create_launch_analysis(
        self,
        analysis: LaunchAnalysisRecord,
        *,
        created_at: Optional[datetime] = None,
    ) -> Optional[LaunchAnalysisRecord]:
        """Persist an analysis; returns ``None`` if the launch already has one."""

        with self.session() as session:
            existing = session.execute(
                select(LaunchAnalysis.id).where(LaunchAnalysis.launch_coin_id == analysis.launch_coin_id)
            ).first()
            if existing is not None:
                return None
            row = LaunchAnalysis(
                launch_coin_id=analysis.launch_coin_id,
                outcome_type=analysis.outcome_type,
                max_price_reached=analysis.max_price_reached,
                max_gain_percent=analysis.max_gain_percent,
                final_gain_percent=analysis.final_gain_percent,
                time_to_max_gain=analysis.time_to_max_gain,
                price_volatility=analysis.price_volatility,
                initial_momentum=analysis.initial_momentum,
                volume_pattern=analysis.volume_pattern,
                volume_vs_market_cap=analysis.volume_vs_market_cap,
                identified_patterns=list(analysis.identified_patterns),
                success_factors=dict(analysis.success_factors),
                created_at=_as_utc(created_at or _utcnow()),
            )
            session.add(row)
            session.flush()
            return self._analysis_record(row)

    def get_launch_analysis_by_launch_id(self, launch_id: str) -> Optional[LaunchAnalysisRecord]:
        stmt = select(LaunchAnalysis).where(LaunchAnalysis.launch_coin_id == launch_id)
        with self.session() as session:
            row = session.execute(stmt).scalars().first()
            return self._analysis_record(row) if row else None

    def list_launch_analyses(self) -> List[LaunchAnalysisRecord]:
        stmt = select(LaunchAnalysis).order_by(LaunchAnalysis.created_at.desc())
        with self.session() as session:
            return [self._analysis_record(row) for row in session.execute(stmt).scalars()]

    # Strategies ---------------------------------------------------------

    def create_strategy(
        self,
        *,
        name: str,
        min_market_cap: float = 0.0,
        max_market_cap: Optional[float] = None,
        min_volume: float = 0.0,
        min_momentum: Optional[float] = None,
        entry_percent: float = 2.0,
        max_position_size: float = 500.0,
        description: str = '',
        version: int = 1,
        is_active: bool = False,
    ) -> StrategyRecord:
        with self.session() as session:
            if is_active:
                session.execute(
                    update(LaunchStrategy)
                    .where(LaunchStrategy.is_active.is_(True))
                    .values(is_active=False)
                    .execution_options(synchronize_session=False)
                )
            strategy = LaunchStrategy(
                name=name,
                version=version,
                description=description,
                min_market_cap=min_market_cap,
                max_market_cap=max_market_cap,
                min_volume=min_volume,
                min_momentum=min_momentum,
                entry_percent=entry_percent,
                max_position_size=max_position_size,
                is_active=is_active,
            )
            session.add(strategy)
            session.flush()
            return self._strategy_record(strategy)

    def get_active_strategy(self) -> Optional[StrategyRecord]:
        stmt = select(LaunchStrategy).where(LaunchStrategy.is_active.is_(True)).limit(1)
        with self.session() as session:
            strategy = session.execute(stmt).scalars().first()
            return self._strategy_record(strategy) if strategy else None

    def list_strategies(self) -> List[StrategyRecord]:
        stmt = select(LaunchStrategy).order_by(LaunchStrategy.name)
        with self.session() as session:
            return [self._strategy_record(row) for row in session.execute(stmt).scalars()]

    def activate_strategy(self, strategy_id: str) -> bool:
        """Make ``strategy_id`` the only active strategy."""

        with self.session() as session:
            strategy = session.get(LaunchStrategy, strategy_id)
            if strategy is None:
                return False
            session.execute(
                update(LaunchStrategy)
                .where(LaunchStrategy.id != strategy_id, LaunchStrategy.is_active.is_(True))
                .values(is_active=False)
                .execution_options(synchronize_session=False)
            )
            strategy.is_active = True
            return True

    def upsert_strategy_performance(
        self,
        strategy_id: str,
        *,
        updated_at: Optional[datetime] = None,
        **fields: Any,
    ) -> StrategyPerformanceRecord:
        unknown = set(fields) - _PERFORMANCE_FIELDS
        if unknown:
            raise ValueError(f'Unknown strategy performance fields: {sorted(unknown)}')
        stmt = select(StrategyPerformance).where(StrategyPerformance.strategy_id == strategy_id)
        with self.session() as session:
            performance = session.execute(stmt).scalars().first()
            if performance is None:
                performance = StrategyPerformance(
                    strategy_id=strategy_id,
                    total_trades=0,
                    successful_trades=0,
                    failed_trades=0,
                    win_rate=0.0,
                    avg_profit_per_trade=0.0,
                    total_profit_loss=0.0,
                    meets_win_rate_threshold=False,
                    meets_profit_threshold=False,
                    is_ready_for_live=False,
                )
                session.add(performance)
            for key, value in fields.items():
                setattr(performance, key, value)
            performance.updated_at = _as_utc(updated_at or _utcnow())
            session.flush()
            return self._performance_record(performance)

    def get_strategy_performance(self, strategy_id: str) -> Optional[StrategyPerformanceRecord]:
        stmt = select(StrategyPerformance).where(StrategyPerformance.strategy_id == strategy_id)
        with self.session() as session:
            performance = session.execute(stmt).scalars().first()
            return self._performance_record(performance) if performance else None

    # Portfolios, trades and positions ----------------------------------

    def create_portfolio(
        self,
        *,
        owner: str,
        cash_balance: float = 10_000.0,
        total_value: Optional[float] = None,
        auto_trading_enabled: bool = False,
        launch_trading_enabled: bool = False,
    ) -> PortfolioRecord:
        with self.session() as session:
            portfolio = Portfolio(
                owner=owner,
                cash_balance=cash_balance,
                total_value=cash_balance if total_value is None else total_value,
                realized_pnl=0.0,
                unrealized_pnl=0.0,
                auto_trading_enabled=auto_trading_enabled,
                launch_trading_enabled=launch_trading_enabled,
            )
            session.add(portfolio)
            session.flush()
            return self._portfolio_record(portfolio)

    def get_portfolio(self, portfolio_id: str) -> Optional[PortfolioRecord]:
        with self.session() as session:
            portfolio = session.get(Portfolio, portfolio_id)
            return self._portfolio_record(portfolio) if portfolio else None

    def list_launch_trading_portfolios(self) -> List[PortfolioRecord]:
        """Portfolios with both auto-trading and launch-trading switched on."""

        stmt = select(Portfolio).where(
            Portfolio.auto_trading_enabled.is_(True),
            Portfolio.launch_trading_enabled.is_(True),
        ).order_by(Portfolio.owner)
        with self.session() as session:
            return [self._portfolio_record(row) for row in session.execute(stmt).scalars()]

    def record_buy(
        self,
        *,
        portfolio_id: str,
        token_id: str,
        quantity: float,
        price: float,
        total_value: float,
        timestamp: datetime,
        launch_coin_id: Optional[str] = None,
        order_id: Optional[str] = None,
    ) -> TradeRecord:
        """Write a completed buy, debit the portfolio cash and grow the position."""

        with self.session() as session:
            portfolio = session.get(Portfolio, portfolio_id)
            if portfolio is None:
                raise LookupError(f'Portfolio {portfolio_id} not found')
            trade = Trade(
                portfolio_id=portfolio_id,
                token_id=token_id,
                launch_coin_id=launch_coin_id,
                side='buy',
                quantity=quantity,
                price=price,
                total_value=total_value,
                status='completed',
                order_id=order_id,
                timestamp=_as_utc(timestamp),
            )
            session.add(trade)
            portfolio.cash_balance = portfolio.cash_balance - total_value

            position = session.execute(
                select(Position).where(Position.portfolio_id == portfolio_id, Position.token_id == token_id)
            ).scalars().first()
            if position is None:
                position = Position(portfolio_id=portfolio_id, token_id=token_id, quantity=0.0, average_price=0.0)
                session.add(position)
            position.quantity, position.average_price = blend_fill(
                position.quantity, position.average_price, quantity, price
            )
            position.updated_at = _as_utc(timestamp)
            session.flush()
            return self._trade_record(trade)

    def list_trades(self, portfolio_id: Optional[str] = None) -> List[TradeRecord]:
        stmt: Select[tuple[Trade]] = select(Trade).order_by(Trade.timestamp.asc())
        if portfolio_id is not None:
            stmt = stmt.where(Trade.portfolio_id == portfolio_id)
        with self.session() as session:
            return [self._trade_record(row) for row in session.execute(stmt).scalars()]

    def get_position(self, portfolio_id: str, token_id: str) -> Optional[PositionRecord]:
        stmt = select(Position).where(Position.portfolio_id == portfolio_id, Position.token_id == token_id)
        with self.session() as session:
            row = session.execute(stmt).scalars().first()
            if row is None:
                return None
            return PositionRecord(
                portfolio_id=row.portfolio_id,
                token_id=row.token_id,
                quantity=row.quantity,
                average_price=row.average_price,
                updated_at=_as_utc(row.updated_at),
            )

    def close(self) -> None:
        """Dispose of the underlying engine and connection pool."""

        self._engine.dispose()

    # Conversions --------------------------------------------------------

    @staticmethod
    def _launch_select() -> Select:
        return select(LaunchCoin, Token.symbol).join(Token, Token.id == LaunchCoin.token_id)

    @staticmethod
    def _token_record(row: Token) -> TokenRecord:
        return TokenRecord(
            id=row.id,
            symbol=row.symbol,
            name=row.name,
            external_id=row.external_id,
            current_price=row.current_price,
            market_cap=row.market_cap,
            volume_24h=row.volume_24h,
            price_change_24h=row.price_change_24h,
            is_active=row.is_active,
            last_updated=_as_utc(row.last_updated),
        )

    @staticmethod
    def _launch_record(row: LaunchCoin, symbol: str) -> LaunchRecord:
        return LaunchRecord(
            id=row.id,
            token_id=row.token_id,
            symbol=symbol,
            launch_price=row.launch_price,
            initial_market_cap=row.initial_market_cap,
            initial_volume=row.initial_volume,
            minutes_on_market=row.minutes_on_market,
            status=row.status,
            detected_at=_as_utc(row.detected_at),
            outcome_price=row.outcome_price,
            price_change_1h=row.price_change_1h,
            evaluated_at=_opt_utc(row.evaluated_at),
            traded_at=_opt_utc(row.traded_at),
        )

    @staticmethod
    def _analysis_record(row: LaunchAnalysis) -> LaunchAnalysisRecord:
        return LaunchAnalysisRecord(
            id=row.id,
            launch_coin_id=row.launch_coin_id,
            outcome_type=row.outcome_type,
            max_price_reached=row.max_price_reached,
            max_gain_percent=row.max_gain_percent,
            final_gain_percent=row.final_gain_percent,
            time_to_max_gain=row.time_to_max_gain,
            price_volatility=row.price_volatility,
            initial_momentum=row.initial_momentum,
            volume_pattern=row.volume_pattern,
            volume_vs_market_cap=row.volume_vs_market_cap,
            identified_patterns=list(row.identified_patterns or []),
            success_factors=dict(row.success_factors or {}),
            created_at=_opt_utc(row.created_at),
        )

    @staticmethod
    def _strategy_record(row: LaunchStrategy) -> StrategyRecord:
        return StrategyRecord(
            id=row.id,
            name=row.name,
            version=row.version,
            description=row.description,
            min_market_cap=row.min_market_cap,
            max_market_cap=row.max_market_cap,
            min_volume=row.min_volume,
            min_momentum=row.min_momentum,
            entry_percent=row.entry_percent,
            max_position_size=row.max_position_size,
            is_active=row.is_active,
        )

    @staticmethod
    def _performance_record(row: StrategyPerformance) -> StrategyPerformanceRecord:
        return StrategyPerformanceRecord(
            strategy_id=row.strategy_id,
            total_trades=row.total_trades,
            successful_trades=row.successful_trades,
            failed_trades=row.failed_trades,
            win_rate=row.win_rate,
            avg_profit_per_trade=row.avg_profit_per_trade,
            total_profit_loss=row.total_profit_loss,
            meets_win_rate_threshold=row.meets_win_rate_threshold,
            meets_profit_threshold=row.meets_profit_threshold,
            is_ready_for_live=row.is_ready_for_live,
            updated_at=_opt_utc(row.updated_at),
        )

    @staticmethod
    def _portfolio_record(row: Portfolio) -> PortfolioRecord:
        return PortfolioRecord(
            id=row.id,
            owner=row.owner,
            cash_balance=row.cash_balance,
            total_value=row.total_value,
            realized_pnl=row.realized_pnl,
            unrealized_pnl=row.unrealized_pnl,
            auto_trading_enabled=row.auto_trading_enabled,
            launch_trading_enabled=row.launch_trading_enabled,
        )

    @staticmethod
    def _trade_record(row: Trade) -> TradeRecord:
        return TradeRecord(
            id=row.id,
            portfolio_id=row.portfolio_id,
            token_id=row.token_id,
            side=row.side,
            quantity=row.quantity,
            price=row.price,
            total_value=row.total_value,
            timestamp=_as_utc(row.timestamp),
            launch_coin_id=row.launch_coin_id,
            status=row.status,
            order_id=row.order_id,
            realized_pnl=row.realized_pnl,
            closed_at=_opt_utc(row.closed_at),
        )


__all__ = ['DatabaseManager']
