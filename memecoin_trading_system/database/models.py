"""SQLAlchemy ORM models and typed records for persistence."""

from __future__ import annotations

import enum
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import JSON, Boolean, DateTime, Float, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _new_id() -> str:
    return str(uuid.uuid4())


class LaunchStatus(str, enum.Enum):
    MONITORING = 'monitoring'
    TRADED = 'traded'
    SUCCESS = 'success'
    FAILURE = 'failure'


class Base(DeclarativeBase):
    """Base class for all ORM models."""


class Token(Base):
    """A token as last seen on the market data feed."""

    __tablename__ = 'tokens'

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    symbol: Mapped[str] = mapped_column(String(32), index=True)
    name: Mapped[str] = mapped_column(String(128))
    external_id: Mapped[str | None] = mapped_column(String(160), unique=True, nullable=True)
    current_price: Mapped[float] = mapped_column(Float, default=0.0)
    market_cap: Mapped[float] = mapped_column(Float, default=0.0)
    volume_24h: Mapped[float] = mapped_column(Float, default=0.0)
    price_change_24h: Mapped[float] = mapped_column(Float, default=0.0)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    last_updated: Mapped[datetime] = mapped_column(DateTime(timezone=True))


class LaunchCoin(Base):
    """A token believed to be newly launched, tracked from detection to outcome."""

    __tablename__ = 'launch_coins'
    __table_args__ = (
        Index('ix_launch_coins_status_detected', 'status', 'detected_at'),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    token_id: Mapped[str] = mapped_column(ForeignKey('tokens.id'), index=True)
    launch_price: Mapped[float] = mapped_column(Float)
    initial_market_cap: Mapped[float] = mapped_column(Float, default=0.0)
    initial_volume: Mapped[float] = mapped_column(Float, default=0.0)
    minutes_on_market: Mapped[int] = mapped_column(Integer, default=0)
    status: Mapped[str] = mapped_column(String(16), default=LaunchStatus.MONITORING.value)
    detected_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    outcome_price: Mapped[float | None] = mapped_column(Float, nullable=True)
    price_change_1h: Mapped[float | None] = mapped_column(Float, nullable=True)
    evaluated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    traded_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class LaunchAnalysis(Base):
    """Outcome and trend features of a launch once its observation window closed."""

    __tablename__ = 'launch_analyses'

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    launch_coin_id: Mapped[str] = mapped_column(ForeignKey('launch_coins.id'), unique=True)
    outcome_type: Mapped[str] = mapped_column(String(16))
    max_price_reached: Mapped[float] = mapped_column(Float)
    max_gain_percent: Mapped[float] = mapped_column(Float)
    final_gain_percent: Mapped[float] = mapped_column(Float)
    time_to_max_gain: Mapped[int] = mapped_column(Integer)
    price_volatility: Mapped[float] = mapped_column(Float)
    initial_momentum: Mapped[float] = mapped_column(Float)
    volume_pattern: Mapped[str] = mapped_column(String(16))
    volume_vs_market_cap: Mapped[float] = mapped_column(Float, default=0.0)
    identified_patterns: Mapped[list] = mapped_column(JSON, default=list)
    success_factors: Mapped[dict] = mapped_column(JSON, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))


class LaunchStrategy(Base):
    """Numeric entry filters for launch trades; at most one is active."""

    __tablename__ = 'launch_strategies'

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(128), unique=True)
    version: Mapped[int] = mapped_column(Integer, default=1)
    description: Mapped[str] = mapped_column(String(512), default='')
    min_market_cap: Mapped[float] = mapped_column(Float, default=0.0)
    max_market_cap: Mapped[float | None] = mapped_column(Float, nullable=True)
    min_volume: Mapped[float] = mapped_column(Float, default=0.0)
    min_momentum: Mapped[float | None] = mapped_column(Float, nullable=True)
    entry_percent: Mapped[float] = mapped_column(Float, default=2.0)
    max_position_size: Mapped[float] = mapped_column(Float, default=500.0)
    is_active: Mapped[bool] = mapped_column(Boolean, default=False)


class StrategyPerformance(Base):
    """Rolling results of a strategy; maintained by reporting, read by the gate."""

    __tablename__ = 'strategy_performance'

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    strategy_id: Mapped[str] = mapped_column(ForeignKey('launch_strategies.id'), unique=True)
    total_trades: Mapped[int] = mapped_column(Integer, default=0)
    successful_trades: Mapped[int] = mapped_column(Integer, default=0)
    failed_trades: Mapped[int] = mapped_column(Integer, default=0)
    win_rate: Mapped[float] = mapped_column(Float, default=0.0)
    avg_profit_per_trade: Mapped[float] = mapped_column(Float, default=0.0)
    total_profit_loss: Mapped[float] = mapped_column(Float, default=0.0)
    meets_win_rate_threshold: Mapped[bool] = mapped_column(Boolean, default=False)
    meets_profit_threshold: Mapped[bool] = mapped_column(Boolean, default=False)
    is_ready_for_live: Mapped[bool] = mapped_column(Boolean, default=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))


class Portfolio(Base):
    """Paper capital belonging to one user."""

    __tablename__ = 'portfolios'

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    owner: Mapped[str] = mapped_column(String(128), index=True)
    cash_balance: Mapped[float] = mapped_column(Float, default=10_000.0)
    total_value: Mapped[float] = mapped_column(Float, default=10_000.0)
    realized_pnl: Mapped[float] = mapped_column(Float, default=0.0)
    unrealized_pnl: Mapped[float] = mapped_column(Float, default=0.0)
    auto_trading_enabled: Mapped[bool] = mapped_column(Boolean, default=False)
    launch_trading_enabled: Mapped[bool] = mapped_column(Boolean, default=False)


class Trade(Base):
    """Represents an executed paper trade."""

    __tablename__ = 'trades'

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    portfolio_id: Mapped[str] = mapped_column(ForeignKey('portfolios.id'), index=True)
    token_id: Mapped[str] = mapped_column(ForeignKey('tokens.id'), index=True)
    launch_coin_id: Mapped[str | None] = mapped_column(ForeignKey('launch_coins.id'), nullable=True)
    side: Mapped[str] = mapped_column(String(8))
    quantity: Mapped[float] = mapped_column(Float)
    price: Mapped[float] = mapped_column(Float)
    total_value: Mapped[float] = mapped_column(Float)
    status: Mapped[str] = mapped_column(String(16), default='completed')
    order_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
    realized_pnl: Mapped[float | None] = mapped_column(Float, nullable=True)
    closed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class Position(Base):
    """Open holding of a token inside a portfolio."""

    __tablename__ = 'positions'
    __table_args__ = (
        UniqueConstraint('portfolio_id', 'token_id', name='uq_positions_portfolio_token'),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    portfolio_id: Mapped[str] = mapped_column(ForeignKey('portfolios.id'), index=True)
    token_id: Mapped[str] = mapped_column(ForeignKey('tokens.id'))
    quantity: Mapped[float] = mapped_column(Float, default=0.0)
    average_price: Mapped[float] = mapped_column(Float, default=0.0)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))


@dataclass(slots=True)
class TokenRecord:
    """Typed container for token state."""

    id: str
    symbol: str
    name: str
    external_id: Optional[str]
    current_price: float
    market_cap: float
    volume_24h: float
    price_change_24h: float
    is_active: bool
    last_updated: datetime


@dataclass(slots=True)
class LaunchRecord:
    """Typed container for a launch coin joined with its token symbol."""

    id: str
    token_id: str
    symbol: str
    launch_price: float
    initial_market_cap: float
    initial_volume: float
    minutes_on_market: int
    status: str
    detected_at: datetime
    outcome_price: Optional[float] = None
    price_change_1h: Optional[float] = None
    evaluated_at: Optional[datetime] = None
    traded_at: Optional[datetime] = None


@dataclass(slots=True)
class LaunchAnalysisRecord:
    """Typed container for launch analyses."""

    launch_coin_id: str
    outcome_type: str
    max_price_reached: float
    max_gain_percent: float
    final_gain_percent: float
    time_to_max_gain: int
    price_volatility: float
    initial_momentum: float
    volume_pattern: str
    volume_vs_market_cap: float
    identified_patterns: List[str] = field(default_factory=list)
    success_factors: Dict[str, object] = field(default_factory=dict)
    id: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass(slots=True)
class StrategyRecord:
    """Typed container for launch strategies."""

    id: str
    name: str
    version: int
    description: str
    min_market_cap: float
    max_market_cap: Optional[float]
    min_volume: float
    min_momentum: Optional[float]
    entry_percent: float
    max_position_size: float
    is_active: bool


@dataclass(slots=True)
class StrategyPerformanceRecord:
    """Typed container for strategy performance rollups."""

    strategy_id: str
    total_trades: int
    successful_trades: int
    failed_trades: int
    win_rate: float
    avg_profit_per_trade: float
    total_profit_loss: float
    meets_win_rate_threshold: bool
    meets_profit_threshold: bool
    is_ready_for_live: bool
    updated_at: Optional[datetime] = None


@dataclass(slots=True)
class PortfolioRecord:
    """Typed container for portfolios."""

    id: str
    owner: str
    cash_balance: float
    total_value: float
    realized_pnl: float
    unrealized_pnl: float
    auto_trading_enabled: bool
    launch_trading_enabled: bool


@dataclass(slots=True)
class TradeRecord:
    """Typed container for trade persistence."""

    id: str
    portfolio_id: str
    token_id: str
    side: str
    quantity: float
    price: float
    total_value: float
    timestamp: datetime
    launch_coin_id: Optional[str] = None
    status: str = 'completed'
    order_id: Optional[str] = None
    realized_pnl: Optional[float] = None
    closed_at: Optional[datetime] = None


@dataclass(slots=True)
class PositionRecord:
    """Typed container for open positions."""

    portfolio_id: str
    token_id: str
    quantity: float
    average_price: float
    updated_at: datetime


__all__ = [
    'Base',
    'LaunchAnalysis',
    'LaunchAnalysisRecord',
    'LaunchCoin',
    'LaunchRecord',
    'LaunchStatus',
    'LaunchStrategy',
    'Portfolio',
    'PortfolioRecord',
    'Position',
    'PositionRecord',
    'StrategyPerformance',
    'StrategyPerformanceRecord',
    'StrategyRecord',
    'Token',
    'TokenRecord',
    'Trade',
    'TradeRecord',
]
