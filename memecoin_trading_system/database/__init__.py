"""Persistence layer exports."""

from .db_manager import DatabaseManager
from .models import (
    Base,
    LaunchAnalysisRecord,
    LaunchRecord,
    LaunchStatus,
    PortfolioRecord,
    PositionRecord,
    StrategyPerformanceRecord,
    StrategyRecord,
    TokenRecord,
    TradeRecord,
)
from .store import LaunchStore

__all__ = [
    'DatabaseManager',
    'LaunchStore',
    'Base',
    'LaunchAnalysisRecord',
    'LaunchRecord',
    'LaunchStatus',
    'PortfolioRecord',
    'PositionRecord',
    'StrategyPerformanceRecord',
    'StrategyRecord',
    'TokenRecord',
    'TradeRecord',
]
