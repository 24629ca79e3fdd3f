"""Risk management: sizing guardrails, position blending and market health."""

from .market_health import MarketHealthReport, MarketHealthSignal
from .portfolio_manager import blend_fill
from .position_sizing import PositionSizer, SizingLimits, compute_position_size

__all__ = [
    'MarketHealthReport',
    'MarketHealthSignal',
    'PositionSizer',
    'SizingLimits',
    'blend_fill',
    'compute_position_size',
]
