"""Configuration utilities for the trading system."""

from .coingecko_config import CoinGeckoConfig
from .config import Settings, load_settings
from .pipeline_config import (
    DetectorConfig,
    ExecutorConfig,
    ExperimenterConfig,
    GateConfig,
    MarketHealthConfig,
    MonitorConfig,
    PipelineConfig,
)

__all__ = [
    'CoinGeckoConfig',
    'DetectorConfig',
    'ExecutorConfig',
    'ExperimenterConfig',
    'GateConfig',
    'MarketHealthConfig',
    'MonitorConfig',
    'PipelineConfig',
    'Settings',
    'load_settings',
]
