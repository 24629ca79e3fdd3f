"""Thresholds and intervals for the launch trading pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Mapping, Optional, TypeVar

from .config import parse_bool, resolve_env

_T = TypeVar('_T')


def _coerce(raw: str, current: Any) -> Any:
    if isinstance(current, bool):
        return parse_bool(raw)
    if isinstance(current, int):
        return int(raw)
    if isinstance(current, float):
        return float(raw)
    return raw


def _apply_overrides(section: _T, prefix: str, env: Mapping[str, str]) -> _T:
    """Return a copy of ``section`` with `PREFIX_FIELD` environment overrides applied."""
    overrides: dict[str, Any] = {}
    for item in fields(section):  # type: ignore[arg-type]
        key = f'{prefix}_{item.name}'.upper()
        if key in env and env[key] != '':
            overrides[item.name] = _coerce(env[key], getattr(section, item.name))
    return replace(section, **overrides) if overrides else section  # type: ignore[type-var]


@dataclass(frozen=True)
class DetectorConfig:
    scan_interval: float = 120.0
    min_market_cap: float = 10_000.0
    max_market_cap: float = 50_000_000.0
    min_price_change_24h: float = 10.0
    min_volume: float = 500.0
    first_seen_retention: float = 6 * 60 * 60.0

    def __post_init__(self) -> None:
        if self.min_market_cap > self.max_market_cap:
            raise ValueError('min_market_cap must not exceed max_market_cap')
        if self.scan_interval <= 0:
            raise ValueError('scan_interval must be positive')


@dataclass(frozen=True)
class MonitorConfig:
    tick_interval: float = 120.0
    observation_window: float = 60 * 60.0
    success_threshold: float = 1.0

    def __post_init__(self) -> None:
        if self.tick_interval <= 0 or self.observation_window <= 0:
            raise ValueError('tick_interval and observation_window must be positive')


@dataclass(frozen=True)
class GateConfig:
    refresh_interval: float = 60.0
    min_win_rate: float = 65.0
    min_avg_profit: float = 50.0


@dataclass(frozen=True)
class ExecutorConfig:
    evaluation_interval: float = 30.0
    candidate_limit: int = 10
    min_position_size: float = 50.0
    cash_buffer: float = 0.9
    use_market_health: bool = True

    def __post_init__(self) -> None:
        if self.candidate_limit < 1:
            raise ValueError('candidate_limit must be >= 1')
        if not 0 < self.cash_buffer <= 1:
            raise ValueError('cash_buffer must be within (0, 1]')


@dataclass(frozen=True)
class MarketHealthConfig:
    refresh_interval: float = 300.0
    cache_ttl: float = 300.0
    min_tokens: int = 10


@dataclass(frozen=True)
class ExperimenterConfig:
    evaluation_interval: float = 30 * 60.0
    min_trades: int = 20


@dataclass(frozen=True)
class PipelineConfig:
    """Every tunable of the detection, monitoring, gating and execution pipeline."""

    detector: DetectorConfig = field(default_factory=DetectorConfig)
    monitor: MonitorConfig = field(default_factory=MonitorConfig)
    gate: GateConfig = field(default_factory=GateConfig)
    executor: ExecutorConfig = field(default_factory=ExecutorConfig)
    market_health: MarketHealthConfig = field(default_factory=MarketHealthConfig)
    experimenter: ExperimenterConfig = field(default_factory=ExperimenterConfig)
    price_feed_interval: float = 60.0

    @classmethod
    def from_env(
        cls,
        env_file: str | Path = '.env',
        environ: Optional[Mapping[str, str]] = None,
    ) -> 'PipelineConfig':
        env = resolve_env(env_file, environ)
        feed_interval = env.get('PRICE_FEED_INTERVAL')
        return cls(
            detector=_apply_overrides(DetectorConfig(), 'detector', env),
            monitor=_apply_overrides(MonitorConfig(), 'monitor', env),
            gate=_apply_overrides(GateConfig(), 'gate', env),
            executor=_apply_overrides(ExecutorConfig(), 'executor', env),
            market_health=_apply_overrides(MarketHealthConfig(), 'market_health', env),
            experimenter=_apply_overrides(ExperimenterConfig(), 'experimenter', env),
            price_feed_interval=float(feed_interval) if feed_interval else cls.price_feed_interval,
        )


__all__ = [
    'DetectorConfig',
    'ExecutorConfig',
    'ExperimenterConfig',
    'GateConfig',
    'MarketHealthConfig',
    'MonitorConfig',
    'PipelineConfig',
]
