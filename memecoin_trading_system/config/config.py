"""Application-wide configuration helpers."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, Mapping, Optional

_ENV_COMMENT_PREFIX = '#'
_TRUTHY = {'1', 'true', 'yes', 'on'}


def _load_env_file(path: Path) -> Dict[str, str]:
    """Load simple KEY=VALUE pairs from a .env style file if it exists."""
    if not path.exists():
        return {}

    values: Dict[str, str] = {}
    for raw_line in path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith(_ENV_COMMENT_PREFIX):
            continue
        if '=' not in line:
            continue
        key, value = line.split('=', 1)
        values[key.strip()] = value.strip().strip('"').strip("\'")
    return values


def _merge_env(sources: Iterable[Mapping[str, str]]) -> Dict[str, str]:
    merged: Dict[str, str] = {}
    for source in sources:
        merged.update(source)
    return merged


def resolve_env(
    env_file: str | Path = '.env',
    environ: Optional[Mapping[str, str]] = None,
) -> Dict[str, str]:
    """Return the `.env` values overlaid with the process environment."""

    env_file_values = _load_env_file(Path(env_file))
    return _merge_env([env_file_values, dict(os.environ if environ is None else environ)])


def parse_bool(value: str) -> bool:
    return value.strip().lower() in _TRUTHY


@dataclass
class Settings:
    """Container for application level settings.

    Values are resolved from (in order): process environment, `.env` file,
    and finally the provided defaults.
    """

    environment: str = 'development'
    database_url: str = 'sqlite:///data/memecoin_trading.db'
    data_directory: Path = field(default_factory=lambda: Path('data'))
    log_level: str = 'INFO'
    status_host: str = '127.0.0.1'
    status_port: Optional[int] = None

    @classmethod
    def from_env(
        cls,
        env_file: str | Path = '.env',
        environ: Optional[Mapping[str, str]] = None,
    ) -> 'Settings':
        merged = resolve_env(env_file, environ)
        port = merged.get('STATUS_API_PORT')
        kwargs = {
            'environment': merged.get('APP_ENV', cls.environment),
            'database_url': merged.get('DATABASE_URL', cls.database_url),
            'data_directory': Path(merged.get('DATA_DIRECTORY', 'data')),
            'log_level': merged.get('LOG_LEVEL', cls.log_level),
            'status_host': merged.get('STATUS_API_HOST', cls.status_host),
            'status_port': int(port) if port else None,
        }
        settings = cls(**kwargs)
        settings.ensure_directories()
        return settings

    def ensure_directories(self) -> None:
        """Create required directories if they are missing."""
        self.data_directory = Path(self.data_directory)
        self.data_directory.mkdir(parents=True, exist_ok=True)


load_settings = Settings.from_env

__all__ = ['Settings', 'load_settings', 'parse_bool', 'resolve_env']
