"""CoinGecko market data feed settings."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from .config import resolve_env

PUBLIC_BASE_URL = 'https://api.coingecko.com/api/v3'
PRO_BASE_URL = 'https://pro-api.coingecko.com/api/v3'


@dataclass
class CoinGeckoConfig:
    """Normalized representation of the market data feed configuration."""

    api_key: str = ''
    base_url: str | None = None
    rate_limit_delay: float = 4.5
    cache_ttl: float = 300.0
    max_retries: int = 3
    backoff_base: float = 2.0
    request_timeout: float = 10.0
    pages: int = 2
    per_page: int = 250
    category: str | None = None

    def __post_init__(self) -> None:
        if self.rate_limit_delay < 0:
            raise ValueError(f'rate_limit_delay must be >= 0, got {self.rate_limit_delay}')
        if self.max_retries < 0:
            raise ValueError(f'max_retries must be >= 0, got {self.max_retries}')
        if not 1 <= self.per_page <= 250:
            raise ValueError(f'per_page must be within [1, 250], got {self.per_page}')
        if self.pages < 1:
            raise ValueError(f'pages must be >= 1, got {self.pages}')
        if not self.base_url:
            self.base_url = PRO_BASE_URL if self.api_key else PUBLIC_BASE_URL

    @property
    def headers(self) -> dict[str, str]:
        headers = {'Accept': 'application/json'}
        if self.api_key:
            headers['x-cg-pro-api-key'] = self.api_key
        return headers

    @classmethod
    def from_env(
        cls,
        env_file: str | Path = '.env',
        environ: Optional[Mapping[str, str]] = None,
    ) -> 'CoinGeckoConfig':
        env = resolve_env(env_file, environ)
        return cls(
            api_key=env.get('COINGECKO_API_KEY', ''),
            base_url=env.get('COINGECKO_BASE_URL') or None,
            rate_limit_delay=float(env.get('COINGECKO_RATE_LIMIT_DELAY', cls.rate_limit_delay)),
            cache_ttl=float(env.get('COINGECKO_CACHE_TTL', cls.cache_ttl)),
            max_retries=int(env.get('COINGECKO_MAX_RETRIES', cls.max_retries)),
            backoff_base=float(env.get('COINGECKO_BACKOFF_BASE', cls.backoff_base)),
            request_timeout=float(env.get('COINGECKO_TIMEOUT', cls.request_timeout)),
            pages=int(env.get('COINGECKO_PAGES', cls.pages)),
            per_page=int(env.get('COINGECKO_PER_PAGE', cls.per_page)),
            category=env.get('COINGECKO_CATEGORY') or None,
        )


__all__ = ['CoinGeckoConfig', 'PRO_BASE_URL', 'PUBLIC_BASE_URL']
