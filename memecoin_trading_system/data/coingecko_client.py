"""Rate-limited, cached HTTP client for the CoinGecko REST API."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Mapping, Optional, Tuple

import aiohttp

from ..config import CoinGeckoConfig
from ..utils import Clock, SystemClock, async_retry

logger = logging.getLogger(__name__)

CacheKey = Tuple[str, Tuple[Tuple[str, str], ...]]


class MarketDataError(RuntimeError):
    """Raised when the market data feed cannot answer a request."""


class TransientFeedError(MarketDataError):
    """Timeouts, connection resets and 5xx responses; safe to retry."""


class RateLimitError(TransientFeedError):
    """HTTP 429 from the feed."""


class CoinGeckoClient:
    """Issues GET requests with a global spacing, a TTL cache and bounded retries."""

    def __init__(
        self,
        config: Optional[CoinGeckoConfig] = None,
        *,
        clock: Optional[Clock] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self._config = config or CoinGeckoConfig()
        self._clock = clock or SystemClock()
        self._session = session
        self._owns_session = session is None
        self._session_lock = asyncio.Lock()
        self._throttle_lock = asyncio.Lock()
        self._last_request: Optional[float] = None
        self._cache: Dict[CacheKey, Tuple[float, Any]] = {}
        self._fetch = async_retry(
            retries=self._config.max_retries + 1,
            delay=self._config.backoff_base,
            exceptions=(TransientFeedError,),
            backoff=2.0,
            sleep=self._clock.sleep,
        )(self._request)
        self.requests_sent = 0

    @property
    def config(self) -> CoinGeckoConfig:
        return self._config

    async def get_json(self, path: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        """Return the decoded JSON body of ``path``, served from cache when fresh."""

        key = self._cache_key(path, params)
        cached = self._cache.get(key)
        if cached is not None and self._clock.monotonic() - cached[0] < self._config.cache_ttl:
            logger.debug('Cache hit for %s', path)
            return cached[1]
        try:
            payload = await self._fetch(path, dict(params or {}))
        except TransientFeedError as error:
            logger.warning('Giving up on %s after %d attempts: %s', path, self._config.max_retries + 1, error)
            raise MarketDataError(f'{path} unavailable: {error}') from error
        self._cache[key] = (self._clock.monotonic(), payload)
        return payload

    def clear_cache(self) -> None:
        self._cache.clear()

    async def close(self) -> None:
        if self._session is not None and self._owns_session:
            await self._session.close()
        self._session = None

    async def _client(self) -> aiohttp.ClientSession:
        async with self._session_lock:
            if self._session is None:
                self._session = aiohttp.ClientSession(
                    headers=self._config.headers,
                    timeout=aiohttp.ClientTimeout(total=self._config.request_timeout),
                )
                self._owns_session = True
            return self._session

    async def _throttle(self) -> None:
        async with self._throttle_lock:
            if self._last_request is not None:
                wait = self._config.rate_limit_delay - (self._clock.monotonic() - self._last_request)
                if wait > 0:
                    await self._clock.sleep(wait)
            self._last_request = self._clock.monotonic()

    async def _request(self, path: str, params: Dict[str, Any]) -> Any:
        await self._throttle()
        session = await self._client()
        url = f'{self._config.base_url.rstrip("/")}/{path.lstrip("/")}'
        self.requests_sent += 1
        try:
            async with session.get(url, params=params, headers=self._config.headers) as response:
                if response.status == 429:
                    raise RateLimitError(f'429 from {path}')
                if response.status >= 500:
                    raise TransientFeedError(f'{response.status} from {path}')
                if response.status >= 400:
                    raise MarketDataError(f'{response.status} from {path}')
                return await response.json(content_type=None)
        except asyncio.TimeoutError as error:
            raise TransientFeedError(f'timeout requesting {path}') from error
        except aiohttp.ClientError as error:
            raise TransientFeedError(f'connection error requesting {path}: {error}') from error

    @staticmethod
    def _cache_key(path: str, params: Optional[Mapping[str, Any]]) -> CacheKey:
        items = tuple(sorted((str(key), str(value)) for key, value in (params or {}).items()))
        return path, items


__all__ = ['CoinGeckoClient', 'MarketDataError', 'RateLimitError', 'TransientFeedError']
