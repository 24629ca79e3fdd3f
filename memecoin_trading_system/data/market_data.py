"""Market data gateway: active tokens, discovery lists and token details."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional

from ..database import LaunchStore
from ..utils import Clock, SystemClock
from .coingecko_client import CoinGeckoClient, MarketDataError

logger = logging.getLogger(__name__)

EXTERNAL_ID_PREFIX = 'coingecko:'
MEME_CATEGORY = 'meme-token'

LOW_CAP_MIN_MARKET_CAP = 10_000
LOW_CAP_MAX_MARKET_CAP = 10_000_000
LOW_CAP_MIN_CHANGE = 15.0
LOW_CAP_MIN_VOLUME = 500.0


def _number(value: Any) -> float:
    try:
        return float(value) if value is not None else 0.0
    except (TypeError, ValueError):
        return 0.0


def external_id_for(coin_id: str) -> str:
    return f'{EXTERNAL_ID_PREFIX}{coin_id}'


@dataclass(slots=True)
class MarketToken:
    """One row of the feed's market listing."""

    coin_id: str
    symbol: str
    name: str
    current_price: float
    market_cap: float
    volume_24h: float
    price_change_24h: float

    @property
    def external_id(self) -> str:
        return external_id_for(self.coin_id)

    @classmethod
    def from_markets_row(cls, row: Mapping[str, Any]) -> 'MarketToken':
        return cls(
            coin_id=str(row['id']),
            symbol=str(row.get('symbol') or '').upper(),
            name=str(row.get('name') or row['id']),
            current_price=_number(row.get('current_price')),
            market_cap=_number(row.get('market_cap')),
            volume_24h=_number(row.get('total_volume')),
            price_change_24h=_number(row.get('price_change_percentage_24h')),
        )


@dataclass(slots=True)
class CandidateCoin:
    """A coin surfaced by one of the discovery lists."""

    coin_id: str
    symbol: str
    name: str
    source: str
    current_price: Optional[float] = None
    market_cap: Optional[float] = None
    volume_24h: Optional[float] = None
    price_change_24h: Optional[float] = None

    @property
    def has_market_data(self) -> bool:
        return self.current_price is not None and self.market_cap is not None

    @classmethod
    def from_token(cls, token: MarketToken, source: str) -> 'CandidateCoin':
        return cls(
            coin_id=token.coin_id,
            symbol=token.symbol,
            name=token.name,
            source=source,
            current_price=token.current_price,
            market_cap=token.market_cap,
            volume_24h=token.volume_24h,
            price_change_24h=token.price_change_24h,
        )


@dataclass(slots=True)
class TokenDetail:
    coin_id: str
    symbol: str
    name: str
    current_price: float
    market_cap: float
    volume_24h: float
    price_change_24h: float
    genesis_date: Optional[str] = None
    categories: List[str] = field(default_factory=list)


class MarketDataGateway:
    """Turns raw feed responses into typed rows; an empty result means no data this cycle."""

    def __init__(
        self,
        client: CoinGeckoClient,
        store: Optional[LaunchStore] = None,
        *,
        clock: Optional[Clock] = None,
    ) -> None:
        self._client = client
        self._store = store
        self._clock = clock or SystemClock()
        self.last_sync_count = 0

    async def list_active_tokens(self) -> List[MarketToken]:
        """Paginated market listing, de-duplicated by coin id."""

        config = self._client.config
        tokens: Dict[str, MarketToken] = {}
        for page in range(1, config.pages + 1):
            params: Dict[str, Any] = {
                'vs_currency': 'usd',
                'order': 'market_cap_desc',
                'per_page': config.per_page,
                'page': page,
                'sparkline': 'false',
                'price_change_percentage': '24h',
            }
            if config.category:
                params['category'] = config.category
            rows = await self._get_list('/coins/markets', params)
            if rows is None:
                break
            for token in self._parse_markets(rows):
                tokens.setdefault(token.coin_id, token)
            if len(rows) < config.per_page:
                break
        return list(tokens.values())

    async def fetch_candidate_coins(self) -> List[CandidateCoin]:
        """Union of trending coins, meme-category gainers and low-cap gems."""

        candidates: Dict[str, CandidateCoin] = {}

        trending = await self._get_json('/search/trending', {})
        entries = trending.get('coins', []) if isinstance(trending, dict) else []
        for entry in entries:
            item = entry.get('item') or {}
            if not item.get('id'):
                continue
            candidates.setdefault(
                item['id'],
                CandidateCoin(
                    coin_id=str(item['id']),
                    symbol=str(item.get('symbol') or '').upper(),
                    name=str(item.get('name') or item['id']),
                    source='trending',
                ),
            )

        gainers = await self._get_list(
            '/coins/markets',
            {
                'vs_currency': 'usd',
                'order': 'percent_change_24h_desc',
                'per_page': 100,
                'page': 1,
                'sparkline': 'false',
                'price_change_percentage': '24h',
                'category': MEME_CATEGORY,
            },
        )
        for token in self._parse_markets(gainers or []):
            self._merge(candidates, CandidateCoin.from_token(token, 'top_gainer'))

        movers = await self._get_list(
            '/coins/markets',
            {
                'vs_currency': 'usd',
                'order': 'percent_change_24h_desc',
                'per_page': 100,
                'page': 1,
                'sparkline': 'false',
                'price_change_percentage': '24h',
            },
        )
        for token in self._parse_markets(movers or []):
            if (
                LOW_CAP_MIN_MARKET_CAP < token.market_cap < LOW_CAP_MAX_MARKET_CAP
                and token.price_change_24h > LOW_CAP_MIN_CHANGE
                and token.volume_24h > LOW_CAP_MIN_VOLUME
            ):
                self._merge(candidates, CandidateCoin.from_token(token, 'low_cap_gem'))

        logger.debug('Discovered %d candidate coins', len(candidates))
        return list(candidates.values())

    async def fetch_token_detail(self, coin_id: str) -> Optional[TokenDetail]:
        payload = await self._get_json(
            f'/coins/{coin_id}',
            {
                'localization': 'false',
                'tickers': 'false',
                'community_data': 'false',
                'developer_data': 'false',
            },
        )
        if not isinstance(payload, dict) or 'id' not in payload:
            return None
        market = payload.get('market_data') or {}
        return TokenDetail(
            coin_id=str(payload['id']),
            symbol=str(payload.get('symbol') or '').upper(),
            name=str(payload.get('name') or payload['id']),
            current_price=_number((market.get('current_price') or {}).get('usd')),
            market_cap=_number((market.get('market_cap') or {}).get('usd')),
            volume_24h=_number((market.get('total_volume') or {}).get('usd')),
            price_change_24h=_number(market.get('price_change_percentage_24h')),
            genesis_date=payload.get('genesis_date'),
            categories=[str(category) for category in payload.get('categories') or [] if category],
        )

    async def sync_store(self) -> int:
        """Write the latest market fields of every known coin into the store."""

        if self._store is None:
            return 0
        tokens = {token.coin_id: token for token in await self.list_active_tokens()}
        for candidate in await self.fetch_candidate_coins():
            if candidate.coin_id in tokens or not candidate.has_market_data:
                continue
            tokens[candidate.coin_id] = MarketToken(
                coin_id=candidate.coin_id,
                symbol=candidate.symbol,
                name=candidate.name,
                current_price=candidate.current_price or 0.0,
                market_cap=candidate.market_cap or 0.0,
                volume_24h=candidate.volume_24h or 0.0,
                price_change_24h=candidate.price_change_24h or 0.0,
            )
        now = self._clock.now()
        synced = 0
        for token in tokens.values():
            await self._store.upsert_market_token(
                external_id=token.external_id,
                symbol=token.symbol,
                name=token.name,
                current_price=token.current_price,
                market_cap=token.market_cap,
                volume_24h=token.volume_24h,
                price_change_24h=token.price_change_24h,
                last_updated=now,
            )
            synced += 1
        self.last_sync_count = synced
        logger.info('Synced %d tokens from the market feed', synced)
        return synced

    async def close(self) -> None:
        await self._client.close()

    async def _get_json(self, path: str, params: Mapping[str, Any]) -> Any:
        try:
            return await self._client.get_json(path, params)
        except MarketDataError as error:
            logger.warning('Market data unavailable for %s: %s', path, error)
            return None

    async def _get_list(self, path: str, params: Mapping[str, Any]) -> Optional[List[Mapping[str, Any]]]:
        payload = await self._get_json(path, params)
        if payload is None:
            return None
        if not isinstance(payload, list):
            logger.warning('Unexpected payload for %s: %s', path, type(payload).__name__)
            return None
        return payload

    @staticmethod
    def _parse_markets(rows: Iterable[Mapping[str, Any]]) -> List[MarketToken]:
        tokens = []
        for row in rows:
            if not isinstance(row, Mapping) or not row.get('id'):
                continue
            tokens.append(MarketToken.from_markets_row(row))
        return tokens

    @staticmethod
    def _merge(candidates: Dict[str, CandidateCoin], candidate: CandidateCoin) -> None:
        existing = candidates.get(candidate.coin_id)
        if existing is None:
            candidates[candidate.coin_id] = candidate
        elif not existing.has_market_data:
            candidate.source = existing.source
            candidates[candidate.coin_id] = candidate


__all__ = [
    'CandidateCoin',
    'EXTERNAL_ID_PREFIX',
    'MarketDataGateway',
    'MarketToken',
    'TokenDetail',
    'external_id_for',
]
