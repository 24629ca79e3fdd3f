"""Market data layer."""

from .coingecko_client import CoinGeckoClient, MarketDataError, RateLimitError, TransientFeedError
from .market_data import CandidateCoin, MarketDataGateway, MarketToken, TokenDetail, external_id_for

__all__ = [
    'CandidateCoin',
    'CoinGeckoClient',
    'MarketDataError',
    'MarketDataGateway',
    'MarketToken',
    'RateLimitError',
    'TokenDetail',
    'TransientFeedError',
    'external_id_for',
]
