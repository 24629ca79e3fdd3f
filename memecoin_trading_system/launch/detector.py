"""Scans the active token list for early-launch characteristics."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from ..config import DetectorConfig
from ..data import MarketDataGateway, MarketToken
from ..database import LaunchRecord, LaunchStatus, LaunchStore, TokenRecord
from ..monitoring.notifications import LAUNCH_DETECTED, NotificationCenter
from ..utils import Clock, SystemClock

logger = logging.getLogger(__name__)


class LaunchDetector:
    """Registers each qualifying token as a launch record exactly once."""

    def __init__(
        self,
        gateway: MarketDataGateway,
        store: LaunchStore,
        config: Optional[DetectorConfig] = None,
        *,
        clock: Optional[Clock] = None,
        notifications: Optional[NotificationCenter] = None,
    ) -> None:
        self._gateway = gateway
        self._store = store
        self._config = config or DetectorConfig()
        self._clock = clock or SystemClock()
        self._notifications = notifications
        self._first_seen: Dict[str, datetime] = {}
        self._is_running = False
        self.launches_detected = 0
        self.last_scan_at: Optional[datetime] = None

    @property
    def config(self) -> DetectorConfig:
        return self._config

    def start(self) -> None:
        self._is_running = True
        logger.info('Launch detector started')

    def stop(self) -> None:
        self._is_running = False
        logger.info('Launch detector stopped')

    def matches(self, token: MarketToken) -> bool:
        config = self._config
        if token.current_price <= 0:
            logger.debug('%s rejected: price %.8f is not positive', token.symbol, token.current_price)
            return False
        if not config.min_market_cap <= token.market_cap <= config.max_market_cap:
            logger.debug(
                '%s rejected: market cap %.0f outside [%.0f, %.0f]',
                token.symbol,
                token.market_cap,
                config.min_market_cap,
                config.max_market_cap,
            )
            return False
        if abs(token.price_change_24h) < config.min_price_change_24h:
            logger.debug(
                '%s rejected: |24h change| %.2f%% < %.2f%%',
                token.symbol,
                abs(token.price_change_24h),
                config.min_price_change_24h,
            )
            return False
        if token.volume_24h < config.min_volume:
            logger.debug('%s rejected: volume %.0f < %.0f', token.symbol, token.volume_24h, config.min_volume)
            return False
        return True

    async def scan(self) -> List[LaunchRecord]:
        """Run one detection cycle and return the launch records it created."""

        now = self._clock.now()
        self.last_scan_at = now
        tokens = await self._gateway.list_active_tokens()
        if not tokens:
            logger.info('No market data this cycle')
            self._purge_first_seen(now)
            return []

        for token in tokens:
            self._first_seen.setdefault(token.coin_id, now)
        self._purge_first_seen(now)

        created: List[LaunchRecord] = []
        for token in tokens:
            if not self.matches(token):
                continue
            try:
                launch = await self._register(token, now)
            except Exception:
                logger.exception('Failed to register launch for %s', token.symbol)
                continue
            if launch is not None:
                created.append(launch)
        if created:
            logger.info('Detected %d new launches', len(created))
        return created

    async def _register(self, token: MarketToken, now: datetime) -> Optional[LaunchRecord]:
        stored = await self._ensure_token(token)
        existing = await self._store.get_launch_coin_by_token(stored.id, (LaunchStatus.MONITORING.value,))
        if existing is not None:
            logger.debug('%s already has launch record %s (%s)', token.symbol, existing.id, existing.status)
            return None

        first_seen = self._first_seen.get(token.coin_id, now)
        minutes_on_market = int((now - first_seen).total_seconds() // 60)
        launch = await self._store.create_launch_coin(
            token_id=stored.id,
            launch_price=token.current_price,
            initial_market_cap=token.market_cap,
            initial_volume=token.volume_24h,
            minutes_on_market=minutes_on_market,
            detected_at=now,
            status=LaunchStatus.MONITORING.value,
        )
        self.launches_detected += 1
        logger.info(
            'Launch detected: %s mc=%.0f volume=%.0f change=%.1f%%',
            token.symbol,
            token.market_cap,
            token.volume_24h,
            token.price_change_24h,
        )
        if self._notifications is not None:
            await self._notifications.emit(
                LAUNCH_DETECTED,
                {
                    'launch_id': launch.id,
                    'token_id': stored.id,
                    'symbol': stored.symbol,
                    'launch_price': token.current_price,
                    'market_cap': token.market_cap,
                    'volume_24h': token.volume_24h,
                    'price_change_24h': token.price_change_24h,
                    'minutes_on_market': minutes_on_market,
                },
            )
        return launch

    async def _ensure_token(self, token: MarketToken) -> TokenRecord:
        stored = await self._store.get_token_by_external_id(token.external_id)
        if stored is None:
            by_symbol = await self._store.get_token_by_symbol(token.symbol)
            # A symbol match already bound to another coin is a different token.
            if by_symbol is not None and by_symbol.external_id is None:
                stored = by_symbol
        if stored is None:
            stored = await self._store.create_token(
                symbol=token.symbol,
                name=token.name,
                external_id=token.external_id,
                current_price=token.current_price,
                market_cap=token.market_cap,
                volume_24h=token.volume_24h,
                price_change_24h=token.price_change_24h,
                last_updated=self._clock.now(),
            )
        return stored

    def _purge_first_seen(self, now: datetime) -> None:
        cutoff = now - timedelta(seconds=self._config.first_seen_retention)
        stale = [coin_id for coin_id, seen in self._first_seen.items() if seen < cutoff]
        for coin_id in stale:
            del self._first_seen[coin_id]
        if stale:
            logger.debug('Purged %d first-seen entries', len(stale))

    def status(self) -> Dict[str, Any]:
        config = self._config
        return {
            'is_running': self._is_running,
            'tracked_coins': len(self._first_seen),
            'first_detections': len(self._first_seen),
            'launches_detected': self.launches_detected,
            'scan_interval_seconds': config.scan_interval,
            'last_scan_at': self.last_scan_at.isoformat() if self.last_scan_at else None,
            'criteria': {
                'min_market_cap': config.min_market_cap,
                'max_market_cap': config.max_market_cap,
                'min_price_change_24h': config.min_price_change_24h,
                'min_volume': config.min_volume,
            },
        }


__all__ = ['LaunchDetector']
