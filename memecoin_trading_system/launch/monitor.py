"""Observes launches for a fixed window and records their outcome."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from ..config import MonitorConfig
from ..database import LaunchRecord, LaunchStatus, LaunchStore
from ..monitoring.notifications import LAUNCH_DETECTED, Notification, NotificationCenter
from ..utils import Clock, SystemClock
from .analysis import LaunchOutcome, analyze_launch, first_quarter_momentum
from .tracking import Snapshot, TrackedLaunch, TrackingArena

logger = logging.getLogger(__name__)

FINAL_FROM = (LaunchStatus.MONITORING.value, LaunchStatus.TRADED.value)


class PerformanceMonitor:
    """Samples price and market cap of every tracked launch each tick.

    When a launch has been observed for ``observation_window`` seconds it is
    analyzed, its analysis is written once, its status moves to ``success`` or
    ``failure`` and it is evicted from tracking. Traded launches are still
    classified.
    """

    def __init__(
        self,
        store: LaunchStore,
        config: Optional[MonitorConfig] = None,
        *,
        clock: Optional[Clock] = None,
        notifications: Optional[NotificationCenter] = None,
    ) -> None:
        self._store = store
        self._config = config or MonitorConfig()
        self._clock = clock or SystemClock()
        self._notifications = notifications
        self._arena = TrackingArena()
        self._is_running = False
        self.completed = 0
        self.successes = 0

    @property
    def config(self) -> MonitorConfig:
        return self._config

    @property
    def arena(self) -> TrackingArena:
        return self._arena

    async def start(self) -> int:
        """Resume tracking of persisted launches that are still inside their window."""

        if self._notifications is not None:
            self._notifications.subscribe(LAUNCH_DETECTED, self.handle_launch_detected)
        self._is_running = True
        resumed = await self.rehydrate()
        logger.info('Performance monitor started with %d launches', resumed)
        return resumed

    async def stop(self) -> None:
        if self._notifications is not None:
            self._notifications.unsubscribe(LAUNCH_DETECTED, self.handle_launch_detected)
        self._is_running = False
        logger.info('Performance monitor stopped')

    async def rehydrate(self) -> int:
        now = self._clock.now()
        resumed = 0
        for launch in await self._store.get_monitoring_launch_coins():
            if (now - launch.detected_at).total_seconds() >= self._config.observation_window:
                continue
            if launch.id in self._arena:
                continue
            token = await self._store.get_token(launch.token_id)
            if token is None:
                logger.warning('Launch %s references missing token %s', launch.id, launch.token_id)
                continue
            initial_cap = launch.initial_market_cap or token.market_cap
            tracked = TrackedLaunch(
                launch_id=launch.id,
                token_id=launch.token_id,
                symbol=token.symbol,
                initial_price=launch.launch_price,
                initial_market_cap=initial_cap,
                detected_at=launch.detected_at,
                snapshots=[
                    Snapshot(launch.detected_at, launch.launch_price, initial_cap),
                    Snapshot(now, token.current_price, token.market_cap),
                ],
            )
            self._arena.add(tracked)
            resumed += 1
            logger.info('Resumed tracking %s', token.symbol)
        return resumed

    def track_launch(self, launch: LaunchRecord, price: float, market_cap: float) -> bool:
        tracked = TrackedLaunch(
            launch_id=launch.id,
            token_id=launch.token_id,
            symbol=launch.symbol,
            initial_price=price,
            initial_market_cap=market_cap,
            detected_at=launch.detected_at,
        )
        added = self._arena.add(tracked)
        if added:
            logger.info('Now tracking launch %s at %.8f', launch.symbol, price)
        return added

    async def handle_launch_detected(self, notification: Notification) -> None:
        launch = await self._store.get_launch_coin(notification.payload['launch_id'])
        if launch is None:
            logger.warning('Detected launch %s not found in store', notification.payload['launch_id'])
            return
        self.track_launch(launch, launch.launch_price, launch.initial_market_cap)

    async def tick(self) -> List[LaunchOutcome]:
        """Append a snapshot to every tracked launch and finalize the expired ones."""

        now = self._clock.now()
        expired: List[TrackedLaunch] = []
        for tracked in self._arena.snapshot():
            try:
                token = await self._store.get_token(tracked.token_id)
                if token is not None:
                    tracked.add_snapshot(now, token.current_price, token.market_cap)
                if tracked.elapsed_seconds(now) >= self._config.observation_window:
                    expired.append(tracked)
            except Exception:
                logger.exception('Failed to sample launch %s', tracked.symbol)

        outcomes: List[LaunchOutcome] = []
        for tracked in expired:
            try:
                outcome = await self._finalize(tracked)
            except Exception:
                logger.exception('Failed to finalize launch %s; retrying next tick', tracked.symbol)
                continue
            self._arena.evict(tracked.launch_id)
            outcomes.append(outcome)
        return outcomes

    async def _finalize(self, tracked: TrackedLaunch) -> LaunchOutcome:
        now = self._clock.now()
        outcome = analyze_launch(tracked, self._config.success_threshold)
        created = await self._store.create_launch_analysis(outcome.to_record(tracked.launch_id), created_at=now)
        if created is None:
            logger.info('Analysis for %s already exists', tracked.symbol)
        changed = await self._store.transition_launch_status(
            tracked.launch_id,
            outcome.outcome,
            FINAL_FROM,
            outcome_price=outcome.final_price,
            price_change_1h=outcome.final_gain,
            evaluated_at=now,
        )
        if not changed:
            logger.info('Launch %s already finalized', tracked.symbol)
        if created is not None:
            self.completed += 1
            if outcome.is_success:
                self.successes += 1
        logger.info(
            'Analysis complete: %s - %s (peak %.1f%%, final %.1f%%)',
            tracked.symbol,
            outcome.outcome.upper(),
            outcome.peak_gain * 100,
            outcome.final_gain * 100,
        )
        return outcome

    def momentum_for(self, launch_id: str) -> Optional[float]:
        tracked = self._arena.get(launch_id)
        if tracked is None:
            return None
        return first_quarter_momentum([snapshot.price for snapshot in tracked.snapshots])

    def status(self) -> Dict[str, Any]:
        return {
            'is_running': self._is_running,
            'active_monitoring': len(self._arena),
            'launches': [
                {
                    'launch_id': tracked.launch_id,
                    'symbol': tracked.symbol,
                    'detected_at': tracked.detected_at.isoformat(),
                    'initial_price': tracked.initial_price,
                    'current_price': tracked.last_price,
                    'snapshot_count': len(tracked.snapshots),
                }
                for tracked in self._arena
            ],
            'observation_window_seconds': self._config.observation_window,
            'tick_interval_seconds': self._config.tick_interval,
            'success_threshold': self._config.success_threshold,
            'completed': self.completed,
            'successes': self.successes,
        }


__all__ = ['PerformanceMonitor']
