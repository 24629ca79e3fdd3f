"""Wires every pipeline component onto one scheduler."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from .config import CoinGeckoConfig, PipelineConfig, Settings
from .data import CoinGeckoClient, MarketDataGateway
from .database import DatabaseManager, LaunchStore
from .execution import LaunchExecutor, PaperOrderManager
from .launch import LaunchDetector, PerformanceMonitor
from .monitoring import NotificationCenter, StatusBoard
from .risk import MarketHealthSignal
from .strategies import StrategyExperimenter, StrategyGate
from .utils import Clock, Scheduler, SystemClock

logger = logging.getLogger(__name__)


class LaunchPipeline:
    """Detector, monitor, gate, executor and their collaborators in one process."""

    def __init__(
        self,
        settings: Settings,
        config: Optional[PipelineConfig] = None,
        feed_config: Optional[CoinGeckoConfig] = None,
        *,
        clock: Optional[Clock] = None,
        database: Optional[DatabaseManager] = None,
        gateway: Optional[MarketDataGateway] = None,
    ) -> None:
        self.settings = settings
        self.config = config or PipelineConfig()
        self.clock = clock or SystemClock()
        self.database = database or DatabaseManager(settings.database_url)
        self.store = LaunchStore(self.database)
        self.notifications = NotificationCenter(clock=self.clock)
        self.gateway = gateway or MarketDataGateway(
            CoinGeckoClient(feed_config, clock=self.clock),
            self.store,
            clock=self.clock,
        )
        self.detector = LaunchDetector(
            self.gateway,
            self.store,
            self.config.detector,
            clock=self.clock,
            notifications=self.notifications,
        )
        self.monitor = PerformanceMonitor(
            self.store,
            self.config.monitor,
            clock=self.clock,
            notifications=self.notifications,
        )
        self.gate = StrategyGate(self.store, self.config.gate, clock=self.clock)
        self.market_health = MarketHealthSignal(self.store, self.config.market_health, clock=self.clock)
        self.experimenter = StrategyExperimenter(
            self.store,
            self.config.experimenter,
            self.config.gate,
            clock=self.clock,
        )
        self.executor = LaunchExecutor(
            self.store,
            self.gate,
            self.config.executor,
            order_manager=PaperOrderManager(),
            market_health=self.market_health if self.config.executor.use_market_health else None,
            momentum_lookup=self.monitor.momentum_for,
            notifications=self.notifications,
            clock=self.clock,
        )
        self.scheduler = Scheduler(self.clock)
        self.status_board = StatusBoard(scheduler=self.scheduler, notifications=self.notifications, clock=self.clock)
        self._register_tasks()
        self._register_status()

    def _register_tasks(self) -> None:
        config = self.config
        self.scheduler.add('price_feed', self.gateway.sync_store, config.price_feed_interval, run_on_start=True)
        self.scheduler.add('detector', self.detector.scan, config.detector.scan_interval, run_on_start=True)
        self.scheduler.add('monitor', self.monitor.tick, config.monitor.tick_interval)
        self.scheduler.add('gate', self.gate.refresh, config.gate.refresh_interval, run_on_start=True)
        self.scheduler.add('executor', self.executor.evaluate, config.executor.evaluation_interval)
        self.scheduler.add(
            'market_health',
            self.market_health.refresh,
            config.market_health.refresh_interval,
            run_on_start=True,
        )
        self.scheduler.add(
            'experimenter',
            self.experimenter.evaluate,
            config.experimenter.evaluation_interval,
            run_on_start=True,
        )

    def _register_status(self) -> None:
        board = self.status_board
        board.register('detector', self.detector.status)
        board.register('monitor', self.monitor.status)
        board.register('gate', self.gate.status)
        board.register('executor', self.executor.status)
        board.register('market_health', self.market_health.status)
        board.register('experimenter', self.experimenter.status)

    async def start(self) -> None:
        await self.monitor.start()
        self.detector.start()
        self.executor.start()
        self.scheduler.start()
        logger.info('Launch pipeline started')

    async def stop(self) -> None:
        await self.scheduler.stop()
        await self.monitor.stop()
        self.detector.stop()
        self.executor.stop()
        await self.gateway.close()
        logger.info('Launch pipeline stopped')

    async def run_for(self, duration: float) -> None:
        await self.start()
        try:
            await self.clock.sleep(duration)
        finally:
            await self.stop()

    def status(self) -> Dict[str, Any]:
        return self.status_board.snapshot()

    def close(self) -> None:
        self.database.close()


__all__ = ['LaunchPipeline']
