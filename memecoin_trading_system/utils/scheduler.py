"""Cancelable periodic tasks sharing one event loop."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Awaitable, Callable, Dict, List, Optional

from .clock import Clock, SystemClock

logger = logging.getLogger(__name__)

TickFunction = Callable[[], Awaitable[None]]


class PeriodicTask:
    """Runs ``func`` every ``interval`` seconds until stopped.

    A run that raises is logged and counted; the next run still happens on schedule.
    Stopping cancels a pending sleep but never interrupts a run in progress.
    """

    def __init__(
        self,
        name: str,
        func: TickFunction,
        interval: float,
        *,
        clock: Optional[Clock] = None,
        run_on_start: bool = False,
    ) -> None:
        if interval <= 0:
            raise ValueError(f'interval must be positive, got {interval}')
        self.name = name
        self.interval = interval
        self.run_on_start = run_on_start
        self._func = func
        self._clock = clock or SystemClock()
        self._task: Optional[asyncio.Task[None]] = None
        self._stopping = False
        self._in_flight = False
        self.runs = 0
        self.failures = 0
        self.last_error: Optional[str] = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.is_running:
            logger.info('Task %s already running', self.name)
            return
        self._stopping = False
        self._task = asyncio.create_task(self._loop(), name=self.name)

    async def stop(self) -> None:
        self._stopping = True
        task = self._task
        if task is None:
            return
        if not self._in_flight:
            task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        self._task = None

    async def run_once(self) -> None:
        self._in_flight = True
        try:
            await self._func()
        except Exception as error:
            self.failures += 1
            self.last_error = repr(error)
            logger.exception('Scheduled task %s failed', self.name)
        finally:
            self.runs += 1
            self._in_flight = False

    async def _loop(self) -> None:
        if not self.run_on_start:
            await self._clock.sleep(self.interval)
        while not self._stopping:
            await self.run_once()
            if self._stopping:
                break
            await self._clock.sleep(self.interval)

    def status(self) -> Dict[str, object]:
        return {
            'name': self.name,
            'is_running': self.is_running,
            'interval_seconds': self.interval,
            'runs': self.runs,
            'failures': self.failures,
            'last_error': self.last_error,
        }


class Scheduler:
    """Registry of independently cancelable periodic tasks."""

    def __init__(self, clock: Optional[Clock] = None) -> None:
        self._clock = clock or SystemClock()
        self._tasks: Dict[str, PeriodicTask] = {}

    @property
    def clock(self) -> Clock:
        return self._clock

    def add(
        self,
        name: str,
        func: TickFunction,
        interval: float,
        *,
        run_on_start: bool = False,
    ) -> PeriodicTask:
        if name in self._tasks:
            raise ValueError(f'Task {name} already registered')
        task = PeriodicTask(name, func, interval, clock=self._clock, run_on_start=run_on_start)
        self._tasks[name] = task
        return task

    def get(self, name: str) -> PeriodicTask:
        return self._tasks[name]

    @property
    def tasks(self) -> List[PeriodicTask]:
        return list(self._tasks.values())

    def start(self) -> None:
        for task in self._tasks.values():
            task.start()
        logger.info('Scheduler started %d tasks', len(self._tasks))

    async def stop(self) -> None:
        await asyncio.gather(*(task.stop() for task in self._tasks.values()))
        logger.info('Scheduler stopped')

    def status(self) -> Dict[str, Dict[str, object]]:
        return {name: task.status() for name, task in self._tasks.items()}


__all__ = ['PeriodicTask', 'Scheduler', 'TickFunction']
