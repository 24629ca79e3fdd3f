"""Time sources used by every timer-driven component."""

from __future__ import annotations

import asyncio
import time
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Protocol, Tuple


class Clock(Protocol):
    def now(self) -> datetime:
        """Current wall-clock time as an aware UTC datetime."""

    def monotonic(self) -> float:
        """Seconds from an arbitrary origin that never goes backwards."""

    async def sleep(self, seconds: float) -> None:
        """Suspend the caller for ``seconds``."""


class SystemClock:
    """Real time backed by :mod:`datetime`, :func:`time.monotonic` and asyncio."""

    def now(self) -> datetime:
        return datetime.now(tz=timezone.utc)

    def monotonic(self) -> float:
        return time.monotonic()

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(max(seconds, 0.0))


class ManualClock:
    """Deterministic clock whose time only moves when told to.

    Sleepers are parked until :meth:`advance` moves time past their deadline. With
    ``auto_advance`` enabled, :meth:`sleep` moves time forward by itself and returns
    immediately, which suits code that only needs to observe the requested delays.
    """

    def __init__(self, start: Optional[datetime] = None, *, auto_advance: bool = False) -> None:
        self._now = start or datetime(2024, 1, 1, tzinfo=timezone.utc)
        self._elapsed = 0.0
        self._sleepers: List[Tuple[float, asyncio.Future[None]]] = []
        self.auto_advance = auto_advance
        self.sleeps: List[float] = []

    def now(self) -> datetime:
        return self._now

    def monotonic(self) -> float:
        return self._elapsed

    async def sleep(self, seconds: float) -> None:
        seconds = max(seconds, 0.0)
        self.sleeps.append(seconds)
        if self.auto_advance:
            self._move(seconds)
            await asyncio.sleep(0)
            return
        future: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._sleepers.append((self._elapsed + seconds, future))
        await future

    async def advance(self, seconds: float) -> None:
        """Move time forward and let every due sleeper run."""
        self._move(seconds)
        due = [item for item in self._sleepers if item[0] <= self._elapsed]
        self._sleepers = [item for item in self._sleepers if item[0] > self._elapsed]
        for _, future in due:
            if not future.done():
                future.set_result(None)
        for _ in range(5):
            await asyncio.sleep(0)

    def _move(self, seconds: float) -> None:
        self._elapsed += seconds
        self._now += timedelta(seconds=seconds)

    @property
    def pending_sleepers(self) -> int:
        return sum(1 for _, future in self._sleepers if not future.done())


__all__ = ['Clock', 'ManualClock', 'SystemClock']
