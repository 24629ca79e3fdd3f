"""In-process publish/subscribe for pipeline events."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections import defaultdict, deque
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Awaitable, Callable, Deque, Dict, List, Optional, Union

from ..utils import Clock, SystemClock

logger = logging.getLogger(__name__)

LAUNCH_DETECTED = 'launch_detected'
LAUNCH_TRADE_EXECUTED = 'launch_trade_executed'


@dataclass
class Notification:
    event: str
    payload: Dict[str, Any]
    created_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {'event': self.event, 'payload': self.payload, 'created_at': self.created_at.isoformat()}


Handler = Callable[[Notification], Union[None, Awaitable[None]]]


class NotificationCenter:
    """Fan-out of events to subscribers plus a bounded buffer for external readers."""

    def __init__(self, max_notifications: int = 200, clock: Optional[Clock] = None) -> None:
        self._clock = clock or SystemClock()
        self._subscribers: Dict[str, List[Handler]] = defaultdict(list)
        self._history: Deque[Notification] = deque(maxlen=max_notifications)
        self._queue: asyncio.Queue[Notification] = asyncio.Queue(maxsize=max_notifications)

    def subscribe(self, event: str, handler: Handler) -> None:
        handlers = self._subscribers[event]
        if handler not in handlers:
            handlers.append(handler)

    def unsubscribe(self, event: str, handler: Handler) -> None:
        handlers = self._subscribers[event]
        if handler in handlers:
            handlers.remove(handler)

    async def emit(self, event: str, payload: Dict[str, Any]) -> Notification:
        """Record the event and await every subscriber; handler errors are logged."""

        notification = Notification(event=event, payload=dict(payload), created_at=self._clock.now())
        self._history.append(notification)
        if self._queue.full():
            self._queue.get_nowait()
        self._queue.put_nowait(notification)
        for handler in list(self._subscribers[event]):
            try:
                result = handler(notification)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception('Handler %r failed for %s', handler, event)
        return notification

    async def next(self) -> Notification:
        return await self._queue.get()

    def latest(self, limit: int = 10, event: Optional[str] = None) -> List[Notification]:
        items = [item for item in self._history if event is None or item.event == event]
        return items[-limit:] if limit > 0 else []


__all__ = [
    'LAUNCH_DETECTED',
    'LAUNCH_TRADE_EXECUTED',
    'Handler',
    'Notification',
    'NotificationCenter',
]
