"""Status aggregation for operational dashboards."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from ..utils import Clock, Scheduler, SystemClock
from .notifications import NotificationCenter

logger = logging.getLogger(__name__)

StatusProvider = Callable[[], Dict[str, Any]]


@dataclass
class StatusBoard:
    scheduler: Optional[Scheduler] = None
    notifications: Optional[NotificationCenter] = None
    clock: Clock = field(default_factory=SystemClock)
    components: Dict[str, StatusProvider] = field(default_factory=dict)

    def register(self, name: str, provider: StatusProvider) -> None:
        self.components[name] = provider

    def snapshot(self) -> Dict[str, Any]:
        components: Dict[str, Any] = {}
        for name, provider in self.components.items():
            try:
                components[name] = provider()
            except Exception as error:
                logger.exception('Status provider %s failed', name)
                components[name] = {'error': repr(error)}
        return {
            'generated_at': self.clock.now().isoformat(),
            'components': components,
            'tasks': self.scheduler.status() if self.scheduler else {},
        }

    def recent_notifications(self, limit: int = 20) -> List[Dict[str, Any]]:
        if self.notifications is None:
            return []
        return [item.to_dict() for item in self.notifications.latest(limit)]


__all__ = ['StatusBoard', 'StatusProvider']
