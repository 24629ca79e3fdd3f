"""Bounded in-memory tracking state for launches under observation."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterator, List, Optional


@dataclass(slots=True, frozen=True)
class Snapshot:
    timestamp: datetime
    price: float
    market_cap: float


@dataclass(slots=True)
class TrackedLaunch:
    """Observation state for a single launch record."""

    launch_id: str
    token_id: str
    symbol: str
    initial_price: float
    initial_market_cap: float
    detected_at: datetime
    snapshots: List[Snapshot] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.snapshots:
            self.snapshots.append(Snapshot(self.detected_at, self.initial_price, self.initial_market_cap))

    def add_snapshot(self, timestamp: datetime, price: float, market_cap: float) -> Snapshot:
        snapshot = Snapshot(timestamp, price, market_cap)
        self.snapshots.append(snapshot)
        return snapshot

    def elapsed_seconds(self, now: datetime) -> float:
        return (now - self.detected_at).total_seconds()

    @property
    def last_price(self) -> float:
        return self.snapshots[-1].price


class TrackingArena:
    """Slot storage keyed by launch id.

    Completed launches are evicted and their slot goes back on a free list, so the
    number of slots never exceeds the peak count of launches tracked at once.
    """

    def __init__(self) -> None:
        self._slots: List[Optional[TrackedLaunch]] = []
        self._index: Dict[str, int] = {}
        self._free: List[int] = []

    def __len__(self) -> int:
        return len(self._index)

    def __contains__(self, launch_id: object) -> bool:
        return launch_id in self._index

    def __iter__(self) -> Iterator[TrackedLaunch]:
        for slot in sorted(self._index.values()):
            tracked = self._slots[slot]
            if tracked is not None:
                yield tracked

    @property
    def capacity(self) -> int:
        return len(self._slots)

    def add(self, tracked: TrackedLaunch) -> bool:
        """Store ``tracked``; returns ``False`` when the launch is already present."""

        if tracked.launch_id in self._index:
            return False
        if self._free:
            slot = self._free.pop()
            self._slots[slot] = tracked
        else:
            slot = len(self._slots)
            self._slots.append(tracked)
        self._index[tracked.launch_id] = slot
        return True

    def get(self, launch_id: str) -> Optional[TrackedLaunch]:
        slot = self._index.get(launch_id)
        return self._slots[slot] if slot is not None else None

    def evict(self, launch_id: str) -> Optional[TrackedLaunch]:
        slot = self._index.pop(launch_id, None)
        if slot is None:
            return None
        tracked = self._slots[slot]
        self._slots[slot] = None
        self._free.append(slot)
        return tracked

    def snapshot(self) -> List[TrackedLaunch]:
        return list(self)


__all__ = ['Snapshot', 'TrackedLaunch', 'TrackingArena']
