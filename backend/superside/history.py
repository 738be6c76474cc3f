from __future__ import annotations

import threading
from typing import List, Optional

from superside.schemas import Notification, StateChangedEvent, notification_from_event

DEFAULT_HISTORY_SIZE = 20


class HistoryBuffer:
    """Fixed-capacity ring of the most recent state changes.

    Slots are preallocated; ``_head`` indexes the oldest entry and ``_count``
    is the occupancy. Once full, each insert overwrites the oldest slot.

    The lock covers only slot/index bookkeeping, so a snapshot taken from a
    worker thread always sees a contiguous prefix of insertions.
    """

    __slots__ = ("_capacity", "_slots", "_head", "_count", "_lock")

    def __init__(self, capacity: int = DEFAULT_HISTORY_SIZE) -> None:
        if capacity < 1:
            raise ValueError(f"history capacity must be positive, got {capacity}")
        self._capacity = capacity
        self._slots: List[Optional[StateChangedEvent]] = [None] * capacity
        self._head = 0
        self._count = 0
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        with self._lock:
            return self._count

    def insert(self, event: StateChangedEvent) -> None:
        with self._lock:
            if self._count < self._capacity:
                self._slots[(self._head + self._count) % self._capacity] = event
                self._count += 1
            else:
                self._slots[self._head] = event
                self._head = (self._head + 1) % self._capacity

    def entries(self) -> List[StateChangedEvent]:
        """Retained events, oldest first."""
        with self._lock:
            return [
                self._slots[(self._head + i) % self._capacity]
                for i in range(self._count)
            ]

    def snapshot(self) -> List[Notification]:
        # Models are immutable, so projecting outside the lock is safe.
        return [notification_from_event(event) for event in self.entries()]
