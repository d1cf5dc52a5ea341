"""Bounded rolling window of accepted snapshots."""

from __future__ import annotations

from collections import deque

from powerdash_telemetry.models import Snapshot

DEFAULT_CAPACITY = 30


class HistoryStore:
    """FIFO window of the last ``capacity`` snapshots plus the current one.

    ``current`` is normally the last appended snapshot, but it can be cleared
    independently so point readouts reset while charts keep their history.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError("history capacity must be at least 1")
        self._items: deque[Snapshot] = deque(maxlen=capacity)
        self._current: Snapshot | None = None

    @property
    def capacity(self) -> int:
        return self._items.maxlen or 0

    def __len__(self) -> int:
        return len(self._items)

    def append(self, snapshot: Snapshot) -> None:
        self._items.append(snapshot)
        self._current = snapshot

    def current(self) -> Snapshot | None:
        return self._current

    def window(self) -> tuple[Snapshot, ...]:
        return tuple(self._items)

    def clear_current(self) -> None:
        self._current = None
