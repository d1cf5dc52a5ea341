"""Owned dashboard state handle shared by the poller and the presentation layer."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Callable

from powerdash_telemetry.models import Snapshot

from .error_state import ErrorState, FailureKind
from .history import DEFAULT_CAPACITY, HistoryStore
from .logging_setup import get_logger


@dataclass(frozen=True)
class StateView:
    current: Snapshot | None
    window: tuple[Snapshot, ...]
    error: str | None


Observer = Callable[[StateView], None]


class DashboardState:
    """History, current snapshot and last error behind one lock.

    Only the poller mutates it (``accept``/``reject``, or ``apply_*`` followed
    by ``notify`` when it must release its own lock first); everything else reads
    through the query methods or subscribes for change notifications.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        self._history = HistoryStore(capacity)
        self._error = ErrorState()
        self._lock = threading.RLock()
        self._observers: list[Observer] = []
        self._logger = get_logger()

    @property
    def capacity(self) -> int:
        return self._history.capacity

    def current(self) -> Snapshot | None:
        with self._lock:
            return self._history.current()

    def window(self) -> tuple[Snapshot, ...]:
        with self._lock:
            return self._history.window()

    def error(self) -> str | None:
        with self._lock:
            return self._error.get()

    def error_kind(self) -> FailureKind | None:
        with self._lock:
            return self._error.kind

    def read(self) -> StateView:
        with self._lock:
            return StateView(
                current=self._history.current(),
                window=self._history.window(),
                error=self._error.get(),
            )

    def apply_snapshot(self, snapshot: Snapshot) -> StateView:
        """Record a successful sample without notifying observers."""
        with self._lock:
            self._history.append(snapshot)
            self._error.clear()
            return self.read()

    def apply_failure(self, message: str, kind: FailureKind = FailureKind.ACQUISITION) -> StateView:
        """Record a failed tick without notifying observers."""
        with self._lock:
            self._error.set(message, kind)
            self._history.clear_current()
            return self.read()

    def accept(self, snapshot: Snapshot) -> StateView:
        view = self.apply_snapshot(snapshot)
        self.notify(view)
        return view

    def reject(self, message: str, kind: FailureKind = FailureKind.ACQUISITION) -> StateView:
        view = self.apply_failure(message, kind)
        self.notify(view)
        return view

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        with self._lock:
            self._observers.append(observer)

        def _unsubscribe() -> None:
            with self._lock:
                if observer in self._observers:
                    self._observers.remove(observer)

        return _unsubscribe

    def notify(self, view: StateView) -> None:
        # Observers run on the caller's thread; callers must not hold their own locks.
        with self._lock:
            observers = list(self._observers)
        for observer in observers:
            try:
                observer(view)
            except Exception:
                self._logger.exception("state observer failed", extra={"event": "observer_error"})
