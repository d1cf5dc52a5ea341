"""Fixed-interval acquisition loop feeding the dashboard state."""

from __future__ import annotations

import threading
import time
from enum import Enum

from powerdash_telemetry.models import Snapshot
from powerdash_telemetry.provider import MetricsProvider

from .error_state import FailureKind
from .logging_setup import get_logger
from .state import DashboardState

DEFAULT_PERIOD_MS = 1000
EMPTY_RESULT_MESSAGE = "No metrics data received"


class TickOutcome(str, Enum):
    APPLIED = "applied"
    FAILED = "failed"
    EMPTY = "empty"
    DISCARDED = "discarded"


def failure_message(exc: BaseException) -> str:
    detail = str(exc) or exc.__class__.__name__
    return f"Failed to fetch metrics: {detail}"


class Poller:
    """Samples the provider once per period and applies results to ``state``.

    Each ``start()`` opens a new generation. Samples belonging to a generation
    that has since been stopped are dropped when they complete, so nothing
    lands in the state after ``stop()`` returns.
    """

    def __init__(self, provider: MetricsProvider, state: DashboardState, period_ms: int = DEFAULT_PERIOD_MS) -> None:
        if period_ms <= 0:
            raise ValueError("period_ms must be positive")
        self.provider = provider
        self.state = state
        self.period_ms = period_ms

        self._lock = threading.RLock()
        self._generation = 0
        self._running = False
        self._stop_event: threading.Event | None = None
        self._thread: threading.Thread | None = None
        self._logger = get_logger()

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> None:
        with self._lock:
            if self._running:
                return
            self._generation += 1
            generation = self._generation
            self._running = True
            stop_event = threading.Event()
            self._stop_event = stop_event
            self._logger.info("poller started", extra={"event": "poller_start", "period_ms": self.period_ms})

        # Tick 0 runs immediately, not after the first full period.
        started_at = time.monotonic()
        self._tick(generation)

        thread = threading.Thread(
            target=self._run,
            args=(generation, stop_event, started_at),
            name=f"powerdash-poller-{generation}",
            daemon=True,
        )
        with self._lock:
            self._thread = thread
        thread.start()

    def stop(self) -> None:
        with self._lock:
            if not self._running:
                return
            self._running = False
            if self._stop_event is not None:
                self._stop_event.set()
            self._logger.info("poller stopped", extra={"event": "poller_stop"})

    def wait_stopped(self, timeout: float | None = None) -> bool:
        thread = self._thread
        if thread is None or thread is threading.current_thread():
            return True
        thread.join(timeout)
        return not thread.is_alive()

    def tick(self) -> TickOutcome:
        """Run one acquisition cycle outside the timer (always applied)."""
        return self._tick(None)

    def _run(self, generation: int, stop_event: threading.Event, started_at: float) -> None:
        # Fixed rate: slot n starts at started_at + n * period, however long a sample takes.
        period_s = self.period_ms / 1000.0
        next_at = started_at + period_s
        while not stop_event.wait(max(0.0, next_at - time.monotonic())):
            self._tick(generation)
            next_at += period_s
            now = time.monotonic()
            if next_at <= now:
                missed = int((now - next_at) // period_s) + 1
                next_at += missed * period_s
                self._logger.debug("poller fell behind", extra={"event": "tick_overrun", "period_ms": self.period_ms})

    def _is_stale(self, generation: int | None) -> bool:
        if generation is None:
            return False
        return not self._running or generation != self._generation

    def _tick(self, generation: int | None) -> TickOutcome:
        try:
            snapshot: Snapshot | None = self.provider.sample()
        except Exception as exc:
            return self._apply_failure(generation, failure_message(exc), FailureKind.ACQUISITION, exc)

        if not snapshot:
            return self._apply_failure(
                generation,
                failure_message(RuntimeError(EMPTY_RESULT_MESSAGE)),
                FailureKind.EMPTY,
                None,
            )

        with self._lock:
            if self._is_stale(generation):
                self._logger.info("late sample discarded", extra={"event": "tick_discarded"})
                return TickOutcome.DISCARDED
            view = self.state.apply_snapshot(snapshot)
        self.state.notify(view)
        return TickOutcome.APPLIED

    def _apply_failure(
        self,
        generation: int | None,
        message: str,
        kind: FailureKind,
        exc: BaseException | None,
    ) -> TickOutcome:
        with self._lock:
            if self._is_stale(generation):
                self._logger.info("late failure discarded", extra={"event": "tick_discarded"})
                return TickOutcome.DISCARDED
            view = self.state.apply_failure(message, kind)

        self._logger.warning(message, exc_info=exc, extra={"event": "tick_failed", "kind": kind.value})
        self.state.notify(view)
        return TickOutcome.FAILED if kind is FailureKind.ACQUISITION else TickOutcome.EMPTY
