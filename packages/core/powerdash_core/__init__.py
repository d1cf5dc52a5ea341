"""Core app services: rolling history, error state, poller, settings, and diagnostics."""

from .config import AppConfig, load_config, save_config
from .error_state import ErrorState, FailureKind
from .history import HistoryStore
from .state import DashboardState, StateView

try:  # Keep import side effects tolerant in minimal test environments.
    from .diagnostics import build_doctor_payload
    from .poller import Poller, TickOutcome
except Exception:  # pragma: no cover
    build_doctor_payload = None  # type: ignore[assignment]
    Poller = None  # type: ignore[assignment]
    TickOutcome = None  # type: ignore[assignment]

__all__ = [
    "AppConfig",
    "DashboardState",
    "ErrorState",
    "FailureKind",
    "HistoryStore",
    "Poller",
    "StateView",
    "TickOutcome",
    "build_doctor_payload",
    "load_config",
    "save_config",
]
