"""System power and usage telemetry providers for PowerDash."""

from .errors import MetricsUnavailableError
from .models import CpuCore, Gpu, Snapshot
try:  # pragma: no cover - optional at import time for minimal test environments
    from .provider import MetricsProvider, PsutilMetricsProvider, build_provider
    from .powermetrics import PowermetricsProvider
except Exception:  # pragma: no cover
    MetricsProvider = None  # type: ignore[assignment]
    PsutilMetricsProvider = None  # type: ignore[assignment]
    PowermetricsProvider = None  # type: ignore[assignment]
    build_provider = None  # type: ignore[assignment]

__all__ = [
    "CpuCore",
    "Gpu",
    "MetricsUnavailableError",
    "Snapshot",
]

if build_provider is not None:
    __all__ += ["MetricsProvider", "PowermetricsProvider", "PsutilMetricsProvider", "build_provider"]
