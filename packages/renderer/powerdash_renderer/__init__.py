"""Renderer package: formatting, chart series, readouts, and dashboard composition."""

from .formatting import format_bytes, format_carbon, format_frequency, format_percent, format_power
from .models import DashboardLayout, DashboardView, ThemeConfig
from .readouts import Readouts, build_readouts
from .series import CoreSeries, PowerSeries, SeriesBuilder, build_core_series, build_power_series, core_hue, gpu_hue
from .themes import DEFAULT_THEME_NAME, get_theme, list_themes

try:  # pragma: no cover - optional at import time for test environments
    from .dashboard import DashboardRenderer, build_view
except Exception:  # pragma: no cover
    DashboardRenderer = None  # type: ignore[assignment]
    build_view = None  # type: ignore[assignment]

__all__ = [
    "CoreSeries",
    "DEFAULT_THEME_NAME",
    "DashboardLayout",
    "DashboardView",
    "PowerSeries",
    "Readouts",
    "SeriesBuilder",
    "ThemeConfig",
    "build_core_series",
    "build_power_series",
    "build_readouts",
    "core_hue",
    "format_bytes",
    "format_carbon",
    "format_frequency",
    "format_percent",
    "format_power",
    "get_theme",
    "gpu_hue",
    "list_themes",
]

if DashboardRenderer is not None:
    __all__ += ["DashboardRenderer", "build_view"]
