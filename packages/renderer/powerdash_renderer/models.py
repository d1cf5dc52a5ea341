"""Typed renderer models."""

from __future__ import annotations

from dataclasses import dataclass, field

from .readouts import Readouts
from .series import CoreSeries, PowerSeries


@dataclass(frozen=True)
class ThemeConfig:
    name: str
    background: str
    card_bg: str
    grid: str
    cpu_line: str
    gpu_line: str
    memory_bar: str
    error_bg: str
    text_primary: str
    text_secondary: str


@dataclass(frozen=True)
class DashboardView:
    """Everything one render pass needs, read once from the state handle."""

    readouts: Readouts
    power: PowerSeries
    cores: list[CoreSeries] = field(default_factory=list)
    error: str | None = None


@dataclass(frozen=True)
class DashboardLayout:
    cards_top: int
    core_panel: tuple[int, int, int, int]
    gpu_panel: tuple[int, int, int, int]
    power_chart: tuple[int, int, int, int] | None
    usage_chart: tuple[int, int, int, int] | None
