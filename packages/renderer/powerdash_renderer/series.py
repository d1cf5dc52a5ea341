"""Chart-ready series derived from the rolling snapshot window."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Sequence

from powerdash_telemetry.models import Snapshot

DEFAULT_TIME_FORMAT = "%H:%M:%S"
SATURATION = 70
LIGHTNESS = 50


@dataclass(frozen=True)
class PowerSeries:
    labels: tuple[str, ...]
    cpu_power: tuple[float, ...]
    gpu_power: tuple[float, ...]


@dataclass(frozen=True)
class CoreSeries:
    core_id: int
    label: str
    hue: float
    color: str
    values: tuple[float | None, ...]


def time_label(timestamp: float, fmt: str = DEFAULT_TIME_FORMAT) -> str:
    return datetime.fromtimestamp(timestamp).strftime(fmt)


def core_hue(core_id: int, core_count: int) -> float:
    if core_count <= 0:
        return 0.0
    return core_id * 360 / core_count


def gpu_hue(gpu_id: int) -> float:
    return float((gpu_id * 40 + 200) % 360)


def hsl_color(hue: float) -> str:
    # Pillow's ImageColor accepts this form directly.
    return f"hsl({hue:g}, {SATURATION}%, {LIGHTNESS}%)"


def build_labels(window: Sequence[Snapshot], fmt: str = DEFAULT_TIME_FORMAT) -> tuple[str, ...]:
    return tuple(time_label(s.timestamp, fmt) for s in window)


def build_power_series(window: Sequence[Snapshot], fmt: str = DEFAULT_TIME_FORMAT) -> PowerSeries:
    return PowerSeries(
        labels=build_labels(window, fmt),
        cpu_power=tuple(s.total_cpu_power for s in window),
        gpu_power=tuple(s.total_gpu_power for s in window),
    )


def build_core_series(window: Sequence[Snapshot], current: Snapshot | None) -> list[CoreSeries]:
    """One usage series per core of ``current``.

    Points are looked up by core id in each historical snapshot; a snapshot
    that lacks the core yields ``None`` for that point.
    """
    if current is None:
        return []

    count = len(current.cpu_cores)
    out = []
    for core in current.cpu_cores:
        values = []
        for snap in window:
            hist = snap.core(core.id)
            values.append(hist.usage if hist is not None else None)
        hue = core_hue(core.id, count)
        out.append(
            CoreSeries(
                core_id=core.id,
                label=f"Core {core.id}",
                hue=hue,
                color=hsl_color(hue),
                values=tuple(values),
            )
        )
    return out


class SeriesBuilder:
    def __init__(self, time_format: str = DEFAULT_TIME_FORMAT) -> None:
        self.time_format = time_format

    def labels(self, window: Sequence[Snapshot]) -> tuple[str, ...]:
        return build_labels(window, self.time_format)

    def power(self, window: Sequence[Snapshot]) -> PowerSeries:
        return build_power_series(window, self.time_format)

    def cores(self, window: Sequence[Snapshot], current: Snapshot | None) -> list[CoreSeries]:
        return build_core_series(window, current)
