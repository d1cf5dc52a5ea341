"""Point readouts for the current snapshot with neutral fallbacks."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any

from powerdash_telemetry.models import Snapshot

from .formatting import format_bytes, format_carbon, format_frequency, format_percent, format_power
from .series import core_hue, gpu_hue, hsl_color


@dataclass(frozen=True)
class CoreReadout:
    core_id: int
    usage: float
    usage_text: str
    frequency_text: str
    color: str


@dataclass(frozen=True)
class GpuReadout:
    gpu_id: int
    usage: float
    usage_text: str
    frequency_text: str
    power_text: str
    color: str


@dataclass(frozen=True)
class Readouts:
    cpu_power: str = "0 W"
    gpu_power: str = "0 W"
    total_power: str = "0 W"
    carbon_intensity: str = "--"
    memory_used: str = "0 B"
    memory_total: str = "0 B"
    memory_percent: float = 0.0
    gpu_usage: float = 0.0
    gpu_usage_text: str = "--"
    cores: tuple[CoreReadout, ...] = field(default_factory=tuple)
    gpus: tuple[GpuReadout, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def build_readouts(current: Snapshot | None) -> Readouts:
    if current is None:
        return Readouts()

    count = len(current.cpu_cores)
    cores = tuple(
        CoreReadout(
            core_id=c.id,
            usage=c.usage,
            usage_text=format_percent(c.usage),
            frequency_text=format_frequency(c.frequency),
            color=hsl_color(core_hue(c.id, count)),
        )
        for c in current.cpu_cores
    )
    gpus = tuple(
        GpuReadout(
            gpu_id=g.id,
            usage=g.usage,
            usage_text=format_percent(g.usage),
            frequency_text=format_frequency(g.frequency),
            power_text=format_power(g.power),
            color=hsl_color(gpu_hue(g.id)),
        )
        for g in current.gpus
    )
    return Readouts(
        cpu_power=format_power(current.total_cpu_power),
        gpu_power=format_power(current.total_gpu_power),
        total_power=format_power(current.total_power),
        carbon_intensity=format_carbon(current.carbon_intensity),
        memory_used=format_bytes(current.memory_used),
        memory_total=format_bytes(current.memory_total),
        memory_percent=current.memory_percent,
        gpu_usage=current.total_gpu_usage,
        gpu_usage_text=format_percent(current.total_gpu_usage),
        cores=cores,
        gpus=gpus,
    )
