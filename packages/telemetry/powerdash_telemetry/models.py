"""Typed telemetry models."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Mapping


@dataclass(frozen=True)
class CpuCore:
    id: int
    frequency: float
    usage: float
    temperature: float = 0.0


@dataclass(frozen=True)
class Gpu:
    id: int
    power: float
    frequency: float
    usage: float


@dataclass(frozen=True)
class Snapshot:
    """One immutable sample of every measured metric at a point in time.

    Units: power in watts, frequency in MHz, usage in percent, memory in bytes,
    carbon intensity in gCO2/kWh. ``timestamp`` is seconds since the epoch.
    """

    timestamp: float
    cpu_cores: tuple[CpuCore, ...] = field(default_factory=tuple)
    total_cpu_power: float = 0.0
    total_gpu_power: float = 0.0
    total_gpu_usage: float = 0.0
    gpus: tuple[Gpu, ...] = field(default_factory=tuple)
    memory_total: int = 0
    memory_used: int = 0
    carbon_intensity: float = 0.0

    def core(self, core_id: int) -> CpuCore | None:
        # Positional lookup first; ids normally equal their index.
        if 0 <= core_id < len(self.cpu_cores) and self.cpu_cores[core_id].id == core_id:
            return self.cpu_cores[core_id]
        for core in self.cpu_cores:
            if core.id == core_id:
                return core
        return None

    @property
    def total_power(self) -> float:
        return self.total_cpu_power + self.total_gpu_power

    @property
    def memory_percent(self) -> float:
        if self.memory_total <= 0:
            return 0.0
        return self.memory_used / self.memory_total * 100.0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Snapshot":
        try:
            return cls(
                timestamp=float(payload["timestamp"]),
                cpu_cores=tuple(
                    CpuCore(
                        id=int(c["id"]),
                        frequency=float(c.get("frequency", 0.0)),
                        usage=float(c.get("usage", 0.0)),
                        temperature=float(c.get("temperature", 0.0)),
                    )
                    for c in payload.get("cpu_cores", ())
                ),
                total_cpu_power=float(payload.get("total_cpu_power", 0.0)),
                total_gpu_power=float(payload.get("total_gpu_power", 0.0)),
                total_gpu_usage=float(payload.get("total_gpu_usage", 0.0)),
                gpus=tuple(
                    Gpu(
                        id=int(g["id"]),
                        power=float(g.get("power", 0.0)),
                        frequency=float(g.get("frequency", 0.0)),
                        usage=float(g.get("usage", 0.0)),
                    )
                    for g in payload.get("gpus", ())
                ),
                memory_total=int(payload.get("memory_total", 0)),
                memory_used=int(payload.get("memory_used", 0)),
                carbon_intensity=float(payload.get("carbon_intensity", 0.0)),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise ValueError(f"invalid snapshot payload: {exc}") from exc
