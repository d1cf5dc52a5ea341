"""Cross-platform metrics providers with graceful power/GPU fallbacks."""

from __future__ import annotations

import platform
import time
from pathlib import Path
from typing import Protocol

import psutil

from .models import CpuCore, Gpu, Snapshot
from .powermetrics import PowermetricsProvider, powermetrics_available

RAPL_ENERGY_PATH = Path("/sys/class/powercap/intel-rapl:0/energy_uj")
PROVIDER_KINDS = ("auto", "psutil", "powermetrics")


class MetricsProvider(Protocol):
    def sample(self) -> Snapshot | None: ...


class _GpuAdapter:
    def poll(self) -> tuple[Gpu, ...]:
        return ()


class _NvmlGpuAdapter(_GpuAdapter):
    def __init__(self) -> None:
        import pynvml  # type: ignore

        self._nvml = pynvml
        pynvml.nvmlInit()

    def poll(self) -> tuple[Gpu, ...]:
        nvml = self._nvml
        gpus = []
        for index in range(nvml.nvmlDeviceGetCount()):
            h = nvml.nvmlDeviceGetHandleByIndex(index)
            util = nvml.nvmlDeviceGetUtilizationRates(h)
            try:
                power = float(nvml.nvmlDeviceGetPowerUsage(h)) / 1000.0
            except Exception:
                power = 0.0
            try:
                freq = float(nvml.nvmlDeviceGetClockInfo(h, nvml.NVML_CLOCK_GRAPHICS))
            except Exception:
                freq = 0.0
            gpus.append(Gpu(id=index, power=power, frequency=freq, usage=float(util.gpu)))
        return tuple(gpus)


def _build_gpu_adapter() -> _GpuAdapter:
    try:
        return _NvmlGpuAdapter()
    except Exception:
        return _GpuAdapter()


def nvml_available() -> bool:
    return isinstance(_build_gpu_adapter(), _NvmlGpuAdapter)


def _cpu_temp_c() -> float | None:
    try:
        temps = psutil.sensors_temperatures()
    except Exception:
        return None
    if not temps:
        return None

    for name in ("coretemp", "cpu_thermal", "k10temp", "acpitz"):
        entries = temps.get(name)
        if entries:
            val = entries[0].current
            return float(val) if val is not None else None

    for _name, entries in temps.items():
        if entries and entries[0].current is not None:
            return float(entries[0].current)
    return None


class RaplPowerMeter:
    """Package power from the cumulative RAPL energy counter (microjoules)."""

    def __init__(self, path: Path = RAPL_ENERGY_PATH) -> None:
        self.path = path
        self._prev_energy = self._read()
        self._prev_ts = time.monotonic()

    @property
    def available(self) -> bool:
        return self._prev_energy is not None

    def _read(self) -> int | None:
        try:
            return int(self.path.read_text(encoding="utf-8").strip())
        except (OSError, ValueError):
            return None

    def watts(self) -> float:
        energy = self._read()
        now = time.monotonic()
        prev_energy, prev_ts = self._prev_energy, self._prev_ts
        self._prev_energy, self._prev_ts = energy, now

        if energy is None or prev_energy is None:
            return 0.0
        delta = energy - prev_energy
        if delta < 0:
            # Counter wrapped or reset.
            return 0.0
        return delta / 1_000_000 / max(now - prev_ts, 1e-6)


class PsutilMetricsProvider:
    """Portable provider: psutil usage/memory, RAPL CPU power, NVML GPUs."""

    def __init__(self, carbon_intensity: float = 100.0, rapl: RaplPowerMeter | None = None) -> None:
        self.carbon_intensity = carbon_intensity
        self._rapl = rapl or RaplPowerMeter()
        self._gpu = _build_gpu_adapter()
        # Prime non-blocking per-core measurement; the first call returns zeros.
        psutil.cpu_percent(interval=None, percpu=True)

    def _cores(self) -> tuple[CpuCore, ...]:
        usages = psutil.cpu_percent(interval=None, percpu=True)
        try:
            freqs = psutil.cpu_freq(percpu=True) or []
        except Exception:
            freqs = []
        temp = _cpu_temp_c() or 0.0

        cores = []
        for idx, usage in enumerate(usages):
            if idx < len(freqs):
                freq = float(freqs[idx].current)
            elif freqs:
                freq = float(freqs[0].current)
            else:
                freq = 0.0
            cores.append(CpuCore(id=idx, frequency=freq, usage=float(usage), temperature=temp))
        return tuple(cores)

    def sample(self) -> Snapshot:
        gpus = self._gpu.poll()
        vm = psutil.virtual_memory()
        gpu_usage = sum(g.usage for g in gpus) / len(gpus) if gpus else 0.0
        return Snapshot(
            timestamp=time.time(),
            cpu_cores=self._cores(),
            total_cpu_power=self._rapl.watts(),
            total_gpu_power=sum(g.power for g in gpus),
            total_gpu_usage=gpu_usage,
            gpus=gpus,
            memory_total=int(vm.total),
            memory_used=int(vm.total - vm.available),
            carbon_intensity=self.carbon_intensity,
        )


def build_provider(
    kind: str = "auto",
    carbon_intensity: float = 100.0,
    interval_ms: int = 1000,
    powermetrics_sudo: bool = True,
) -> MetricsProvider:
    if kind not in PROVIDER_KINDS:
        raise ValueError(f"unknown provider {kind!r}; expected one of {', '.join(PROVIDER_KINDS)}")

    if kind == "auto":
        kind = "powermetrics" if platform.system() == "Darwin" and powermetrics_available() else "psutil"

    if kind == "powermetrics":
        return PowermetricsProvider(interval_ms=interval_ms, use_sudo=powermetrics_sudo, carbon_intensity=carbon_intensity)
    return PsutilMetricsProvider(carbon_intensity=carbon_intensity)
