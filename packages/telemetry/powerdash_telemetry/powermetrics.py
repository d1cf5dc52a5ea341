"""macOS ``powermetrics`` sampling and text parsing."""

from __future__ import annotations

import re
import shutil
import subprocess
import time

import psutil

from .errors import MetricsUnavailableError
from .models import CpuCore, Gpu, Snapshot

MAX_CORES = 64

_NUMBER_RE = re.compile(r"[-+]?\d+(?:\.\d+)?")
_RESIDENCY_FREQ_RE = re.compile(r"(\d+(?:\.\d+)?)\s*MHz:")


def _first_number(text: str) -> float:
    match = _NUMBER_RE.search(text)
    return float(match.group(0)) if match else 0.0


def _value_after_colon(line: str) -> str:
    return line.split(":", 1)[1] if ":" in line else ""


def parse_cpu_power(text: str) -> float:
    """Return package CPU power in watts (powermetrics reports mW)."""
    for line in text.splitlines():
        if line.startswith("CPU Power:"):
            return _first_number(_value_after_colon(line)) / 1000.0
    return 0.0


def parse_cpu_cores(text: str, max_cores: int = MAX_CORES) -> tuple[CpuCore, ...]:
    freq: dict[int, float] = {}
    usage: dict[int, float] = {}
    for line in text.splitlines():
        if not line.startswith("CPU "):
            continue
        head, _, rest = line.partition(":")
        parts = head.split()
        if len(parts) < 3 or not parts[1].isdigit():
            continue
        core_id = int(parts[1])
        label = " ".join(parts[2:])
        if label == "frequency":
            freq[core_id] = _first_number(rest)
        elif label == "active residency":
            usage[core_id] = _first_number(rest.split("%", 1)[0])

    seen = sorted(set(freq) | set(usage))
    return tuple(
        CpuCore(id=core_id, frequency=freq.get(core_id, 0.0), usage=usage.get(core_id, 0.0), temperature=0.0)
        for core_id in seen
        if core_id < max_cores
    )


def parse_gpu(text: str) -> tuple[tuple[Gpu, ...], float, float]:
    """Return ``(gpus, total_power_w, usage_percent)``.

    Usage blends frequency utilization (current over highest residency
    frequency) with active residency, capped at 100.
    """
    power = 0.0
    current_freq = 0.0
    max_freq = 0.0
    idle = 0.0

    for line in text.splitlines():
        if line.startswith("GPU Power:"):
            power = _first_number(_value_after_colon(line)) / 1000.0
        elif line.startswith("GPU HW active frequency:"):
            current_freq = _first_number(_value_after_colon(line))
        elif "GPU HW active residency:" in line:
            residency = line.split("GPU HW active residency:", 1)[1]
            for match in _RESIDENCY_FREQ_RE.finditer(residency):
                max_freq = max(max_freq, float(match.group(1)))
        if "idle residency:" in line and line.lstrip().startswith("GPU"):
            idle = _first_number(line.split("idle residency:", 1)[1].split("%", 1)[0])

    active_residency = 100.0 - idle
    freq_util = current_freq / max_freq * 100.0 if max_freq > 0 else 0.0
    usage = min(freq_util * active_residency / 100.0, 100.0)
    # powermetrics reports a single integrated GPU.
    gpu = Gpu(id=0, power=power, frequency=current_freq, usage=usage)
    return (gpu,), power, usage


def parse_powermetrics(text: str, timestamp: float, memory_total: int, memory_used: int, carbon_intensity: float) -> Snapshot:
    gpus, gpu_power, gpu_usage = parse_gpu(text)
    return Snapshot(
        timestamp=timestamp,
        cpu_cores=parse_cpu_cores(text),
        total_cpu_power=parse_cpu_power(text),
        total_gpu_power=gpu_power,
        total_gpu_usage=gpu_usage,
        gpus=gpus,
        memory_total=memory_total,
        memory_used=memory_used,
        carbon_intensity=carbon_intensity,
    )


def powermetrics_available() -> bool:
    return shutil.which("powermetrics") is not None


class PowermetricsProvider:
    """Samples Apple Silicon power through ``powermetrics`` (requires root)."""

    def __init__(self, interval_ms: int = 1000, use_sudo: bool = True, carbon_intensity: float = 100.0) -> None:
        self.interval_ms = interval_ms
        self.use_sudo = use_sudo
        self.carbon_intensity = carbon_intensity

    def command(self) -> list[str]:
        cmd = ["powermetrics", "--samplers", "cpu_power,gpu_power", "-i", str(self.interval_ms), "-n", "1"]
        if self.use_sudo:
            # -n: fail instead of prompting; a background poller has no tty.
            return ["sudo", "-n", *cmd]
        return cmd

    def sample(self) -> Snapshot:
        try:
            proc = subprocess.run(self.command(), capture_output=True, text=True, check=False)
        except OSError as exc:
            raise MetricsUnavailableError(f"Failed to execute powermetrics: {exc}") from exc

        if proc.returncode != 0:
            stderr = proc.stderr.strip()
            stdout = proc.stdout.strip()
            if "superuser" in stderr or "password is required" in stderr:
                msg = "Please run 'sudo powermetrics' in terminal first to grant permissions"
            elif stderr:
                msg = f"powermetrics failed: {stderr}"
            elif stdout:
                msg = f"powermetrics failed: {stdout}"
            else:
                msg = "powermetrics failed with no output"
            raise MetricsUnavailableError(msg)

        if not proc.stdout.strip():
            raise MetricsUnavailableError("powermetrics produced no output")

        vm = psutil.virtual_memory()
        return parse_powermetrics(
            proc.stdout,
            timestamp=time.time(),
            memory_total=int(vm.total),
            memory_used=int(vm.total - vm.available),
            carbon_intensity=self.carbon_intensity,
        )
