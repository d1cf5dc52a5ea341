"""Doctor payload: environment and measurement backend availability."""

from __future__ import annotations

import platform
import re
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any

import psutil

from powerdash_telemetry.powermetrics import powermetrics_available
from powerdash_telemetry.provider import RaplPowerMeter, nvml_available

from .config import AppConfig, config_path
from .logging_setup import log_dir


_SECRET_RE = re.compile(r"(token|secret|password|apikey|api_key|auth)", re.IGNORECASE)


def redact(value: Any) -> Any:
    if isinstance(value, dict):
        out: dict[str, Any] = {}
        for k, v in value.items():
            if _SECRET_RE.search(k):
                out[k] = "***REDACTED***"
            else:
                out[k] = redact(v)
        return out
    if isinstance(value, list):
        return [redact(v) for v in value]
    return value


def backend_report() -> dict[str, Any]:
    return {
        "psutil": psutil.__version__,
        "powermetrics": powermetrics_available(),
        "rapl": RaplPowerMeter().available,
        "nvml": nvml_available(),
        "logical_cpus": psutil.cpu_count(logical=True),
    }


def build_doctor_payload(cfg: AppConfig) -> dict[str, Any]:
    return {
        "ts_utc": datetime.now(timezone.utc).isoformat(),
        "platform": platform.platform(),
        "python": platform.python_version(),
        "config_path": str(config_path()),
        "log_dir": str(log_dir()),
        "config": redact(asdict(cfg)),
        "backends": backend_report(),
    }
