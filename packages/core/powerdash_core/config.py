"""Persistent app settings schema and load/save helpers."""

from __future__ import annotations

import json
import os
import platform
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any


CONFIG_VERSION = 2
PROVIDER_CHOICES = ("auto", "psutil", "powermetrics")


@dataclass
class PollConfig:
    poll_ms: int = 1000
    history_size: int = 30
    provider: str = "auto"


@dataclass
class TelemetryConfig:
    carbon_intensity: float = 100.0
    powermetrics_sudo: bool = True


@dataclass
class UiConfig:
    dashboard_theme: str = "Neon Slate"
    time_format: str = "%H:%M:%S"
    refresh_ms: int = 500


@dataclass
class DiagnosticsConfig:
    keep_log_files: int = 7


@dataclass
class AppConfig:
    config_version: int = CONFIG_VERSION
    poll: PollConfig = field(default_factory=PollConfig)
    telemetry: TelemetryConfig = field(default_factory=TelemetryConfig)
    ui: UiConfig = field(default_factory=UiConfig)
    diagnostics: DiagnosticsConfig = field(default_factory=DiagnosticsConfig)


def config_root() -> Path:
    system = platform.system()
    if system == "Windows":
        base = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
        return base / "PowerDash"
    if system == "Darwin":
        return Path.home() / "Library" / "Application Support" / "PowerDash"
    return Path.home() / ".config" / "powerdash"


def config_path() -> Path:
    return config_root() / "config.json"


def _merge(dataclass_type, raw: dict[str, Any]):
    defaults = dataclass_type()  # type: ignore[misc]
    if not isinstance(raw, dict):
        return defaults
    for k, v in raw.items():
        if hasattr(defaults, k):
            setattr(defaults, k, v)
    return defaults


def _normalize_poll(cfg: AppConfig) -> None:
    cfg.poll.poll_ms = max(200, min(10000, int(cfg.poll.poll_ms)))
    cfg.poll.history_size = max(1, min(600, int(cfg.poll.history_size)))
    if cfg.poll.provider not in PROVIDER_CHOICES:
        cfg.poll.provider = "auto"


def _normalize_telemetry(cfg: AppConfig) -> None:
    cfg.telemetry.carbon_intensity = float(max(0.0, float(cfg.telemetry.carbon_intensity)))
    cfg.telemetry.powermetrics_sudo = bool(cfg.telemetry.powermetrics_sudo)


def _normalize_ui(cfg: AppConfig) -> None:
    cfg.ui.refresh_ms = max(50, min(5000, int(cfg.ui.refresh_ms)))
    if not isinstance(cfg.ui.time_format, str) or not cfg.ui.time_format:
        cfg.ui.time_format = "%H:%M:%S"


def _migrate(raw: dict[str, Any]) -> dict[str, Any]:
    version = int(raw.get("config_version", 1))
    data = dict(raw)

    if version < 2:
        # v1 kept the poll interval and carbon constant at the top level.
        poll = dict(data.get("poll", {}) or {})
        if "poll_ms" in data:
            poll.setdefault("poll_ms", data.pop("poll_ms"))
        data["poll"] = poll
        telemetry = dict(data.get("telemetry", {}) or {})
        if "carbon_intensity" in data:
            telemetry.setdefault("carbon_intensity", data.pop("carbon_intensity"))
        data["telemetry"] = telemetry
        data["config_version"] = 2

    return data


def load_config(path: Path | None = None) -> AppConfig:
    path = path or config_path()
    if not path.exists():
        return AppConfig()

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except Exception:
        return AppConfig()
    if not isinstance(raw, dict):
        return AppConfig()

    data = _migrate(raw)
    cfg = AppConfig(
        config_version=int(data.get("config_version", CONFIG_VERSION)),
        poll=_merge(PollConfig, data.get("poll", {})),
        telemetry=_merge(TelemetryConfig, data.get("telemetry", {})),
        ui=_merge(UiConfig, data.get("ui", {})),
        diagnostics=_merge(DiagnosticsConfig, data.get("diagnostics", {})),
    )

    try:
        _normalize_poll(cfg)
        _normalize_telemetry(cfg)
        _normalize_ui(cfg)
    except (TypeError, ValueError):
        return AppConfig()
    return cfg


def save_config(cfg: AppConfig, path: Path | None = None) -> Path:
    cfg.config_version = CONFIG_VERSION
    path = path or config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(asdict(cfg), indent=2, sort_keys=True), encoding="utf-8")
    return path
