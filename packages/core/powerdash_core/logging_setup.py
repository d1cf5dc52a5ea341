"""Structured local logging and crash hook setup."""

from __future__ import annotations

import faulthandler
import json
import logging
import logging.handlers
import sys
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, TextIO

from .config import config_root


_LOGGER_NAME = "powerdash"
_EXTRA_FIELDS = ("event", "crash_id", "kind", "period_ms")


def log_dir() -> Path:
    path = config_root() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts_utc": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        for name in _EXTRA_FIELDS:
            if hasattr(record, name):
                payload[name] = getattr(record, name)
        return json.dumps(payload, ensure_ascii=True, default=str)


def configure_logging(keep_files: int = 7, console: bool = True, to_file: bool = True) -> logging.Logger:
    logger = logging.getLogger(_LOGGER_NAME)
    if logger.handlers:
        return logger

    logger.setLevel(logging.INFO)
    if to_file:
        path = log_dir() / "powerdash.log"
        handler = logging.handlers.TimedRotatingFileHandler(
            filename=str(path),
            when="midnight",
            backupCount=max(2, keep_files),
            encoding="utf-8",
        )
        handler.setFormatter(JsonFormatter())
        logger.addHandler(handler)

    if console:
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(logging.Formatter("%(levelname)s %(message)s"))
        logger.addHandler(stream_handler)

    logger.info("logging configured", extra={"event": "logging_configured"})
    return logger


def get_logger() -> logging.Logger:
    return logging.getLogger(_LOGGER_NAME)


# Open fault log and the hooks replaced by install_crash_hooks(), kept for teardown.
_fault_file: TextIO | None = None
_saved_hooks: tuple[Any, Any] | None = None


def _report_crash(event: str, exc_info: tuple, where: str) -> str:
    crash_id = str(uuid.uuid4())
    get_logger().critical(
        f"unhandled exception in {where} crash_id={crash_id}",
        exc_info=exc_info,
        extra={"event": event, "crash_id": crash_id},
    )
    return crash_id


def install_crash_hooks() -> None:
    """Route unhandled exceptions to the log and dump native faults to ``fault.log``."""
    global _fault_file, _saved_hooks
    if _saved_hooks is not None:
        return

    previous_sys, previous_thread = sys.excepthook, threading.excepthook

    def _sys_hook(exc_type, exc_value, exc_tb) -> None:
        if issubclass(exc_type, KeyboardInterrupt):
            previous_sys(exc_type, exc_value, exc_tb)
            return
        _report_crash("uncaught_exception", (exc_type, exc_value, exc_tb), "main thread")

    def _thread_hook(args: threading.ExceptHookArgs) -> None:
        name = args.thread.name if args.thread is not None else "unknown thread"
        _report_crash("thread_exception", (args.exc_type, args.exc_value, args.exc_traceback), name)

    _saved_hooks = (previous_sys, previous_thread)
    sys.excepthook = _sys_hook
    threading.excepthook = _thread_hook

    _fault_file = (log_dir() / "fault.log").open("a", encoding="utf-8")
    faulthandler.enable(file=_fault_file, all_threads=True)
    get_logger().info("crash hooks installed", extra={"event": "crash_hooks_installed"})


def uninstall_crash_hooks() -> None:
    """Undo install_crash_hooks(): restore the previous hooks and close ``fault.log``."""
    global _fault_file, _saved_hooks
    if _saved_hooks is None:
        return

    sys.excepthook, threading.excepthook = _saved_hooks
    _saved_hooks = None
    if _fault_file is not None:
        faulthandler.disable()
        _fault_file.close()
        _fault_file = None
    get_logger().info("crash hooks removed", extra={"event": "crash_hooks_removed"})
