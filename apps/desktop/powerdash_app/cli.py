"""CLI entrypoints for the PowerDash desktop app, headless watch mode, and diagnostics."""

from __future__ import annotations

import argparse
import json
import time
from pathlib import Path

from powerdash_core import DashboardState, Poller, build_doctor_payload, load_config
from powerdash_core.logging_setup import configure_logging, get_logger
from powerdash_renderer import DashboardRenderer, build_readouts, build_view
from powerdash_telemetry import build_provider
from powerdash_telemetry.provider import PROVIDER_KINDS


def _print_json(data: object) -> None:
    print(json.dumps(data, indent=2, sort_keys=True, default=str))


def _provider_from_args(args: argparse.Namespace):
    cfg = load_config()
    return build_provider(
        kind=args.provider or cfg.poll.provider,
        carbon_intensity=cfg.telemetry.carbon_intensity,
        interval_ms=cfg.poll.poll_ms,
        powermetrics_sudo=cfg.telemetry.powermetrics_sudo,
    )


def cmd_run(_args: argparse.Namespace) -> int:
    from .app import run_gui

    return run_gui()


def cmd_sample(args: argparse.Namespace) -> int:
    provider = _provider_from_args(args)
    try:
        snapshot = provider.sample()
    except Exception as exc:
        _print_json({"error": str(exc) or exc.__class__.__name__})
        return 2
    if snapshot is None:
        _print_json({"error": "No metrics data received"})
        return 2
    _print_json(snapshot.to_dict())
    return 0


def cmd_watch(args: argparse.Namespace) -> int:
    cfg = load_config()
    state = DashboardState(capacity=cfg.poll.history_size)
    poller = Poller(_provider_from_args(args), state, period_ms=cfg.poll.poll_ms)

    def _emit(view) -> None:
        row = {"ts": time.time(), "error": view.error, "readouts": build_readouts(view.current).to_dict()}
        print(json.dumps(row, sort_keys=True, default=str), flush=True)

    unsubscribe = state.subscribe(_emit)
    poller.start()
    try:
        time.sleep(max(args.seconds, 0))
    except KeyboardInterrupt:
        pass
    finally:
        poller.stop()
        unsubscribe()
    poller.wait_stopped(timeout=5.0)
    return 0


def cmd_render(args: argparse.Namespace) -> int:
    cfg = load_config()
    state = DashboardState(capacity=cfg.poll.history_size)
    poller = Poller(_provider_from_args(args), state, period_ms=cfg.poll.poll_ms)
    ticks = max(args.ticks, 1)
    for i in range(ticks):
        poller.tick()
        # Render right after the last sample.
        if i < ticks - 1:
            time.sleep(cfg.poll.poll_ms / 1000.0)

    view = state.read()
    renderer = DashboardRenderer()
    out = Path(args.out).expanduser().resolve()
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_bytes(
        renderer.render_png(
            build_view(view.current, view.window, view.error, cfg.ui.time_format),
            cfg.ui.dashboard_theme,
        )
    )
    _print_json({"success": view.error is None, "path": str(out), "error": view.error, "points": len(view.window)})
    return 0 if view.error is None else 2


def cmd_doctor(_args: argparse.Namespace) -> int:
    _print_json(build_doctor_payload(load_config()))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="powerdash", description="PowerDash power and usage monitor")
    sub = parser.add_subparsers(dest="command", required=True)

    run_cmd = sub.add_parser("run", help="Run desktop app")
    run_cmd.set_defaults(func=cmd_run)

    sample_cmd = sub.add_parser("sample", help="Print one metrics snapshot as JSON")
    sample_cmd.add_argument("--provider", choices=PROVIDER_KINDS, default=None)
    sample_cmd.set_defaults(func=cmd_sample)

    watch_cmd = sub.add_parser("watch", help="Poll headless and print readouts as JSON lines")
    watch_cmd.add_argument("--seconds", type=float, default=10.0)
    watch_cmd.add_argument("--provider", choices=PROVIDER_KINDS, default=None)
    watch_cmd.set_defaults(func=cmd_watch)

    render_cmd = sub.add_parser("render", help="Poll a few ticks and write a PNG preview")
    render_cmd.add_argument("--out", required=True, help="Output PNG path")
    render_cmd.add_argument("--ticks", type=int, default=5)
    render_cmd.add_argument("--provider", choices=PROVIDER_KINDS, default=None)
    render_cmd.set_defaults(func=cmd_render)

    doctor_cmd = sub.add_parser("doctor", help="Print environment and measurement backend diagnostics")
    doctor_cmd.set_defaults(func=cmd_doctor)

    return parser


def main(argv: list[str] | None = None) -> int:
    configure_logging(console=False)
    parser = build_parser()
    args = parser.parse_args(argv)
    get_logger().info("command", extra={"event": f"cli_{args.command}"})
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
