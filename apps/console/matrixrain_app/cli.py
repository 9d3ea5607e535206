"""CLI entrypoints for the rain animation, diagnostics, benchmark and snapshots."""

from __future__ import annotations

import argparse
import json
import os
import random
import sys
import time
from dataclasses import asdict
from importlib import metadata
from pathlib import Path

from matrixrain_core import (
    AppConfig,
    PerformanceController,
    PerformanceTargets,
    build_doctor_payload,
    build_settings,
    load_config,
    normalize_config,
    save_config,
)
from matrixrain_core.logging_setup import configure_logging, get_logger, install_crash_hooks
from matrixrain_renderer import ColorMode, Waterfall, get_scheme, list_charsets, list_schemes, render_image
from matrixrain_renderer.colors import background_sgr
from matrixrain_terminal import TerminalSession, TerminalUnavailableError, detect_color_mode

from .runner import AnimationLoop

COLOR_MODES = ["auto", "truecolor", "256", "16", "mono"]


def _print_json(data: object) -> None:
    print(json.dumps(data, indent=2, sort_keys=True, default=str))


def _installed_version() -> str:
    try:
        return metadata.version("matrixrain")
    except metadata.PackageNotFoundError:
        return "0.1.0"


def apply_overrides(cfg: AppConfig, args: argparse.Namespace) -> AppConfig:
    """Copy the rain flags that were actually given onto ``cfg``, then clamp."""
    rain_fields = {
        "color": "scheme",
        "speed": "speed",
        "density": "density",
        "charset": "charset",
        "glitch": "glitch",
        "seed": "seed",
    }
    for arg_name, field_name in rain_fields.items():
        if hasattr(args, arg_name):
            setattr(cfg.rain, field_name, getattr(args, arg_name))
    if hasattr(args, "color_mode"):
        cfg.terminal.color_mode = args.color_mode
    return normalize_config(cfg)


def _headless_waterfall(cfg: AppConfig, args: argparse.Namespace) -> Waterfall:
    mode = ColorMode.TRUECOLOR if cfg.terminal.color_mode == "auto" else ColorMode(cfg.terminal.color_mode)
    settings = build_settings(cfg, mode)
    waterfall = Waterfall(settings, random.Random(settings.seed))
    return waterfall.initialize(args.width, args.height)


def cmd_run(args: argparse.Namespace) -> int:
    cfg = apply_overrides(load_config(), args)
    logger = get_logger()
    if getattr(args, "verbose", False):
        logger.setLevel("DEBUG")
    install_crash_hooks()

    settings = build_settings(cfg, detect_color_mode(os.environ))
    waterfall = Waterfall(settings, random.Random(settings.seed))
    session = TerminalSession(
        background_sgr=background_sgr(waterfall.background, settings.color_mode),
        alternate_screen=cfg.terminal.alternate_screen,
    )
    performance = None
    if cfg.performance.adaptive:
        performance = PerformanceController(
            PerformanceTargets(
                cpu_percent_max=cfg.performance.cpu_percent_max,
                rss_mb_max=cfg.performance.rss_mb_max,
                fps_min=cfg.performance.fps_min,
            )
        )
    loop = AnimationLoop(
        waterfall,
        session,
        tick_ms=settings.tick_interval_ms,
        max_ticks=getattr(args, "ticks", 0),
        performance=performance,
        sample_every=cfg.performance.sample_every_ticks,
    )
    logger.info(
        "run scheme=%s speed=%s mode=%s",
        settings.scheme.name,
        settings.speed,
        settings.color_mode.value,
        extra={"event": "run"},
    )

    try:
        rc = loop.run()
    except TerminalUnavailableError as exc:
        logger.error("terminal unavailable: %s", exc, extra={"event": "terminal_unavailable"})
        print(f"matrixrain: {exc}", file=sys.stderr)
        return 1
    if rc != 0 and loop.status.last_error:
        print(f"matrixrain: {loop.status.last_error}", file=sys.stderr)
    return rc


def cmd_schemes(_args: argparse.Namespace) -> int:
    _print_json([asdict(get_scheme(name)) for name in list_schemes()])
    return 0


def cmd_doctor(args: argparse.Namespace) -> int:
    cfg = apply_overrides(load_config(), args)
    _print_json(build_doctor_payload(cfg))
    return 0


def cmd_benchmark(args: argparse.Namespace) -> int:
    cfg = apply_overrides(load_config(), args)
    ticks = max(1, getattr(args, "ticks", 500))
    waterfall = _headless_waterfall(cfg, args)
    perf = PerformanceController(
        PerformanceTargets(
            cpu_percent_max=cfg.performance.cpu_percent_max,
            rss_mb_max=cfg.performance.rss_mb_max,
            fps_min=cfg.performance.fps_min,
        )
    )

    bytes_encoded = 0
    start = time.perf_counter()
    window_start = start
    window_ticks = 0
    base_ms = waterfall.settings.tick_ms
    for tick in range(ticks):
        waterfall.advance_tick()
        bytes_encoded += len(waterfall.render_frame().encode("utf-8"))
        window_ticks += 1
        if window_ticks >= cfg.performance.sample_every_ticks or tick == ticks - 1:
            now = time.perf_counter()
            perf.sample(window_ticks / max(now - window_start, 1e-9), base_ms, base_ms)
            window_start, window_ticks = now, 0

    elapsed = max(time.perf_counter() - start, 1e-9)
    fps = ticks / elapsed
    target_fps = 1000.0 / waterfall.settings.tick_interval_ms

    _print_json(
        {
            "ticks": ticks,
            "width": waterfall.width,
            "height": waterfall.height,
            "seconds": elapsed,
            "fps": fps,
            "bytes_encoded": bytes_encoded,
            "cells_encoded": waterfall.encoder.cells_encoded,
            "active_streams": len(waterfall.streams),
            "budget": {
                "targets": {
                    "cpu_percent_max": cfg.performance.cpu_percent_max,
                    "rss_mb_max": cfg.performance.rss_mb_max,
                    "fps_min": cfg.performance.fps_min,
                    "fps_needed": target_fps,
                },
                "max_observed": {"cpu_percent": perf.peak_cpu_percent, "rss_mb": perf.peak_rss_mb, "fps": fps},
                "samples": perf.samples,
                "pass": perf.within_budget(target_fps, fps),
            },
        }
    )
    return 0


def cmd_snapshot(args: argparse.Namespace) -> int:
    cfg = apply_overrides(load_config(), args)
    ticks = max(0, getattr(args, "ticks", 120))
    waterfall = _headless_waterfall(cfg, args)
    for _ in range(ticks):
        waterfall.advance_tick()

    out = Path(args.out).expanduser()
    out.parent.mkdir(parents=True, exist_ok=True)
    image = render_image(waterfall, cell_px=args.cell_px)
    image.save(out)
    _print_json(
        {
            "path": str(out),
            "ticks": ticks,
            "grid": [waterfall.width, waterfall.height],
            "image": list(image.size),
            "lit_cells": int((waterfall.brightness > 0).sum()),
        }
    )
    return 0


def cmd_config(args: argparse.Namespace) -> int:
    cfg = apply_overrides(load_config(), args)
    payload = asdict(cfg)
    if args.write:
        payload = {"written": str(save_config(cfg)), "config": payload}
    _print_json(payload)
    return 0


def _rain_options() -> argparse.ArgumentParser:
    # SUPPRESS keeps unset flags off the namespace so saved config values win.
    opts = argparse.ArgumentParser(add_help=False)
    group = opts.add_argument_group("rain options")
    group.add_argument(
        "-c",
        "--color",
        default=argparse.SUPPRESS,
        metavar="NAME|COLOR",
        help=f"Color scheme ({', '.join(list_schemes())}) or any color such as '#ff8800' or 'orange'",
    )
    group.add_argument(
        "-s",
        "--speed",
        type=float,
        default=argparse.SUPPRESS,
        help="Speed multiplier, 0.1 to 10 (default 1.0; invalid values fall back to 1.0)",
    )
    group.add_argument("--density", type=float, default=argparse.SUPPRESS, help="Chance per tick that an idle column starts a stream, 0 to 1")
    group.add_argument("--glitch", type=float, default=argparse.SUPPRESS, help="Chance per tick that a lit glyph changes, 0 to 1")
    group.add_argument("--charset", choices=list_charsets(), default=argparse.SUPPRESS, help="Symbol set to draw from")
    group.add_argument("--color-mode", choices=COLOR_MODES, default=argparse.SUPPRESS, help="Override detected terminal color support")
    group.add_argument("--seed", type=int, default=argparse.SUPPRESS, help="Random seed for a reproducible animation")
    group.add_argument("--ticks", type=int, default=argparse.SUPPRESS, help="Stop after this many ticks (run: 0 means forever)")
    group.add_argument("-v", "--verbose", action="store_true", default=argparse.SUPPRESS, help="Debug logging to the log file")
    return opts


def _grid_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--width", type=int, default=120, help="Grid columns")
    parser.add_argument("--height", type=int, default=40, help="Grid rows")


def build_parser() -> argparse.ArgumentParser:
    rain = _rain_options()
    parser = argparse.ArgumentParser(
        prog="matrixrain",
        description="Matrix-style character rain for the terminal. Press q or Esc (or Ctrl+C) to quit.",
        parents=[rain],
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {_installed_version()}")
    parser.set_defaults(func=cmd_run)
    sub = parser.add_subparsers(dest="command")

    run_cmd = sub.add_parser("run", help="Run the animation (default)", parents=[rain])
    run_cmd.set_defaults(func=cmd_run)

    schemes_cmd = sub.add_parser("schemes", help="List built-in color schemes")
    schemes_cmd.set_defaults(func=cmd_schemes)

    doctor_cmd = sub.add_parser("doctor", help="Print terminal capabilities and effective settings", parents=[rain])
    doctor_cmd.set_defaults(func=cmd_doctor)

    bench_cmd = sub.add_parser("benchmark", help="Run the renderer headless and report throughput", parents=[rain])
    _grid_options(bench_cmd)
    bench_cmd.set_defaults(func=cmd_benchmark)

    snap_cmd = sub.add_parser("snapshot", help="Render the grid after some ticks to a PNG", parents=[rain])
    _grid_options(snap_cmd)
    snap_cmd.add_argument("--out", required=True, help="Output image path")
    snap_cmd.add_argument("--cell-px", type=int, default=8, help="Pixels per grid cell")
    snap_cmd.set_defaults(func=cmd_snapshot)

    config_cmd = sub.add_parser("config", help="Show the effective configuration", parents=[rain])
    config_cmd.add_argument("--write", action="store_true", help="Persist the given rain options as new defaults")
    config_cmd.set_defaults(func=cmd_config)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    cfg = load_config()
    configure_logging(keep_files=cfg.diagnostics.keep_log_files, console=False, level=cfg.diagnostics.log_level)
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
