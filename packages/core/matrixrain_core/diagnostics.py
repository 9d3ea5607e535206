"""Doctor payload describing the host terminal and effective settings."""

from __future__ import annotations

import os
import platform
import sys
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any

from matrixrain_renderer.schemes import list_schemes
from matrixrain_terminal import detect_color_mode, terminal_size

from .config import AppConfig, build_settings, config_path
from .logging_setup import log_dir


def build_doctor_payload(cfg: AppConfig) -> dict[str, Any]:
    try:
        is_tty = os.isatty(sys.stdout.fileno())
    except (AttributeError, OSError, ValueError):
        is_tty = False

    detected = detect_color_mode(os.environ)
    settings = build_settings(cfg, detected)
    width, height = terminal_size(sys.stdout)
    return {
        "ts_utc": datetime.now(timezone.utc).isoformat(),
        "platform": platform.platform(),
        "python": platform.python_version(),
        "terminal": {
            "is_tty": is_tty,
            "columns": width,
            "rows": height,
            "term": os.environ.get("TERM"),
            "colorterm": os.environ.get("COLORTERM"),
            "no_color": "NO_COLOR" in os.environ,
            "detected_color_mode": detected.value,
            "effective_color_mode": settings.color_mode.value,
        },
        "scheme": settings.scheme.name,
        "tick_interval_ms": settings.tick_interval_ms,
        "schemes": list_schemes(),
        "config_path": str(config_path()),
        "log_dir": str(log_dir()),
        "config": asdict(cfg),
    }
