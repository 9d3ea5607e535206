"""Terminal size and color capability detection."""

from __future__ import annotations

import os
import shutil
from typing import IO, Mapping

from matrixrain_renderer.models import ColorMode


def detect_color_mode(env: Mapping[str, str]) -> ColorMode:
    if "NO_COLOR" in env:
        return ColorMode.MONO
    colorterm = env.get("COLORTERM", "").lower()
    if colorterm in ("truecolor", "24bit"):
        return ColorMode.TRUECOLOR
    term = env.get("TERM", "").lower()
    if not term or term == "dumb":
        return ColorMode.MONO
    if "256color" in term:
        return ColorMode.ANSI256
    if "direct" in term:
        return ColorMode.TRUECOLOR
    return ColorMode.ANSI16


def terminal_size(target: int | IO[str] | None = None) -> tuple[int, int]:
    """Return ``(columns, rows)`` for a fd or stream, falling back to the environment."""
    try:
        fd = target if isinstance(target, int) else target.fileno()  # type: ignore[union-attr]
        size = os.get_terminal_size(fd)
    except (AttributeError, OSError, ValueError):
        size = shutil.get_terminal_size()
    return size.columns, size.lines
