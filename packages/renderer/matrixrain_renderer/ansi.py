"""ANSI frame encoding with changed-cell diffing."""

from __future__ import annotations

import numpy as np

from .colors import SHADE_LEVELS, background_sgr, foreground_sgr, shade
from .models import RGB, ColorMode

CSI = "\x1b["


def cursor_to(row: int, column: int) -> str:
    return f"{CSI}{row + 1};{column + 1}H"


def quantize_levels(brightness: np.ndarray) -> np.ndarray:
    levels = np.rint(brightness * SHADE_LEVELS).astype(np.int16)
    np.clip(levels, 1, SHADE_LEVELS, out=levels)
    levels[brightness <= 0] = 0
    return levels


class FrameEncoder:
    """Turns grid buffers into the shortest ANSI update from the last frame.

    The first frame after :meth:`reset` repaints every cell; later frames
    only emit cells whose glyph, level, color or head flag changed.
    """

    def __init__(self, mode: ColorMode, background: RGB, head_color: RGB) -> None:
        self.mode = mode
        self.background = background
        self.head_color = head_color
        self._bg = background_sgr(background, mode)
        self._prev: tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray] | None = None
        self.frames_encoded = 0
        self.cells_encoded = 0

    def reset(self) -> None:
        self._prev = None

    def _sgr(self, color: RGB, level: int, head: bool) -> str:
        if level == 0:
            return f"{CSI}0;{self._bg}m"
        if head:
            fg = foreground_sgr(self.head_color, self.mode, SHADE_LEVELS, head=True)
        else:
            fg = foreground_sgr(shade(color, level), self.mode, level)
        return f"{CSI}0;{self._bg};{fg}m"

    def encode(
        self,
        chars: np.ndarray,
        brightness: np.ndarray,
        colors: np.ndarray,
        heads: list[tuple[int, int]],
    ) -> str:
        levels = quantize_levels(brightness)
        blank = levels == 0
        chars = np.where(blank, " ", chars)
        colors = np.where(blank[..., None], 0, colors).astype(np.uint8)
        head_mask = np.zeros(levels.shape, dtype=bool)
        for row, column in heads:
            if 0 <= row < head_mask.shape[0] and 0 <= column < head_mask.shape[1]:
                head_mask[row, column] = True

        prev = self._prev
        if prev is None or prev[0].shape != chars.shape:
            changed = np.ones(levels.shape, dtype=bool)
        else:
            prev_chars, prev_levels, prev_colors, prev_heads = prev
            changed = (
                (chars != prev_chars)
                | (levels != prev_levels)
                | (colors != prev_colors).any(axis=-1)
                | (head_mask != prev_heads)
            )
        self._prev = (chars, levels, colors, head_mask)

        out: list[str] = []
        last_sgr = None
        next_pos: tuple[int, int] | None = None
        count = 0
        for row, column in np.argwhere(changed):
            row, column = int(row), int(column)
            if next_pos != (row, column):
                out.append(cursor_to(row, column))
            level = int(levels[row, column])
            r, g, b = (int(v) for v in colors[row, column])
            sgr = self._sgr((r, g, b), level, bool(head_mask[row, column]))
            if sgr != last_sgr:
                out.append(sgr)
                last_sgr = sgr
            out.append(str(chars[row, column]))
            next_pos = (row, column + 1)
            count += 1

        self.frames_encoded += 1
        self.cells_encoded += count
        if not out:
            return ""
        out.append(f"{CSI}0m")
        return "".join(out)
