"""Color parsing, brightness shading and terminal palette downsampling."""

from __future__ import annotations

import colorsys
from functools import lru_cache

from PIL import ImageColor

from .models import RGB, ColorMode

# Lightness and saturation never drop below this share of the stream color.
FADE_FLOOR = 0.1

# Brightness is quantized so the encoder only sees a bounded set of colors.
SHADE_LEVELS = 32

_CUBE_STEPS = (0, 95, 135, 175, 215, 255)

_ANSI16: tuple[RGB, ...] = (
    (0, 0, 0),
    (205, 0, 0),
    (0, 205, 0),
    (205, 205, 0),
    (0, 0, 238),
    (205, 0, 205),
    (0, 205, 205),
    (229, 229, 229),
    (127, 127, 127),
    (255, 0, 0),
    (0, 255, 0),
    (255, 255, 0),
    (92, 92, 255),
    (255, 0, 255),
    (0, 255, 255),
    (255, 255, 255),
)


def parse_color(value: str) -> RGB:
    """Parse any Pillow color string (``#00ff2b``, ``orange``, ``hsl(...)``).

    Raises ``ValueError`` for strings Pillow does not understand.
    """
    rgb = ImageColor.getrgb(value.strip())
    return (int(rgb[0]), int(rgb[1]), int(rgb[2]))


def hue_color(hue: float) -> RGB:
    r, g, b = colorsys.hls_to_rgb(hue % 1.0, 0.5, 1.0)
    return (round(r * 255), round(g * 255), round(b * 255))


@lru_cache(maxsize=4096)
def shade(color: RGB, level: int) -> RGB:
    """Dim ``color`` to the quantized brightness ``level`` in HLS space."""
    if level >= SHADE_LEVELS:
        return color
    factor = FADE_FLOOR + (1.0 - FADE_FLOOR) * (level / SHADE_LEVELS)
    h, l, s = colorsys.rgb_to_hls(color[0] / 255, color[1] / 255, color[2] / 255)
    r, g, b = colorsys.hls_to_rgb(h, l * factor, s * factor)
    return (round(r * 255), round(g * 255), round(b * 255))


def _nearest_cube(value: int) -> int:
    return min(range(6), key=lambda i: abs(_CUBE_STEPS[i] - value))


def _distance(a: RGB, b: RGB) -> int:
    return (a[0] - b[0]) ** 2 + (a[1] - b[1]) ** 2 + (a[2] - b[2]) ** 2


@lru_cache(maxsize=4096)
def rgb_to_256(color: RGB) -> int:
    r, g, b = (_nearest_cube(c) for c in color)
    cube_index = 16 + 36 * r + 6 * g + b
    cube_rgb = (_CUBE_STEPS[r], _CUBE_STEPS[g], _CUBE_STEPS[b])

    gray_level = sum(color) // 3
    gray_step = max(0, min(23, round((gray_level - 8) / 10)))
    gray_value = 8 + gray_step * 10
    gray_index = 232 + gray_step

    if _distance(color, (gray_value,) * 3) < _distance(color, cube_rgb):
        return gray_index
    return cube_index


@lru_cache(maxsize=4096)
def rgb_to_16(color: RGB) -> int:
    return min(range(16), key=lambda i: _distance(color, _ANSI16[i]))


def foreground_sgr(color: RGB, mode: ColorMode, level: int = SHADE_LEVELS, head: bool = False) -> str:
    """SGR parameters (without the CSI/``m`` wrapper) for one glyph."""
    if mode is ColorMode.TRUECOLOR:
        return f"38;2;{color[0]};{color[1]};{color[2]}"
    if mode is ColorMode.ANSI256:
        return f"38;5;{rgb_to_256(color)}"
    if mode is ColorMode.ANSI16:
        index = rgb_to_16(color)
        return f"{30 + index}" if index < 8 else f"{90 + index - 8}"
    if head:
        return "1"
    if level <= SHADE_LEVELS // 3:
        return "2"
    return "22"


def background_sgr(color: RGB, mode: ColorMode) -> str:
    if mode is ColorMode.TRUECOLOR:
        return f"48;2;{color[0]};{color[1]};{color[2]}"
    if mode is ColorMode.ANSI256:
        return f"48;5;{rgb_to_256(color)}"
    if mode is ColorMode.ANSI16:
        index = rgb_to_16(color)
        return f"{40 + index}" if index < 8 else f"{100 + index - 8}"
    return "49"
