"""Still-image export of the rain grid."""

from __future__ import annotations

import numpy as np
from PIL import Image

from .ansi import quantize_levels
from .colors import shade
from .waterfall import Waterfall


def render_image(waterfall: Waterfall, cell_px: int = 8) -> Image.Image:
    """Paint each lit cell as a ``cell_px`` square in its shaded color."""
    cell_px = max(1, int(cell_px))
    height, width = waterfall.height, waterfall.width
    pixels = np.empty((max(height, 1), max(width, 1), 3), dtype=np.uint8)
    pixels[:, :] = waterfall.background

    levels = quantize_levels(waterfall.brightness)
    heads = set(waterfall.heads())
    for row, column in np.argwhere(levels > 0):
        row, column = int(row), int(column)
        if (row, column) in heads:
            pixels[row, column] = waterfall.head_color
            continue
        r, g, b = (int(v) for v in waterfall.colors[row, column])
        pixels[row, column] = shade((r, g, b), int(levels[row, column]))

    scaled = np.repeat(np.repeat(pixels, cell_px, axis=0), cell_px, axis=1)
    return Image.fromarray(scaled)
