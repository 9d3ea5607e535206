"""Column-based falling-character state and per-cell fade."""

from __future__ import annotations

import random
from typing import Iterator

import numpy as np

from .ansi import FrameEncoder
from .colors import hue_color, parse_color
from .glyphs import random_glyph
from .models import RGB, Cell, RainSettings, Stream

# Brightness at or below this is treated as cleared.
_EPSILON = 1e-4


class Waterfall:
    """Owns the grid buffers and the active streams.

    The grid is three numpy buffers indexed ``[row, column]``: the glyph, its
    brightness in ``[0, 1]`` and the RGB color of the stream that wrote it.
    Every mutation happens through :meth:`advance_tick` and
    :meth:`handle_resize`; there is exactly one writer.
    """

    def __init__(self, settings: RainSettings, rng: random.Random | None = None) -> None:
        self.settings = settings
        self.rng = rng if rng is not None else random.Random(settings.seed)
        self.head_color: RGB = parse_color(settings.scheme.head)
        self.body_color: RGB = parse_color(settings.scheme.body)
        self.background: RGB = parse_color(settings.scheme.background)
        self.encoder = FrameEncoder(settings.color_mode, self.background, self.head_color)

        self.width = 0
        self.height = 0
        self.tick_count = 0
        self.streams: dict[int, Stream] = {}
        self._allocate(0, 0)

    def _allocate(self, width: int, height: int) -> None:
        self.width = max(0, int(width))
        self.height = max(0, int(height))
        self.chars = np.full((self.height, self.width), " ", dtype="<U1")
        self.brightness = np.zeros((self.height, self.width), dtype=np.float32)
        self.colors = np.zeros((self.height, self.width, 3), dtype=np.uint8)

    def _stream_color(self) -> RGB:
        if self.settings.scheme.rainbow:
            return hue_color(self.rng.random())
        return self.body_color

    def _new_stream(self, column: int, delay: int) -> Stream:
        s = self.settings
        return Stream(
            column=column,
            length=self.rng.randint(s.min_length, s.max_length),
            speed=self.rng.randint(1, s.max_ticks_per_row),
            color=self._stream_color(),
            delay=delay,
        )

    def initialize(self, width: int, height: int) -> "Waterfall":
        """Allocate a ``height`` x ``width`` grid and seed one stream per column.

        Streams start with a random spawn delay so the first frames do not
        fall as a single flat line.
        """
        self._allocate(width, height)
        self.tick_count = 0
        self.streams = {}
        if self.settings.density > 0 and self.height > 0:
            for column in range(self.width):
                self.streams[column] = self._new_stream(column, delay=self.rng.randrange(self.height))
        self.encoder.reset()
        return self

    def _age_column(self, column: int, step: float) -> None:
        col = self.brightness[:, column]
        lit = col > 0
        if not lit.any():
            return
        col[lit] = np.maximum(col[lit] - np.float32(step), np.float32(0.0))
        cleared = lit & (col <= _EPSILON)
        col[cleared] = 0.0
        self.chars[cleared, column] = " "

    def _write_head(self, stream: Stream) -> None:
        row, column = stream.row, stream.column
        self.chars[row, column] = random_glyph(self.rng, self.settings.charset)
        self.brightness[row, column] = 1.0
        self.colors[row, column] = stream.color

    def _step_stream(self, stream: Stream) -> bool:
        """Advance one stream by a tick. Returns True once its tail has left the grid."""
        if stream.waiting:
            stream.delay -= 1
            return False
        stream.elapsed += 1
        if stream.elapsed < stream.speed:
            return False
        stream.elapsed = 0

        self._age_column(stream.column, 1.0 / stream.length)
        # A draining stream keeps draining even if the grid grew under it.
        if not stream.draining and stream.row < self.height - 1:
            stream.row += 1
            self._write_head(stream)
            return False
        stream.drained += 1
        return stream.drained >= stream.length

    def _spawn(self) -> None:
        density = self.settings.density
        if density <= 0 or self.height == 0:
            return
        for column in range(self.width):
            if column not in self.streams and self.rng.random() < density:
                self.streams[column] = self._new_stream(column, delay=0)

    def _glitch(self) -> None:
        chance = self.settings.glitch
        if chance <= 0:
            return
        heads = set(self.heads())
        charset = self.settings.charset
        for row, column in np.argwhere(self.brightness > 0):
            if self.rng.random() < chance and (int(row), int(column)) not in heads:
                self.chars[row, column] = random_glyph(self.rng, charset)

    def advance_tick(self) -> None:
        self.tick_count += 1
        finished = [column for column in sorted(self.streams) if self._step_stream(self.streams[column])]
        for column in finished:
            del self.streams[column]
        self._spawn()
        self._glitch()

    def handle_resize(self, width: int, height: int) -> None:
        """Reallocate for a new terminal size, keeping the overlapping region."""
        width, height = max(0, int(width)), max(0, int(height))
        if width == self.width and height == self.height:
            return

        old_chars, old_brightness, old_colors = self.chars, self.brightness, self.colors
        keep_h, keep_w = min(height, self.height), min(width, self.width)
        self._allocate(width, height)
        self.chars[:keep_h, :keep_w] = old_chars[:keep_h, :keep_w]
        self.brightness[:keep_h, :keep_w] = old_brightness[:keep_h, :keep_w]
        self.colors[:keep_h, :keep_w] = old_colors[:keep_h, :keep_w]

        kept: dict[int, Stream] = {}
        for column, stream in self.streams.items():
            if column >= width:
                continue
            if stream.row > height - 1:
                stream.row = height - 1
            kept[column] = stream
        self.streams = kept
        self.encoder.reset()

    def render_frame(self) -> str:
        """Encode the cells changed since the previous frame as ANSI text."""
        return self.encoder.encode(self.chars, self.brightness, self.colors, self.heads())

    def heads(self) -> list[tuple[int, int]]:
        """(row, column) of every head still on the grid."""
        return [
            (stream.row, column)
            for column, stream in self.streams.items()
            if stream.row >= 0 and not stream.draining
        ]

    def cell(self, row: int, column: int) -> Cell:
        r, g, b = (int(v) for v in self.colors[row, column])
        return Cell(char=str(self.chars[row, column]), brightness=float(self.brightness[row, column]), color=(r, g, b))

    def cells(self) -> Iterator[list[Cell]]:
        for row in range(self.height):
            yield [self.cell(row, column) for column in range(self.width)]

    def state(self) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        return self.chars.copy(), self.brightness.copy(), self.colors.copy()
