"""Typed renderer models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

RGB = tuple[int, int, int]


class ColorMode(str, Enum):
    TRUECOLOR = "truecolor"
    ANSI256 = "256"
    ANSI16 = "16"
    MONO = "mono"


@dataclass(frozen=True)
class ColorScheme:
    name: str
    head: str
    body: str
    background: str = "#000000"
    rainbow: bool = False


@dataclass(frozen=True)
class RainSettings:
    scheme: ColorScheme
    speed: float = 1.0
    density: float = 0.1
    charset: str = "katakana"
    glitch: float = 0.02
    min_length: int = 4
    max_length: int = 24
    max_ticks_per_row: int = 3
    tick_ms: int = 75
    color_mode: ColorMode = ColorMode.TRUECOLOR
    seed: int | None = None

    @property
    def tick_interval_ms(self) -> float:
        return max(5.0, self.tick_ms / self.speed)


@dataclass
class Stream:
    """One falling column. ``row`` is -1 until the head enters the grid."""

    column: int
    length: int
    speed: int
    color: RGB
    delay: int = 0
    row: int = -1
    elapsed: int = 0
    drained: int = 0

    @property
    def waiting(self) -> bool:
        return self.delay > 0

    @property
    def draining(self) -> bool:
        """The head has reached the last row and only the tail is still moving."""
        return self.drained > 0


@dataclass(frozen=True)
class Cell:
    char: str
    brightness: float
    color: RGB
