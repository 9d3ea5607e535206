"""Renderer package for the matrix rain waterfall."""

from .ansi import FrameEncoder
from .colors import parse_color, shade
from .glyphs import CHARSETS, list_charsets
from .models import Cell, ColorMode, ColorScheme, RainSettings, Stream
from .schemes import DEFAULT_SCHEME_NAME, get_scheme, list_schemes, resolve_scheme
from .snapshot import render_image
from .waterfall import Waterfall

__all__ = [
    "CHARSETS",
    "Cell",
    "ColorMode",
    "ColorScheme",
    "DEFAULT_SCHEME_NAME",
    "FrameEncoder",
    "RainSettings",
    "Stream",
    "Waterfall",
    "get_scheme",
    "list_charsets",
    "list_schemes",
    "parse_color",
    "render_image",
    "resolve_scheme",
    "shade",
]
