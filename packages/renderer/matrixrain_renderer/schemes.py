"""Built-in rain color schemes."""

from __future__ import annotations

import logging

from .colors import parse_color
from .models import ColorScheme

DEFAULT_SCHEME_NAME = "green"

SCHEMES: dict[str, ColorScheme] = {
    "green": ColorScheme(name="green", head="#D7FFDC", body="#00FF2B"),
    "amber": ColorScheme(name="amber", head="#FFF1D6", body="#FFA000"),
    "blue": ColorScheme(name="blue", head="#E0F4FF", body="#35B6FF"),
    "red": ColorScheme(name="red", head="#FFE0E0", body="#FF2B2B"),
    "purple": ColorScheme(name="purple", head="#F3E0FF", body="#B04BFF"),
    "white": ColorScheme(name="white", head="#FFFFFF", body="#C8C8C8"),
    "rainbow": ColorScheme(name="rainbow", head="#FFFFFF", body="#FF0000", rainbow=True),
}


def list_schemes() -> list[str]:
    return sorted(SCHEMES.keys())


def get_scheme(name: str | None) -> ColorScheme:
    if not name:
        return SCHEMES[DEFAULT_SCHEME_NAME]
    return SCHEMES.get(name.lower(), SCHEMES[DEFAULT_SCHEME_NAME])


def resolve_scheme(value: str | None) -> ColorScheme:
    """Map a scheme name or a free-form color string to a scheme.

    A bare color keeps the default head and background. Anything that is
    neither falls back to the default scheme.
    """
    if not value:
        return SCHEMES[DEFAULT_SCHEME_NAME]
    key = value.strip().lower()
    if key in SCHEMES:
        return SCHEMES[key]
    try:
        r, g, b = parse_color(value)
    except ValueError:
        logging.getLogger("matrixrain").warning(
            "unknown color %r, using %s", value, DEFAULT_SCHEME_NAME, extra={"event": "unknown_color"}
        )
        return SCHEMES[DEFAULT_SCHEME_NAME]
    base = SCHEMES[DEFAULT_SCHEME_NAME]
    return ColorScheme(name=value.strip(), head=base.head, body=f"#{r:02X}{g:02X}{b:02X}", background=base.background)
