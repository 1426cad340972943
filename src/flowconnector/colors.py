"""Color helpers for hex strings."""

import re
from typing import Tuple

_HEX6 = re.compile(r"^#?([a-f\d]{2})([a-f\d]{2})([a-f\d]{2})$", re.IGNORECASE)
_HEX_COLOR = re.compile(r"^#([A-Fa-f0-9]{6}|[A-Fa-f0-9]{3})$")


def hex_to_rgb(hex_color: str) -> Tuple[float, float, float]:
    """
    Convert "#rrggbb" to an (r, g, b) tuple of floats in 0-1.

    Three-digit colors are expanded first; anything unparseable is black.
    """
    text = hex_color if isinstance(hex_color, str) else ""
    short = re.match(r"^#?([a-f\d])([a-f\d])([a-f\d])$", text, re.IGNORECASE)
    if short:
        text = "#" + "".join(c * 2 for c in short.groups())
    match = _HEX6.match(text)
    if not match:
        return (0.0, 0.0, 0.0)
    return tuple(int(part, 16) / 255 for part in match.groups())


def is_valid_color(color: str) -> bool:
    """True for "#rgb" and "#rrggbb" strings."""
    return isinstance(color, str) and bool(_HEX_COLOR.match(color))
