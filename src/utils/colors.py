"""Color helpers."""

from __future__ import annotations

import logging
import re

logger = logging.getLogger(__name__)

HEX_DIGITS = re.compile(r"[0-9a-fA-F]{6}")


def hex_to_rgb(hex_color: str) -> str:
    """Convert '#RRGGBB' or '#RGB' to the 'rgb(r, g, b)' form browsers report.

    Anything else logs a warning and yields black.
    """
    value = hex_color.strip().lstrip("#")
    if len(value) == 3:
        value = "".join(ch * 2 for ch in value)
    if not HEX_DIGITS.fullmatch(value):
        logger.warning("Invalid hex color provided to hex_to_rgb: %s. Returning black.", hex_color)
        return "rgb(0, 0, 0)"
    number = int(value, 16)
    r = (number >> 16) & 255
    g = (number >> 8) & 255
    b = number & 255
    return f"rgb({r}, {g}, {b})"
