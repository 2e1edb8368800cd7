"""Deterministic label colors.

A label created without a color gets one derived from its name, so the same
name always renders the same way regardless of case or surrounding
whitespace.  Colors are six lower-case hex digits with no ``#`` prefix.
"""

from __future__ import annotations

import colorsys
import hashlib
import re

from skis.errors import InvalidColorError

_HEX_COLOR_RE = re.compile(r"[0-9a-fA-F]{6}")

# Keep generated colors readable on both light and dark backgrounds.
_SATURATION_RANGE = (0.55, 0.75)
_LIGHTNESS_RANGE = (0.45, 0.60)


def _scale(byte: int, bounds: tuple[float, float]) -> float:
    low, high = bounds
    return low + (byte / 255) * (high - low)


def generate_color(name: str) -> str:
    """Return a color for *name*: ``generate_color("Bug") == generate_color("bug")``."""
    digest = hashlib.sha256(name.strip().lower().encode("utf-8")).digest()
    hue = int.from_bytes(digest[:4], "big") / 2**32
    saturation = _scale(digest[4], _SATURATION_RANGE)
    lightness = _scale(digest[5], _LIGHTNESS_RANGE)
    r, g, b = colorsys.hls_to_rgb(hue, lightness, saturation)
    return "".join(f"{round(channel * 255):02x}" for channel in (r, g, b))


def validate_color(color: str) -> str:
    """Return *color* lower-cased, or raise ``InvalidColorError``."""
    if not isinstance(color, str) or not _HEX_COLOR_RE.fullmatch(color):
        raise InvalidColorError(str(color))
    return color.lower()
