from __future__ import annotations

import math
import re
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Tuple

from coloraide import Color

from .logger import get_logger

log = get_logger(__name__)

__all__ = [
    "FEATURE_GATE_NAME",
    "FEATURE_GATE_CONDITION",
    "FEATURE_GATE",
    "PerceptualColor",
    "is_hex_color",
    "hex_to_rgba",
    "to_perceptual",
    "format_oklch",
    "hex_to_oklch",
]

FEATURE_GATE_NAME = "supports"
FEATURE_GATE_CONDITION = "(color: oklch(0 0 0))"
FEATURE_GATE = f"@{FEATURE_GATE_NAME} {FEATURE_GATE_CONDITION}"

# Chroma that renders as "0" at three decimals; hue is undefined below it.
ACHROMATIC_THRESHOLD = 0.0005

_HEX_COLOR_PATTERN = re.compile(r"^#([0-9a-fA-F]{3,4}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$")
_TRAILING_ZEROS = re.compile(r"\.?0+$")


@dataclass(frozen=True)
class PerceptualColor:
    """OKLCH triple. ``h`` is ``None`` for achromatic colours."""

    l: Optional[float]
    c: Optional[float]
    h: Optional[float]


def is_hex_color(value: str) -> bool:
    """True iff the whole (trimmed) value is ``#`` plus 3, 4, 6 or 8 hex digits."""
    return bool(_HEX_COLOR_PATTERN.match(value.strip()))


def _expand_shorthand_hex(raw: str) -> str:
    return "".join(c * 2 for c in raw)


def hex_to_rgba(hex_str: str) -> Tuple[float, float, float, float]:
    """Convert #RGB, #RGBA, #RRGGBB or #RRGGBBAA to 0-1 floats."""

    s = hex_str.strip().lstrip("#")
    if len(s) in (3, 4):
        s = _expand_shorthand_hex(s)
    if len(s) not in (6, 8):
        raise ValueError(f"Not a hex colour: {hex_str!r}")
    r = int(s[0:2], 16) / 255.0
    g = int(s[2:4], 16) / 255.0
    b = int(s[4:6], 16) / 255.0
    a = int(s[6:8], 16) / 255.0 if len(s) == 8 else 1.0
    return r, g, b, a


def to_perceptual(hex_str: str) -> Optional[PerceptualColor]:
    """Convert an sRGB hex colour to OKLCH. Alpha is accepted and ignored."""
    if not is_hex_color(hex_str):
        return None
    r, g, b, _alpha = hex_to_rgba(hex_str)
    lightness, chroma, hue = Color("srgb", [r, g, b]).convert("oklch").coords()
    if chroma < ACHROMATIC_THRESHOLD or math.isnan(hue):
        return PerceptualColor(lightness, chroma, None)
    return PerceptualColor(lightness, chroma, hue)


def _format_component(value: float, decimals: int) -> str:
    quantum = Decimal(1).scaleb(-decimals)
    rounded = Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP)
    if rounded.is_zero():
        rounded = abs(rounded)
    return _TRAILING_ZEROS.sub("", f"{rounded:f}")


def format_oklch(l: Optional[float], c: Optional[float], h: Optional[float]) -> str:
    """Render ``oklch(L C H)``; L and C to 3 decimals, H to 2, zeros trimmed.

    Missing components are rendered as zero.
    """
    return "oklch({} {} {})".format(
        _format_component(l or 0.0, 3),
        _format_component(c or 0.0, 3),
        _format_component(h or 0.0, 2),
    )


def hex_to_oklch(hex_str: str) -> Optional[str]:
    """Convert a hex colour to its ``oklch()`` text, or ``None`` on failure."""
    try:
        converted = to_perceptual(hex_str)
        if converted is None:
            log.warning("Failed to convert %s: no result", hex_str)
            return None
        return format_oklch(converted.l, converted.c, converted.h)
    except Exception as exc:
        log.warning("Failed to convert %s: %s", hex_str, exc)
        return None
