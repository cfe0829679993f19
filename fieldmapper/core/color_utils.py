"""Hex color helpers for overlay rendering.

Colors travel through the app as "#rrggbb" strings and are converted
to RGBA lists only at the pydeck boundary.
"""

import logging
import re

from fieldmapper.constants import StyleConfig

logger = logging.getLogger(__name__)

_HEX_DIGITS = re.compile(r"[0-9a-fA-F]{6}")


def parse_hex_color(color: str) -> tuple[int, int, int]:
    """Parse "#rrggbb" (leading "#" optional) into an RGB tuple.

    Short strings are right-padded with "0" to six digits.

    Raises:
        ValueError: If the string is not a hex color.
    """
    if not isinstance(color, str) or not color:
        raise ValueError(f"Invalid color: {color!r}")
    digits = color.replace("#", "").ljust(6, "0")
    if not _HEX_DIGITS.fullmatch(digits):
        raise ValueError(f"Invalid color: {color!r}")
    return int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16)


def lerp_color(color1: str, color2: str, ratio: float) -> str:
    """Linear per-channel interpolation between two hex colors.

    Channels are truncated toward zero, so the midpoint of black and white
    is "#7f7f7f". Malformed input yields StyleConfig.FALLBACK_COLOR.

    Args:
        color1: Start color ("#rrggbb")
        color2: End color ("#rrggbb")
        ratio: 0 = color1, 1 = color2 (clamped)

    Returns:
        Interpolated color as "#rrggbb".
    """
    try:
        r1, g1, b1 = parse_hex_color(color1)
        r2, g2, b2 = parse_hex_color(color2)
    except ValueError as e:
        logger.warning(f"Color interpolation fallback: {e}")
        return StyleConfig.FALLBACK_COLOR

    ratio = max(0.0, min(1.0, ratio))
    r = int(r1 + (r2 - r1) * ratio)
    g = int(g1 + (g2 - g1) * ratio)
    b = int(b1 + (b2 - b1) * ratio)
    return f"#{r:02x}{g:02x}{b:02x}"


def hex_to_rgba(color: str, alpha: int = 255) -> list[int]:
    """Convert "#rrggbb" to a pydeck [R, G, B, A] list."""
    try:
        r, g, b = parse_hex_color(color)
    except ValueError:
        r, g, b = parse_hex_color(StyleConfig.FALLBACK_COLOR)
    return [r, g, b, alpha]
