"""
RGB color helpers shared by the sampler, the palette synthesizer and the
CSS ramp derivation.

All channel math is integer RGB in [0, 255]. Rounding is half-up so that
ramps and palettes match what the storefront front-end computes.
"""
import math
import re
from typing import Sequence, Tuple

import numpy as np

RGB = Tuple[int, int, int]

_HEX_RE = re.compile(r"^#([0-9a-fA-F]{2})([0-9a-fA-F]{2})([0-9a-fA-F]{2})$")

WHITE: RGB = (255, 255, 255)
BLACK: RGB = (0, 0, 0)


def round_half_up(value: float) -> int:
    """Round x.5 away from negative infinity, like JavaScript's Math.round."""
    return int(math.floor(value + 0.5))


def clamp_channel(value: float) -> int:
    """Clamp a channel value into [0, 255]."""
    return max(0, min(255, int(value)))


def rgb_to_hex(r: float, g: float, b: float) -> str:
    """Convert RGB channels to a lowercase ``#rrggbb`` string."""
    channels = [clamp_channel(round_half_up(c)) for c in (r, g, b)]
    return "#{:02x}{:02x}{:02x}".format(*channels)


def hex_to_rgb(hex_color: str) -> RGB:
    """
    Convert a ``#rrggbb`` string (either case) to an RGB tuple.

    Raises:
        ValueError: If the string is not a 6-digit hex color with ``#``
    """
    match = _HEX_RE.match(hex_color.strip()) if isinstance(hex_color, str) else None
    if match is None:
        raise ValueError(f"Invalid hex color format: {hex_color!r}")
    return tuple(int(part, 16) for part in match.groups())


def is_hex_color(value: str) -> bool:
    """True if ``value`` is a valid ``#rrggbb`` string."""
    return isinstance(value, str) and _HEX_RE.match(value.strip()) is not None


def normalize_hex(hex_color: str) -> str:
    """Canonical lowercase form of a hex color."""
    return rgb_to_hex(*hex_to_rgb(hex_color))


def as_rgb(color) -> RGB:
    """Accept a hex string or an RGB sequence and return an RGB tuple."""
    if isinstance(color, str):
        return hex_to_rgb(color)
    r, g, b = color
    return (clamp_channel(r), clamp_channel(g), clamp_channel(b))


def complement(rgb: Sequence[int]) -> RGB:
    """Component-wise complement: (255 - r, 255 - g, 255 - b)."""
    r, g, b = rgb
    return (255 - r, 255 - g, 255 - b)


def mix_channel(channel: int, target: int, weight: float) -> int:
    """Linear mix of one channel toward ``target`` by ``weight`` in [0, 1]."""
    return round_half_up(channel + (target - channel) * weight)


def tint(rgb: Sequence[int], weight: float) -> RGB:
    """Mix a color toward white."""
    return tuple(mix_channel(c, 255, weight) for c in rgb)


def shade(rgb: Sequence[int], weight: float) -> RGB:
    """Mix a color toward black."""
    return tuple(mix_channel(c, 0, weight) for c in rgb)


def color_distances(samples, reference: Sequence[int]) -> np.ndarray:
    """
    Euclidean RGB distance from each sample to ``reference``.

    Args:
        samples: RGB triples, (N, 3) array or a single triple
        reference: RGB triple

    Returns:
        float64 array of N distances (0-d for a single triple)
    """
    diffs = np.asarray(samples, dtype=np.int32) - np.asarray(reference, dtype=np.int32)
    return np.sqrt((diffs ** 2).sum(axis=-1))


def quantize(values, step: int = 16):
    """Bucket channel values (scalar or array) to the lower edge of their ``step``-wide bin."""
    return (values // step) * step


def rgb_string(rgb: Sequence[int]) -> str:
    """Space-separated decimal triple, the form CSS custom properties expect."""
    return " ".join(str(int(c)) for c in rgb)
