"""
Palette synthesis from a single seed color.

Six named primary/secondary pairs are derived with fixed RGB transforms so the
same seed always yields the same suggestions.
"""

from dataclasses import dataclass
from typing import Callable, List, Sequence, Tuple, Union

from viajatheme.services.colors.color_math import (
    RGB, as_rgb, clamp_channel, complement, hex_to_rgb, rgb_to_hex, shade, tint
)

NEUTRAL_GRAY = "#6b7280"
NEAR_BLACK = "#111827"

Seed = Union[str, Sequence[int]]


@dataclass(frozen=True)
class ColorPalette:
    """A named candidate palette."""
    name: str
    primary: str
    secondary: str


def analogous_shift(rgb: RGB) -> RGB:
    """Cheap analogous neighbour: R+20, G+30, B-20, clamped."""
    r, g, b = rgb
    return (clamp_channel(r + 20), clamp_channel(g + 30), clamp_channel(b - 20))


def rotate_channels(rgb: RGB) -> RGB:
    """Cyclic channel rotation (R, G, B) -> (G, B, R), a triadic stand-in."""
    r, g, b = rgb
    return (g, b, r)


# (name, primary transform, secondary transform), in presentation order
PALETTE_RULES: Tuple[Tuple[str, Callable[[RGB], RGB], Callable[[RGB], RGB]], ...] = (
    ("Vibrante", lambda c: c, complement),
    ("Suave", lambda c: tint(c, 0.40), lambda c: hex_to_rgb(NEUTRAL_GRAY)),
    ("Profissional", lambda c: shade(c, 0.30), lambda c: hex_to_rgb(NEAR_BLACK)),
    ("Elegante", lambda c: c, lambda c: shade(c, 0.15)),
    ("Moderno", lambda c: c, analogous_shift),
    ("Ousado", lambda c: c, rotate_channels),
)

PALETTE_NAMES = tuple(name for name, _, _ in PALETTE_RULES)


def synthesize_palettes(seed: Seed) -> List[ColorPalette]:
    """
    Build the six candidate palettes for a seed color.

    Args:
        seed: ``#rrggbb`` string or RGB triple

    Returns:
        Six ColorPalette entries in fixed order
    """
    base = as_rgb(seed)
    return [
        ColorPalette(
            name=name,
            primary=rgb_to_hex(*primary_rule(base)),
            secondary=rgb_to_hex(*secondary_rule(base)),
        )
        for name, primary_rule, secondary_rule in PALETTE_RULES
    ]
