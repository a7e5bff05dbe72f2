"""
Tint/shade ramp derivation.

The effective theme's primary and secondary colors are expanded into the CSS
custom properties the storefront styles against. Values are space-separated
RGB triples so they can be used as ``rgb(var(--color-primary-500) / <alpha>)``.
"""

from __future__ import annotations

from collections import OrderedDict
from typing import Iterator, Mapping

from loguru import logger

from viajatheme.services.colors.color_math import RGB, hex_to_rgb, rgb_string, shade, tint
from viajatheme.services.themes.models import ThemePalette

# Used when a stored color is not a parseable hex value
FALLBACK_RGB: RGB = (59, 130, 246)

# (property, "tint" | "shade", weight)
PRIMARY_STEPS = (
    ("--color-primary-50", "tint", 0.95),
    ("--color-primary-100", "tint", 0.80),
    ("--color-primary-500", "shade", 0.0),
    ("--color-primary-600", "shade", 0.10),
    ("--color-primary-700", "shade", 0.20),
    ("--color-primary-900", "shade", 0.40),
)
SECONDARY_STEPS = (
    ("--color-secondary-500", "shade", 0.0),
    ("--color-secondary-600", "shade", 0.10),
)


class DerivedCssRamp(Mapping[str, str]):
    """Immutable, ordered map of CSS custom property -> ``"r g b"``."""

    def __init__(self, variables: Mapping[str, str]):
        self._variables = OrderedDict(variables)

    def __getitem__(self, key: str) -> str:
        return self._variables[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._variables)

    def __len__(self) -> int:
        return len(self._variables)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Mapping):
            return dict(self._variables) == dict(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"DerivedCssRamp({dict(self._variables)!r})"

    def to_css(self, selector: str = ":root") -> str:
        """Render the ramp as a stylesheet block."""
        body = "\n".join(f"  {name}: {value};" for name, value in self._variables.items())
        return f"{selector} {{\n{body}\n}}\n"


def parse_color_lenient(hex_color: str) -> RGB:
    """Parse a hex color, falling back to the default blue on bad input."""
    try:
        return hex_to_rgb(hex_color)
    except (ValueError, TypeError):
        logger.warning(f"Unparseable theme color {hex_color!r}; using fallback")
        return FALLBACK_RGB


def _expand(rgb: RGB, steps) -> Iterator[tuple[str, str]]:
    for name, kind, weight in steps:
        derived = tint(rgb, weight) if kind == "tint" else shade(rgb, weight)
        yield name, rgb_string(derived)


def derive_ramp(theme: ThemePalette) -> DerivedCssRamp:
    """Compute the primary (6) and secondary (2) ramp for a theme."""
    primary = parse_color_lenient(theme.colors.primary)
    secondary = parse_color_lenient(theme.colors.secondary)
    variables = OrderedDict(_expand(primary, PRIMARY_STEPS))
    variables.update(_expand(secondary, SECONDARY_STEPS))
    return DerivedCssRamp(variables)
