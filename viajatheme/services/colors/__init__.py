"""
ViajaTheme Colors Module

Samples logos for representative colors and synthesizes candidate palettes
from a seed color.
"""

from viajatheme.services.colors.sampler import ColorSampler, ExtractedColorPair, extract_colors
from viajatheme.services.colors.synthesizer import ColorPalette, PALETTE_NAMES, synthesize_palettes

__all__ = [
    "ColorSampler",
    "ExtractedColorPair",
    "extract_colors",
    "ColorPalette",
    "PALETTE_NAMES",
    "synthesize_palettes",
]
