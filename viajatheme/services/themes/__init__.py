"""Theme persistence, resolution and CSS ramp derivation."""

from viajatheme.services.themes.defaults import DEFAULT_THEME, DEFAULT_THEME_ID, SEED_THEMES
from viajatheme.services.themes.feed import ChangeFeed, Subscription, ThemeStoreEvent
from viajatheme.services.themes.models import AgencyTheme, ThemeColors, ThemePalette
from viajatheme.services.themes.ramp import DerivedCssRamp, derive_ramp
from viajatheme.services.themes.resolver import ThemeResolutionState, ThemeResolver, ThemeSource
from viajatheme.services.themes.sink import InMemoryStyleSink, StyleSink
from viajatheme.services.themes.store import InMemoryThemeStore, ThemeStore, build_theme_store

__all__ = [
    "DEFAULT_THEME",
    "DEFAULT_THEME_ID",
    "SEED_THEMES",
    "ChangeFeed",
    "Subscription",
    "ThemeStoreEvent",
    "AgencyTheme",
    "ThemeColors",
    "ThemePalette",
    "DerivedCssRamp",
    "derive_ramp",
    "ThemeResolutionState",
    "ThemeResolver",
    "ThemeSource",
    "InMemoryStyleSink",
    "StyleSink",
    "InMemoryThemeStore",
    "ThemeStore",
    "build_theme_store",
]
