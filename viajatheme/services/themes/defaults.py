"""Built-in themes: the hard-coded fallback and the store's seed collection."""

from __future__ import annotations

from viajatheme.services.themes.models import ThemeColors, ThemePalette

DEFAULT_THEME_ID = "default"

DEFAULT_THEME = ThemePalette(
    id=DEFAULT_THEME_ID,
    name="Azul Oceano (Padrão)",
    colors=ThemeColors(primary="#3b82f6", secondary="#f97316", background="#f9fafb", text="#111827"),
    is_active=True,
    is_default=True,
    created_at=None,
)

SEED_THEMES: tuple[ThemePalette, ...] = (
    DEFAULT_THEME,
    ThemePalette(
        id="dark-mode",
        name="Modo Noturno",
        colors=ThemeColors(primary="#6366f1", secondary="#a855f7", background="#1f2937", text="#f9fafb"),
        created_at=None,
    ),
    ThemePalette(
        id="nature",
        name="Verde Natureza",
        colors=ThemeColors(primary="#059669", secondary="#d97706", background="#ecfdf5", text="#064e3b"),
        created_at=None,
    ),
    ThemePalette(
        id="royal",
        name="Roxo Real",
        colors=ThemeColors(primary="#7c3aed", secondary="#db2777", background="#f5f3ff", text="#4c1d95"),
        created_at=None,
    ),
)
