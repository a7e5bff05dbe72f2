"""
ViajaTheme error taxonomy.

Extraction errors abort a single extraction; store errors are surfaced to the
caller of the resolver operation that triggered them.
"""
from typing import Optional


class ThemingError(Exception):
    """Base class for theming engine failures."""

    def __init__(self, message: str, *, detail: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail

    def __str__(self) -> str:
        if self.detail:
            return f"{self.message} ({self.detail})"
        return self.message


class DecodeError(ThemingError):
    """Image bytes could not be parsed as a raster image."""
    pass


class ResourceError(ThemingError):
    """Pixel buffer (or the image resource itself) is unavailable."""
    pass


class StoreError(ThemingError):
    """Read or write against the theme store failed."""
    pass


class NotFoundError(ThemingError):
    """Operation targets a theme id that does not exist."""

    def __init__(self, theme_id: str):
        super().__init__(f"Theme not found: {theme_id}")
        self.theme_id = theme_id
