"""
Theme store contract and in-process implementation.

The store owns the persisted theme collection. At most one record may be
active at any time, and activation is a single atomic step.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Iterable, Optional

from loguru import logger

from viajatheme.config import Config
from viajatheme.errors import NotFoundError, StoreError
from viajatheme.services.themes.defaults import SEED_THEMES
from viajatheme.services.themes.feed import ChangeFeed
from viajatheme.services.themes.models import AgencyTheme, ThemeColors, ThemePalette
from viajatheme.utils.ids import new_theme_id


class ThemeStore(ABC):
    """Abstract base class for theme persistence backends."""

    def __init__(self, feed: Optional[ChangeFeed] = None):
        self.feed = feed or ChangeFeed()

    @abstractmethod
    async def list_themes(self) -> list[ThemePalette]:
        """Return the full theme collection."""
        pass

    @abstractmethod
    async def get_theme(self, theme_id: str) -> ThemePalette:
        """Return one theme or raise NotFoundError."""
        pass

    @abstractmethod
    async def insert_theme(self, name: str, colors: ThemeColors) -> ThemePalette:
        """Insert a new inactive, non-default theme."""
        pass

    @abstractmethod
    async def activate_theme(self, theme_id: str) -> ThemePalette:
        """Atomically make ``theme_id`` the only active theme."""
        pass

    @abstractmethod
    async def delete_theme(self, theme_id: str) -> ThemePalette:
        """Remove a theme; returns the deleted record."""
        pass

    @abstractmethod
    async def get_agency_theme(self, agency_id: str) -> Optional[AgencyTheme]:
        """Return the agency's saved colors, if any."""
        pass

    @abstractmethod
    async def save_agency_theme(self, agency_id: str, colors: ThemeColors) -> AgencyTheme:
        """Upsert the agency's colors."""
        pass

    def notify_changed(self, reason: str) -> int:
        """Publish a coarse change event (also used for external pushes)."""
        return self.feed.publish(reason)


class InMemoryThemeStore(ThemeStore):
    """Process-local store; useful for development and tests."""

    def __init__(self,
                 themes: Optional[Iterable[ThemePalette]] = None,
                 feed: Optional[ChangeFeed] = None,
                 latency: float = 0.0):
        super().__init__(feed)
        seed = SEED_THEMES if themes is None else themes
        self._themes: dict[str, ThemePalette] = {theme.id: theme for theme in seed}
        self._agency_themes: dict[str, AgencyTheme] = {}
        self._lock = asyncio.Lock()
        self._latency = latency
        if sum(1 for theme in self._themes.values() if theme.is_active) > 1:
            raise ValueError("Seed collection has more than one active theme")

    async def _round_trip(self) -> None:
        if self._latency:
            await asyncio.sleep(self._latency)

    async def list_themes(self) -> list[ThemePalette]:
        await self._round_trip()
        return list(self._themes.values())

    async def get_theme(self, theme_id: str) -> ThemePalette:
        await self._round_trip()
        try:
            return self._themes[theme_id]
        except KeyError:
            raise NotFoundError(theme_id)

    async def insert_theme(self, name: str, colors: ThemeColors) -> ThemePalette:
        theme = ThemePalette(id=new_theme_id(), name=name, colors=colors,
                             is_active=False, is_default=False)
        async with self._lock:
            await self._round_trip()
            self._themes[theme.id] = theme
        logger.info(f"Inserted theme {theme.id} ({name})")
        self.notify_changed("insert")
        return theme

    async def activate_theme(self, theme_id: str) -> ThemePalette:
        async with self._lock:
            if theme_id not in self._themes:
                raise NotFoundError(theme_id)
            await self._round_trip()
            # Single critical section: every record flips together.
            self._themes = {
                key: theme.with_active(key == theme_id)
                for key, theme in self._themes.items()
            }
            activated = self._themes[theme_id]
        logger.info(f"Activated theme {theme_id}")
        self.notify_changed("activate")
        return activated

    async def delete_theme(self, theme_id: str) -> ThemePalette:
        async with self._lock:
            await self._round_trip()
            try:
                removed = self._themes.pop(theme_id)
            except KeyError:
                raise NotFoundError(theme_id)
        logger.info(f"Deleted theme {theme_id}")
        self.notify_changed("delete")
        return removed

    async def get_agency_theme(self, agency_id: str) -> Optional[AgencyTheme]:
        await self._round_trip()
        return self._agency_themes.get(agency_id)

    async def save_agency_theme(self, agency_id: str, colors: ThemeColors) -> AgencyTheme:
        agency_theme = AgencyTheme(agency_id=agency_id, colors=colors,
                                   updated_at=datetime.now(timezone.utc))
        async with self._lock:
            await self._round_trip()
            self._agency_themes[agency_id] = agency_theme
        logger.info(f"Saved theme colors for agency {agency_id}")
        return agency_theme


def build_theme_store(cfg: Config) -> ThemeStore:
    """
    Create the configured theme store backend.

    Raises:
        StoreError: If the backend is unknown or misconfigured
    """
    backend = cfg.THEME_STORE_BACKEND
    if not cfg.validate_store_backend(backend):
        raise StoreError(f"Unknown theme store backend: {backend}")

    if backend == "supabase":
        if not cfg.validate_supabase():
            raise StoreError("Supabase backend requires SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY")
        from viajatheme.services.themes.supabase_store import SupabaseThemeStore
        return SupabaseThemeStore.from_config(cfg)

    logger.info("Using in-memory theme store")
    return InMemoryThemeStore()
