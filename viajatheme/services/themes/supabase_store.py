"""
Supabase-backed theme store.

Rows live in ``platform_themes`` and ``agency_themes`` (see
``sql/platform_themes.sql``). Activation goes through the ``activate_theme``
Postgres function so the active flag moves in one statement.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from loguru import logger
from postgrest.exceptions import APIError
from supabase import Client, create_client

from viajatheme.config import Config
from viajatheme.errors import NotFoundError, StoreError
from viajatheme.services.themes.feed import ChangeFeed
from viajatheme.services.themes.models import AgencyTheme, ThemeColors, ThemePalette
from viajatheme.services.themes.store import ThemeStore
from viajatheme.utils.ids import new_theme_id
from viajatheme.utils.metrics import get_metrics_instance

# Postgres "no_data_found", raised by activate_theme for unknown ids
_NOT_FOUND_CODE = "P0002"


class SupabaseThemeStore(ThemeStore):
    """Theme store over the Supabase REST API."""

    def __init__(self,
                 client: Client,
                 themes_table: str = "platform_themes",
                 agency_themes_table: str = "agency_themes",
                 activate_rpc: str = "activate_theme",
                 feed: Optional[ChangeFeed] = None):
        super().__init__(feed)
        self._client = client
        self._themes_table = themes_table
        self._agency_themes_table = agency_themes_table
        self._activate_rpc = activate_rpc

    @classmethod
    def from_config(cls, cfg: Config) -> "SupabaseThemeStore":
        client = create_client(cfg.SUPABASE_URL, cfg.SUPABASE_SERVICE_ROLE_KEY)
        return cls(
            client,
            themes_table=cfg.THEMES_TABLE,
            agency_themes_table=cfg.AGENCY_THEMES_TABLE,
            activate_rpc=cfg.ACTIVATE_THEME_RPC,
        )

    async def _execute(self, operation: str, call: Callable[[], Any]) -> list[dict]:
        """Run a blocking client call off the event loop and unwrap its rows."""
        try:
            response = await asyncio.to_thread(call)
        except APIError as e:
            logger.error(f"Theme store {operation} failed: {e.message} (code={e.code})")
            if e.code == _NOT_FOUND_CODE:
                raise
            raise StoreError(f"Theme store {operation} failed", detail=e.message) from e
        except Exception as e:
            logger.error(f"Theme store {operation} failed: {e}")
            raise StoreError(f"Theme store {operation} failed", detail=str(e)) from e
        return list(response.data or [])

    def _theme(self, row: dict) -> ThemePalette:
        """Map one row; a row that does not fit the theme shape is a store fault."""
        try:
            return ThemePalette.from_record(row)
        except (KeyError, TypeError, ValueError) as e:
            get_metrics_instance().increment_failure_count("store_malformed_row")
            logger.error(f"Malformed theme row {row.get('id')!r}: {e}")
            raise StoreError("Malformed theme row", detail=str(e)) from e

    def _agency_theme(self, row: dict) -> AgencyTheme:
        try:
            return AgencyTheme.from_record(row)
        except (KeyError, TypeError, ValueError) as e:
            get_metrics_instance().increment_failure_count("store_malformed_row")
            logger.error(f"Malformed agency theme row: {e}")
            raise StoreError("Malformed agency theme row", detail=str(e)) from e

    async def list_themes(self) -> list[ThemePalette]:
        rows = await self._execute(
            "list",
            lambda: self._client.table(self._themes_table).select("*").order("created_at").execute(),
        )
        themes = []
        for row in rows:
            # Skip rows the storefront wrote in a shape we cannot read
            try:
                themes.append(self._theme(row))
            except StoreError:
                continue
        return themes

    async def get_theme(self, theme_id: str) -> ThemePalette:
        rows = await self._execute(
            "get",
            lambda: self._client.table(self._themes_table).select("*").eq("id", theme_id).limit(1).execute(),
        )
        if not rows:
            raise NotFoundError(theme_id)
        return self._theme(rows[0])

    async def insert_theme(self, name: str, colors: ThemeColors) -> ThemePalette:
        payload = {
            "id": new_theme_id(),
            "name": name,
            "colors": colors.to_dict(),
            "is_active": False,
            "is_default": False,
        }
        rows = await self._execute(
            "insert",
            lambda: self._client.table(self._themes_table).insert(payload).execute(),
        )
        if not rows:
            raise StoreError("Theme insert returned no row")
        self.notify_changed("insert")
        return self._theme(rows[0])

    async def activate_theme(self, theme_id: str) -> ThemePalette:
        try:
            rows = await self._execute(
                "activate",
                lambda: self._client.rpc(self._activate_rpc, {"target_id": theme_id}).execute(),
            )
        except APIError as e:
            raise NotFoundError(theme_id) from e

        activated = [row for row in rows if str(row["id"]) == theme_id]
        if not activated:
            raise StoreError(f"Activation of {theme_id} returned no matching row")
        self.notify_changed("activate")
        return self._theme(activated[0])

    async def delete_theme(self, theme_id: str) -> ThemePalette:
        rows = await self._execute(
            "delete",
            lambda: self._client.table(self._themes_table).delete().eq("id", theme_id).execute(),
        )
        if not rows:
            raise NotFoundError(theme_id)
        self.notify_changed("delete")
        return self._theme(rows[0])

    async def get_agency_theme(self, agency_id: str) -> Optional[AgencyTheme]:
        rows = await self._execute(
            "get_agency_theme",
            lambda: self._client.table(self._agency_themes_table)
            .select("agency_id, colors, updated_at")
            .eq("agency_id", agency_id)
            .limit(1)
            .execute(),
        )
        return self._agency_theme(rows[0]) if rows else None

    async def save_agency_theme(self, agency_id: str, colors: ThemeColors) -> AgencyTheme:
        payload = {
            "agency_id": agency_id,
            "colors": colors.to_dict(),
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }
        rows = await self._execute(
            "save_agency_theme",
            lambda: self._client.table(self._agency_themes_table)
            .upsert(payload, on_conflict="agency_id")
            .execute(),
        )
        return self._agency_theme(rows[0] if rows else payload)
