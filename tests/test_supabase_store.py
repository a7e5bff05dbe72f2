"""
Tests for the Supabase-backed theme store against a mocked client.
"""
from unittest.mock import MagicMock, Mock

import pytest
from postgrest.exceptions import APIError

from viajatheme.errors import NotFoundError, StoreError
from viajatheme.services.themes import DEFAULT_THEME, ThemeColors, ThemeResolver
from viajatheme.services.themes.supabase_store import SupabaseThemeStore

COLORS = {"primary": "#3b82f6", "secondary": "#f97316", "background": "#f9fafb", "text": "#111827"}


def theme_row(theme_id, is_active=False):
    return {
        "id": theme_id,
        "name": theme_id.title(),
        "colors": COLORS,
        "is_active": is_active,
        "is_default": False,
        "created_at": "2026-03-01T12:00:00Z",
    }


@pytest.fixture
def client():
    return MagicMock()


@pytest.fixture
def store(client):
    return SupabaseThemeStore(client)


class TestSupabaseThemeStore:
    """Test row mapping and error translation"""

    @pytest.mark.asyncio
    async def test_list_themes(self, client, store):
        query = client.table.return_value.select.return_value.order.return_value
        query.execute.return_value = Mock(data=[theme_row("a", True), theme_row("b")])

        themes = await store.list_themes()
        client.table.assert_called_with("platform_themes")
        assert [t.id for t in themes] == ["a", "b"]
        assert themes[0].is_active
        assert themes[0].created_at.year == 2026

    @pytest.mark.asyncio
    async def test_get_missing_theme(self, client, store):
        query = client.table.return_value.select.return_value.eq.return_value.limit.return_value
        query.execute.return_value = Mock(data=[])
        with pytest.raises(NotFoundError):
            await store.get_theme("missing")

    @pytest.mark.asyncio
    async def test_insert_publishes(self, client, store):
        client.table.return_value.insert.return_value.execute.return_value = Mock(data=[theme_row("new")])
        async with store.feed.subscribe() as subscription:
            theme = await store.insert_theme("New", ThemeColors(**COLORS))
            assert (await subscription.next_event()).reason == "insert"
        assert theme.id == "new"
        payload = client.table.return_value.insert.call_args[0][0]
        assert payload["is_active"] is False
        assert payload["colors"] == COLORS

    @pytest.mark.asyncio
    async def test_activate_uses_rpc(self, client, store):
        client.rpc.return_value.execute.return_value = Mock(
            data=[theme_row("old", False), theme_row("target", True)]
        )
        activated = await store.activate_theme("target")
        client.rpc.assert_called_with("activate_theme", {"target_id": "target"})
        assert activated.id == "target"
        assert activated.is_active

    @pytest.mark.asyncio
    async def test_activate_unknown_theme(self, client, store):
        client.rpc.return_value.execute.side_effect = APIError(
            {"message": "theme missing not found", "code": "P0002", "hint": None, "details": None}
        )
        with pytest.raises(NotFoundError):
            await store.activate_theme("missing")

    @pytest.mark.asyncio
    async def test_api_error_becomes_store_error(self, client, store):
        query = client.table.return_value.select.return_value.order.return_value
        query.execute.side_effect = APIError(
            {"message": "permission denied", "code": "42501", "hint": None, "details": None}
        )
        with pytest.raises(StoreError):
            await store.list_themes()

    @pytest.mark.asyncio
    async def test_connection_error_becomes_store_error(self, client, store):
        client.rpc.return_value.execute.side_effect = ConnectionError("network down")
        with pytest.raises(StoreError):
            await store.activate_theme("target")

    @pytest.mark.asyncio
    async def test_delete_missing_theme(self, client, store):
        client.table.return_value.delete.return_value.eq.return_value.execute.return_value = Mock(data=[])
        with pytest.raises(NotFoundError):
            await store.delete_theme("missing")

    @pytest.mark.asyncio
    async def test_save_agency_theme_upserts(self, client, store):
        upsert = client.table.return_value.upsert
        upsert.return_value.execute.return_value = Mock(
            data=[{"agency_id": "agency-1", "colors": COLORS, "updated_at": "2026-03-01T12:00:00+00:00"}]
        )
        saved = await store.save_agency_theme("agency-1", ThemeColors(**COLORS))
        assert saved.agency_id == "agency-1"
        assert upsert.call_args.kwargs["on_conflict"] == "agency_id"
        client.table.assert_called_with("agency_themes")


class TestMalformedRows:
    """Test rows the storefront wrote in a shape the service cannot read"""

    @staticmethod
    def bad_row(theme_id, is_active=True):
        row = theme_row(theme_id, is_active)
        row["colors"] = {**COLORS, "primary": "blue"}
        return row

    @pytest.mark.asyncio
    async def test_list_skips_malformed_rows(self, client, store):
        query = client.table.return_value.select.return_value.order.return_value
        query.execute.return_value = Mock(data=[self.bad_row("bad"), theme_row("good", True)])

        themes = await store.list_themes()
        assert [t.id for t in themes] == ["good"]

    @pytest.mark.asyncio
    async def test_refresh_with_malformed_active_row_uses_default(self, client, store):
        query = client.table.return_value.select.return_value.order.return_value
        query.execute.return_value = Mock(data=[self.bad_row("bad"), theme_row("other")])

        resolver = ThemeResolver(store)
        assert (await resolver.refresh()) == DEFAULT_THEME
        assert resolver.ramp["--color-primary-500"] == "59 130 246"

    @pytest.mark.asyncio
    async def test_missing_colors_key_is_skipped(self, client, store):
        row = theme_row("no-colors", True)
        del row["colors"]
        query = client.table.return_value.select.return_value.order.return_value
        query.execute.return_value = Mock(data=[row])
        assert await store.list_themes() == []

    @pytest.mark.asyncio
    async def test_get_malformed_theme_is_store_error(self, client, store):
        query = client.table.return_value.select.return_value.eq.return_value.limit.return_value
        query.execute.return_value = Mock(data=[self.bad_row("bad")])
        with pytest.raises(StoreError):
            await store.get_theme("bad")
