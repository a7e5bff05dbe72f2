"""
API tests for theme collection, resolution and agency endpoints.
"""
import pytest

from main import create_app
from viajatheme.errors import StoreError
from viajatheme.services.themes import InMemoryThemeStore

NEW_COLORS = {"primary": "#123456", "secondary": "#654321", "background": "#FFFFFF", "text": "#000000"}
PREVIEW_COLORS = {"primary": "#ff0000", "secondary": "#00ff00", "background": "#ffffff", "text": "#000000"}


class TestHealthAndMetrics:
    """Test service endpoints"""

    def test_healthz(self, test_client):
        response = test_client.get("/healthz")
        assert response.status_code == 200
        data = response.json()
        assert data["ok"] is True
        assert data["service"] == "viajatheme"
        assert data["store_backend"] == "InMemoryThemeStore"
        assert data["resolver_running"] is True

    def test_metrics(self, test_client):
        data = test_client.get("/metrics").json()
        assert "uptime_seconds" in data
        assert "counters" in data
        assert "timing_stats" in data


class TestThemeCollectionAPI:
    """Test list/create/delete/activate"""

    def test_list_seeded_themes(self, test_client):
        data = test_client.get("/themes").json()
        assert [t["id"] for t in data["themes"]] == ["default", "dark-mode", "nature", "royal"]
        assert data["active_id"] == "default"

    def test_create_theme(self, test_client):
        response = test_client.post("/themes", json={"name": "Praia", "colors": NEW_COLORS})
        assert response.status_code == 201
        theme_id = response.json()["id"]

        themes = {t["id"]: t for t in test_client.get("/themes").json()["themes"]}
        assert themes[theme_id]["is_active"] is False
        assert themes[theme_id]["colors"]["background"] == "#ffffff"

    def test_create_theme_validates_colors(self, test_client):
        bad = dict(NEW_COLORS, primary="red")
        response = test_client.post("/themes", json={"name": "Praia", "colors": bad})
        assert response.status_code == 422

    def test_create_theme_rejects_blank_name(self, test_client):
        response = test_client.post("/themes", json={"name": "   ", "colors": NEW_COLORS})
        assert response.status_code == 422

    def test_activate_theme(self, test_client):
        response = test_client.post("/themes/nature/activate")
        assert response.status_code == 200
        data = response.json()
        assert data["active_global_id"] == "nature"
        assert data["source"] == "active_global"
        assert data["pending_activation"] is None
        assert data["variables"]["--color-primary-500"] == "5 150 105"

        active = [t["id"] for t in test_client.get("/themes").json()["themes"] if t["is_active"]]
        assert active == ["nature"]

    def test_activate_unknown_theme(self, test_client):
        response = test_client.post("/themes/missing/activate")
        assert response.status_code == 404
        assert test_client.get("/themes/effective").json()["active_global_id"] == "default"

    def test_delete_theme(self, test_client):
        response = test_client.delete("/themes/royal")
        assert response.status_code == 200
        assert response.json()["id"] == "royal"
        assert test_client.delete("/themes/royal").status_code == 404

    def test_delete_active_theme_falls_back(self, test_client):
        test_client.post("/themes/dark-mode/activate")
        test_client.delete("/themes/dark-mode")
        data = test_client.get("/themes/effective").json()
        assert data["active_global_id"] == "default"
        assert data["variables"]["--color-primary-500"] == "59 130 246"


class TestResolutionAPI:
    """Test effective theme, preview and tenant override"""

    def test_effective_default(self, test_client):
        data = test_client.get("/themes/effective").json()
        assert data["theme"]["id"] == "default"
        assert data["source"] == "active_global"
        assert data["has_preview"] is False
        assert data["variables"]["--color-primary-600"] == "53 117 221"

    def test_effective_css(self, test_client):
        response = test_client.get("/themes/effective.css")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/css")
        assert "--color-primary-600: 53 117 221;" in response.text
        assert response.text.startswith(":root {")

    def test_preview_precedence(self, test_client, sink):
        test_client.put("/themes/tenant-override", json={"colors": NEW_COLORS})
        data = test_client.put("/themes/preview", json={"name": "Draft", "colors": PREVIEW_COLORS}).json()
        assert data["source"] == "preview"
        assert data["has_tenant_override"] is True
        assert sink.get("--color-primary-500") == "255 0 0"

        data = test_client.delete("/themes/preview").json()
        assert data["source"] == "tenant_override"
        assert data["variables"]["--color-primary-500"] == "18 52 86"

        data = test_client.delete("/themes/tenant-override").json()
        assert data["source"] == "active_global"

    def test_activation_under_preview(self, test_client):
        test_client.put("/themes/preview", json={"colors": PREVIEW_COLORS})
        data = test_client.post("/themes/royal/activate").json()
        assert data["source"] == "preview"
        assert data["active_global_id"] == "royal"


class TestStoreWebhookAPI:
    """Test the external change notification endpoint"""

    def test_webhook_notifies_resolver(self, test_client):
        response = test_client.post("/themes/changed")
        assert response.status_code == 200
        assert response.json()["delivered"] == 1

    def test_webhook_secret(self, test_client, monkeypatch):
        from viajatheme.config import config
        monkeypatch.setattr(config, "WEBHOOK_SECRET", "s3cret")

        assert test_client.post("/themes/changed").status_code == 401
        assert test_client.post("/themes/changed", headers={"X-Webhook-Secret": "wrong"}).status_code == 401
        assert test_client.post("/themes/changed", headers={"X-Webhook-Secret": "s3cret"}).status_code == 200

    @pytest.mark.parametrize("secret, warned", [("", True), ("s3cret", False)])
    def test_startup_warns_without_secret(self, store, sink, monkeypatch, secret, warned):
        from fastapi.testclient import TestClient
        from loguru import logger as loguru_logger
        from viajatheme.config import config
        monkeypatch.setattr(config, "WEBHOOK_SECRET", secret)

        messages = []
        handler_id = loguru_logger.add(messages.append, level="WARNING", format="{message}")
        try:
            with TestClient(create_app(store=store, sink=sink)):
                pass
        finally:
            loguru_logger.remove(handler_id)

        assert any("WEBHOOK_SECRET" in m.record["message"] for m in messages) is warned


class TestAgencyThemeAPI:
    """Test agency (tenant) color endpoints"""

    def test_missing_agency_theme(self, test_client):
        assert test_client.get("/agencies/agency-1/theme").status_code == 404

    def test_save_and_get(self, test_client):
        response = test_client.put("/agencies/agency-1/theme", json={"colors": NEW_COLORS})
        assert response.status_code == 200
        assert response.json()["colors"]["primary"] == "#123456"

        data = test_client.get("/agencies/agency-1/theme").json()
        assert data["agency_id"] == "agency-1"
        assert data["updated_at"] is not None
        # Saving alone does not change what the storefront renders
        assert test_client.get("/themes/effective").json()["source"] == "active_global"

    def test_save_and_apply(self, test_client):
        test_client.put("/agencies/agency-1/theme", params={"apply": "true"}, json={"colors": NEW_COLORS})
        assert test_client.get("/themes/effective").json()["source"] == "tenant_override"

    def test_apply_saved_theme(self, test_client):
        test_client.put("/agencies/agency-1/theme", json={"colors": NEW_COLORS})
        data = test_client.post("/agencies/agency-1/theme/apply").json()
        assert data["source"] == "tenant_override"
        assert data["variables"]["--color-primary-500"] == "18 52 86"

        data = test_client.post("/agencies/agency-2/theme/apply").json()
        assert data["source"] == "active_global"


class BrokenStore(InMemoryThemeStore):
    async def list_themes(self):
        raise StoreError("database unavailable")

    async def insert_theme(self, name, colors):
        raise StoreError("database unavailable")


class TestStoreUnavailable:
    """Store failures degrade to the default theme and 503s"""

    @pytest.fixture
    def broken_client(self):
        from fastapi.testclient import TestClient
        with TestClient(create_app(store=BrokenStore())) as client:
            yield client

    def test_effective_falls_back_to_default(self, broken_client):
        data = broken_client.get("/themes/effective").json()
        assert data["theme"]["id"] == "default"

    def test_list_returns_503(self, broken_client):
        assert broken_client.get("/themes").status_code == 503

    def test_create_returns_503(self, broken_client):
        response = broken_client.post("/themes", json={"name": "Praia", "colors": NEW_COLORS})
        assert response.status_code == 503
