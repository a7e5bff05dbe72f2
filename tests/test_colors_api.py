"""
API tests for the color extraction and palette endpoints.
"""
import pytest

from conftest import encode_image, solid_image


class TestColorExtractAPI:
    """Test the /colors/extract endpoint"""

    def test_extract_upload(self, test_client):
        pixels = solid_image((255, 0, 0), size=(10, 10))
        pixels[9, :] = (0, 0, 255)
        response = test_client.post(
            "/colors/extract",
            files={"file": ("logo.png", encode_image(pixels), "image/png")},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["dominant"] == "#f00000"
        assert data["secondary"] == "#0000ff"
        assert [p["name"] for p in data["palettes"]] == [
            "Vibrante", "Suave", "Profissional", "Elegante", "Moderno", "Ousado"
        ]
        assert data["palettes"][0]["primary"] == "#f00000"

    def test_extract_counts_requests(self, test_client, red_logo_png):
        test_client.post("/colors/extract", files={"file": ("logo.png", red_logo_png, "image/png")})
        counters = test_client.get("/metrics").json()["counters"]
        assert counters["extract_requests_total_upload"] == 1

    def test_unsupported_media_type(self, test_client):
        response = test_client.post(
            "/colors/extract",
            files={"file": ("logo.svg", b"<svg xmlns='http://www.w3.org/2000/svg'/>", "image/svg+xml")},
        )
        assert response.status_code == 415

    def test_corrupt_image(self, test_client):
        response = test_client.post(
            "/colors/extract",
            files={"file": ("logo.png", b"\x89PNG\r\n\x1a\n" + b"\x00" * 32, "image/png")},
        )
        assert response.status_code == 400
        counters = test_client.get("/metrics").json()["counters"]
        assert counters["failed_total_DecodeError"] == 1

    def test_non_image_bytes(self, test_client):
        response = test_client.post(
            "/colors/extract",
            files={"file": ("logo.png", b"hello world, not an image", "image/png")},
        )
        assert response.status_code == 400

    def test_oversize_upload(self, test_client, monkeypatch):
        from viajatheme.config import config
        monkeypatch.setattr(config, "MAX_FILE_MB", 0)
        response = test_client.post(
            "/colors/extract",
            files={"file": ("logo.png", encode_image(solid_image((1, 2, 3))), "image/png")},
        )
        assert response.status_code == 413

    def test_missing_file(self, test_client):
        response = test_client.post("/colors/extract")
        assert response.status_code == 422


class TestExtractFromUrlAPI:
    """Test the /colors/extract-url endpoint"""

    def test_extract_url(self, test_client, monkeypatch):
        import viajatheme.services.colors.sampler as sampler_module
        image_bytes = encode_image(solid_image((100, 150, 200)))
        monkeypatch.setattr(sampler_module, "fetch_image_bytes", lambda url: image_bytes)

        response = test_client.post("/colors/extract-url", json={"url": "https://cdn.example.com/logo.png"})
        assert response.status_code == 200
        assert response.json()["dominant"] == "#6090c0"

    def test_unreachable_url(self, test_client, monkeypatch):
        import requests

        def fail(*args, **kwargs):
            raise requests.Timeout("timed out")

        monkeypatch.setattr(requests, "get", fail)
        response = test_client.post("/colors/extract-url", json={"url": "https://cdn.example.com/logo.png"})
        assert response.status_code == 422

    def test_rejects_non_http_url(self, test_client):
        response = test_client.post("/colors/extract-url", json={"url": "file:///etc/passwd"})
        assert response.status_code == 422


class TestPalettesAPI:
    """Test the /colors/palettes endpoint"""

    def test_palettes_for_seed(self, test_client):
        response = test_client.get("/colors/palettes", params={"seed": "#3B82F6"})
        assert response.status_code == 200
        data = response.json()
        assert data["seed"] == "#3b82f6"
        assert len(data["palettes"]) == 6
        assert data["palettes"][0] == {"name": "Vibrante", "primary": "#3b82f6", "secondary": "#c47d09"}

    @pytest.mark.parametrize("seed", ["3b82f6", "#3b82f", "blue"])
    def test_invalid_seed(self, test_client, seed):
        response = test_client.get("/colors/palettes", params={"seed": seed})
        assert response.status_code == 422
