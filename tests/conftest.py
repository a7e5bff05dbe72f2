"""
Test configuration and fixtures for the ViajaTheme service.
"""
import io

import numpy as np
import pytest
from fastapi.testclient import TestClient
from PIL import Image

from main import create_app
from viajatheme.services.themes import InMemoryStyleSink, InMemoryThemeStore
from viajatheme.utils.metrics import reset_metrics as _reset_metrics


def encode_image(pixels: np.ndarray, fmt: str = "PNG") -> bytes:
    """Encode an (H, W, 3|4) uint8 array as image bytes."""
    buffer = io.BytesIO()
    Image.fromarray(pixels.astype(np.uint8)).save(buffer, format=fmt)
    return buffer.getvalue()


def solid_image(rgb, size=(32, 32), alpha=None) -> np.ndarray:
    """Uniform (H, W, 3) or (H, W, 4) pixel array."""
    channels = list(rgb) if alpha is None else list(rgb) + [alpha]
    pixels = np.zeros((size[1], size[0], len(channels)), dtype=np.uint8)
    pixels[:, :] = channels
    return pixels


@pytest.fixture
def store():
    """Fresh in-memory store seeded with the default themes."""
    return InMemoryThemeStore()


@pytest.fixture
def sink():
    return InMemoryStyleSink()


@pytest.fixture
def test_client(store, sink):
    """Test client with the lifespan running against an in-memory store."""
    with TestClient(create_app(store=store, sink=sink)) as client:
        yield client


@pytest.fixture
def red_logo_png():
    return encode_image(solid_image((255, 0, 0)))


@pytest.fixture(autouse=True)
def reset_metrics():
    """Reset metrics before each test."""
    _reset_metrics()
