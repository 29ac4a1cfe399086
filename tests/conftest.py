"""
Pytest configuration and fixtures for testing.

This module provides:
- Test client for FastAPI
- Solid-color image payload factories
- A fake sticker asset resolver (no network)
"""

import asyncio
import base64
import io
import os
import struct
import zlib
from typing import Generator, Iterable

import pytest

# Set test environment before importing app modules
os.environ["ENVIRONMENT"] = "test"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ.pop("STICKER_ASSETS_DIR", None)

from fastapi.testclient import TestClient
from PIL import Image

from api.routers.render import get_compositor
from api.server import app
from generators.stickers import AssetResult, Sticker, StickerAssetResolver
from generators.strip import PhotoStripCompositor
from utils.logging import get_request_id


# =============================================================================
# IMAGE HELPERS
# =============================================================================


def make_png(
    color: tuple = (255, 0, 0, 255),
    size: tuple[int, int] = (120, 160),
) -> bytes:
    """Encode a solid-color RGBA PNG of size (width, height)."""
    image = Image.new("RGBA", size, color)
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def to_data_url(data: bytes, mime: str = "image/png") -> str:
    return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"


def oversized_png(width: int = 20000, height: int = 20000) -> bytes:
    """A 1x1 PNG whose header claims width x height pixels."""
    data = bytearray(make_png(size=(1, 1)))
    # IHDR data sits after the signature, chunk length and chunk type
    data[16:24] = struct.pack(">II", width, height)
    data[29:33] = struct.pack(">I", zlib.crc32(bytes(data[12:29])))
    return bytes(data)


@pytest.fixture
def red_png() -> bytes:
    return make_png((255, 0, 0, 255))


@pytest.fixture
def png_factory():
    """Factory for solid-color PNG bytes."""
    return make_png


# =============================================================================
# STICKER FIXTURES
# =============================================================================


class FakeStickerResolver(StickerAssetResolver):
    """
    Serves a solid-color square for every sticker.

    Stickers whose id is in failing_ids raise a connection error, the
    way an unreachable CDN would.
    """

    def __init__(
        self,
        color: tuple = (0, 0, 255, 255),
        failing_ids: Iterable[str] = (),
        delay: float = 0.0,
    ):
        self.color = color
        self.failing_ids = set(failing_ids)
        self.delay = delay
        self.requested: list[str] = []
        self.request_ids: list = []

    @property
    def name(self) -> str:
        return "fake"

    async def fetch(self, sticker: Sticker) -> AssetResult:
        self.requested.append(sticker.id)
        self.request_ids.append(get_request_id())
        if self.delay:
            await asyncio.sleep(self.delay)
        if sticker.id in self.failing_ids:
            raise ConnectionError(f"network unreachable for {sticker.id}")
        return AssetResult(success=True, data=make_png(self.color, (64, 64)), url=f"fake://{sticker.id}")


@pytest.fixture
def fake_resolver() -> FakeStickerResolver:
    return FakeStickerResolver()


@pytest.fixture
def compositor(fake_resolver: FakeStickerResolver) -> PhotoStripCompositor:
    return PhotoStripCompositor(asset_resolver=fake_resolver, fetch_timeout=1.0)


# =============================================================================
# TEST CLIENT FIXTURES
# =============================================================================


@pytest.fixture
def client(fake_resolver: FakeStickerResolver) -> Generator[TestClient, None, None]:
    """Create a synchronous test client; strip renders use the fake resolver."""
    app.dependency_overrides[get_compositor] = lambda: PhotoStripCompositor(
        asset_resolver=fake_resolver, fetch_timeout=1.0
    )
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def pixel(image_bytes: bytes, x: int, y: int) -> tuple:
    """RGBA value of one pixel of an encoded image."""
    with Image.open(io.BytesIO(image_bytes)) as img:
        return img.convert("RGBA").getpixel((x, y))


def open_image(image_bytes: bytes) -> Image.Image:
    img = Image.open(io.BytesIO(image_bytes))
    img.load()
    return img
