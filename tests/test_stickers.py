"""
Tests for the sticker model, asset resolvers and packs.

These tests verify:
- Sticker validation
- Emoji code point / CDN URL building
- HTTP resolver URL resolution and failure reporting (mocked transport)
- Local resolver path mapping and traversal guard
- Sticker pack catalog
"""

import asyncio

import httpx
import pytest

from conftest import make_png, to_data_url
from generators.stickers import (
    STICKER_PACKS,
    HttpStickerAssetResolver,
    LocalStickerAssetResolver,
    Sticker,
    StickerType,
    emoji_codepoints,
    emoji_url,
)

CDN = "https://cdn.example.com/72x72/{codepoints}.png"


def emoji_sticker(emoji="✨", **kwargs) -> Sticker:
    return Sticker(id=kwargs.pop("id", "s1"), x=50, y=50, type="emoji", emoji=emoji, **kwargs)


def image_sticker(src, **kwargs) -> Sticker:
    return Sticker(id=kwargs.pop("id", "s2"), x=50, y=50, type="image", src=src, **kwargs)


class TestStickerModel:
    """Test suite for Sticker validation."""

    def test_type_coerced_from_string(self):
        assert emoji_sticker().type is StickerType.EMOJI

    @pytest.mark.parametrize("x,y", [(-1, 50), (50, 101), (150, 0)])
    def test_position_out_of_range(self, x, y):
        with pytest.raises(ValueError, match="position"):
            Sticker(id="s", x=x, y=y, type="emoji", emoji="✨")

    @pytest.mark.parametrize("scale", [0.2, 3.5])
    def test_scale_out_of_range(self, scale):
        with pytest.raises(ValueError, match="scale"):
            emoji_sticker(scale=scale)

    def test_emoji_requires_emoji(self):
        with pytest.raises(ValueError):
            Sticker(id="s", x=0, y=0, type="emoji", src="/a.png")

    def test_image_requires_src(self):
        with pytest.raises(ValueError):
            Sticker(id="s", x=0, y=0, type="image", emoji="✨")

    def test_from_dict(self):
        sticker = Sticker.from_dict({"id": 7, "x": "10", "y": 20, "type": "image", "src": "/a.webp"})
        assert sticker.id == "7"
        assert sticker.x == 10.0
        assert sticker.scale == 1.0
        assert sticker.type is StickerType.IMAGE


class TestEmojiUrls:
    """Test suite for emoji URL building."""

    def test_single_code_point(self):
        assert emoji_codepoints("✨") == "2728"

    def test_multi_code_point_joined_with_hyphen(self):
        assert emoji_codepoints("\U0001F1EF\U0001F1F5") == "1f1ef-1f1f5"

    def test_presentation_selector_dropped(self):
        assert emoji_codepoints("\U0001F576\uFE0F") == "1f576"
        assert emoji_codepoints("\u2764\uFE0F") == "2764"
        assert emoji_codepoints("1\uFE0F\u20E3") == "31-20e3"

    def test_joiner_sequence_keeps_selector(self):
        rainbow_flag = "\U0001F3F3\uFE0F\u200D\U0001F308"
        assert emoji_codepoints(rainbow_flag) == "1f3f3-fe0f-200d-1f308"

    def test_url_template(self):
        assert emoji_url("🔥", CDN) == "https://cdn.example.com/72x72/1f525.png"


class TestHttpStickerAssetResolver:
    """Test suite for the HTTP resolver."""

    def make_resolver(self, handler) -> HttpStickerAssetResolver:
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return HttpStickerAssetResolver(
            base_url="https://assets.example.com",
            emoji_url_template=CDN,
            timeout=1.0,
            client=client,
        )

    def test_resolve_urls(self):
        resolver = HttpStickerAssetResolver(base_url="https://assets.example.com/", emoji_url_template=CDN)
        assert resolver.resolve_url(emoji_sticker("✨")) == "https://cdn.example.com/72x72/2728.png"
        assert (
            resolver.resolve_url(image_sticker("/assets/images/stickers/love/stamp.webp"))
            == "https://assets.example.com/assets/images/stickers/love/stamp.webp"
        )
        assert resolver.resolve_url(image_sticker("https://other.example.com/a.png")) == "https://other.example.com/a.png"

    def test_fetch_success(self):
        png = make_png((0, 255, 0, 255), (8, 8))
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(str(request.url))
            return httpx.Response(200, content=png)

        result = asyncio.run(self.make_resolver(handler).fetch(emoji_sticker("✨")))

        assert result.success
        assert result.data == png
        assert seen == ["https://cdn.example.com/72x72/2728.png"]

    def test_fetch_http_error_status(self):
        resolver = self.make_resolver(lambda request: httpx.Response(404))
        result = asyncio.run(resolver.fetch(image_sticker("/missing.webp")))

        assert not result.success
        assert result.error == "HTTP 404"

    def test_fetch_network_error_reported(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        result = asyncio.run(self.make_resolver(handler).fetch(image_sticker("/a.webp")))

        assert not result.success
        assert "ConnectError" in result.error

    def test_data_url_decoded_without_request(self):
        png = make_png((0, 0, 255, 255), (4, 4))

        def handler(request):
            raise AssertionError("no request expected")

        result = asyncio.run(self.make_resolver(handler).fetch(image_sticker(to_data_url(png))))

        assert result.success
        assert result.data == png


class TestLocalStickerAssetResolver:
    """Test suite for the on-disk resolver."""

    def test_reads_image_and_emoji(self, tmp_path):
        (tmp_path / "love").mkdir()
        (tmp_path / "love" / "stamp.webp").write_bytes(b"stamp-bytes")
        (tmp_path / "emoji").mkdir()
        (tmp_path / "emoji" / "2728.png").write_bytes(b"sparkles")

        resolver = LocalStickerAssetResolver(tmp_path)
        image_result = asyncio.run(resolver.fetch(image_sticker("/love/stamp.webp")))
        emoji_result = asyncio.run(resolver.fetch(emoji_sticker("✨")))

        assert image_result.success and image_result.data == b"stamp-bytes"
        assert emoji_result.success and emoji_result.data == b"sparkles"
        assert resolver.name == "local"

    def test_emoji_file_name_without_selector(self, tmp_path):
        (tmp_path / "emoji").mkdir()
        (tmp_path / "emoji" / "1f576.png").write_bytes(b"sunglasses")

        result = asyncio.run(LocalStickerAssetResolver(tmp_path).fetch(emoji_sticker("\U0001F576\uFE0F")))

        assert result.success and result.data == b"sunglasses"

    def test_missing_file(self, tmp_path):
        result = asyncio.run(LocalStickerAssetResolver(tmp_path).fetch(image_sticker("/nope.webp")))
        assert not result.success
        assert "not found" in result.error

    def test_traversal_rejected(self, tmp_path):
        assets = tmp_path / "assets"
        assets.mkdir()
        (tmp_path / "secret.png").write_bytes(b"secret")

        result = asyncio.run(LocalStickerAssetResolver(assets).fetch(image_sticker("../secret.png")))

        assert not result.success
        assert result.data is None


class TestStickerPacks:
    """Test suite for the pack catalog."""

    def test_pack_sizes(self):
        packs = {pack.id: pack for pack in STICKER_PACKS}
        assert len(packs["emoji"].stickers) == 16
        assert len(packs["love"].stickers) == 20

    def test_sunglasses_entry_url(self):
        data = next(pack for pack in STICKER_PACKS if pack.id == "emoji").to_dict(CDN)
        sunglasses = next(s for s in data["stickers"] if s["emoji"].startswith("\U0001F576"))
        assert sunglasses["src"] == "https://cdn.example.com/72x72/1f576.png"

    def test_emoji_entries_include_cdn_url(self):
        data = STICKER_PACKS[0].to_dict(CDN)
        first = data["stickers"][0]
        assert first["type"] == "emoji"
        assert first["src"] == emoji_url(first["emoji"], CDN)

    def test_image_entries_keep_src(self):
        love = next(pack for pack in STICKER_PACKS if pack.id == "love").to_dict(CDN)
        assert love["stickers"][0]["src"] == "/assets/images/stickers/love/cassette-tape.webp"
        assert all(s["type"] == "image" for s in love["stickers"])
