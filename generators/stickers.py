"""
Stickers - Decorative overlay model, asset resolution and pack catalog.

Sticker images are fetched through a StickerAssetResolver so the compositor
never talks to the network directly. Two providers exist:

- HttpStickerAssetResolver: emoji from the Twemoji CDN, image stickers from
  the web app's static asset root (httpx)
- LocalStickerAssetResolver: the same assets from a directory on disk

Resolvers never raise for a missing or broken asset; they return an
AssetResult with success=False and the compositor skips the sticker.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, Union
from urllib.parse import urljoin

import httpx

from app_settings import settings
from generators.imaging import ImageDecodeError, payload_to_bytes

logger = logging.getLogger(__name__)

MIN_STICKER_SCALE = 0.3
MAX_STICKER_SCALE = 3.0


class StickerType(str, Enum):
    EMOJI = "emoji"
    IMAGE = "image"


@dataclass(frozen=True)
class Sticker:
    """
    A sticker placed on a strip.

    x/y are the sticker's center as a percentage of the canvas (0-100).
    scale multiplies the base sticker size (0.3-3.0).
    """

    id: str
    x: float
    y: float
    type: StickerType
    emoji: Optional[str] = None
    src: Optional[str] = None
    scale: float = 1.0

    def __post_init__(self):
        if not isinstance(self.type, StickerType):
            object.__setattr__(self, "type", StickerType(self.type))

        if not 0 <= self.x <= 100 or not 0 <= self.y <= 100:
            raise ValueError(f"Sticker {self.id}: position must be within 0-100, got ({self.x}, {self.y})")
        if not MIN_STICKER_SCALE <= self.scale <= MAX_STICKER_SCALE:
            raise ValueError(
                f"Sticker {self.id}: scale must be between {MIN_STICKER_SCALE} and "
                f"{MAX_STICKER_SCALE}, got {self.scale}"
            )

        if self.type is StickerType.EMOJI:
            if not self.emoji or self.src is not None:
                raise ValueError(f"Sticker {self.id}: emoji stickers need 'emoji' and no 'src'")
        elif not self.src or self.emoji is not None:
            raise ValueError(f"Sticker {self.id}: image stickers need 'src' and no 'emoji'")

    @classmethod
    def from_dict(cls, data: dict) -> "Sticker":
        return cls(
            id=str(data["id"]),
            x=float(data["x"]),
            y=float(data["y"]),
            type=data.get("type", StickerType.EMOJI),
            emoji=data.get("emoji"),
            src=data.get("src"),
            scale=float(data.get("scale", 1.0)),
        )


# Variation selector-16 and zero-width joiner
_VS16 = "\uFE0F"
_ZWJ = "\u200D"


def emoji_codepoints(emoji: str) -> str:
    """
    Hyphen-joined lowercase hex code points, e.g. '✨' -> '2728'.

    The emoji-presentation selector U+FE0F is dropped unless the sequence
    contains a zero-width joiner, matching Twemoji's file names
    ('1f576-fe0f' becomes '1f576'; ZWJ sequences keep every code point).
    """
    if _ZWJ not in emoji:
        emoji = emoji.replace(_VS16, "")
    return "-".join(f"{ord(char):x}" for char in emoji)


def emoji_url(emoji: str, url_template: Optional[str] = None) -> str:
    """Build the emoji CDN URL for an emoji string."""
    template = url_template or settings.emoji_cdn_url
    return template.format(codepoints=emoji_codepoints(emoji))


# =============================================================================
# ASSET RESOLVERS
# =============================================================================


@dataclass
class AssetResult:
    """Result from sticker asset fetches."""
    success: bool
    data: Optional[bytes] = None
    url: Optional[str] = None
    error: Optional[str] = None


class StickerAssetResolver(ABC):
    """
    Abstract base class for sticker asset providers.

    Implementations return AssetResult instead of raising so one broken
    sticker never fails a render.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name (e.g., 'http', 'local')."""
        pass

    @abstractmethod
    async def fetch(self, sticker: Sticker) -> AssetResult:
        """
        Fetch the raw image bytes for a sticker.

        Args:
            sticker: Sticker to load

        Returns:
            AssetResult with data on success
        """
        pass


class HttpStickerAssetResolver(StickerAssetResolver):
    """
    Fetches sticker assets over HTTP.

    Emoji resolve against the emoji CDN template, image stickers against
    base_url. Absolute http(s) URLs are fetched as-is and data URLs are
    decoded without a request.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        emoji_url_template: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url or settings.asset_base_url
        self.emoji_url_template = emoji_url_template or settings.emoji_cdn_url
        self.timeout = timeout if timeout is not None else settings.sticker_fetch_timeout
        self._client = client

    @property
    def name(self) -> str:
        return "http"

    def resolve_url(self, sticker: Sticker) -> str:
        if sticker.type is StickerType.EMOJI:
            return emoji_url(sticker.emoji, self.emoji_url_template)
        if sticker.src.startswith(("http://", "https://", "data:")):
            return sticker.src
        return urljoin(self.base_url.rstrip("/") + "/", sticker.src.lstrip("/"))

    async def _get(self, client: httpx.AsyncClient, url: str) -> AssetResult:
        response = await client.get(url, follow_redirects=True)
        if response.status_code != 200:
            return AssetResult(success=False, url=url, error=f"HTTP {response.status_code}")
        return AssetResult(success=True, data=response.content, url=url)

    async def fetch(self, sticker: Sticker) -> AssetResult:
        url = self.resolve_url(sticker)

        if url.startswith("data:"):
            try:
                return AssetResult(success=True, data=payload_to_bytes(url), url="data:")
            except ImageDecodeError as e:
                return AssetResult(success=False, url="data:", error=str(e))

        try:
            if self._client is not None:
                result = await self._get(self._client, url)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    result = await self._get(client, url)
        except httpx.HTTPError as e:
            result = AssetResult(success=False, url=url, error=f"{type(e).__name__}: {e}")

        if result.success:
            logger.debug(f"[STICKER:HTTP] Fetched {url} ({len(result.data)} bytes)")
        else:
            logger.warning(f"[STICKER:HTTP] Failed to fetch {url}: {result.error}")
        return result


class LocalStickerAssetResolver(StickerAssetResolver):
    """
    Reads sticker assets from a static directory.

    Image stickers map their src path under assets_dir. Emoji are read from
    assets_dir/emoji/<codepoints>.png.
    """

    def __init__(self, assets_dir: Union[str, Path]):
        self.assets_dir = Path(assets_dir).resolve()

    @property
    def name(self) -> str:
        return "local"

    def resolve_path(self, sticker: Sticker) -> Path:
        """
        Map a sticker to a file under assets_dir.

        Raises:
            ValueError: if the path escapes assets_dir
        """
        if sticker.type is StickerType.EMOJI:
            relative = Path("emoji") / f"{emoji_codepoints(sticker.emoji)}.png"
        else:
            relative = Path(sticker.src.lstrip("/"))

        full_path = (self.assets_dir / relative).resolve()
        if self.assets_dir not in full_path.parents:
            raise ValueError(f"Invalid sticker path: {relative}")
        return full_path

    async def fetch(self, sticker: Sticker) -> AssetResult:
        try:
            path = self.resolve_path(sticker)
        except ValueError as e:
            logger.warning(f"[STICKER:LOCAL] {e}")
            return AssetResult(success=False, error=str(e))

        if not path.is_file():
            logger.warning(f"[STICKER:LOCAL] Asset not found: {path}")
            return AssetResult(success=False, url=str(path), error=f"File not found: {path.name}")

        try:
            data = await asyncio.to_thread(path.read_bytes)
        except OSError as e:
            logger.error(f"[STICKER:LOCAL] Read failed {path}: {e}")
            return AssetResult(success=False, url=str(path), error=str(e))

        return AssetResult(success=True, data=data, url=str(path))


def get_asset_resolver() -> StickerAssetResolver:
    """Create the resolver selected by configuration."""
    if settings.sticker_assets_dir:
        return LocalStickerAssetResolver(settings.sticker_assets_dir)
    return HttpStickerAssetResolver()


# =============================================================================
# STICKER PACKS
# =============================================================================


@dataclass(frozen=True)
class StickerItem:
    """A sticker offered in a pack."""
    id: str
    name: str
    type: StickerType
    emoji: Optional[str] = None
    src: Optional[str] = None

    def to_dict(self, url_template: Optional[str] = None) -> dict:
        data = {"id": self.id, "name": self.name, "type": self.type.value}
        if self.type is StickerType.EMOJI:
            data["emoji"] = self.emoji
            data["src"] = emoji_url(self.emoji, url_template)
        else:
            data["src"] = self.src
        return data


@dataclass(frozen=True)
class StickerPack:
    id: str
    name: str
    icon: str
    stickers: tuple[StickerItem, ...] = field(default_factory=tuple)

    def to_dict(self, url_template: Optional[str] = None) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "icon": self.icon,
            "stickers": [item.to_dict(url_template) for item in self.stickers],
        }


_EMOJI = ("🎀", "✨", "💖", "🔥", "👑", "🕶️", "🌸", "💀", "⭐", "🌈", "🦋", "💫", "🎉", "💝", "🌟", "🍀")

_LOVE_STICKER_ROOT = "/assets/images/stickers/love"

_LOVE = (
    ("Cassette Tape", "cassette-tape"),
    ("Chocolate Box", "chocolate-box"),
    ("Coffee Cup", "coffee-cup"),
    ("Cookies", "cookies"),
    ("Love Letter", "love-letter"),
    ("Love Message", "love-message"),
    ("Love Song", "love-song"),
    ("Love", "love"),
    ("Stamp", "stamp"),
    ("Valentines Day", "valentines-day"),
) + tuple((f"Heart {i}", str(4289410 + i)) for i in range(1, 11))

STICKER_PACKS: tuple[StickerPack, ...] = (
    StickerPack(
        id="emoji",
        name="Emoji",
        icon="😊",
        stickers=tuple(
            StickerItem(id=f"emoji-{e}", name=e, type=StickerType.EMOJI, emoji=e) for e in _EMOJI
        ),
    ),
    StickerPack(
        id="love",
        name="Love",
        icon="💕",
        stickers=tuple(
            StickerItem(
                id=f"love-{i}",
                name=name,
                type=StickerType.IMAGE,
                src=f"{_LOVE_STICKER_ROOT}/{filename}.webp",
            )
            for i, (name, filename) in enumerate(_LOVE, start=1)
        ),
    ),
)
