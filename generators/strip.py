"""
Photo Strip Compositor - Renders a template, photos, stickers and a filter
into one raster image.

Pipeline:
1. Resolve the template (unknown ids fall back to the default)
2. Compute canvas geometry from the output width
3. Create the background (plain hex colors only, otherwise white) and border
4. Place photos: decode, filter, cover-fit, round corners
5. Draw the footer divider and text
6. Place stickers centered on their (x%, y%) position
7. Flatten and encode

Photos are prepared in worker threads and stickers are fetched concurrently;
everything is joined before the canvas is flattened. A photo or sticker that
cannot be loaded is skipped and logged, never fatal.
"""

import asyncio
import logging
import math
import re
import time
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Optional, Sequence

import cv2
import numpy as np
from PIL import Image, ImageDraw, ImageFont

from app_settings import settings
from generators.filters.presets import FilterParameters, get_filter_by_id
from generators.filters.processor import FilterApplicationError, filter_pixels
from generators.imaging import (
    ImageDecodeError,
    ImagePayload,
    alpha_composite,
    apply_alpha_mask,
    contain_fit,
    content_type_for,
    cover_fit,
    decode_image,
    encode_image,
    parse_css_color,
    parse_hex_color,
    rounded_rect_mask,
)
from generators.stickers import Sticker, StickerAssetResolver, get_asset_resolver
from generators.templates import Template, resolve_template
from utils.logging import get_request_id, request_context

logger = logging.getLogger(__name__)

# Width of the interactive preview strip; template spacing is in these pixels
REFERENCE_WIDTH = 400

# Footer band height in preview pixels
FOOTER_HEIGHT = 64

DEFAULT_FOOTER_SIZE = "0.65rem"
ROOT_FONT_SIZE_PX = 16
FOOTER_LETTER_SPACING_EM = 0.15

# rgba(0, 0, 0, 0.1)
DEFAULT_DIVIDER_COLOR = (0, 0, 0, 26)
DEFAULT_BACKGROUND_COLOR = (255, 255, 255, 255)

# Base sticker size as a fraction of canvas width (scale=1)
STICKER_BASE_RATIO = 0.08

OUTPUT_FORMATS = ("png", "jpeg", "webp")

FONT_FILES = {
    "monospace": ("DejaVuSansMono.ttf", "LiberationMono-Regular.ttf", "FreeMono.ttf"),
    "serif": ("DejaVuSerif.ttf", "LiberationSerif-Regular.ttf", "FreeSerif.ttf"),
    "sans-serif": ("DejaVuSans.ttf", "LiberationSans-Regular.ttf", "FreeSans.ttf"),
}

_CSS_LENGTH_RE = re.compile(r"^\s*([0-9]*\.?[0-9]+)\s*(rem|em|px)?\s*$")


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positives (browser Math.round)."""
    return int(math.floor(value + 0.5))


def parse_css_length(value: Optional[str], default: str = DEFAULT_FOOTER_SIZE) -> float:
    """
    Convert a CSS length (rem, em, px or bare number) to preview pixels.

    Unparseable values fall back to default.
    """
    match = _CSS_LENGTH_RE.match(value or "") or _CSS_LENGTH_RE.match(default)
    number, unit = float(match.group(1)), match.group(2)
    if unit in ("rem", "em"):
        return number * ROOT_FONT_SIZE_PX
    return number


# =============================================================================
# REQUEST / RESULT
# =============================================================================


@dataclass(frozen=True)
class FilterSelection:
    """A filter preset chosen for a render, with its intensity (0-100)."""
    preset_id: str
    intensity: float = 100

    def __post_init__(self):
        if get_filter_by_id(self.preset_id) is None:
            raise ValueError(f"Unknown filter preset: {self.preset_id}")
        if not 0 <= self.intensity <= 100:
            raise ValueError(f"Filter intensity must be between 0 and 100, got {self.intensity}")

    @property
    def parameters(self) -> FilterParameters:
        return get_filter_by_id(self.preset_id).parameters


@dataclass
class CompositeRequest:
    """
    Everything needed for one strip render.

    photos holds one payload per template slot in slot order; None leaves
    the slot empty.
    """
    photos: Sequence[Optional[ImagePayload]]
    template_id: Optional[str] = None
    stickers: Sequence[Sticker] = ()
    filter: Optional[FilterSelection] = None
    width: int = field(default_factory=lambda: settings.default_output_width)
    quality: int = field(default_factory=lambda: settings.default_output_quality)
    footer_text: Optional[str] = None  # overrides the template footer when set
    output_format: str = "png"

    def __post_init__(self):
        if self.width <= 0:
            raise ValueError(f"Output width must be positive, got {self.width}")
        if not 1 <= self.quality <= 100:
            raise ValueError(f"Quality must be between 1 and 100, got {self.quality}")
        self.output_format = self.output_format.lower()
        if self.output_format not in OUTPUT_FORMATS:
            raise ValueError(f"Unsupported output format: {self.output_format}")


@dataclass
class CompositeResult:
    """Rendered strip plus what was and was not placed."""
    data: bytes
    width: int
    height: int
    content_type: str
    template_id: str
    placed_photos: list[int] = field(default_factory=list)
    skipped_photos: list[int] = field(default_factory=list)
    placed_stickers: list[str] = field(default_factory=list)
    skipped_stickers: list[str] = field(default_factory=list)


# =============================================================================
# GEOMETRY
# =============================================================================


@dataclass(frozen=True)
class StripGeometry:
    """Pixel layout of a strip at a given output width."""
    width: int
    height: int
    scale: float
    cols: int
    rows: int
    count: int
    padding: int
    gap: int
    footer_height: int
    border_width: int
    photo_radius: float
    cell_width: int
    cell_height: int

    @classmethod
    def compute(cls, template: Template, width: int, footer_text: str) -> "StripGeometry":
        """
        Derive canvas and cell sizes for a template.

        Spacing is scaled from preview pixels by width / REFERENCE_WIDTH.
        Cell sizes are floored to whole pixels.

        Raises:
            ValueError: if the width leaves no room for the cells
        """
        layout, style = template.layout, template.style
        scale = width / REFERENCE_WIDTH

        height = round_half_up(width / layout.aspect)
        padding = round_half_up(style.padding * scale)
        gap = round_half_up(style.gap * scale)
        footer_height = round_half_up(FOOTER_HEIGHT * scale) if footer_text.strip() else 0

        border_width = 0
        if style.border_width:
            border_width = max(1, round_half_up(style.border_width * scale))

        grid_width = width - padding * 2
        grid_height = height - padding * 2 - footer_height
        cell_width = (grid_width - (layout.cols - 1) * gap) // layout.cols
        cell_height = (grid_height - (layout.rows - 1) * gap) // layout.rows

        if cell_width <= 0 or cell_height <= 0:
            raise ValueError(
                f"Width {width} is too small for template '{template.id.value}' "
                f"(cells would be {cell_width}x{cell_height})"
            )

        return cls(
            width=width,
            height=height,
            scale=scale,
            cols=layout.cols,
            rows=layout.rows,
            count=layout.count,
            padding=padding,
            gap=gap,
            footer_height=footer_height,
            border_width=border_width,
            photo_radius=(style.photo_radius or 0) * scale,
            cell_width=cell_width,
            cell_height=cell_height,
        )

    def cell_origin(self, index: int) -> tuple[int, int]:
        """Top-left (x, y) of slot index (row-major)."""
        col = index % self.cols
        row = index // self.cols
        return (
            self.padding + col * (self.cell_width + self.gap),
            self.padding + row * (self.cell_height + self.gap),
        )

    @property
    def footer_top(self) -> int:
        return self.height - self.footer_height

    @property
    def sticker_base_size(self) -> float:
        return self.width * STICKER_BASE_RATIO


# =============================================================================
# FOOTER TEXT
# =============================================================================


@lru_cache(maxsize=32)
def load_font(family: str, size: int) -> ImageFont.ImageFont:
    """
    Load a TrueType font for a CSS generic family.

    Looks in settings.fonts_dir first, then the system font path, then
    falls back to Pillow's built-in font.
    """
    candidates = FONT_FILES.get(family.lower(), FONT_FILES["sans-serif"])
    fonts_dir = settings.resolved_fonts_dir

    for filename in candidates:
        paths = [fonts_dir / filename] if fonts_dir else []
        paths.append(Path(filename))
        for path in paths:
            try:
                return ImageFont.truetype(str(path), size)
            except OSError:
                continue

    logger.debug(f"[STRIP] No TrueType font for '{family}', using Pillow default")
    return ImageFont.load_default(size=size)


def render_tracked_text(
    text: str,
    font: ImageFont.ImageFont,
    color: tuple[int, int, int, int],
    width: int,
    height: int,
    tracking: float,
) -> np.ndarray:
    """
    Draw a single line of letter-spaced text centered in a transparent box.

    Returns:
        RGBA array (height, width, 4)
    """
    layer = Image.new("RGBA", (width, height), (0, 0, 0, 0))
    if not text:
        return np.array(layer)

    draw = ImageDraw.Draw(layer)
    advances = [font.getlength(ch) for ch in text]
    total = sum(advances) + tracking * (len(text) - 1)

    left, top, right, bottom = font.getbbox(text)
    x = (width - total) / 2
    y = (height - (bottom - top)) / 2 - top

    for ch, advance in zip(text, advances):
        draw.text((x, y), ch, font=font, fill=color)
        x += advance + tracking

    return np.array(layer)


# =============================================================================
# COMPOSITOR
# =============================================================================


class PhotoStripCompositor:
    """
    Renders photo strips.

    Stateless between renders; one instance can serve concurrent requests.
    """

    def __init__(
        self,
        asset_resolver: Optional[StickerAssetResolver] = None,
        fetch_timeout: Optional[float] = None,
    ):
        """
        Initialize compositor.

        Args:
            asset_resolver: Sticker asset provider (configured default if None)
            fetch_timeout: Per-sticker timeout in seconds
        """
        self.asset_resolver = asset_resolver or get_asset_resolver()
        self.fetch_timeout = fetch_timeout if fetch_timeout is not None else settings.sticker_fetch_timeout

    # -------------------------------------------------------------------------
    # Background
    # -------------------------------------------------------------------------

    def create_background(self, template: Template, geometry: StripGeometry) -> np.ndarray:
        """Solid background with the template border drawn inset."""
        color = parse_hex_color(template.style.background_color)
        if color is None:
            logger.debug(
                f"[STRIP] Background '{template.style.background_color}' is not a plain color, using white"
            )
            color = DEFAULT_BACKGROUND_COLOR

        canvas = np.empty((geometry.height, geometry.width, 4), dtype=np.uint8)
        canvas[:, :] = color

        border_color = parse_hex_color(template.style.border_color)
        if geometry.border_width > 0 and border_color is not None:
            frame = np.zeros_like(canvas)
            bw = geometry.border_width
            frame[:bw, :] = border_color
            frame[-bw:, :] = border_color
            frame[:, :bw] = border_color
            frame[:, -bw:] = border_color
            alpha_composite(canvas, frame, 0, 0)

        return canvas

    # -------------------------------------------------------------------------
    # Photos
    # -------------------------------------------------------------------------

    def prepare_photo(
        self,
        index: int,
        payload: ImagePayload,
        geometry: StripGeometry,
        selection: Optional[FilterSelection],
    ) -> Optional[np.ndarray]:
        """
        Decode, filter, cover-fit and mask one photo.

        Returns:
            RGBA tile sized to the cell, or None if the photo is unreadable

        Raises:
            FilterApplicationError: if the filter step fails
        """
        try:
            pixels = decode_image(payload)
        except ImageDecodeError as e:
            logger.warning(f"[STRIP] Skipping photo {index}: {e}")
            return None

        if selection is not None:
            try:
                pixels = filter_pixels(pixels, selection.parameters, selection.intensity)
            except Exception as e:
                logger.error(
                    f"[STRIP] Filter failed on photo {index}: {e}",
                    extra={
                        "error": str(e),
                        "parameters": selection.parameters.to_dict(),
                        "intensity": selection.intensity,
                        "buffer_size": int(pixels.nbytes),
                    },
                    exc_info=True,
                )
                raise FilterApplicationError() from None

        try:
            tile = cover_fit(pixels, geometry.cell_width, geometry.cell_height)
        except cv2.error as e:
            logger.warning(f"[STRIP] Skipping photo {index}: resize failed: {e}")
            return None

        if geometry.photo_radius > 0:
            mask = rounded_rect_mask(geometry.cell_width, geometry.cell_height, geometry.photo_radius)
            tile = apply_alpha_mask(tile, mask)

        return tile

    # -------------------------------------------------------------------------
    # Footer
    # -------------------------------------------------------------------------

    def draw_footer(
        self,
        canvas: np.ndarray,
        template: Template,
        geometry: StripGeometry,
        text: str,
    ) -> None:
        """Draw the divider line and centered uppercase footer text."""
        if geometry.footer_height <= 0:
            return

        top = geometry.footer_top
        divider_color = parse_hex_color(template.style.border_color) or DEFAULT_DIVIDER_COLOR
        thickness = max(1, round_half_up(geometry.scale))
        divider = np.zeros((thickness, geometry.width, 4), dtype=np.uint8)
        divider[:, :] = divider_color
        alpha_composite(canvas, divider, 0, top)

        footer = template.footer
        font_px = max(1, round_half_up(parse_css_length(footer.size) * geometry.scale))
        font = load_font(footer.font, font_px)
        color = parse_css_color(footer.color) or (0, 0, 0, 255)

        layer = render_tracked_text(
            text.upper(),
            font,
            color,
            geometry.width,
            geometry.footer_height,
            tracking=FOOTER_LETTER_SPACING_EM * font_px,
        )
        alpha_composite(canvas, layer, 0, top)

    # -------------------------------------------------------------------------
    # Stickers
    # -------------------------------------------------------------------------

    @staticmethod
    def sticker_size(sticker: Sticker, geometry: StripGeometry) -> int:
        return max(1, round_half_up(geometry.sticker_base_size * sticker.scale))

    @staticmethod
    def sticker_position(sticker: Sticker, size: int, geometry: StripGeometry) -> tuple[int, int]:
        """Top-left of a sticker centered at (x%, y%), kept inside the canvas."""
        left = round_half_up(sticker.x / 100 * geometry.width - size / 2)
        top = round_half_up(sticker.y / 100 * geometry.height - size / 2)
        left = max(0, min(left, geometry.width - size))
        top = max(0, min(top, geometry.height - size))
        return left, top

    async def load_sticker(self, sticker: Sticker, geometry: StripGeometry) -> Optional[np.ndarray]:
        """
        Fetch and contain-fit one sticker.

        Returns:
            RGBA tile, or None when the sticker is unavailable
        """
        size = self.sticker_size(sticker, geometry)

        try:
            result = await asyncio.wait_for(self.asset_resolver.fetch(sticker), timeout=self.fetch_timeout)
        except asyncio.TimeoutError:
            logger.warning(f"[STRIP] Sticker {sticker.id} timed out after {self.fetch_timeout}s")
            return None
        except Exception as e:
            logger.warning(f"[STRIP] Sticker {sticker.id} fetch failed: {e}")
            return None

        if not result.success or not result.data:
            logger.warning(f"[STRIP] Sticker {sticker.id} unavailable: {result.error}")
            return None

        try:
            pixels = await asyncio.to_thread(decode_image, result.data)
            return await asyncio.to_thread(contain_fit, pixels, size, size)
        except (ImageDecodeError, cv2.error) as e:
            logger.warning(f"[STRIP] Sticker {sticker.id} unreadable: {e}")
            return None

    # -------------------------------------------------------------------------
    # Render
    # -------------------------------------------------------------------------

    async def render(self, request: CompositeRequest) -> CompositeResult:
        """
        Render a strip.

        Args:
            request: CompositeRequest

        Returns:
            CompositeResult with the encoded image

        Raises:
            FilterApplicationError: if the selected filter cannot be applied
            ValueError: if the output width is too small for the template
            OSError: if the canvas cannot be encoded

        Log lines carry the caller's request ID, or a new one when the
        render is started outside a request.
        """
        with request_context(get_request_id()):
            return await self._render(request)

    async def _render(self, request: CompositeRequest) -> CompositeResult:
        start_time = time.perf_counter()

        # Step 1: Template
        template = resolve_template(request.template_id)
        footer_text = request.footer_text if request.footer_text is not None else template.footer.text

        # Step 2: Geometry
        geometry = StripGeometry.compute(template, request.width, footer_text)
        logger.info(
            f"[STRIP] Rendering '{template.id.value}' at {geometry.width}x{geometry.height} "
            f"({len(request.photos)} photos, {len(request.stickers)} stickers, "
            f"filter={request.filter.preset_id if request.filter else 'none'})"
        )

        # Step 3: Background
        canvas = self.create_background(template, geometry)

        # Steps 4 + 6 (loading): photos in threads, stickers concurrently
        slots = [
            (i, request.photos[i])
            for i in range(min(geometry.count, len(request.photos)))
            if request.photos[i] is not None
        ]
        if len(request.photos) > geometry.count:
            logger.debug(f"[STRIP] Ignoring {len(request.photos) - geometry.count} photos beyond slot count")

        photo_jobs = [
            asyncio.to_thread(self.prepare_photo, i, payload, geometry, request.filter)
            for i, payload in slots
        ]
        sticker_jobs = [self.load_sticker(sticker, geometry) for sticker in request.stickers]
        loaded = await asyncio.gather(*photo_jobs, *sticker_jobs)
        photo_tiles = loaded[:len(photo_jobs)]
        sticker_tiles = loaded[len(photo_jobs):]

        result = CompositeResult(
            data=b"",
            width=geometry.width,
            height=geometry.height,
            content_type=content_type_for(request.output_format),
            template_id=template.id.value,
        )

        # Step 4: Photos
        for (index, _), tile in zip(slots, photo_tiles):
            if tile is None:
                result.skipped_photos.append(index)
                continue
            x, y = geometry.cell_origin(index)
            alpha_composite(canvas, tile, x, y)
            result.placed_photos.append(index)

        if not result.placed_photos:
            logger.warning("[STRIP] No valid photos, rendering background only")

        # Step 5: Footer
        self.draw_footer(canvas, template, geometry, footer_text)

        # Step 6: Stickers
        for sticker, tile in zip(request.stickers, sticker_tiles):
            if tile is None:
                result.skipped_stickers.append(sticker.id)
                continue
            left, top = self.sticker_position(sticker, tile.shape[1], geometry)
            alpha_composite(canvas, tile, left, top)
            result.placed_stickers.append(sticker.id)

        # Step 7: Encode
        result.data = await asyncio.to_thread(
            encode_image, canvas, request.output_format, request.quality
        )

        duration_ms = (time.perf_counter() - start_time) * 1000
        logger.info(
            f"[STRIP] Rendered {len(result.data)} bytes in {duration_ms:.0f}ms "
            f"(photos {len(result.placed_photos)}/{len(slots)}, "
            f"stickers {len(result.placed_stickers)}/{len(request.stickers)})"
        )
        return result


async def render_photo_strip(
    request: CompositeRequest,
    asset_resolver: Optional[StickerAssetResolver] = None,
) -> CompositeResult:
    """
    Convenience entry point: render a strip with a fresh compositor.

    Usage:
        result = await render_photo_strip(CompositeRequest(photos=[...], template_id="classic-2x2"))
    """
    return await PhotoStripCompositor(asset_resolver).render(request)
