"""
Animated Sequence Assembler - Builds looping animations from photos.

Each source photo becomes one frame: decoded, filtered, cover-fit to the
output size on its own (no shared crop) and flattened onto an opaque
canvas. Frames are handed to a FrameEncoder in input order.
"""

import io
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional, Sequence

import numpy as np
from PIL import GifImagePlugin, Image

from app_settings import settings
from generators.filters.processor import filter_pixels
from generators.imaging import ImageDecodeError, ImagePayload, alpha_composite, cover_fit, decode_image
from generators.strip import FilterSelection
from utils.logging import get_request_id, request_context

logger = logging.getLogger(__name__)

# Canvas color behind transparent source pixels
FRAME_BACKGROUND = (255, 255, 255, 255)


class AnimationError(Exception):
    """Raised when an animation cannot be assembled."""


# =============================================================================
# ENCODERS
# =============================================================================


class FrameEncoder(ABC):
    """Turns an ordered list of equally sized RGBA frames into an animation."""

    @property
    @abstractmethod
    def format(self) -> str:
        """Short format name (e.g., 'gif')."""
        pass

    @property
    @abstractmethod
    def content_type(self) -> str:
        pass

    @abstractmethod
    def encode(self, frames: Sequence[np.ndarray], delay_ms: int, loop: int = 0) -> bytes:
        """
        Encode frames.

        Args:
            frames: RGBA uint8 arrays, all the same shape, in display order
            delay_ms: Display time per frame
            loop: Repeat count, 0 = forever

        Returns:
            Encoded animation bytes
        """
        pass


class GifFrameEncoder(FrameEncoder):
    """
    Animated GIF through Pillow.

    Every input frame becomes one full-canvas image block with its own
    local palette and delay, repeated frames included.
    """

    @property
    def format(self) -> str:
        return "gif"

    @property
    def content_type(self) -> str:
        return "image/gif"

    def encode(self, frames: Sequence[np.ndarray], delay_ms: int, loop: int = 0) -> bytes:
        images = [
            Image.fromarray(frame).convert("RGB").convert("P", palette=Image.Palette.ADAPTIVE)
            for frame in frames
        ]

        header, _ = GifImagePlugin.getheader(images[0].copy(), info={"loop": loop, "duration": delay_ms})
        chunks = list(header)
        for image in images:
            chunks.extend(GifImagePlugin.getdata(image, duration=delay_ms, include_color_table=True))
        chunks.append(b";")

        return b"".join(chunks)


class WebPFrameEncoder(FrameEncoder):
    """Animated lossless WebP through Pillow."""

    @property
    def format(self) -> str:
        return "webp"

    @property
    def content_type(self) -> str:
        return "image/webp"

    def encode(self, frames: Sequence[np.ndarray], delay_ms: int, loop: int = 0) -> bytes:
        images = [Image.fromarray(frame) for frame in frames]
        buffer = io.BytesIO()
        # kmax=1 makes every frame a key frame, so repeated frames stay separate
        images[0].save(
            buffer,
            format="WEBP",
            save_all=True,
            append_images=images[1:],
            duration=delay_ms,
            loop=loop,
            lossless=True,
            kmin=0,
            kmax=1,
        )
        return buffer.getvalue()


ENCODERS = {
    "gif": GifFrameEncoder,
    "webp": WebPFrameEncoder,
}


def get_frame_encoder(output_format: str = "gif") -> FrameEncoder:
    try:
        return ENCODERS[output_format.lower()]()
    except KeyError:
        raise ValueError(f"Unsupported animation format: {output_format}") from None


# =============================================================================
# ASSEMBLER
# =============================================================================


@dataclass
class AnimationResult:
    data: bytes
    width: int
    height: int
    frame_count: int
    delay_ms: int
    content_type: str
    skipped_frames: list[int] = field(default_factory=list)


class AnimatedSequenceAssembler:
    """
    Assembles photos into an animation.

    Usage:
        assembler = AnimatedSequenceAssembler()
        result = assembler.assemble([photo1, photo2, photo3], delay_ms=400)
    """

    def __init__(self, encoder: Optional[FrameEncoder] = None):
        """
        Initialize assembler.

        Args:
            encoder: Frame sink (GIF if None)
        """
        self.encoder = encoder or GifFrameEncoder()

    def prepare_frame(
        self,
        payload: ImagePayload,
        width: int,
        height: int,
        selection: Optional[FilterSelection],
    ) -> np.ndarray:
        """Decode, filter and cover-fit one frame onto an opaque canvas."""
        pixels = decode_image(payload)
        if selection is not None:
            pixels = filter_pixels(pixels, selection.parameters, selection.intensity)

        frame = np.empty((height, width, 4), dtype=np.uint8)
        frame[:, :] = FRAME_BACKGROUND
        alpha_composite(frame, cover_fit(pixels, width, height), 0, 0)
        return frame

    def assemble(
        self,
        frames: Sequence[Optional[ImagePayload]],
        width: Optional[int] = None,
        height: Optional[int] = None,
        delay_ms: Optional[int] = None,
        filter_selection: Optional[FilterSelection] = None,
        loop: int = 0,
    ) -> AnimationResult:
        """
        Build an animation from source photos.

        Args:
            frames: Photo payloads in display order (None entries are skipped)
            width: Output width (settings.animation_width if None)
            height: Output height (settings.animation_height if None)
            delay_ms: Per-frame delay (settings.animation_frame_delay_ms if None)
            filter_selection: Optional filter applied to every frame
            loop: Repeat count, 0 = forever

        Returns:
            AnimationResult

        Raises:
            AnimationError: if no frame could be decoded
            OSError: if the encoder cannot write the frames
        """
        with request_context(get_request_id()):
            return self._assemble(frames, width, height, delay_ms, filter_selection, loop)

    def _assemble(
        self,
        frames: Sequence[Optional[ImagePayload]],
        width: Optional[int],
        height: Optional[int],
        delay_ms: Optional[int],
        filter_selection: Optional[FilterSelection],
        loop: int,
    ) -> AnimationResult:
        width = width or settings.animation_width
        height = height or settings.animation_height
        delay_ms = delay_ms or settings.animation_frame_delay_ms
        if width <= 0 or height <= 0:
            raise ValueError(f"Animation size must be positive, got {width}x{height}")

        prepared: list[np.ndarray] = []
        skipped: list[int] = []

        for index, payload in enumerate(frames):
            if payload is None:
                skipped.append(index)
                continue
            try:
                prepared.append(self.prepare_frame(payload, width, height, filter_selection))
            except ImageDecodeError as e:
                logger.warning(f"[ANIMATION] Skipping frame {index}: {e}")
                skipped.append(index)

        if not prepared:
            raise AnimationError("No valid frames for animation")

        data = self.encoder.encode(prepared, delay_ms, loop)
        logger.info(
            f"[ANIMATION] Encoded {len(prepared)} frames as {self.encoder.format} "
            f"{width}x{height} @ {delay_ms}ms ({len(data)} bytes)"
        )

        return AnimationResult(
            data=data,
            width=width,
            height=height,
            frame_count=len(prepared),
            delay_ms=delay_ms,
            content_type=self.encoder.content_type,
            skipped_frames=skipped,
        )
