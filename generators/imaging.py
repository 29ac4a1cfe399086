"""
Imaging helpers shared by the strip compositor and the animation assembler.

All arrays handled here are RGBA uint8 with shape (height, width, 4).
Pillow is used for decoding/encoding (format sniffing, EXIF orientation),
OpenCV for resampling and mask rasterization.
"""

import base64
import binascii
import io
import logging
import math
import re
from typing import Optional, Union

import cv2
import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

logger = logging.getLogger(__name__)

ImagePayload = Union[bytes, bytearray, str]

# Supersampling factor for anti-aliased mask edges
MASK_SUPERSAMPLE = 4

CONTENT_TYPES = {
    "png": "image/png",
    "jpeg": "image/jpeg",
    "webp": "image/webp",
    "gif": "image/gif",
}

_HEX_COLOR_RE = re.compile(r"^#([0-9a-fA-F]{3}|[0-9a-fA-F]{4}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$")
_RGB_FUNC_RE = re.compile(r"^rgba?\(\s*([^)]*)\)$")


class ImageDecodeError(ValueError):
    """Raised when a payload cannot be decoded into an image."""


# =============================================================================
# DECODE / ENCODE
# =============================================================================


def payload_to_bytes(payload: ImagePayload) -> bytes:
    """
    Turn a photo payload into raw image bytes.

    Accepts raw bytes, a data URL (``data:<mime>;base64,<data>``) or a bare
    base64 string. The MIME label of a data URL is ignored.
    """
    if isinstance(payload, (bytes, bytearray)):
        raw = bytes(payload)
        if not raw.startswith(b"data:"):
            return raw
        payload = raw.decode("ascii", errors="ignore")
    elif not isinstance(payload, str):
        raise ImageDecodeError(f"Unsupported payload type: {type(payload).__name__}")

    text = payload.strip()
    if text.startswith("data:"):
        _, sep, text = text.partition(",")
        if not sep:
            raise ImageDecodeError("Malformed data URL: missing ',' separator")

    try:
        return base64.b64decode(text, validate=False)
    except (binascii.Error, ValueError) as e:
        raise ImageDecodeError(f"Invalid base64 payload: {e}") from e


def decode_image(payload: ImagePayload) -> np.ndarray:
    """
    Decode a photo payload by content into an RGBA array.

    EXIF orientation is applied so camera photos come out upright.

    Raises:
        ImageDecodeError: if the payload is empty, not a readable image or
            declares more pixels than Pillow's decompression bomb limit
    """
    data = payload_to_bytes(payload)
    if not data:
        raise ImageDecodeError("Empty image payload")

    try:
        with Image.open(io.BytesIO(data)) as img:
            img = ImageOps.exif_transpose(img)
            rgba = img.convert("RGBA")
            return np.array(rgba, dtype=np.uint8)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError, ValueError) as e:
        raise ImageDecodeError(f"Unreadable image ({len(data)} bytes): {e}") from e


def encode_image(image: np.ndarray, output_format: str = "png", quality: int = 80) -> bytes:
    """
    Encode an RGBA array.

    PNG is written at compression level 9 without metadata so identical
    pixels give identical bytes. JPEG has no alpha and is flattened onto white.

    Args:
        image: RGBA uint8 array
        output_format: "png", "jpeg" or "webp"
        quality: 1-100, used by JPEG/WebP

    Returns:
        Encoded bytes
    """
    output_format = output_format.lower()
    pil_image = Image.fromarray(np.ascontiguousarray(image, dtype=np.uint8))
    buffer = io.BytesIO()

    if output_format == "png":
        pil_image.save(buffer, format="PNG", compress_level=9)
    elif output_format == "jpeg":
        background = Image.new("RGB", pil_image.size, (255, 255, 255))
        background.paste(pil_image, mask=pil_image.getchannel("A"))
        background.save(buffer, format="JPEG", quality=quality)
    elif output_format == "webp":
        pil_image.save(buffer, format="WEBP", quality=quality)
    else:
        raise ValueError(f"Unsupported output format: {output_format}")

    return buffer.getvalue()


def content_type_for(output_format: str) -> str:
    return CONTENT_TYPES.get(output_format.lower(), "application/octet-stream")


# =============================================================================
# FITTING
# =============================================================================


def _interpolation(scale: float) -> int:
    return cv2.INTER_AREA if scale < 1 else cv2.INTER_CUBIC


def cover_fit(image: np.ndarray, width: int, height: int) -> np.ndarray:
    """
    Resize to fill (width, height) exactly, cropping the centered overflow.

    Args:
        image: RGBA array
        width: Target width
        height: Target height

    Returns:
        RGBA array of shape (height, width, 4)
    """
    src_h, src_w = image.shape[:2]
    scale = max(width / src_w, height / src_h)

    new_w = max(width, int(math.ceil(src_w * scale - 1e-6)))
    new_h = max(height, int(math.ceil(src_h * scale - 1e-6)))

    if (new_w, new_h) != (src_w, src_h):
        resized = cv2.resize(image, (new_w, new_h), interpolation=_interpolation(scale))
    else:
        resized = image

    x0 = (new_w - width) // 2
    y0 = (new_h - height) // 2
    return np.ascontiguousarray(resized[y0:y0 + height, x0:x0 + width])


def contain_fit(image: np.ndarray, width: int, height: int) -> np.ndarray:
    """
    Resize to fit entirely inside (width, height), padding with transparency.

    Returns:
        RGBA array of shape (height, width, 4)
    """
    src_h, src_w = image.shape[:2]
    scale = min(width / src_w, height / src_h)

    new_w = min(width, max(1, int(round(src_w * scale))))
    new_h = min(height, max(1, int(round(src_h * scale))))

    if (new_w, new_h) != (src_w, src_h):
        resized = cv2.resize(image, (new_w, new_h), interpolation=_interpolation(scale))
    else:
        resized = image

    canvas = np.zeros((height, width, 4), dtype=np.uint8)
    x0 = (width - new_w) // 2
    y0 = (height - new_h) // 2
    canvas[y0:y0 + new_h, x0:x0 + new_w] = resized
    return canvas


# =============================================================================
# MASKING & BLENDING
# =============================================================================


def rounded_rect_mask(width: int, height: int, radius: float) -> np.ndarray:
    """
    Build an anti-aliased rounded-rectangle alpha mask.

    The shape is rasterized at MASK_SUPERSAMPLE x resolution and area-averaged
    down, which gives smooth corners without a blur pass.

    Args:
        width: Mask width
        height: Mask height
        radius: Corner radius in pixels (clamped to half the short side)

    Returns:
        uint8 mask (height, width), 255 = opaque
    """
    radius = max(0.0, min(float(radius), width / 2, height / 2))
    if radius <= 0:
        return np.full((height, width), 255, dtype=np.uint8)

    s = MASK_SUPERSAMPLE
    big_w, big_h = width * s, height * s
    r = int(round(radius * s))

    big = np.zeros((big_h, big_w), dtype=np.uint8)
    cv2.rectangle(big, (r, 0), (big_w - 1 - r, big_h - 1), 255, thickness=-1)
    cv2.rectangle(big, (0, r), (big_w - 1, big_h - 1 - r), 255, thickness=-1)
    for cx, cy in ((r, r), (big_w - 1 - r, r), (r, big_h - 1 - r), (big_w - 1 - r, big_h - 1 - r)):
        cv2.circle(big, (cx, cy), r, 255, thickness=-1)

    return cv2.resize(big, (width, height), interpolation=cv2.INTER_AREA)


def apply_alpha_mask(image: np.ndarray, mask: np.ndarray) -> np.ndarray:
    """Multiply the image's alpha channel by a uint8 mask."""
    result = image.copy()
    alpha = result[:, :, 3].astype(np.float32) * (mask.astype(np.float32) / 255.0)
    result[:, :, 3] = np.rint(alpha).astype(np.uint8)
    return result


def alpha_composite(canvas: np.ndarray, overlay: np.ndarray, left: int, top: int) -> None:
    """
    Blend overlay onto canvas in place ("over" operator), clipped to canvas bounds.

    Args:
        canvas: RGBA uint8 destination, modified in place
        overlay: RGBA uint8 source
        left: Overlay x offset on the canvas
        top: Overlay y offset on the canvas
    """
    canvas_h, canvas_w = canvas.shape[:2]
    over_h, over_w = overlay.shape[:2]

    x0, y0 = max(left, 0), max(top, 0)
    x1, y1 = min(left + over_w, canvas_w), min(top + over_h, canvas_h)
    if x0 >= x1 or y0 >= y1:
        return

    src = overlay[y0 - top:y1 - top, x0 - left:x1 - left].astype(np.float32)
    dst = canvas[y0:y1, x0:x1].astype(np.float32)

    src_a = src[:, :, 3:4] / 255.0
    dst_a = dst[:, :, 3:4] / 255.0
    out_a = src_a + dst_a * (1.0 - src_a)

    premult = src[:, :, :3] * src_a + dst[:, :, :3] * dst_a * (1.0 - src_a)
    out_rgb = np.divide(premult, out_a, out=np.zeros_like(premult), where=out_a > 0)

    blended = np.concatenate([out_rgb, out_a * 255.0], axis=2)
    canvas[y0:y1, x0:x1] = np.clip(np.rint(blended), 0, 255).astype(np.uint8)


# =============================================================================
# CSS COLORS
# =============================================================================


def parse_hex_color(value: Optional[str]) -> Optional[tuple[int, int, int, int]]:
    """
    Parse #rgb, #rgba, #rrggbb or #rrggbbaa.

    Returns:
        (r, g, b, a) or None when value is not a plain hex color
    """
    if not value:
        return None
    match = _HEX_COLOR_RE.match(value.strip())
    if not match:
        return None

    digits = match.group(1)
    if len(digits) in (3, 4):
        digits = "".join(ch * 2 for ch in digits)
    if len(digits) == 6:
        digits += "ff"
    return tuple(int(digits[i:i + 2], 16) for i in (0, 2, 4, 6))


def parse_css_color(value: Optional[str]) -> Optional[tuple[int, int, int, int]]:
    """
    Parse a hex color or an rgb()/rgba() function.

    Returns:
        (r, g, b, a) or None for anything else (gradients, keywords)
    """
    hex_color = parse_hex_color(value)
    if hex_color is not None or not value:
        return hex_color

    match = _RGB_FUNC_RE.match(value.strip())
    if not match:
        return None

    parts = [p.strip() for p in match.group(1).split(",")]
    if len(parts) not in (3, 4):
        return None
    try:
        r, g, b = (max(0, min(255, int(round(float(p))))) for p in parts[:3])
        alpha = float(parts[3]) if len(parts) == 4 else 1.0
    except ValueError:
        return None
    return (r, g, b, max(0, min(255, int(round(alpha * 255)))))
