"""
Batch Filter Processor - Applies projected filter modifiers to photos.

Pipeline (mirrors a modulate + linear raster toolchain):
1. Modulate: saturation around Rec.709 luma, then brightness multiply
2. Linear: output = slope * input + intercept (contrast remap)

Filters are applied to each source photo before compositing. Only RGB is
touched; alpha passes through unchanged.
"""

import logging
from typing import Optional

import numpy as np

from generators.filters.presets import FilterParameters
from generators.filters.projection import BatchFilterModifiers, project_to_batch
from generators.imaging import ImagePayload, decode_image, encode_image, payload_to_bytes

logger = logging.getLogger(__name__)

# Luma weights used by the saturate color matrix
LUMA_WEIGHTS = np.array([0.213, 0.715, 0.072], dtype=np.float32)

FILTER_ERROR_MESSAGE = (
    "Filter could not be applied. Try adjusting intensity or choosing a different filter."
)


class FilterApplicationError(Exception):
    """
    Raised when a filter cannot be applied to an image.

    The message is safe to show to end users. Technical details are logged
    where the failure happens and are not attached.
    """

    def __init__(self, message: str = FILTER_ERROR_MESSAGE):
        self.message = message
        super().__init__(message)


class BatchFilter:
    """
    Applies BatchFilterModifiers to RGBA arrays.

    Usage:
        batch = BatchFilter(project_to_batch(preset.parameters, 75))
        filtered = batch.apply(rgba)
    """

    def __init__(self, modifiers: BatchFilterModifiers):
        """
        Initialize batch filter.

        Args:
            modifiers: Output of project_to_batch()
        """
        self.modifiers = modifiers
        self.saturation = modifiers.saturation / 100.0
        self.brightness = modifiers.brightness / 100.0
        self.slope = modifiers.contrast_slope
        self.intercept = modifiers.contrast_intercept

    def apply_modulate(self, rgb: np.ndarray) -> np.ndarray:
        """
        Apply combined saturation + brightness modulation.

        Args:
            rgb: Float32 RGB array (0-255)

        Returns:
            Modulated array, clipped to 0-255
        """
        if not self.modifiers.has_modulate:
            return rgb

        luma = rgb @ LUMA_WEIGHTS
        result = luma[..., None] + self.saturation * (rgb - luma[..., None])
        result = np.clip(result, 0, 255)
        result = np.clip(result * self.brightness, 0, 255)

        logger.debug(f"[FILTER] Modulate saturation={self.saturation:.3f}, brightness={self.brightness:.3f}")
        return result

    def apply_linear(self, rgb: np.ndarray) -> np.ndarray:
        """
        Apply the linear contrast remap.

        Args:
            rgb: Float32 RGB array (0-255)

        Returns:
            Remapped array, clipped to 0-255
        """
        if not self.modifiers.has_contrast:
            return rgb

        result = np.clip(rgb * self.slope + self.intercept, 0, 255)

        logger.debug(f"[FILTER] Linear slope={self.slope:.3f}, intercept={self.intercept:.2f}")
        return result

    def apply(self, image: np.ndarray) -> np.ndarray:
        """
        Run modulate then linear on an RGBA uint8 array.

        Returns:
            New RGBA uint8 array (the input itself when modifiers are identity)
        """
        if self.modifiers.is_identity:
            return image

        rgb = image[:, :, :3].astype(np.float32)
        rgb = self.apply_modulate(rgb)
        rgb = self.apply_linear(rgb)

        result = image.copy()
        result[:, :, :3] = np.clip(np.rint(rgb), 0, 255).astype(np.uint8)
        return result


def filter_pixels(
    image: np.ndarray,
    parameters: Optional[FilterParameters],
    intensity: float,
) -> np.ndarray:
    """
    Filter an already-decoded RGBA array.

    Returns the input array unchanged when intensity <= 0 or no parameters.
    """
    if parameters is None or intensity <= 0:
        return image
    return BatchFilter(project_to_batch(parameters, intensity)).apply(image)


def apply_filter_to_image(
    image_data: ImagePayload,
    parameters: Optional[FilterParameters],
    intensity: float,
) -> ImagePayload:
    """
    Apply a filter to one encoded image.

    Args:
        image_data: Encoded image (bytes or data URL)
        parameters: Preset parameters, or None for no filter
        intensity: Strength 0-100

    Returns:
        The input object untouched when intensity <= 0 or parameters is None,
        otherwise PNG bytes of the filtered image

    Raises:
        FilterApplicationError: on any processing failure
    """
    if parameters is None or intensity <= 0:
        return image_data

    try:
        pixels = decode_image(image_data)
        filtered = filter_pixels(pixels, parameters, intensity)
        return encode_image(filtered, "png")
    except Exception as e:
        try:
            buffer_size = len(payload_to_bytes(image_data))
        except ValueError:
            buffer_size = 0
        logger.error(
            f"[FILTER] Failed to apply filter: {e}",
            extra={
                "error": str(e),
                "parameters": parameters.to_dict(),
                "intensity": intensity,
                "buffer_size": buffer_size,
            },
            exc_info=True,
        )
        raise FilterApplicationError() from None
