"""
Filter Projection - Translate (parameters, intensity) into renderer inputs.

There are two rendering surfaces with different primitive operations:

1. Preview: a browser CSS filter graph (grayscale, sepia, saturate,
   brightness, contrast). project_to_preview() builds an ordered operation
   list that serializes to a CSS ``filter`` value.
2. Batch: the raster pipeline in generators.filters.processor, which only
   knows a saturation/brightness modulate and a linear remap.
   project_to_batch() builds those modifiers.

The two projections share only scale_parameter().
generators.filters.calibration measures how far apart their rendered
results are.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from generators.filters.presets import FilterParameters


def scale_parameter(value: float, intensity: float, baseline: float = 0) -> float:
    """
    Interpolate a parameter between its neutral baseline and its preset value.

    Args:
        value: Preset value
        intensity: Strength 0-100. Callers clamp; out-of-range input
            extrapolates.
        baseline: Neutral value (0 for grayscale/sepia, 100 otherwise)

    Returns:
        baseline at intensity 0, value at intensity 100
    """
    return baseline + (value - baseline) * (intensity / 100)


# =============================================================================
# PREVIEW (CSS FILTER GRAPH)
# =============================================================================


class PreviewOperation(str, Enum):
    """CSS filter functions, declared in the order they are emitted."""
    GRAYSCALE = "grayscale"
    SEPIA = "sepia"
    SATURATE = "saturate"
    BRIGHTNESS = "brightness"
    CONTRAST = "contrast"


@dataclass(frozen=True)
class PreviewFilterDescriptor:
    """
    Ordered CSS filter operations, values in percent.

    An empty descriptor is the no-op sentinel and serializes to ``none``.
    """

    operations: tuple[tuple[PreviewOperation, float], ...] = ()

    @property
    def is_noop(self) -> bool:
        return not self.operations

    def to_css(self) -> str:
        """Render as a CSS filter value, e.g. 'grayscale(50%) contrast(107.5%)'."""
        if self.is_noop:
            return "none"
        return " ".join(f"{op.value}({value:g}%)" for op, value in self.operations)

    def to_dict(self) -> dict:
        return {
            "css": self.to_css(),
            "operations": [{"name": op.value, "value": value} for op, value in self.operations],
        }


NO_PREVIEW_FILTER = PreviewFilterDescriptor()


def project_to_preview(parameters: FilterParameters, intensity: float) -> PreviewFilterDescriptor:
    """
    Build the preview filter graph for a parameter set at an intensity.

    Grayscale and sepia are emitted when positive, saturate when it is
    neither 100 nor 0, brightness and contrast whenever they differ from 100.

    Args:
        parameters: Preset parameters
        intensity: Strength 0-100

    Returns:
        PreviewFilterDescriptor (NO_PREVIEW_FILTER when nothing applies)
    """
    if intensity <= 0:
        return NO_PREVIEW_FILTER

    grayscale = scale_parameter(parameters.grayscale, intensity)
    sepia = scale_parameter(parameters.sepia, intensity)
    saturate = scale_parameter(parameters.saturation, intensity, 100)
    brightness = scale_parameter(parameters.brightness, intensity, 100)
    contrast = scale_parameter(parameters.contrast, intensity, 100)

    operations: list[tuple[PreviewOperation, float]] = []
    if grayscale > 0:
        operations.append((PreviewOperation.GRAYSCALE, grayscale))
    if sepia > 0:
        operations.append((PreviewOperation.SEPIA, sepia))
    if saturate != 100 and saturate > 0:
        operations.append((PreviewOperation.SATURATE, saturate))
    if brightness != 100:
        operations.append((PreviewOperation.BRIGHTNESS, brightness))
    if contrast != 100:
        operations.append((PreviewOperation.CONTRAST, contrast))

    if not operations:
        return NO_PREVIEW_FILTER
    return PreviewFilterDescriptor(operations=tuple(operations))


# =============================================================================
# BATCH (MODULATE + LINEAR)
# =============================================================================


@dataclass(frozen=True)
class BatchFilterModifiers:
    """
    Inputs for the raster filter pipeline.

    saturation/brightness are percentages for the modulate step. The
    contrast pair maps [contrast_low, contrast_high] onto [0, 255]; both are
    None when contrast is neutral.
    """

    saturation: float = 100
    brightness: float = 100
    contrast_low: Optional[float] = None
    contrast_high: Optional[float] = None

    @property
    def has_modulate(self) -> bool:
        return self.saturation != 100 or self.brightness != 100

    @property
    def has_contrast(self) -> bool:
        return self.contrast_low is not None and self.contrast_high is not None

    @property
    def contrast_slope(self) -> float:
        if not self.has_contrast:
            return 1.0
        return (self.contrast_high - self.contrast_low) / 255

    @property
    def contrast_intercept(self) -> float:
        if not self.has_contrast:
            return 0.0
        return self.contrast_low

    @property
    def is_identity(self) -> bool:
        return not self.has_modulate and not self.has_contrast

    def to_dict(self) -> dict:
        return {
            "saturation": self.saturation,
            "brightness": self.brightness,
            "contrastLow": self.contrast_low,
            "contrastHigh": self.contrast_high,
        }


IDENTITY_MODIFIERS = BatchFilterModifiers()


def project_to_batch(parameters: FilterParameters, intensity: float) -> BatchFilterModifiers:
    """
    Build raster pipeline modifiers for a parameter set at an intensity.

    The batch pipeline has no sepia primitive: grayscale forces saturation
    to 0, otherwise sepia desaturates by sepia/200.

    Args:
        parameters: Preset parameters
        intensity: Strength 0-100

    Returns:
        BatchFilterModifiers (IDENTITY_MODIFIERS at intensity <= 0)
    """
    if intensity <= 0:
        return IDENTITY_MODIFIERS

    grayscale = scale_parameter(parameters.grayscale, intensity)
    sepia = scale_parameter(parameters.sepia, intensity)
    saturation = scale_parameter(parameters.saturation, intensity, 100)
    brightness = scale_parameter(parameters.brightness, intensity, 100)
    contrast = scale_parameter(parameters.contrast, intensity, 100)

    if grayscale > 0:
        saturation = 0
    elif sepia > 0:
        saturation = saturation * (1 - sepia / 200)

    contrast_low: Optional[float] = None
    contrast_high: Optional[float] = None
    if contrast != 100:
        slope = contrast / 100
        if contrast > 100:
            contrast_low = -255 * (slope - 1)
            contrast_high = 255 + 255 * (slope - 1)
        else:
            contrast_low = 255 * (1 - slope)
            contrast_high = 255 - 255 * (1 - slope)

    return BatchFilterModifiers(
        saturation=saturation,
        brightness=brightness,
        contrast_low=contrast_low,
        contrast_high=contrast_high,
    )
