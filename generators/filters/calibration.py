"""
Color Calibration - Measures preview vs batch filter agreement.

A preset is rendered twice on a synthetic reference image: once through the
preview filter graph (generators.filters.preview) and once through the batch
pipeline (generators.filters.processor). Matching pixels are compared with
CIE76 Delta E; a difference below DELTA_E_THRESHOLD is not visible.

Usage:
    from generators.filters.calibration import run_calibration

    report = run_calibration()
    for sample in report.failures:
        print(sample.preset_id, sample.intensity, sample.band, sample.delta_e)
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence

import numpy as np

from generators.filters.presets import FILTER_PRESETS, FilterPreset
from generators.filters.preview import render_preview
from generators.filters.processor import filter_pixels
from generators.filters.projection import project_to_preview

logger = logging.getLogger(__name__)

RgbColor = tuple[int, int, int]
LabColor = tuple[float, float, float]

# CIE76 just-noticeable difference
DELTA_E_THRESHOLD = 2.3

CALIBRATION_INTENSITIES: tuple[int, ...] = (0, 25, 50, 75, 100)

REFERENCE_SIZE = 100

# sRGB (D65) -> XYZ
_SRGB_TO_XYZ = np.array([
    [0.4124564, 0.3575761, 0.1804375],
    [0.2126729, 0.7151522, 0.0721750],
    [0.0193339, 0.1191920, 0.9503041],
])

# D65 reference white
_WHITE_POINT = (0.95047, 1.0, 1.08883)


@dataclass(frozen=True)
class ReferenceBand:
    """One horizontal band of the reference image and where it is sampled."""
    name: str
    color: RgbColor
    sample: tuple[int, int]  # (x, y)


REFERENCE_BANDS: tuple[ReferenceBand, ...] = (
    ReferenceBand(name="red", color=(255, 0, 0), sample=(50, 12)),
    ReferenceBand(name="white", color=(255, 255, 255), sample=(50, 37)),
    ReferenceBand(name="gray", color=(128, 128, 128), sample=(50, 62)),
    ReferenceBand(name="black", color=(0, 0, 0), sample=(50, 87)),
)


# =============================================================================
# COLOR DIFFERENCE
# =============================================================================


def _srgb_to_linear(c: float) -> float:
    if c <= 0.04045:
        return c / 12.92
    return ((c + 0.055) / 1.055) ** 2.4


def _lab_f(t: float) -> float:
    if t > 0.008856:
        return t ** (1 / 3)
    return 7.787 * t + 16 / 116


def rgb_to_lab(rgb: Sequence[float]) -> LabColor:
    """
    Convert an sRGB color (0-255 channels) to CIE LAB (D65).

    Args:
        rgb: (r, g, b)

    Returns:
        (L, a, b)
    """
    linear = np.array([_srgb_to_linear(float(c) / 255.0) for c in rgb[:3]])
    x, y, z = _SRGB_TO_XYZ @ linear

    fx = _lab_f(x / _WHITE_POINT[0])
    fy = _lab_f(y / _WHITE_POINT[1])
    fz = _lab_f(z / _WHITE_POINT[2])

    return (116 * fy - 16, 500 * (fx - fy), 200 * (fy - fz))


def delta_e(color1: Sequence[float], color2: Sequence[float]) -> float:
    """
    CIE76 color difference between two sRGB colors.

    Below ~1 is imperceptible, 2-10 is visible at a glance.
    """
    l1, a1, b1 = rgb_to_lab(color1)
    l2, a2, b2 = rgb_to_lab(color2)
    return math.sqrt((l1 - l2) ** 2 + (a1 - a2) ** 2 + (b1 - b2) ** 2)


# =============================================================================
# REFERENCE IMAGE
# =============================================================================


def calibration_image() -> np.ndarray:
    """
    Build the 100x100 reference image: red, white, gray and black bands,
    25 rows each, top to bottom.

    Returns:
        Opaque RGBA uint8 array
    """
    image = np.zeros((REFERENCE_SIZE, REFERENCE_SIZE, 4), dtype=np.uint8)
    image[:, :, 3] = 255
    band_height = REFERENCE_SIZE // len(REFERENCE_BANDS)
    for i, band in enumerate(REFERENCE_BANDS):
        image[i * band_height:(i + 1) * band_height, :, :3] = band.color
    return image


def sample_color(image: np.ndarray, x: int, y: int) -> RgbColor:
    r, g, b = image[y, x, :3]
    return (int(r), int(g), int(b))


# =============================================================================
# CALIBRATION RUN
# =============================================================================


@dataclass(frozen=True)
class CalibrationSample:
    """One preset x intensity x band comparison."""
    preset_id: str
    intensity: float
    band: str
    preview_rgb: RgbColor
    batch_rgb: RgbColor
    delta_e: float
    threshold: float

    @property
    def passed(self) -> bool:
        return self.delta_e < self.threshold


@dataclass
class CalibrationReport:
    """Result of a calibration run."""
    threshold: float
    samples: list[CalibrationSample] = field(default_factory=list)

    @property
    def failures(self) -> list[CalibrationSample]:
        return [s for s in self.samples if not s.passed]

    @property
    def passed(self) -> bool:
        return not self.failures

    @property
    def max_delta_e(self) -> float:
        return max((s.delta_e for s in self.samples), default=0.0)

    def for_preset(self, preset_id: str) -> list[CalibrationSample]:
        return [s for s in self.samples if s.preset_id == preset_id]

    def to_dict(self) -> dict:
        return {
            "threshold": self.threshold,
            "passed": self.passed,
            "max_delta_e": round(self.max_delta_e, 3),
            "failures": [
                {
                    "preset": s.preset_id,
                    "intensity": s.intensity,
                    "band": s.band,
                    "preview": list(s.preview_rgb),
                    "batch": list(s.batch_rgb),
                    "delta_e": round(s.delta_e, 3),
                }
                for s in self.failures
            ],
        }


def run_calibration(
    presets: Optional[Iterable[FilterPreset]] = None,
    intensities: Iterable[float] = CALIBRATION_INTENSITIES,
    threshold: float = DELTA_E_THRESHOLD,
) -> CalibrationReport:
    """
    Render the reference image through both filter paths and compare bands.

    Args:
        presets: Presets to check (defaults to the full catalog)
        intensities: Intensities to check
        threshold: Delta E below which a sample passes

    Returns:
        CalibrationReport with one sample per preset, intensity and band
    """
    presets = FILTER_PRESETS if presets is None else tuple(presets)
    intensities = tuple(intensities)
    reference = calibration_image()
    report = CalibrationReport(threshold=threshold)

    for preset in presets:
        for intensity in intensities:
            preview = render_preview(reference, project_to_preview(preset.parameters, intensity))
            batch = filter_pixels(reference, preset.parameters, intensity)

            for band in REFERENCE_BANDS:
                x, y = band.sample
                preview_rgb = sample_color(preview, x, y)
                batch_rgb = sample_color(batch, x, y)
                report.samples.append(CalibrationSample(
                    preset_id=preset.id.value,
                    intensity=intensity,
                    band=band.name,
                    preview_rgb=preview_rgb,
                    batch_rgb=batch_rgb,
                    delta_e=delta_e(preview_rgb, batch_rgb),
                    threshold=threshold,
                ))

    if report.passed:
        logger.info(
            f"[CALIBRATION] {len(report.samples)} samples within dE {threshold} "
            f"(max {report.max_delta_e:.2f})"
        )
    else:
        logger.warning(
            f"[CALIBRATION] {len(report.failures)}/{len(report.samples)} samples exceed dE {threshold} "
            f"(max {report.max_delta_e:.2f})"
        )
    return report
