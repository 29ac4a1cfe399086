"""
Photo Filters - Preset catalog, projections and renderers.

Usage:
    from generators.filters import get_filter_by_id, project_to_preview, filter_pixels

    preset = get_filter_by_id("vintage")
    css = project_to_preview(preset.parameters, 60).to_css()
    filtered = filter_pixels(rgba, preset.parameters, 60)
"""

from generators.filters.presets import (
    FILTER_CATEGORIES,
    FILTER_PRESETS,
    FilterCategory,
    FilterParameters,
    FilterPreset,
    FilterType,
    get_filter_by_id,
    get_filters_by_category,
)
from generators.filters.projection import (
    IDENTITY_MODIFIERS,
    NO_PREVIEW_FILTER,
    BatchFilterModifiers,
    PreviewFilterDescriptor,
    PreviewOperation,
    project_to_batch,
    project_to_preview,
    scale_parameter,
)
from generators.filters.processor import (
    FILTER_ERROR_MESSAGE,
    BatchFilter,
    FilterApplicationError,
    apply_filter_to_image,
    filter_pixels,
)
from generators.filters.preview import render_preview
from generators.filters.calibration import (
    DELTA_E_THRESHOLD,
    CalibrationReport,
    delta_e,
    rgb_to_lab,
    run_calibration,
)

__all__ = [
    # Catalog
    "FILTER_PRESETS",
    "FILTER_CATEGORIES",
    "FilterType",
    "FilterCategory",
    "FilterParameters",
    "FilterPreset",
    "get_filter_by_id",
    "get_filters_by_category",
    # Projections
    "scale_parameter",
    "project_to_preview",
    "project_to_batch",
    "PreviewOperation",
    "PreviewFilterDescriptor",
    "NO_PREVIEW_FILTER",
    "BatchFilterModifiers",
    "IDENTITY_MODIFIERS",
    # Rendering
    "BatchFilter",
    "filter_pixels",
    "apply_filter_to_image",
    "render_preview",
    "FilterApplicationError",
    "FILTER_ERROR_MESSAGE",
    # Calibration
    "rgb_to_lab",
    "delta_e",
    "run_calibration",
    "CalibrationReport",
    "DELTA_E_THRESHOLD",
]
