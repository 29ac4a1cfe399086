"""
Filter Presets - Static catalog of photo filter looks.

Each preset bundles five percentage-style parameters. The same values drive
both the live preview (CSS filter graph in the browser) and the batch raster
pipeline; see generators.filters.projection for how they are translated.

Parameter ranges:
    grayscale   0-100   (0 = no effect)
    sepia       0-100   (0 = no effect)
    saturation  0-200   (100 = no change)
    brightness  50-150  (100 = no change)
    contrast    50-150  (100 = no change)
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


class FilterType(str, Enum):
    """Known filter preset ids."""
    NOIR = "noir"
    SEPIA = "sepia"
    VINTAGE = "vintage"
    WARM = "warm"
    COOL = "cool"
    VIVID = "vivid"
    MUTED = "muted"


class FilterCategory(str, Enum):
    """Grouping tags shown as tabs in the filter picker."""
    BW = "bw"
    COLOR = "color"
    VINTAGE = "vintage"


# (min, max) per parameter
PARAMETER_RANGES: dict[str, tuple[float, float]] = {
    "grayscale": (0, 100),
    "sepia": (0, 100),
    "saturation": (0, 200),
    "brightness": (50, 150),
    "contrast": (50, 150),
}


@dataclass(frozen=True)
class FilterParameters:
    """
    Immutable filter parameter set.

    Construction fails with ValueError when any field is outside its range,
    so a FilterParameters instance is always valid.
    """

    grayscale: float = 0
    sepia: float = 0
    saturation: float = 100
    brightness: float = 100
    contrast: float = 100

    def __post_init__(self):
        for name, (min_val, max_val) in PARAMETER_RANGES.items():
            value = getattr(self, name)
            if not min_val <= value <= max_val:
                raise ValueError(
                    f"{name} must be between {min_val} and {max_val}, got {value}"
                )

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "FilterParameters":
        """Create from a dict (API payload). Unknown keys are ignored."""
        if not data:
            return cls()
        return cls(**{k: v for k, v in data.items() if k in PARAMETER_RANGES})

    def to_dict(self) -> dict:
        return {
            "grayscale": self.grayscale,
            "sepia": self.sepia,
            "saturation": self.saturation,
            "brightness": self.brightness,
            "contrast": self.contrast,
        }


@dataclass(frozen=True)
class FilterPreset:
    """A named, categorized filter look."""

    id: FilterType
    name: str
    category: FilterCategory
    parameters: FilterParameters

    def to_dict(self) -> dict:
        return {
            "id": self.id.value,
            "name": self.name,
            "category": self.category.value,
            "parameters": self.parameters.to_dict(),
        }


@dataclass(frozen=True)
class CategoryInfo:
    id: str
    label: str
    icon: str

    def to_dict(self) -> dict:
        return {"id": self.id, "label": self.label, "icon": self.icon}


# =============================================================================
# PRESET CATALOG
# =============================================================================

FILTER_PRESETS: tuple[FilterPreset, ...] = (
    # Black & white
    FilterPreset(
        id=FilterType.NOIR,
        name="Noir",
        category=FilterCategory.BW,
        parameters=FilterParameters(grayscale=100, sepia=0, saturation=0, brightness=105, contrast=115),
    ),
    # Vintage
    FilterPreset(
        id=FilterType.SEPIA,
        name="Sepia",
        category=FilterCategory.VINTAGE,
        parameters=FilterParameters(grayscale=0, sepia=80, saturation=60, brightness=102, contrast=105),
    ),
    FilterPreset(
        id=FilterType.VINTAGE,
        name="Vintage",
        category=FilterCategory.VINTAGE,
        parameters=FilterParameters(grayscale=0, sepia=40, saturation=70, brightness=95, contrast=90),
    ),
    # Color
    FilterPreset(
        id=FilterType.WARM,
        name="Warm",
        category=FilterCategory.COLOR,
        parameters=FilterParameters(grayscale=0, sepia=20, saturation=110, brightness=102, contrast=105),
    ),
    FilterPreset(
        id=FilterType.COOL,
        name="Cool",
        category=FilterCategory.COLOR,
        parameters=FilterParameters(grayscale=0, sepia=0, saturation=90, brightness=98, contrast=105),
    ),
    FilterPreset(
        id=FilterType.VIVID,
        name="Vivid",
        category=FilterCategory.COLOR,
        parameters=FilterParameters(grayscale=0, sepia=0, saturation=140, brightness=100, contrast=110),
    ),
    FilterPreset(
        id=FilterType.MUTED,
        name="Muted",
        category=FilterCategory.COLOR,
        parameters=FilterParameters(grayscale=0, sepia=0, saturation=60, brightness=100, contrast=95),
    ),
)

FILTER_CATEGORIES: tuple[CategoryInfo, ...] = (
    CategoryInfo(id=FilterCategory.BW.value, label="Black & White", icon="⚫"),
    CategoryInfo(id=FilterCategory.COLOR.value, label="Color", icon="🎨"),
    CategoryInfo(id=FilterCategory.VINTAGE.value, label="Vintage", icon="📜"),
)

# Keyed by the plain string value so lookups work for str and FilterType alike
_PRESETS_BY_ID: dict[str, FilterPreset] = {preset.id.value: preset for preset in FILTER_PRESETS}


def get_filter_by_id(filter_id: Union[FilterType, str]) -> Optional[FilterPreset]:
    """
    Look up a preset by id.

    Args:
        filter_id: FilterType or its string value

    Returns:
        The preset, or None when the id is not in the catalog
    """
    key = filter_id.value if isinstance(filter_id, FilterType) else str(filter_id)
    return _PRESETS_BY_ID.get(key)


def get_filters_by_category(category: Union[FilterCategory, str]) -> list[FilterPreset]:
    """Get all presets in a category, in catalog order."""
    key = category.value if isinstance(category, FilterCategory) else str(category)
    return [preset for preset in FILTER_PRESETS if preset.category.value == key]
