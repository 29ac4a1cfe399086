"""
Catalog endpoints: filter presets, templates and sticker packs.

Filter entries carry both projections so the client can show the live
preview (CSS filter string) and knows what the export will apply.
"""

from typing import Optional

from fastapi import APIRouter, Query

from api.exceptions import NotFoundError
from app_settings import settings
from generators.filters import (
    FILTER_CATEGORIES,
    FILTER_PRESETS,
    FilterPreset,
    get_filter_by_id,
    project_to_batch,
    project_to_preview,
)
from generators.stickers import STICKER_PACKS
from generators.templates import (
    DEFAULT_TEMPLATE,
    TEMPLATE_CATEGORIES,
    TEMPLATES,
    get_templates_by_category,
)
from utils.logging import get_logger

router = APIRouter(prefix="/api", tags=["catalog"])
logger = get_logger("api.catalog")


def _filter_entry(preset: FilterPreset, intensity: float) -> dict:
    entry = preset.to_dict()
    entry["intensity"] = intensity
    entry["preview"] = project_to_preview(preset.parameters, intensity).to_dict()
    entry["batch"] = project_to_batch(preset.parameters, intensity).to_dict()
    return entry


@router.get("/filters")
async def list_filters(intensity: float = Query(100, ge=0, le=100)):
    """List filter presets with their preview and batch projections at an intensity."""
    return {
        "categories": [category.to_dict() for category in FILTER_CATEGORIES],
        "filters": [_filter_entry(preset, intensity) for preset in FILTER_PRESETS],
    }


@router.get("/filters/{filter_id}")
async def get_filter(filter_id: str, intensity: float = Query(100, ge=0, le=100)):
    """Get one filter preset with its projections."""
    preset = get_filter_by_id(filter_id)
    if preset is None:
        raise NotFoundError(
            message=f"Filter '{filter_id}' not found",
            resource_type="filter",
            resource_id=filter_id,
        )
    return _filter_entry(preset, intensity)


@router.get("/templates")
async def list_templates(category: Optional[str] = Query(None, max_length=50)):
    """List strip templates, optionally restricted to one category."""
    templates = get_templates_by_category(category) if category else TEMPLATES
    logger.debug(f"[CATALOG] {len(templates)} templates for category={category or 'all'}")
    return {
        "categories": list(TEMPLATE_CATEGORIES),
        "default": DEFAULT_TEMPLATE.id.value,
        "templates": [template.to_dict() for template in templates],
    }


@router.get("/stickers")
async def list_sticker_packs():
    """List sticker packs; emoji entries include their image URL."""
    return {"packs": [pack.to_dict(settings.emoji_cdn_url) for pack in STICKER_PACKS]}
