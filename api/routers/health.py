"""
Health check endpoints.

Provides:
- /health: Basic health check for load balancers (fast, simple)
- /health/ready: Readiness check with catalog and font status
"""

from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter

from app_settings import settings
from generators.filters import FILTER_PRESETS
from generators.stickers import STICKER_PACKS, get_asset_resolver
from generators.strip import load_font
from generators.templates import TEMPLATES
from utils.logging import get_logger

router = APIRouter(tags=["health"])
logger = get_logger("api.health")


def check_fonts() -> Dict[str, Any]:
    """Report whether a TrueType footer font is available."""
    font = load_font("sans-serif", 12)
    truetype = isinstance(getattr(font, "path", None), str)
    if not truetype:
        logger.warning("[HEALTH] No TrueType font found, footers use Pillow's default font")
    return {
        "status": "healthy" if truetype else "degraded",
        "truetype": truetype,
        "fonts_dir": str(settings.resolved_fonts_dir) if settings.resolved_fonts_dir else None,
    }


@router.get("/health")
async def health():
    """
    Basic health check endpoint.

    Returns a simple response for load balancer health checks.
    This endpoint should be fast and not make external calls.
    """
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.environment,
    }


@router.get("/health/ready")
async def health_ready():
    """
    Readiness check.

    Confirms the catalogs loaded and reports the sticker asset provider
    and footer font status. Makes no network calls.
    """
    fonts = check_fonts()
    catalogs = {
        "filters": len(FILTER_PRESETS),
        "templates": len(TEMPLATES),
        "sticker_packs": len(STICKER_PACKS),
    }

    overall_status = "ready" if all(catalogs.values()) else "not_ready"
    if overall_status == "ready" and fonts["status"] != "healthy":
        overall_status = "degraded"

    return {
        "status": overall_status,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.environment,
        "checks": {
            "catalogs": catalogs,
            "fonts": fonts,
            "sticker_assets": {"provider": get_asset_resolver().name},
        },
    }
