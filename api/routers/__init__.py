"""
API Routers.
"""

from api.routers.catalog import router as catalog_router
from api.routers.health import router as health_router
from api.routers.render import router as render_router

__all__ = [
    "catalog_router",
    "health_router",
    "render_router",
]
