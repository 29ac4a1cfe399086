"""
FastAPI Server - Main Application Entry Point.

This module sets up the FastAPI application with all routers
and middleware.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from app_settings import settings
from generators.filters import FILTER_PRESETS
from generators.stickers import get_asset_resolver
from generators.templates import TEMPLATES
from utils.logging import get_logger, logging_middleware_helper, setup_logging

# Import routers
from api.routers import (
    catalog_router,
    health_router,
    render_router,
)

setup_logging(
    level=settings.log_level,
    json_format=settings.use_json_logs,
)

logger = get_logger("api.server")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage startup and shutdown events."""
    # Startup
    logger.info(
        f"[STARTUP] Photo strip renderer ({settings.environment}): "
        f"{len(FILTER_PRESETS)} filters, {len(TEMPLATES)} templates, "
        f"sticker assets via {get_asset_resolver().name}"
    )

    yield

    # Shutdown
    logger.info("[SHUTDOWN] Photo strip renderer stopped")


# Create FastAPI app
app = FastAPI(title="Photo Strip Renderer API", lifespan=lifespan)

# Origins configured via CORS_ORIGINS environment variable
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "X-Request-ID"],
    expose_headers=[
        "X-Request-ID",
        "X-Image-Width",
        "X-Image-Height",
        "X-Template-Id",
        "X-Skipped-Photos",
        "X-Skipped-Stickers",
        "X-Frame-Count",
        "X-Frame-Delay",
    ],
)
logger.info(f"[CORS] Allowed origins: {settings.cors_origins_list}")


# Add request logging middleware
@app.middleware("http")
async def logging_middleware(request: Request, call_next):
    """Log all HTTP requests with request ID tracking."""
    return await logging_middleware_helper(request, call_next)


from api.exceptions import setup_exception_handlers
setup_exception_handlers(app)

app.include_router(health_router)
app.include_router(catalog_router)
app.include_router(render_router)
