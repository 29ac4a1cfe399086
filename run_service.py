#!/usr/bin/env python3
"""
Standalone uvicorn runner for the photo strip renderer.

Usage:
    python run_service.py

Environment Variables:
    API_HOST / API_PORT: Bind address (default: 0.0.0.0:8000)
    ENVIRONMENT: 'local', 'development', 'production' or 'test' (default: development)

Outside production, auto-reload is enabled.
"""
import sys

import uvicorn

from app_settings import settings


def main():
    """Run the photo strip renderer FastAPI server."""
    reload = not settings.is_production

    print(f"Starting photo strip renderer on {settings.api_host}:{settings.api_port}")
    print(f"Environment: {settings.environment}")
    print(f"Auto-reload: {reload}")

    uvicorn.run(
        "api.server:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=reload,
    )


if __name__ == "__main__":
    sys.exit(main() or 0)
