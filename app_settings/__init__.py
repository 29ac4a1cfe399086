"""
Application settings package for the Photo Strip Renderer.

This package provides centralized, type-safe configuration management
using Pydantic settings.
"""

from app_settings.settings import Settings, get_settings, settings

__all__ = ["settings", "Settings", "get_settings"]
