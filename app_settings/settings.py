"""
Pydantic Settings for the Photo Strip Renderer.

This module provides type-safe, validated configuration using Pydantic BaseSettings.
Environment variables are automatically loaded and validated at startup.

Usage:
    from app_settings import settings

    # Access settings
    print(settings.default_output_width)
    print(settings.is_production)
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Every setting has a default so the renderer can run without a .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # =========================================================================
    # ENVIRONMENT
    # =========================================================================

    environment: Literal["local", "development", "production", "test"] = Field(
        default="local",
        description="Application environment",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )

    # =========================================================================
    # LOGGING
    # =========================================================================

    log_level: str = Field(
        default="INFO",
        description="Root log level (DEBUG, INFO, WARNING, ERROR)",
    )
    log_json: Optional[bool] = Field(
        default=None,
        description="Emit JSON logs (defaults to True in production)",
    )

    # =========================================================================
    # STICKER ASSETS
    # =========================================================================

    asset_base_url: str = Field(
        default="http://localhost:3000",
        description="Base URL that image sticker paths are resolved against",
    )
    emoji_cdn_url: str = Field(
        default="https://cdn.jsdelivr.net/gh/twitter/twemoji@latest/assets/72x72/{codepoints}.png",
        description="Emoji image URL template, {codepoints} is replaced with hyphen-joined hex",
    )
    sticker_fetch_timeout: float = Field(
        default=5.0,
        description="Per-sticker fetch timeout in seconds",
    )
    sticker_assets_dir: Optional[str] = Field(
        default=None,
        description="Local static asset root (enables the on-disk sticker resolver)",
    )

    # =========================================================================
    # STRIP OUTPUT
    # =========================================================================

    default_output_width: int = Field(
        default=800,
        description="Default strip width in pixels",
    )
    max_output_width: int = Field(
        default=2400,
        description="Largest strip width accepted by the API",
    )
    default_output_quality: int = Field(
        default=80,
        description="Default encoder quality (JPEG/WebP)",
    )
    fonts_dir: Optional[str] = Field(
        default=None,
        description="Directory searched first for footer fonts",
    )

    # =========================================================================
    # ANIMATION
    # =========================================================================

    animation_width: int = Field(
        default=400,
        description="Default animated output width",
    )
    animation_height: int = Field(
        default=600,
        description="Default animated output height",
    )
    animation_frame_delay_ms: int = Field(
        default=500,
        description="Default per-frame delay in milliseconds",
    )

    # =========================================================================
    # API SETTINGS
    # =========================================================================

    api_host: str = Field(
        default="0.0.0.0",
        description="API server host",
    )
    api_port: int = Field(
        default=8000,
        description="API server port",
    )
    cors_origins: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        description="Comma-separated list of allowed CORS origins",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level

    @field_validator("default_output_quality")
    @classmethod
    def validate_quality(cls, v: int) -> int:
        if not 1 <= v <= 100:
            raise ValueError("Quality must be between 1 and 100")
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development."""
        return self.environment in ("local", "development")

    @property
    def use_json_logs(self) -> bool:
        if self.log_json is not None:
            return self.log_json
        return self.is_production

    @property
    def cors_origins_list(self) -> list[str]:
        """Get CORS origins as a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def resolved_fonts_dir(self) -> Optional[Path]:
        if not self.fonts_dir:
            return None
        return Path(self.fonts_dir)


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()


# Global settings instance
settings = get_settings()
