"""
API Request/Response Schemas.

Centralized Pydantic models for API input validation.
Payload models convert to the generator dataclasses with to_domain().
"""

from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from generators.stickers import MAX_STICKER_SCALE, MIN_STICKER_SCALE, Sticker
from generators.strip import FilterSelection

# =============================================================================
# SHARED
# =============================================================================

MAX_STRIP_PHOTOS = 6
MAX_ANIMATION_FRAMES = 12
MAX_STICKERS = 50
MAX_FOOTER_LENGTH = 80


class FilterSelectionPayload(BaseModel):
    """A filter preset and its intensity."""
    preset_id: str = Field(..., min_length=1, max_length=50, description="Filter preset id")
    intensity: float = Field(100, ge=0, le=100, description="Filter strength 0-100")

    def to_domain(self) -> FilterSelection:
        return FilterSelection(preset_id=self.preset_id, intensity=self.intensity)


class StickerPayload(BaseModel):
    """A sticker placed on the strip, centered at (x%, y%)."""
    id: str = Field(..., min_length=1, max_length=100)
    x: float = Field(..., ge=0, le=100, description="Center x, percent of width")
    y: float = Field(..., ge=0, le=100, description="Center y, percent of height")
    type: Literal["emoji", "image"] = "emoji"
    emoji: str | None = Field(None, max_length=32)
    src: str | None = Field(None, max_length=2048)
    scale: float = Field(1.0, ge=MIN_STICKER_SCALE, le=MAX_STICKER_SCALE)

    @model_validator(mode="after")
    def check_source(self):
        """Emoji stickers carry an emoji, image stickers a src."""
        if self.type == "emoji" and (not self.emoji or self.src):
            raise ValueError("emoji stickers require 'emoji' and no 'src'")
        if self.type == "image" and (not self.src or self.emoji):
            raise ValueError("image stickers require 'src' and no 'emoji'")
        return self

    def to_domain(self) -> Sticker:
        return Sticker(
            id=self.id,
            x=self.x,
            y=self.y,
            type=self.type,
            emoji=self.emoji,
            src=self.src,
            scale=self.scale,
        )


# =============================================================================
# STRIP SCHEMAS
# =============================================================================


class StripRenderRequest(BaseModel):
    """Request to render a photo strip."""
    photos: list[str | None] = Field(
        ...,
        min_length=1,
        max_length=MAX_STRIP_PHOTOS,
        description="Base64 or data-URL photos in slot order, null for an empty slot",
    )
    template_id: str | None = Field(None, max_length=50, description="Template id (default template if unknown)")
    stickers: list[StickerPayload] = Field(default_factory=list, max_length=MAX_STICKERS)
    filter: FilterSelectionPayload | None = None
    width: int | None = Field(None, ge=100, description="Output width in pixels")
    quality: int | None = Field(None, ge=1, le=100)
    footer_text: str | None = Field(None, max_length=MAX_FOOTER_LENGTH, description="Replaces the template footer")
    output_format: Literal["png", "jpeg", "webp"] = "png"

    @field_validator("photos")
    @classmethod
    def require_one_photo(cls, v):
        """At least one slot must hold a photo."""
        if not any(v):
            raise ValueError("At least one photo is required")
        return v

    @field_validator("footer_text")
    @classmethod
    def sanitize_footer(cls, v):
        """Remove control characters from footer text."""
        if v:
            v = "".join(char for char in v if ord(char) >= 32)
        return v


# =============================================================================
# ANIMATION SCHEMAS
# =============================================================================


class AnimationRequest(BaseModel):
    """Request to assemble an animated sequence."""
    frames: list[str | None] = Field(
        ...,
        min_length=1,
        max_length=MAX_ANIMATION_FRAMES,
        description="Base64 or data-URL photos in display order",
    )
    width: int | None = Field(None, ge=50, le=1200)
    height: int | None = Field(None, ge=50, le=1800)
    delay_ms: int | None = Field(None, ge=20, le=10000, description="Per-frame delay in milliseconds")
    filter: FilterSelectionPayload | None = None
    output_format: Literal["gif", "webp"] = "gif"
