"""
Render endpoints: photo strips and animated sequences.

Both return the encoded image directly with its dimensions in headers.
"""

import asyncio

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from api.exceptions import RenderFailedError, ValidationFailedError
from api.schemas import AnimationRequest, StripRenderRequest
from app_settings import settings
from generators.animation import AnimatedSequenceAssembler, get_frame_encoder
from generators.strip import CompositeRequest, PhotoStripCompositor
from utils.logging import get_logger

router = APIRouter(prefix="/api", tags=["render"])
logger = get_logger("api.render")


def get_compositor() -> PhotoStripCompositor:
    """Compositor dependency, overridden in tests to inject a sticker resolver."""
    return PhotoStripCompositor()


@router.post("/strip")
async def render_strip(
    request: StripRenderRequest,
    compositor: PhotoStripCompositor = Depends(get_compositor),
):
    """
    Render a photo strip.

    Returns the image bytes. Headers:
    - X-Image-Width / X-Image-Height: output size in pixels
    - X-Template-Id: template actually used (after default fallback)
    - X-Skipped-Photos / X-Skipped-Stickers: counts of inputs that could not be placed
    """
    width = request.width or settings.default_output_width
    if width > settings.max_output_width:
        raise ValidationFailedError(
            message=f"Width {width} exceeds the maximum of {settings.max_output_width}",
            field="width",
        )

    try:
        composite = CompositeRequest(
            photos=request.photos,
            template_id=request.template_id,
            stickers=[sticker.to_domain() for sticker in request.stickers],
            filter=request.filter.to_domain() if request.filter else None,
            width=width,
            quality=request.quality or settings.default_output_quality,
            footer_text=request.footer_text,
            output_format=request.output_format,
        )
        result = await compositor.render(composite)
    except ValueError as e:
        raise ValidationFailedError(message=str(e)) from None
    except OSError as e:
        logger.error(f"[RENDER] Strip encoding failed: {e}", exc_info=True)
        raise RenderFailedError() from None

    return Response(
        content=result.data,
        media_type=result.content_type,
        headers={
            "X-Image-Width": str(result.width),
            "X-Image-Height": str(result.height),
            "X-Template-Id": result.template_id,
            "X-Skipped-Photos": str(len(result.skipped_photos)),
            "X-Skipped-Stickers": str(len(result.skipped_stickers)),
        },
    )


@router.post("/animation")
async def render_animation(request: AnimationRequest):
    """
    Assemble photos into a looping animation (GIF or WebP).

    Returns the animation bytes with X-Frame-Count and X-Frame-Delay headers.
    """
    try:
        assembler = AnimatedSequenceAssembler(get_frame_encoder(request.output_format))
        selection = request.filter.to_domain() if request.filter else None
        result = await asyncio.to_thread(
            assembler.assemble,
            request.frames,
            request.width,
            request.height,
            request.delay_ms,
            selection,
        )
    except ValueError as e:
        raise ValidationFailedError(message=str(e)) from None
    except OSError as e:
        logger.error(f"[RENDER] Animation encoding failed: {e}", exc_info=True)
        raise RenderFailedError("Animation could not be rendered") from None

    return Response(
        content=result.data,
        media_type=result.content_type,
        headers={
            "X-Image-Width": str(result.width),
            "X-Image-Height": str(result.height),
            "X-Frame-Count": str(result.frame_count),
            "X-Frame-Delay": str(result.delay_ms),
        },
    )
