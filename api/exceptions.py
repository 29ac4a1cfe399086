"""
Centralized exception handling for the API.

Provides custom exception classes and exception handlers that
return consistent JSON error responses.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app_settings import settings
from generators.animation import AnimationError
from generators.filters.processor import FilterApplicationError
from utils.logging import get_request_id

logger = logging.getLogger("api.exceptions")


# =============================================================================
# CUSTOM EXCEPTION CLASSES
# =============================================================================


class APIError(Exception):
    """
    Base exception for API errors.

    All custom API exceptions should inherit from this class.
    """

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code or "INTERNAL_ERROR"
        self.details = details or {}
        super().__init__(message)


class NotFoundError(APIError):
    """Resource not found error."""

    def __init__(
        self,
        message: str = "Resource not found",
        resource_type: Optional[str] = None,
        resource_id: Optional[str] = None,
    ):
        details = {}
        if resource_type:
            details["resource_type"] = resource_type
        if resource_id:
            details["resource_id"] = resource_id

        super().__init__(
            message=message,
            status_code=status.HTTP_404_NOT_FOUND,
            error_code="NOT_FOUND",
            details=details,
        )


class ValidationFailedError(APIError):
    """Request validation error."""

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        errors: Optional[list] = None,
    ):
        details = {}
        if field:
            details["field"] = field
        if errors:
            details["errors"] = errors

        super().__init__(
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            error_code="VALIDATION_ERROR",
            details=details,
        )


class RenderFailedError(APIError):
    """Rendering or encoding failed for a reason other than bad input."""

    def __init__(self, message: str = "Image could not be rendered"):
        super().__init__(
            message=message,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            error_code="RENDER_FAILED",
        )


# =============================================================================
# ERROR RESPONSE BUILDER
# =============================================================================


def build_error_response(
    message: str,
    status_code: int,
    error_code: str,
    details: Optional[Dict[str, Any]] = None,
    request_id: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Build a standardized error response dictionary.

    All API errors return this structure for consistent client handling.
    """
    response = {
        "error": {
            "message": message,
            "code": error_code,
            "status_code": status_code,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
    }

    if details:
        response["error"]["details"] = details

    if request_id:
        response["error"]["request_id"] = request_id

    return response


def _error_response(status_code: int, message: str, error_code: str, details=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=build_error_response(
            message=message,
            status_code=status_code,
            error_code=error_code,
            details=details,
            request_id=get_request_id(),
        ),
    )


# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    """Handle custom APIError exceptions."""
    logger.warning(
        f"[API ERROR] {exc.error_code}: {exc.message}",
        extra={"status_code": exc.status_code, "details": exc.details},
    )
    return _error_response(exc.status_code, exc.message, exc.error_code, exc.details)


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle Pydantic/FastAPI validation errors."""
    errors = []
    for error in exc.errors():
        loc = " -> ".join(str(x) for x in error["loc"])
        errors.append({
            "location": loc,
            "message": error["msg"],
            "type": error["type"],
        })

    logger.warning(f"[VALIDATION ERROR] {len(errors)} validation errors")

    return _error_response(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "Request validation failed",
        "VALIDATION_ERROR",
        {"errors": errors},
    )


async def filter_error_handler(request: Request, exc: FilterApplicationError) -> JSONResponse:
    """Filter failures carry only the user-facing message; details are already logged."""
    logger.warning(f"[FILTER ERROR] {request.method} {request.url.path}")
    return _error_response(status.HTTP_422_UNPROCESSABLE_ENTITY, exc.message, "FILTER_FAILED")


async def animation_error_handler(request: Request, exc: AnimationError) -> JSONResponse:
    logger.warning(f"[ANIMATION ERROR] {exc}")
    return _error_response(status.HTTP_400_BAD_REQUEST, str(exc), "ANIMATION_FAILED")


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle unexpected exceptions.

    Logs the full traceback but returns a generic error to the client
    to avoid leaking internal details.
    """
    logger.error(
        f"[UNHANDLED ERROR] {type(exc).__name__}: {exc}",
        exc_info=True,
    )
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "An internal error occurred",
        "INTERNAL_ERROR",
    )


# =============================================================================
# SETUP FUNCTION
# =============================================================================


def setup_exception_handlers(app: FastAPI) -> None:
    """
    Register all exception handlers with the FastAPI app.

    Call this during app initialization:
        from api.exceptions import setup_exception_handlers
        setup_exception_handlers(app)
    """
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(FilterApplicationError, filter_error_handler)
    app.add_exception_handler(AnimationError, animation_error_handler)

    # Catch-all only in production; development keeps the full traceback page
    if settings.is_production:
        app.add_exception_handler(Exception, generic_exception_handler)

    logger.info("[EXCEPTIONS] Registered custom exception handlers")
