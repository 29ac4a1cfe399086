# Utils - Shared utilities

from utils.logging import (
    get_logger,
    get_request_id,
    logging_middleware_helper,
    request_context,
    setup_logging,
)

__all__ = [
    "get_logger",
    "get_request_id",
    "logging_middleware_helper",
    "request_context",
    "setup_logging",
]
