"""
Logging setup for the Photo Strip Renderer.

Every log line can carry a short request ID. HTTP requests get one from
the middleware (or the caller's X-Request-ID header); strip renders and
animation runs started outside HTTP open their own, so the "[STRIP]" and
"[ANIMATION]" lines of one run can be grepped together.

Usage:
    from utils.logging import setup_logging, get_logger, request_context

    setup_logging(level="DEBUG")
    logger = get_logger(__name__)

    with request_context() as request_id:
        logger.info("Rendering", extra={"template_id": "classic-2x2"})
"""

import json
import logging
import sys
import time
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Iterator, Optional

_request_id_ctx: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

# Attributes present on every LogRecord; anything else was passed via extra=
_RESERVED_RECORD_KEYS = frozenset((
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "pathname", "process", "processName", "relativeCreated",
    "stack_info", "exc_info", "exc_text", "thread", "threadName",
    "message", "taskName", "request_id",
))

# Third-party loggers capped at WARNING unless setup_logging overrides them
_QUIET_LOGGERS = (
    "httpx",
    "httpcore",
    "asyncio",
    "multipart",
    "PIL",
    "PIL.Image",
    "PIL.PngImagePlugin",
)

# Polled by load balancers; not logged at DEBUG
_HEALTH_PATHS = frozenset(("/health",))

# Render headers copied into the request summary line when present
_RENDER_HEADERS = ("X-Template-Id", "X-Frame-Count", "X-Skipped-Photos", "X-Skipped-Stickers")


def new_request_id() -> str:
    return uuid.uuid4().hex[:8]


def get_request_id() -> Optional[str]:
    """Request ID of the current context, or None outside any request or render."""
    return _request_id_ctx.get()


@contextmanager
def request_context(request_id: Optional[str] = None) -> Iterator[str]:
    """
    Bind a request ID for the duration of the block.

    A fresh ID is generated when none is given. The previous binding is
    restored on exit, so nested contexts (a render inside an HTTP request)
    do not leak.

    Usage:
        with request_context(get_request_id()) as request_id:
            ...  # reuses the caller's ID, or opens a new one
    """
    token = _request_id_ctx.set(request_id or new_request_id())
    try:
        yield _request_id_ctx.get()
    finally:
        _request_id_ctx.reset(token)


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {key: value for key, value in record.__dict__.items() if key not in _RESERVED_RECORD_KEYS}


class JSONFormatter(logging.Formatter):
    """One JSON object per line, extra= fields merged in at the top level."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "source": f"{record.module}:{record.lineno}",
        }
        request_id = get_request_id()
        if request_id:
            entry["request_id"] = request_id

        entry.update(_extra_fields(record))

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class ConsoleFormatter(logging.Formatter):
    """
    Colored single-line output for development.

    extra= fields are appended as key=value pairs, e.g.
    ``12:00:01 ERROR    [3f2a9c1d] generators.filters.processor: [FILTER] ... intensity=50``
    """

    LEVEL_COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelname, "")
        request_id = get_request_id()

        parts = [
            datetime.fromtimestamp(record.created, timezone.utc).strftime("%H:%M:%S"),
            f"{color}{record.levelname:8}{self.RESET}",
        ]
        if request_id:
            parts.append(f"[{request_id}]")
        parts.append(f"{record.name}: {record.getMessage()}")
        parts.extend(f"{key}={value}" for key, value in _extra_fields(record).items())

        line = " ".join(parts)
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class RequestIDFilter(logging.Filter):
    """Stamps record.request_id so %-style format strings can use it."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id() or "-"
        return True


def _level(name: str) -> int:
    return getattr(logging, name.upper())


def setup_logging(
    level: str = "INFO",
    json_format: bool = False,
    module_levels: Optional[dict[str, str]] = None,
) -> None:
    """
    Replace the root handlers with one stdout handler.

    Args:
        level: Root log level name
        json_format: JSONFormatter when True, ConsoleFormatter otherwise
        module_levels: Per-logger overrides, e.g. {"generators.strip": "DEBUG"}
    """
    module_levels = module_levels or {}

    root = logging.getLogger()
    root.setLevel(_level(level))
    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(_level(level))
    handler.addFilter(RequestIDFilter())
    handler.setFormatter(JSONFormatter() if json_format else ConsoleFormatter())
    root.addHandler(handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    for name, name_level in module_levels.items():
        logging.getLogger(name).setLevel(_level(name_level))


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


async def logging_middleware_helper(request, call_next):
    """
    Body of the FastAPI HTTP middleware.

    Binds the request ID (caller's X-Request-ID or a new one), logs one
    summary line per request with the response size and render headers,
    and echoes the ID back in X-Request-ID.
    """
    logger = get_logger("api.request")
    path = request.url.path
    quiet = path in _HEALTH_PATHS and logging.getLogger().level <= logging.DEBUG

    with request_context(request.headers.get("X-Request-ID")) as request_id:
        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        if not quiet:
            render_info = {
                name.lower().replace("-", "_"): response.headers[name]
                for name in _RENDER_HEADERS
                if name in response.headers
            }
            logger.info(
                f"{request.method} {path} -> {response.status_code} ({duration_ms:.0f}ms, "
                f"{response.headers.get('content-length', '?')} bytes)",
                extra={
                    "method": request.method,
                    "path": path,
                    "status_code": response.status_code,
                    "duration_ms": round(duration_ms, 1),
                    **render_info,
                },
            )

        response.headers["X-Request-ID"] = request_id
        return response
