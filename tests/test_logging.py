"""
Tests for logging setup.

These tests verify:
- request_context binding, nesting and restoration
- JSON and console formatters (request ID, extra fields)
- setup_logging handler wiring
"""

import json
import logging

import pytest

from utils.logging import (
    ConsoleFormatter,
    JSONFormatter,
    RequestIDFilter,
    get_request_id,
    request_context,
    setup_logging,
)


def make_record(message: str = "[STRIP] Rendered", **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="generators.strip",
        level=logging.INFO,
        pathname=__file__,
        lineno=42,
        msg=message,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestRequestContext:
    """Test suite for request_context."""

    def test_generates_id(self):
        with request_context() as request_id:
            assert len(request_id) == 8
            assert get_request_id() == request_id
        assert get_request_id() is None

    def test_keeps_given_id(self):
        with request_context("abc12345") as request_id:
            assert request_id == "abc12345"

    def test_nested_context_restores_outer(self):
        with request_context("outer123"):
            with request_context("inner456"):
                assert get_request_id() == "inner456"
            assert get_request_id() == "outer123"

    def test_restored_after_exception(self):
        with pytest.raises(RuntimeError):
            with request_context("boom1234"):
                raise RuntimeError("render failed")
        assert get_request_id() is None


class TestFormatters:
    """Test suite for JSONFormatter and ConsoleFormatter."""

    def test_json_includes_request_id_and_extras(self):
        record = make_record(template_id="classic-2x2", intensity=50)
        with request_context("abc12345"):
            entry = json.loads(JSONFormatter().format(record))

        assert entry["message"] == "[STRIP] Rendered"
        assert entry["level"] == "INFO"
        assert entry["request_id"] == "abc12345"
        assert entry["template_id"] == "classic-2x2"
        assert entry["intensity"] == 50
        assert "msg" not in entry

    def test_json_serializes_unknown_types(self):
        entry = json.loads(JSONFormatter().format(make_record(size=(400, 600), path=object())))
        assert entry["size"] == [400, 600]
        assert isinstance(entry["path"], str)

    def test_console_appends_extras(self):
        with request_context("abc12345"):
            line = ConsoleFormatter().format(make_record(template_id="classic-2x2"))

        assert "[abc12345]" in line
        assert "generators.strip: [STRIP] Rendered" in line
        assert line.endswith("template_id=classic-2x2")

    def test_filter_stamps_placeholder(self):
        record = make_record()
        RequestIDFilter().filter(record)
        assert record.request_id == "-"
        # the stamped attribute is not repeated as an extra field
        assert "request_id=" not in ConsoleFormatter().format(record)


class TestSetupLogging:
    """Test suite for setup_logging."""

    @pytest.fixture(autouse=True)
    def restore_root(self):
        root = logging.getLogger()
        handlers, level = list(root.handlers), root.level
        yield
        root.handlers[:] = handlers
        root.setLevel(level)
        logging.getLogger("generators.strip").setLevel(logging.NOTSET)
        logging.getLogger("httpx").setLevel(logging.NOTSET)

    def test_single_handler_with_formatter(self):
        setup_logging(level="DEBUG", json_format=True)
        root = logging.getLogger()

        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JSONFormatter)

    def test_quiet_and_module_levels(self):
        setup_logging(module_levels={"generators.strip": "DEBUG", "httpx": "INFO"})

        assert logging.getLogger("generators.strip").level == logging.DEBUG
        assert logging.getLogger("httpx").level == logging.INFO
        assert logging.getLogger("PIL").level == logging.WARNING
