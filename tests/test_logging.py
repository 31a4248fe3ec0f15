"""
Tests for the logging module.

This test module validates:
- JSON-formatted structured logging output
- Logger configuration and setup
- Extra fields in log entries
- stderr routing
"""

from __future__ import annotations

import json
import logging
import sys
from io import StringIO

import pytest

from update_manager.config import LoggingConfig
from update_manager.logging import JSONFormatter, get_logger, setup_logging

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def string_handler() -> logging.StreamHandler[StringIO]:
    """Create a string handler for capturing log output."""
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(JSONFormatter())
    return handler


def make_record(msg: str, *args: object, level: int = logging.INFO) -> logging.LogRecord:
    return logging.LogRecord(
        name="test_logger",
        level=level,
        pathname="test.py",
        lineno=10,
        msg=msg,
        args=args,
        exc_info=None,
    )


# =============================================================================
# Tests for JSONFormatter
# =============================================================================


class TestJSONFormatter:
    """Tests for JSONFormatter class."""

    def test_format_basic_log_record(self) -> None:
        """Test formatting a basic log record as JSON."""
        parsed = json.loads(JSONFormatter().format(make_record("Checking providers")))

        assert parsed["level"] == "INFO"
        assert parsed["logger"] == "test_logger"
        assert parsed["message"] == "Checking providers"
        assert "timestamp" in parsed

    def test_format_with_extra_fields(self) -> None:
        """Test that extra attributes become JSON fields."""
        record = make_record("Provider check failed")
        record.provider = "winget"
        record.exit_code = 1

        parsed = json.loads(JSONFormatter().format(record))

        assert parsed["provider"] == "winget"
        assert parsed["exit_code"] == 1

    def test_format_skips_none_extras(self) -> None:
        """Test that None-valued extras are omitted."""
        record = make_record("x")
        record.stderr = None

        assert "stderr" not in json.loads(JSONFormatter().format(record))

    def test_format_with_message_args(self) -> None:
        """Test %-style message arguments are applied."""
        parsed = json.loads(JSONFormatter().format(make_record("Found %d updates", 3)))

        assert parsed["message"] == "Found 3 updates"

    def test_format_with_exception(self) -> None:
        """Test exception info is rendered."""
        try:
            raise ValueError("Test error")
        except ValueError:
            record = logging.LogRecord(
                name="test_logger",
                level=logging.ERROR,
                pathname="test.py",
                lineno=10,
                msg="Failed",
                args=(),
                exc_info=sys.exc_info(),
            )

        parsed = json.loads(JSONFormatter().format(record))

        assert "ValueError: Test error" in parsed["exception"]

    def test_format_non_serializable_extra(self) -> None:
        """Test that non-JSON values fall back to str()."""
        record = make_record("x")
        record.path = object()

        parsed = json.loads(JSONFormatter().format(record))

        assert parsed["path"].startswith("<object object")


# =============================================================================
# Tests for setup_logging
# =============================================================================


class TestSetupLogging:
    """Tests for setup_logging function."""

    def test_setup_logging_sets_level(self) -> None:
        """Test the requested level is applied."""
        logger = setup_logging(level="debug")

        assert logger.name == "update_manager"
        assert logger.level == logging.DEBUG

    def test_setup_logging_json_format(self) -> None:
        """Test a JSON formatter on a stderr handler."""
        logger = setup_logging(level="info", json_format=True)

        assert len(logger.handlers) == 1
        handler = logger.handlers[0]
        assert isinstance(handler.formatter, JSONFormatter)
        assert handler.stream is sys.stderr  # type: ignore[attr-defined]

    def test_setup_logging_non_json_format(self) -> None:
        """Test a plain-text formatter."""
        logger = setup_logging(level="info", json_format=False)

        assert not isinstance(logger.handlers[0].formatter, JSONFormatter)

    def test_setup_logging_no_stderr(self) -> None:
        """Test that no handler is attached when stderr logging is off."""
        logger = setup_logging(log_to_stderr=False)

        assert logger.handlers == []

    def test_setup_logging_clears_existing_handlers(self) -> None:
        """Test repeated setup does not duplicate handlers."""
        setup_logging(level="info")
        logger = setup_logging(level="info")

        assert len(logger.handlers) == 1

    def test_setup_logging_no_propagation(self) -> None:
        """Test the package logger does not propagate to root."""
        assert setup_logging().propagate is False

    def test_setup_with_logging_config(self) -> None:
        """Test a LoggingConfig overrides keyword arguments."""
        config = LoggingConfig(level="error", json_format=False)

        logger = setup_logging(config=config, level="debug", json_format=True)

        assert logger.level == logging.ERROR
        assert not isinstance(logger.handlers[0].formatter, JSONFormatter)


# =============================================================================
# Tests for get_logger
# =============================================================================


class TestGetLogger:
    """Tests for get_logger function."""

    def test_get_logger_with_module_name(self) -> None:
        """Test a package module name is used as-is."""
        assert get_logger("update_manager.state").name == "update_manager.state"

    def test_get_logger_adds_prefix(self) -> None:
        """Test the package prefix is added."""
        assert get_logger("providers").name == "update_manager.providers"

    def test_get_logger_is_child_of_package_logger(self) -> None:
        """Test child loggers inherit the package level."""
        setup_logging(level="debug")

        assert get_logger("reconcile").getEffectiveLevel() == logging.DEBUG


# =============================================================================
# Tests for Structured Logging Output
# =============================================================================


class TestStructuredLoggingOutput:
    """Tests for actual structured logging output."""

    def test_log_with_extra_dict(
        self, string_handler: logging.StreamHandler[StringIO]
    ) -> None:
        """Test logging with an extra dictionary."""
        logger = logging.getLogger("test.extra")
        logger.addHandler(string_handler)
        logger.setLevel(logging.INFO)

        logger.info("Updates applied", extra={"updated": 2, "failed": 0})

        parsed = json.loads(string_handler.stream.getvalue().strip())
        assert parsed["message"] == "Updates applied"
        assert parsed["updated"] == 2
        assert parsed["failed"] == 0

    def test_multiple_log_entries(
        self, string_handler: logging.StreamHandler[StringIO]
    ) -> None:
        """Test each entry is one JSON line."""
        logger = logging.getLogger("test.multiple")
        logger.addHandler(string_handler)
        logger.setLevel(logging.INFO)

        logger.info("First")
        logger.warning("Second")

        lines = string_handler.stream.getvalue().strip().split("\n")
        assert [json.loads(line)["level"] for line in lines] == ["INFO", "WARNING"]
