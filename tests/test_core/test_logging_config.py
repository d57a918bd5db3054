import pytest
import logging
import json
import sys
from unittest.mock import Mock

from core.logging_config import (
    setup_logging,
    get_logger,
    get_logging_config,
    log_function_call,
    set_correlation_id,
    CorrelationFilter,
    JSONFormatter,
    ColoredConsoleFormatter,
)


def make_record(message="hello", **extra):
    record = logging.LogRecord(
        name="services.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg=message,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestLoggingSetup:
    """Test logging configuration setup."""

    def test_development_uses_colored_console(self):
        config = get_logging_config("development", "DEBUG")

        assert config["handlers"]["console"]["formatter"] == "colored_console"
        assert config["loggers"]["services"]["level"] == "DEBUG"

    def test_production_uses_json(self):
        config = get_logging_config("production", "INFO")

        assert config["handlers"]["console"]["formatter"] == "json"
        assert config["loggers"]["sqlalchemy.engine"]["level"] == "WARNING"

    def test_log_file_adds_rotating_handler(self, monkeypatch, tmp_path):
        monkeypatch.setenv("LOG_FILE", str(tmp_path / "cms.log"))

        config = get_logging_config("production", "INFO")

        assert config["handlers"]["file"]["class"] == "logging.handlers.RotatingFileHandler"
        assert "file" in config["loggers"]["api"]["handlers"]
        assert "file" in config["root"]["handlers"]

    def test_setup_logging_applies_config(self):
        setup_logging("test", "WARNING")

        logger = logging.getLogger("services")
        assert logger.level == logging.WARNING
        assert logger.propagate is False

        handler = logger.handlers[0]
        assert isinstance(handler.formatter, JSONFormatter)

    def test_get_logger(self):
        """Test getting a logger instance."""
        logger = get_logger("services.post_service")

        assert isinstance(logger, logging.Logger)
        assert logger.name == "services.post_service"


class TestCorrelation:
    """Test correlation id propagation into records."""

    def test_filter_adds_current_correlation_id(self):
        set_correlation_id("corr-123")
        record = make_record()

        assert CorrelationFilter().filter(record) is True
        assert record.correlation_id == "corr-123"


class TestFormatters:
    """Test log formatters."""

    def test_json_formatter_groups_extra_fields(self):
        record = make_record("Login failed", action="login_failed", cause="password")
        record.correlation_id = "corr-1"

        entry = json.loads(JSONFormatter().format(record))

        assert entry["message"] == "Login failed"
        assert entry["level"] == "INFO"
        assert entry["logger"] == "services.test"
        assert entry["correlation_id"] == "corr-1"
        assert entry["extra"] == {"action": "login_failed", "cause": "password"}

    def test_json_formatter_includes_exception(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = make_record("failed")
            record.exc_info = sys.exc_info()

        entry = json.loads(JSONFormatter().format(record))

        assert entry["exception"]["type"] == "RuntimeError"
        assert entry["exception"]["message"] == "boom"

    def test_colored_formatter_includes_correlation_id(self):
        record = make_record("hello")
        record.correlation_id = "corr-9"

        output = ColoredConsoleFormatter().format(record)

        assert "[corr-9]" in output
        assert "hello" in output
        assert output.endswith(ColoredConsoleFormatter.RESET)


class TestLogFunctionCall:
    """Test the call-logging decorator."""

    async def test_async_function_result_is_returned(self):
        logger = Mock()

        @log_function_call(logger)
        async def add(a, b):
            return a + b

        assert await add(2, 3) == 5
        assert logger.debug.call_count == 2

    async def test_async_function_exception_propagates(self):
        logger = Mock()

        @log_function_call(logger)
        async def fail():
            raise ValueError("bad")

        with pytest.raises(ValueError):
            await fail()

        last_call = logger.debug.call_args
        assert last_call.kwargs["extra"]["success"] is False
        assert last_call.kwargs["extra"]["error_type"] == "ValueError"

