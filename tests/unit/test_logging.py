"""Tests for logging configuration."""

import structlog

from sarufi.core.logging import (
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
    unbind_context,
)


class TestLoggingConfiguration:
    """Tests for logging setup."""

    def test_configure_logging_sets_up_structlog(self):
        """configure_logging() sets up structlog properly."""
        configure_logging()
        logger = structlog.get_logger("test")
        assert logger is not None

    def test_get_logger_returns_bound_logger(self):
        """get_logger() returns a logger with the logging methods."""
        logger = get_logger("test_module")
        assert hasattr(logger, "info")
        assert hasattr(logger, "error")
        assert hasattr(logger, "debug")

    def test_logger_can_bind_context(self):
        """Logger can bind context variables."""
        logger = get_logger("test")
        bound_logger = logger.bind(session_id="test-123", strategy="shoe_sales")
        bound_logger.info("test_message")


class TestContextBinding:
    """Tests for contextvars helpers."""

    def teardown_method(self):
        clear_context()

    def test_bind_and_clear(self):
        bind_context(session_id="sess-1")
        assert structlog.contextvars.get_contextvars()["session_id"] == "sess-1"

        clear_context()
        assert "session_id" not in structlog.contextvars.get_contextvars()

    def test_unbind_single_key(self):
        bind_context(session_id="sess-1", request_id="req-1")

        unbind_context("session_id")

        bound = structlog.contextvars.get_contextvars()
        assert "session_id" not in bound
        assert bound["request_id"] == "req-1"


def test_configure_logging_writes_run_file(tmp_path):
    """A log directory gets one sarufi_*.log file per run."""
    configure_logging(log_dir=tmp_path)
    get_logger("test").info("file_logging_check")

    files = list(tmp_path.glob("sarufi_*.log"))
    assert len(files) == 1

    # Restore console-only logging for the rest of the suite
    configure_logging()
