"""
Tests for the logging module.
"""

import json
import logging

import pytest
import structlog


class TestConfigureLogging:
    """Tests for configure_logging function."""

    def test_configure_console_and_json(self):
        """Both renderers configure without error."""
        from core.logging import configure_logging

        configure_logging(json_logs=False, log_level="DEBUG")
        configure_logging(json_logs=True, log_level="INFO")

    def test_configure_log_level(self):
        """Test that log level is correctly set."""
        from core.logging import configure_logging

        configure_logging(log_level="WARNING")

        assert logging.getLogger().level == logging.WARNING

    def test_http_client_loggers_silenced(self):
        """httpx request logging stays at WARNING even in debug mode."""
        from core.logging import configure_logging

        configure_logging(log_level="DEBUG")

        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("httpcore").level == logging.WARNING

    def test_configure_from_settings(self):
        """Settings drive level; debug forces DEBUG."""
        from config.settings import get_settings_for_testing
        from core.logging import configure_logging_from_settings

        configure_logging_from_settings(get_settings_for_testing(debug=False, log_level="ERROR"))
        assert logging.getLogger().level == logging.ERROR

        configure_logging_from_settings(get_settings_for_testing(debug=True))
        assert logging.getLogger().level == logging.DEBUG


class TestGetLogger:
    """Tests for get_logger function."""

    def test_get_named_logger(self):
        from core.logging import get_logger

        logger = get_logger("search.dispatcher")

        assert hasattr(logger, "info")
        assert hasattr(logger, "warning")

    def test_logger_accepts_key_value_context(self):
        """Test that logger can log structured events."""
        from core.logging import configure_logging, get_logger

        configure_logging(json_logs=False, log_level="DEBUG")
        logger = get_logger("test")

        # Should not raise
        logger.info("Search dispatched", query="phone", page=2)
        logger.warning("Search request failed", error="timeout")


class TestContextBinding:
    """Tests for context binding functions."""

    def test_bind_and_clear_context(self):
        from core.logging import bind_context, clear_context

        clear_context()
        bind_context(session_id="abc", query="phone")

        ctx = structlog.contextvars.get_contextvars()
        assert ctx.get("session_id") == "abc"
        assert ctx.get("query") == "phone"

        clear_context()
        assert "session_id" not in structlog.contextvars.get_contextvars()

    def test_unbind_specific_context(self):
        from core.logging import bind_context, clear_context, unbind_context

        clear_context()
        bind_context(session_id="abc", query="phone")
        unbind_context("query")

        ctx = structlog.contextvars.get_contextvars()
        assert ctx.get("session_id") == "abc"
        assert "query" not in ctx

        clear_context()


class TestJSONOutput:
    """Tests for JSON logging output."""

    def test_json_output_is_valid_json(self, capsys):
        from core.logging import configure_logging, get_logger

        configure_logging(json_logs=True, log_level="INFO")
        logger = get_logger("json_test")

        logger.info("Search returned no products", query="zzz")

        captured = capsys.readouterr()
        for line in captured.out.strip().split("\n"):
            if line:
                data = json.loads(line)
                assert "event" in data


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
