"""
Tests for structured logging helpers.

Covers sensitive-data redaction, service info and duration logging.
"""

from unittest.mock import MagicMock

import pytest

from crossbridge.monitoring.logging import (
    SERVICE_NAME,
    add_service_info,
    configure_logging,
    log_duration,
    sanitize_sensitive_data,
)


class TestProcessors:
    """Tests for custom structlog processors."""

    def test_redacts_private_key(self):
        """Test that signing material is masked."""
        event = {"event": "signer_loaded", "signer_private_key": "0xdead", "address": "0x1"}

        result = sanitize_sensitive_data(None, "info", event)

        assert result["signer_private_key"] == "[REDACTED]"
        assert result["address"] == "0x1"

    def test_redacts_nested(self):
        """Test redaction inside nested structures."""
        event = {"event": "tx", "tx": {"raw_transaction": "0xbeef", "nonce": 1}}

        result = sanitize_sensitive_data(None, "info", event)

        assert result["tx"]["raw_transaction"] == "[REDACTED]"
        assert result["tx"]["nonce"] == 1

    def test_service_info(self):
        """Test service identification fields."""
        result = add_service_info(None, "info", {"event": "x"})

        assert result["service"] == SERVICE_NAME

    def test_configure_logging_json(self):
        """Test that JSON configuration is accepted."""
        configure_logging(level="DEBUG", json_output=True)
        configure_logging()


class TestLogDuration:
    """Tests for the duration context manager."""

    def test_logs_completion(self):
        """Test the completed event."""
        logger = MagicMock()

        with log_duration(logger, "route_planning", source=1):
            pass

        event = logger.info.call_args.args[0]
        assert event == "route_planning_completed"
        assert logger.info.call_args.kwargs["source"] == 1
        assert "duration_ms" in logger.info.call_args.kwargs

    def test_logs_failure_and_reraises(self):
        """Test the failed event."""
        logger = MagicMock()

        with pytest.raises(RuntimeError):
            with log_duration(logger, "route_planning"):
                raise RuntimeError("boom")

        assert logger.error.call_args.args[0] == "route_planning_failed"
        assert logger.error.call_args.kwargs["error"] == "boom"
