"""
Unit tests for structured logging output.
"""
import io
import json
import logging
from typing import Any, Dict

import pytest
import structlog

from payment_relay.monitoring.logging import setup_logging


def emit(settings, event: str, **fields: Any) -> Dict[str, Any]:
    """Log one event through the configured pipeline and parse the line written."""
    setup_logging(settings)
    root_logger = logging.getLogger()
    stream = io.StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(root_logger.handlers[0].formatter)
    root_logger.addHandler(handler)
    try:
        structlog.get_logger("payment_relay.tests").info(event, **fields)
    finally:
        root_logger.removeHandler(handler)
    return json.loads(stream.getvalue().strip().splitlines()[-1])


class TestSetupLogging:
    """Test suite for setup_logging."""

    @pytest.mark.unit
    def test_event_is_written_as_flat_json(self, test_settings) -> None:
        line = emit(test_settings, "status_recorded", payment_id="pay_1", persisted=True)

        assert line["message"] == "status_recorded"
        assert line["payment_id"] == "pay_1"
        assert line["persisted"] is True
        assert line["level"] == "INFO"
        assert line["logger"] == "payment_relay.tests"
        assert line["@timestamp"]

    @pytest.mark.unit
    def test_app_context_is_attached(self, test_settings) -> None:
        line = emit(test_settings, "status_store_loaded", records=3)

        assert line["app_name"] == test_settings.app_name
        assert line["app_env"] == test_settings.app_env
        assert line["payment_environment"] == "test_mode"
        assert line["records"] == 3

    @pytest.mark.unit
    def test_bound_context_is_merged(self, test_settings) -> None:
        structlog.contextvars.bind_contextvars(request_id="req-123")
        try:
            line = emit(test_settings, "request_started")
        finally:
            structlog.contextvars.clear_contextvars()

        assert line["request_id"] == "req-123"

    @pytest.mark.unit
    def test_root_handler_uses_current_json_formatter(self, test_settings) -> None:
        setup_logging(test_settings)

        formatter = logging.getLogger().handlers[0].formatter

        assert type(formatter).__module__ == "pythonjsonlogger.json"
