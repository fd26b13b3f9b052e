"""
Unit Tests - Logging Setup
"""
import io
import json
import logging

import pytest
import structlog

from marketplace_analytics.config import get_settings
from marketplace_analytics.config.logging import configure_logging


@pytest.fixture
def log_stream():
    """Stream the root handler writes to; logging state is restored afterwards"""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    stream = io.StringIO()
    yield stream
    root.handlers = handlers
    root.setLevel(level)
    structlog.reset_defaults()


def events(stream):
    return [json.loads(line) for line in stream.getvalue().splitlines() if line]


class TestConfigureLogging:
    """Tests for configure_logging"""

    def test_json_events_carry_service_context(self, log_stream):
        configure_logging("INFO", stream=log_stream)

        structlog.get_logger("marketplace_analytics.analytics").info("Dashboard request started", view="growth")

        event = events(log_stream)[-1]
        assert event["event"] == "Dashboard request started"
        assert event["view"] == "growth"
        assert event["level"] == "info"
        assert event["service"] == get_settings().app_name
        assert event["timezone"] == get_settings().analytics.timezone

    def test_server_logs_share_the_handler(self, log_stream):
        """uvicorn records go through the same JSON formatter"""
        configure_logging("INFO", stream=log_stream)

        logging.getLogger("uvicorn.access").info("GET /api/v1/health 200")

        event = events(log_stream)[-1]
        assert event["event"] == "GET /api/v1/health 200"
        assert event["logger"] == "uvicorn.access"
        assert "service" in event

    def test_level_filters_events(self, log_stream):
        configure_logging("WARNING", stream=log_stream)

        structlog.get_logger("marketplace_analytics.analytics").info("Dashboard request started")
        structlog.get_logger("marketplace_analytics.analytics").warning("Dashboard section skipped")

        assert [e["event"] for e in events(log_stream)] == ["Dashboard section skipped"]

    def test_repeated_setup_keeps_one_handler(self, log_stream):
        configure_logging(stream=log_stream)
        configure_logging(stream=log_stream)

        assert len(logging.getLogger().handlers) == 1
