"""
Test logging configuration.
"""
import io
import json
import logging

import pytest

from eventflow.core.logging_config import LOGGING_CONFIG, configure_logging


@pytest.fixture
def eventflow_logger():
    logger = logging.getLogger("eventflow")
    yield logger
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


def _capture(logger: logging.Logger) -> io.StringIO:
    stream = io.StringIO()
    logger.handlers[0].setStream(stream)
    return stream


class TestConfigureLogging:
    def test_text_format(self, eventflow_logger):
        config = configure_logging(level="debug", fmt="text")
        stream = _capture(eventflow_logger)

        logging.getLogger("eventflow.services.events").debug("Event %s created", 42)

        assert config["loggers"]["eventflow"]["level"] == "DEBUG"
        assert "[DEBUG] eventflow.services.events: Event 42 created" in stream.getvalue()

    def test_json_format(self, eventflow_logger):
        """Test that json mode writes one parseable object per record."""
        configure_logging(level="info", fmt="json")
        stream = _capture(eventflow_logger)

        logging.getLogger("eventflow.services.bookings").warning("Could not acquire lock for venue %s", 3)

        record = json.loads(stream.getvalue().strip())
        assert record["message"] == "Could not acquire lock for venue 3"
        assert record["level"] == "WARNING"
        assert record["logger"] == "eventflow.services.bookings"

    def test_level_filters_records(self, eventflow_logger):
        configure_logging(level="warning", fmt="text")
        stream = _capture(eventflow_logger)

        logging.getLogger("eventflow.services.hierarchy").info("Approval chain built")

        assert stream.getvalue() == ""

    def test_base_config_is_not_mutated(self, eventflow_logger):
        configure_logging(level="debug", fmt="json")

        assert LOGGING_CONFIG["handlers"]["console"]["formatter"] == "standard"
        assert LOGGING_CONFIG["loggers"]["eventflow"]["level"] == "INFO"
