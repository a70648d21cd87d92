"""Logging setup for the service.

Plain text by default; set LOG_FORMAT=json for one JSON object per line.
"""
import copy
import logging
import logging.config

from pythonjsonlogger import jsonlogger

from eventflow.core.config import LOG_FORMAT, LOG_LEVEL


class EventflowJsonFormatter(jsonlogger.JsonFormatter):
    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)
        log_record["level"] = record.levelname
        log_record["logger"] = record.name


LOGGING_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {
            "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        },
        "json": {
            "()": EventflowJsonFormatter,
            "format": "%(asctime)s %(levelname)s %(name)s %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "standard",
        },
    },
    "loggers": {
        "eventflow": {
            "handlers": ["console"],
            "level": "INFO",
            "propagate": False,
        },
    },
}


def configure_logging(level: str | None = None, fmt: str | None = None) -> dict:
    """Apply LOGGING_CONFIG to the ``eventflow`` logger tree and return what was applied."""
    config = copy.deepcopy(LOGGING_CONFIG)
    if (fmt or LOG_FORMAT) == "json":
        config["handlers"]["console"]["formatter"] = "json"
    config["loggers"]["eventflow"]["level"] = (level or LOG_LEVEL).upper()
    logging.config.dictConfig(config)
    return config
