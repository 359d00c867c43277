"""
Structured logging: JSON lines for log aggregators, pipe-separated text for local runs.
Level and format come from settings (LOG_LEVEL, LOG_JSON).
"""

import json
import logging
import sys
from typing import Any

from core.config import get_settings

# Attributes every LogRecord carries; anything else arrived through extra=
_RECORD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__.keys()
) | {"message", "asctime", "taskName"}


def get_logger(name: str) -> logging.Logger:
    """
    Return a logger with app-level config applied.
    Use logger.info("event", extra={"key": "value"}) for structured fields.
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger
    settings = get_settings()
    logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(logger.level)
    if settings.LOG_JSON:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")
        )
    logger.addHandler(handler)
    logger.propagate = False
    return logger


def extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    """Fields passed via extra= on the logging call."""
    return {k: v for k, v in record.__dict__.items() if k not in _RECORD_ATTRS}


class JsonFormatter(logging.Formatter):
    """Format log records as single-line JSON."""

    def format(self, record: logging.LogRecord) -> str:
        log_obj: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)
        log_obj.update(extra_fields(record))
        return json.dumps(log_obj, default=str)
