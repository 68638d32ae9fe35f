"""Logging for the trainer.

Every module logs through a child of the ``phish_trainer`` logger. The CLI
calls ``configure_logging`` once to attach a single stderr handler to that
logger, writing plain text or one JSON object per line depending on
``LOG_FORMAT``. Session context passed via ``extra=`` (session id, day,
email id) becomes fields of the JSON output.
"""
import json
import logging
import os
import sys
from typing import Optional

PACKAGE_LOGGER = "phish_trainer"
CONTEXT_FIELDS = ("session_id", "day", "email_id")

PLAIN_FORMAT = "%(asctime)s %(levelname)-7s %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for field in CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                entry[field] = value
        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def build_handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    if os.getenv("LOG_FORMAT", "plain").lower() == "json":
        handler.setFormatter(JsonFormatter(datefmt=DATE_FORMAT))
    else:
        handler.setFormatter(logging.Formatter(PLAIN_FORMAT, DATE_FORMAT))
    return handler


def configure_logging(default_level: str = "WARNING") -> logging.Logger:
    """Attach the trainer's handler, replacing one from an earlier call."""
    logger = logging.getLogger(PACKAGE_LOGGER)
    level_name = os.getenv("LOG_LEVEL", default_level).upper()
    logger.setLevel(getattr(logging, level_name, logging.WARNING))
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.addHandler(build_handler())
    logger.propagate = False
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Logger under the package namespace; ``__name__`` of a package module passes through."""
    if not name or name == PACKAGE_LOGGER:
        return logging.getLogger(PACKAGE_LOGGER)
    if name.startswith(PACKAGE_LOGGER + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{PACKAGE_LOGGER}.{name}")
