"""Logging for the bmad namespace.

Every module logs through ``get_logger("<area>.<module>")``. The server and
CLI call :func:`setup_logging` once at startup; output always goes to stderr
because stdout carries the stdio MCP stream.
"""
from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime

ROOT_LOGGER = "bmad"
PLAIN_FORMAT = "%(asctime)s %(levelname)-7s %(name)s | %(message)s"

_HANDLER_NAME = "bmad-stderr"


class JSONFormatter(logging.Formatter):
    """One JSON object per record, with an ISO-8601 UTC timestamp."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "time": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def _find_handler(logger: logging.Logger) -> logging.Handler | None:
    for handler in logger.handlers:
        if handler.get_name() == _HANDLER_NAME:
            return handler
    return None


def setup_logging(level: str = "INFO", json_output: bool = False) -> logging.Logger:
    """Configure the ``bmad`` logger and return it.

    Safe to call repeatedly: the stderr handler is installed once, while the
    level and output format follow the most recent call.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    numeric = logging.getLevelName(level.upper())
    logger.setLevel(numeric if isinstance(numeric, int) else logging.INFO)

    handler = _find_handler(logger)
    if handler is None:
        handler = logging.StreamHandler(sys.stderr)
        handler.set_name(_HANDLER_NAME)
        logger.addHandler(handler)

    handler.setFormatter(JSONFormatter() if json_output else logging.Formatter(PLAIN_FORMAT))
    return logger


def get_logger(name: str) -> logging.Logger:
    """Return ``bmad.<name>``, e.g. ``get_logger("kb.store")``."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
