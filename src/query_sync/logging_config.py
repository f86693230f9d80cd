"""Logging configuration.

Installs one stream handler with JSON-structured output on the package
logger. Modules log through ``logging.getLogger(__name__)``.
"""

import json
import logging
import sys
from typing import Any

PACKAGE_LOGGER = "query_sync"


class StructuredFormatter(logging.Formatter):
    """Format log records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if hasattr(record, "extra_fields"):
            log_data.update(record.extra_fields)

        return json.dumps(log_data, default=str)


def setup_logging(level: str = "INFO", structured: bool = True) -> logging.Logger:
    """Configure the package logger.

    Calling it again replaces the previous handler instead of stacking a new one.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ...)
        structured: Emit JSON lines when True, plain text otherwise

    Returns:
        The configured package logger
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level.upper())

    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    if structured:
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
    logger.addHandler(handler)
    logger.propagate = False

    return logger
