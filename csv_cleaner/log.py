"""Logging setup for the csv_cleaner package.

Module loggers live under the ``csv_cleaner`` namespace; this installs a
single stdout handler on that namespace with labelled output.
"""

from __future__ import annotations

import logging
import sys

__all__ = ["setup_logging", "LabeledFormatter"]

LOGGER_NAME = "csv_cleaner"

_configured = False


class LabeledFormatter(logging.Formatter):
    LEVEL_LABELS = {
        logging.DEBUG: "DEBUG",
        logging.INFO: "INFO",
        logging.WARNING: "WARN",
        logging.ERROR: "ERROR",
        logging.CRITICAL: "CRITICAL",
    }

    def format(self, record: logging.LogRecord) -> str:
        label = self.LEVEL_LABELS.get(record.levelno, record.levelname)
        message = f"{label} [{record.name}] {record.getMessage()}"
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        return message


def setup_logging(level: str | int = "INFO") -> logging.Logger:
    """Configure the package logger. Calling it again only updates the level."""
    global _configured

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level.upper() if isinstance(level, str) else level)

    if _configured:
        return logger

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(LabeledFormatter())
    logger.addHandler(handler)

    _configured = True
    return logger
