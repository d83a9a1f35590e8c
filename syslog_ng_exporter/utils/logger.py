"""Structured JSON logging configuration."""

import logging
import sys
from typing import Optional, TextIO

from pythonjsonlogger import jsonlogger


def setup_logger(
    name: str = "syslog_ng_exporter",
    level: str = "INFO",
    stream: Optional[TextIO] = None
) -> logging.Logger:
    """
    Configure structured JSON logging.

    Args:
        name: Logger name
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        stream: Stream the JSON records are written to (default: stdout).
            Use stderr when stdout carries the exposition text.

    Returns:
        logging.Logger: Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper()))

    # Remove existing handlers to avoid duplicates
    logger.handlers = []

    handler = logging.StreamHandler(stream or sys.stdout)
    formatter = jsonlogger.JsonFormatter(
        '%(asctime)s %(name)s %(levelname)s %(message)s',
        timestamp=True
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    # Don't propagate to root logger
    logger.propagate = False

    return logger
