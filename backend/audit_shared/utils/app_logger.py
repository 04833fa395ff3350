"""
Logging utilities for the audit event service
Centralized logging configuration for the API and the worker
"""

import logging
import sys
from typing import Optional

from pythonjsonlogger.json import JsonFormatter

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def get_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """
    Get a logger, optionally overriding its level.

    Handlers are left to configure_logging so records propagate to the root
    handler (and to pytest's caplog).
    """
    logger = logging.getLogger(name)
    if level:
        logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    return logger


def configure_logging(level: str = "INFO") -> None:
    """
    Configure global logging settings.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    # Set root logger level (works even when handlers exist)
    logging.root.setLevel(log_level)

    # Only add handler if no handlers exist (avoid duplicate handlers)
    if not logging.root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(log_level)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logging.root.addHandler(handler)


def get_json_logger(name: str) -> logging.Logger:
    """
    Get a logger that writes one JSON document per record to stdout.

    Used for audit-typed streams that are shipped to external consumers;
    it does not propagate to the root handler.
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    logger.propagate = False
    return logger
