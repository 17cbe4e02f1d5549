from __future__ import annotations

import logging
import os
import sys

LOGGER_NAME = "documind"
CONSOLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

_configured = False


def get_log_level() -> int:
    """Resolve the level from LOG_LEVEL, falling back to DEBUG=true, then INFO."""
    level_str = os.getenv("LOG_LEVEL", "").strip().upper()
    if level_str in _LEVELS:
        return _LEVELS[level_str]

    if os.getenv("DEBUG", "").strip().lower() in ("true", "1", "yes"):
        return logging.DEBUG

    return logging.INFO


def setup_logging(level: int | None = None) -> logging.Logger:
    global _configured

    logger = logging.getLogger(LOGGER_NAME)
    if _configured:
        if level is not None:
            logger.setLevel(level)
        return logger

    logger.setLevel(level or get_log_level())
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, DATE_FORMAT))
    logger.addHandler(handler)
    logger.propagate = False

    _configured = True
    return logger
