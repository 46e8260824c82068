"""Logging setup for the CountScale application."""

from __future__ import annotations

import logging
import os

LOG_APP_NAME = "countscale"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(module)s:%(funcName)s:%(lineno)d] - %(message)s"


def setup_logging(level: str | int | None = None) -> logging.Logger:
    """
    Configure the ``countscale`` logger.

    The level comes from ``level`` or the ``COUNTSCALE_LOG_LEVEL``
    environment variable (default ``INFO``).  ``OFF`` installs a
    ``NullHandler`` instead.  Calling this repeatedly replaces the handlers
    rather than stacking them.
    """
    if level is None:
        level = os.getenv("COUNTSCALE_LOG_LEVEL", "INFO")
    app_logger = logging.getLogger(LOG_APP_NAME)
    if app_logger.hasHandlers():
        app_logger.handlers.clear()

    if isinstance(level, str) and level.upper() == "OFF":
        app_logger.addHandler(logging.NullHandler())
        return app_logger

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.setLevel(level)
    app_logger.addHandler(handler)
    app_logger.setLevel(level)
    app_logger.info("Logging configured at level %s", logging.getLevelName(level))
    return app_logger
