"""Logging configuration helpers for the STEM-Play service."""

import logging

from app.core.config import LOG_LEVEL


def configure_logging(level: str = LOG_LEVEL) -> logging.Logger:
    """Configure basic logging for the service and return the app logger."""
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
    return logging.getLogger("app")
