"""
Logging configuration.

Configures the loguru logger: stderr at the configured level plus a
rotating file sink.
"""

import sys

from loguru import logger

from app.config.settings import settings


def setup_logging(component: str = "api") -> None:
    """Configure logger with file rotation."""
    logger.remove()
    logger.add(sys.stderr, level=settings.log_level)
    logger.add(
        settings.log_file,
        rotation="1 day",
        retention="7 days",
        level=settings.log_level,
        encoding="utf-8",
    )

    logger.info(f"Starting stakehub {component} ({settings.environment})...")
