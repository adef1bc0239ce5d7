"""
Logging configuration.

Configures loguru sinks for worker and scheduler processes.
"""

import sys

from loguru import logger

from app.config.settings import settings


def setup_logging(process_name: str = "income-engine") -> None:
    """
    Configure logger with stderr output and file rotation.

    Args:
        process_name: Name written to the startup line
    """
    logger.remove()
    logger.add(sys.stderr, level=settings.log_level)

    if settings.log_file:
        logger.add(
            settings.log_file,
            rotation="1 day",
            retention="7 days",
            level=settings.log_level,
            encoding="utf-8",
        )

    logger.info(f"Starting {process_name}...")
