"""
Server Initialization - Logging Module.

Configures loguru logger for the API and crawler process.
Sets up log rotation and retention policies.
"""

import sys

from loguru import logger

from hexsearch.config.settings import Settings


def setup_logging(settings: Settings) -> None:
    """Configure stderr output and a rotating log file."""
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

    logger.info(f"Starting hexsearch ({settings.environment})...")
