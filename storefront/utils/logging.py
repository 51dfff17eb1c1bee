"""
Logging setup.

Configures the loguru logger for services and scripts.
"""

import sys

from loguru import logger


def setup_logging(
    level: str = "INFO", log_file: str | None = "logs/storefront.log"
) -> None:
    """
    Configure logger with stderr output and file rotation.

    Args:
        level: Minimum log level
        log_file: Rotated log file path, None to log to stderr only
    """
    logger.remove()
    logger.add(sys.stderr, level=level)

    if log_file:
        logger.add(
            log_file,
            rotation="1 day",
            retention="7 days",
            level=level,
            encoding="utf-8",
        )
