"""
Logging configuration for the relay bot.
"""

import logging
import os
import sys


def setup_logging(level: str | None = None):
    """Setup logging with proper format and handlers."""

    logger = logging.getLogger("filerelay")
    logger.setLevel((level or os.getenv("LOG_LEVEL", "INFO")).upper())

    # Remove existing handlers
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)

    formatter = logging.Formatter(
        '[%(asctime)s] [%(name)s] [%(levelname)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    handler.setFormatter(formatter)

    logger.addHandler(handler)

    # Prevent propagation to root logger
    logger.propagate = False

    return logger

# Global logger instance
bot_logger = setup_logging()
