"""
Logging configuration module.

Every module of the marketplace obtains its logger through
get_logger(__name__). Records go to the console and to a size-rotated
file in LOGS_DIR, using the level and format from settings.

Attributes:
    LOG_LEVEL: Logging level imported from settings.
    LOG_FILE: Log file name imported from settings.
    LOG_FORMAT: Log entry format imported from settings.
    LOG_DATE_FORMAT: Date/time format in logs imported from settings.
    LOGS_DIR: Directory for storing log files imported from settings.

Functions:
    get_logger: Creates and returns a configured logger for the module.
"""

import logging
import logging.handlers

from marketplace.config.settings import (
    LOG_DATE_FORMAT,
    LOG_FILE,
    LOG_FORMAT,
    LOG_LEVEL,
    LOGS_DIR,
)

MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUP_COUNT = 5


def get_logger(name: str) -> logging.Logger:
    """
    Creates and returns a configured logger for the module.

    Loggers are configured once; later calls with the same name return the
    existing logger untouched.

    Args:
        name (str): Module name, usually passed as __name__.

    Returns:
        logging.Logger: Configured logger ready for use.

    Examples:
        >>> from marketplace.utils.logger import get_logger
        >>> logger = get_logger(__name__)
        >>> logger.info("Processing upload", extra={"user_id": 7})
    """
    logger = logging.getLogger(name)
    logger.propagate = False

    if logger.handlers:
        return logger

    logger.setLevel(LOG_LEVEL)

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    file_handler = logging.handlers.RotatingFileHandler(
        filename=LOGS_DIR / LOG_FILE,
        maxBytes=MAX_LOG_BYTES,
        backupCount=LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    return logger
