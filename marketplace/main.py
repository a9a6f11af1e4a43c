"""
Main module for preparing the marketplace database.

This module contains the application entry point function. It creates
missing tables, applies pending schema migrations and registers signal
handlers for proper shutdown. Uploads themselves are processed by Celery
workers.

Attributes:
    logger: Logger for registering main module events.

Functions:
    signal_handler: Signal handler for proper shutdown.
    main: Main application startup function.
"""

import signal
import sys
from typing import Any, NoReturn

from marketplace.core.database import engine, init_db
from marketplace.migrations import migrate
from marketplace.utils.logger import get_logger

logger = get_logger(__name__)


def signal_handler(signum: int, frame: Any) -> NoReturn:
    """
    Signal handler for proper shutdown.

    Args:
        signum (int): Signal number (e.g., SIGINT = 2, SIGTERM = 15).
        frame (Any): Current execution frame.
    """
    logger.info(f"Received signal {signum}. Shutting down...")
    sys.exit(0)


def main() -> None:
    """
    Main startup function.

    Performs the following operations:
    1. Registers signal handlers for proper shutdown
    2. Initializes the database (creates tables if they don't exist)
    3. Applies pending schema migrations

    Raises:
        SystemExit: In case of critical error calls sys.exit(1).
    """
    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    try:
        logger.info("Initializing database...")
        init_db()

        applied = migrate(engine)
        if applied:
            logger.info(f"Applied migrations: {', '.join(applied)}")

        logger.info("Application ready to work. Uploads are processed by Celery workers")
        logger.info(
            "For a manual upload use: celery -A marketplace call "
            "marketplace.tasks.mass_upload.process_mass_upload --args='[<user_id>, \"<file>\"]'"
        )

    except Exception as e:
        logger.critical(f"Critical error: {str(e)}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
