"""
Module for working with the database.

This module provides functions and utilities for initializing, connecting
and interacting with the marketplace database. Includes functions for creating
sessions, checking connections and initializing the database schema.

Attributes:
    logger: Logger for registering database-related events.
    engine: SQLAlchemy Engine instance for database connection.
    SessionLocal: SQLAlchemy session factory for creating Session objects.

Functions:
    init_db: Initializes the database, creating all necessary tables.
    get_db: Context manager for working with database session.
    check_connection: Checks database connection.
"""

from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, event, text  # type: ignore
from sqlalchemy.engine import Engine  # type: ignore
from sqlalchemy.exc import SQLAlchemyError  # type: ignore
from sqlalchemy.orm import Session, sessionmaker  # type: ignore

from marketplace.config.settings import DATABASE_URL
from marketplace.core.models import Base
from marketplace.utils.logger import get_logger

logger = get_logger(__name__)


def enable_sqlite_savepoints(sqlite_engine: Engine) -> None:
    """
    Lets SQLite engines honour SAVEPOINTs.

    The sqlite3 driver delays BEGIN on its own, which breaks nested
    transactions. Transaction control is taken over so that every row of a
    mass upload can be rolled back on its own.
    """

    @event.listens_for(sqlite_engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(sqlite_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")


if DATABASE_URL.startswith("sqlite"):
    engine = create_engine(DATABASE_URL)
    enable_sqlite_savepoints(engine)
else:
    engine = create_engine(
        DATABASE_URL,
        pool_size=5,  # Maximum number of connections in pool
        max_overflow=10,  # Connections that can be created above pool_size
        pool_timeout=30,  # Wait time for available connection in seconds
        pool_recycle=1800,  # Reconnect after 30 minutes to prevent connection drops
    )

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db() -> None:
    """
    Database initialization.

    Creates all tables defined in models if they don't exist.

    Raises:
        SQLAlchemyError: If an error occurred while creating tables.
    """
    try:
        Base.metadata.create_all(bind=engine)
        logger.info("Database successfully initialized")
    except SQLAlchemyError:
        logger.error("Error initializing database", exc_info=True)
        raise


@contextmanager
def get_db() -> Generator[Session, None, None]:
    """
    Context manager for working with database session.

    Creates a new session and commits it when the block finishes, or rolls
    it back when a database error escapes the block. The session is always
    closed afterwards.

    Yields:
        Session: SQLAlchemy database session for performing operations.

    Raises:
        SQLAlchemyError: When errors occur in database operations.

    Examples:
        >>> with get_db() as db:
        ...     user = db.get(User, 1)
        ...     results = process_rows(db, rows, user)
        # Automatically performs db.commit() when exiting the block
    """
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.error("Error working with database", exc_info=True)
        raise
    finally:
        db.close()


def check_connection() -> bool:
    """
    Database connection check.

    Returns:
        bool: True if connection is successfully established, False otherwise.
    """
    try:
        with get_db() as db:
            db.execute(text("SELECT 1"))
            logger.info("Database connection successful")
            return True
    except SQLAlchemyError:
        logger.error("Database connection error", exc_info=True)
        return False
