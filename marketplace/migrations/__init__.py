"""
Versioned schema migrations.

Each migration is a module with a ``VERSION`` string and ``upgrade`` /
``downgrade`` functions taking a SQLAlchemy connection. Applied versions are
recorded in the ``schema_migrations`` table, so migrate() only runs what is
still pending. Tables themselves are created by init_db(); migrations change
existing schemas.

Functions:
    applied_versions: Versions recorded in schema_migrations.
    migrate: Applies all pending migrations.
    rollback: Reverts the most recently applied migration.
"""

from typing import List, Optional, Set

from sqlalchemy import text  # type: ignore
from sqlalchemy.engine import Connection, Engine  # type: ignore

from marketplace.migrations import remove_uid_columns_from_users
from marketplace.utils.logger import get_logger

logger = get_logger(__name__)

MIGRATIONS = sorted([remove_uid_columns_from_users], key=lambda module: module.VERSION)


def _ensure_version_table(connection: Connection) -> None:
    connection.execute(
        text("CREATE TABLE IF NOT EXISTS schema_migrations (version VARCHAR(32) PRIMARY KEY)")
    )


def applied_versions(connection: Connection) -> Set[str]:
    _ensure_version_table(connection)
    rows = connection.execute(text("SELECT version FROM schema_migrations"))
    return {row[0] for row in rows}


def migrate(engine: Engine) -> List[str]:
    """
    Applies all pending migrations in version order, in one transaction.

    Returns:
        list[str]: Versions applied by this call.
    """
    applied: List[str] = []
    with engine.begin() as connection:
        done = applied_versions(connection)
        for migration in MIGRATIONS:
            if migration.VERSION in done:
                continue
            logger.info(f"Applying migration {migration.VERSION} ({migration.__name__})")
            migration.upgrade(connection)
            connection.execute(
                text("INSERT INTO schema_migrations (version) VALUES (:version)"),
                {"version": migration.VERSION},
            )
            applied.append(migration.VERSION)

    if not applied:
        logger.info("Schema is up to date")
    return applied


def rollback(engine: Engine) -> Optional[str]:
    """
    Reverts the most recently applied migration.

    Returns:
        Optional[str]: Reverted version, or None if nothing was applied.
    """
    with engine.begin() as connection:
        done = applied_versions(connection)
        for migration in reversed(MIGRATIONS):
            if migration.VERSION not in done:
                continue
            logger.info(f"Reverting migration {migration.VERSION} ({migration.__name__})")
            migration.downgrade(connection)
            connection.execute(
                text("DELETE FROM schema_migrations WHERE version = :version"),
                {"version": migration.VERSION},
            )
            return migration.VERSION

    logger.info("No migration to revert")
    return None
