"""
Removes the unused uid columns from the users table.
"""

from sqlalchemy import inspect, text  # type: ignore
from sqlalchemy.engine import Connection  # type: ignore

VERSION = "20130723124836"

# Re-added in this order on downgrade
UID_COLUMNS = (("uid_confirmed", "BOOLEAN"), ("uid", "VARCHAR"))


def _user_columns(connection: Connection) -> set:
    return {column["name"] for column in inspect(connection).get_columns("users")}


def upgrade(connection: Connection) -> None:
    existing = _user_columns(connection)
    for name in ("uid", "uid_confirmed"):
        if name in existing:
            connection.execute(text(f"ALTER TABLE users DROP COLUMN {name}"))


def downgrade(connection: Connection) -> None:
    existing = _user_columns(connection)
    for name, column_type in UID_COLUMNS:
        if name not in existing:
            connection.execute(text(f"ALTER TABLE users ADD COLUMN {name} {column_type}"))
