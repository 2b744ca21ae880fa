"""
Database Adapters

Concrete DatabaseAdapter implementations:

- SQLiteAdapter: file-based, default for local development and tests
- PostgreSQLAdapter: server-based, used in production (asyncpg driver)

get_database_adapter() picks the adapter from the URL scheme so that
switching backends is a configuration change only.
"""

from typing import Any

from sqlalchemy.pool import NullPool

from app.db.interface import DatabaseAdapter


class SQLiteAdapter(DatabaseAdapter):
    """
    SQLite database adapter implementation.

    Key characteristics:
    - File-based (single .db file), no server required
    - Single writer at a time (file locking)
    """

    def get_pool_class(self) -> type[NullPool]:
        """
        SQLite uses NullPool: a file-based database doesn't benefit from
        connection pooling.
        """
        return NullPool

    def get_connect_args(self, connect_timeout: float) -> dict[str, Any]:
        # "timeout" is how long sqlite waits on a locked database file
        return {
            "check_same_thread": False,
            "timeout": connect_timeout,
        }

    def get_engine_kwargs(self) -> dict[str, Any]:
        return {
            "echo": False  # Set to True only for SQL debugging in development
        }

    def get_dialect_name(self) -> str:
        return "sqlite"


class PostgreSQLAdapter(DatabaseAdapter):
    """
    PostgreSQL database adapter implementation (asyncpg).

    Uses SQLAlchemy's default queue pool; connections are checked with a
    pre-ping so that stale connections after a failover are replaced instead
    of surfacing as store errors.
    """

    def get_pool_class(self) -> None:
        return None

    def get_connect_args(self, connect_timeout: float) -> dict[str, Any]:
        return {
            "timeout": connect_timeout,
        }

    def get_engine_kwargs(self) -> dict[str, Any]:
        return {
            "echo": False,
            "pool_pre_ping": True,
            "pool_size": 10,
            "max_overflow": 20,
        }

    def get_dialect_name(self) -> str:
        return "postgresql"


def get_database_adapter(database_url: str) -> DatabaseAdapter:
    """
    Factory function to get the database adapter for a connection string.

    Args:
        database_url: Async SQLAlchemy URL

    Returns:
        DatabaseAdapter instance

    Raises:
        ValueError: If the URL scheme has no adapter
    """
    scheme = database_url.split("://", 1)[0]
    if scheme.startswith("sqlite"):
        return SQLiteAdapter()
    if scheme.startswith("postgresql"):
        return PostgreSQLAdapter()
    raise ValueError(f"Unsupported database URL scheme: '{scheme}'")
