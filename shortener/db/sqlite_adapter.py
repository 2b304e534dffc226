"""
SQLite Database Adapter

This module implements the DatabaseAdapter interface for SQLite.
All SQLite-specific configuration and behavior is encapsulated here.

Key characteristics:
- File-based (single .db file)
- No server required
- Single writer at a time (file locking), matching the service's
  single-node, single-writer model
"""

from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import NullPool

from shortener.db.interface import DatabaseAdapter


class SQLiteAdapter(DatabaseAdapter):
    """
    SQLite database adapter implementation.

    Every new connection gets WAL journaling (readers do not block the
    writer) and enforced foreign keys.
    """

    def create_engine(self, database_url: str, **kwargs) -> AsyncEngine:
        """
        Create SQLite async engine with appropriate configuration.

        Args:
            database_url: SQLite connection string (sqlite+aiosqlite:///...)
            **kwargs: Additional engine options (merged with SQLite defaults)

        Returns:
            Configured AsyncEngine for SQLite
        """
        engine_kwargs = self.get_engine_kwargs()
        engine_kwargs.update(kwargs)

        engine = create_async_engine(
            database_url,
            poolclass=self.get_pool_class(),
            connect_args=self.get_connect_args(),
            **engine_kwargs
        )

        @event.listens_for(engine.sync_engine, "connect")
        def _on_connect(dbapi_connection, connection_record):
            self.configure_connection(dbapi_connection)

        return engine

    def get_pool_class(self) -> type[NullPool]:
        """
        SQLite uses NullPool: a file-based database gains nothing from
        pooling and handles one writer at a time anyway.
        """
        return NullPool

    def get_connect_args(self) -> dict[str, Any]:
        return {
            "check_same_thread": False,
            "timeout": 15,
        }

    def get_engine_kwargs(self) -> dict[str, Any]:
        return {
            "echo": False  # Set to True only for SQL debugging in development
        }

    def configure_connection(self, dbapi_connection: Any) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def get_database_adapter() -> DatabaseAdapter:
    """
    Factory function to get the database adapter.

    Returns SQLiteAdapter by default.
    """
    return SQLiteAdapter()
