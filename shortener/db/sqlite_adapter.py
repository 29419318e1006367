"""
SQLite Database Adapter

DatabaseAdapter for SQLite through the aiosqlite driver. This is the backend
used by the test suite and by single-process deployments that want durable
storage without running a database server.

Writers are serialized by SQLite's file lock, so a short code collision or a
known original URL is still resolved by the table constraints rather than
by the application.
"""

from typing import Any, Sequence

from sqlalchemy import Insert, Table
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import NullPool

from shortener.db.interface import DatabaseAdapter


class SQLiteAdapter(DatabaseAdapter):
    """
    SQLite database adapter implementation.

    Uses aiosqlite as the async driver (sqlite+aiosqlite:///path.db).
    """

    def create_engine(self, database_url: str, **kwargs) -> AsyncEngine:
        """
        Build an engine that opens a fresh connection per checkout.

        Every session gets its own aiosqlite connection (NullPool), and the
        connection may be used from the driver's worker thread.
        """
        engine_kwargs = self.get_engine_kwargs()
        engine_kwargs.update(kwargs)

        return create_async_engine(
            database_url,
            poolclass=self.get_pool_class(),
            connect_args=self.get_connect_args(),
            **engine_kwargs
        )

    def get_pool_class(self) -> type[NullPool]:
        return NullPool

    def get_connect_args(self) -> dict[str, Any]:
        return {
            "check_same_thread": False
        }

    def get_engine_kwargs(self) -> dict[str, Any]:
        return {
            "echo": False
        }

    def insert_ignore_conflicts(self, table: Table, conflict_columns: Sequence[str]) -> Insert:
        """INSERT ... ON CONFLICT (conflict_columns) DO NOTHING."""
        return sqlite_insert(table).on_conflict_do_nothing(index_elements=list(conflict_columns))

    def get_dialect_name(self) -> str:
        return "sqlite"
