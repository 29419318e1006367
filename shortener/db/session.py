"""
Database Engine and Session Management

This module builds async engines and session factories for the relational
repository. Dialect-specific configuration is delegated to a DatabaseAdapter
chosen from the URL scheme.

Key Features:
- Database abstraction: SQLite by default, PostgreSQL by URL
- Connection pooling: configured per database type
- Async session management with expire_on_commit disabled so values stay
  readable after a transaction ends
"""

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession as SQLModelAsyncSession

from shortener.db.interface import DatabaseAdapter
from shortener.db.postgres_adapter import PostgreSQLAdapter
from shortener.db.sqlite_adapter import SQLiteAdapter


def get_database_adapter(database_url: str) -> DatabaseAdapter:
    """
    Factory function to get the database adapter for a connection string.

    Args:
        database_url: SQLAlchemy async URL

    Returns:
        DatabaseAdapter instance

    Raises:
        ValueError: If the dialect is not supported
    """
    backend = make_url(database_url).get_backend_name()
    if backend == "sqlite":
        return SQLiteAdapter()
    if backend == "postgresql":
        return PostgreSQLAdapter()
    raise ValueError(f"Unsupported database backend: {backend}")


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker[SQLModelAsyncSession]:
    """
    Create the async session factory bound to an engine.

    Transactions are opened explicitly with session.begin(), which commits on
    success and rolls back on any exception.
    """
    return async_sessionmaker(
        engine,
        class_=SQLModelAsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
