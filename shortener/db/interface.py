"""
Database Abstraction Interface

This module defines the database abstraction layer that allows switching between
different database backends (SQLite, PostgreSQL) without changing the
relational repository.

The interface covers the parts that differ per dialect: engine and pool
configuration, and the "insert, ignore conflict" statement used to store
mappings without a read-then-write race.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional, Sequence

from sqlalchemy import Insert, Table
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlalchemy.pool import Pool


class DatabaseAdapter(ABC):
    """
    Abstract base class for database adapters.

    To add a new database backend:
    1. Create a new class inheriting from DatabaseAdapter
    2. Implement all abstract methods
    3. Register it in get_database_adapter()
    """

    @abstractmethod
    def create_engine(self, database_url: str, **kwargs) -> AsyncEngine:
        """
        Create and configure the async database engine.

        Args:
            database_url: Connection string for the database
            **kwargs: Additional engine configuration options

        Returns:
            Configured AsyncEngine instance
        """
        pass

    @abstractmethod
    def get_pool_class(self) -> Optional[type[Pool]]:
        """
        Get the connection pool class for this database type.

        Returns:
            Pool class or None to use the driver default
        """
        pass

    @abstractmethod
    def get_connect_args(self) -> dict[str, Any]:
        """Get connection arguments specific to this database type."""
        pass

    @abstractmethod
    def get_engine_kwargs(self) -> dict[str, Any]:
        """Get additional engine configuration specific to this database type."""
        pass

    @abstractmethod
    def insert_ignore_conflicts(self, table: Table, conflict_columns: Sequence[str]) -> Insert:
        """
        Build an INSERT that silently skips rows violating a unique constraint.

        Only the constraint on conflict_columns is ignored; any other
        violation still raises IntegrityError.

        Args:
            table: Target table
            conflict_columns: Columns of the unique constraint to ignore

        Returns:
            Insert statement ready for execution with parameters
        """
        pass

    @abstractmethod
    def get_dialect_name(self) -> str:
        """
        Get the SQLAlchemy dialect name for this database.

        Returns:
            Dialect name (e.g., 'sqlite', 'postgresql')
        """
        pass
