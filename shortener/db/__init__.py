"""
Database module with abstraction layer.

This module provides:
- DatabaseAdapter interface: Abstract base class for database implementations
- SQLiteAdapter / PostgreSQLAdapter: dialect-specific implementations
- Session management: engine adapter selection and session factory

To add a new database backend:
1. Create a new adapter class inheriting from DatabaseAdapter
2. Implement all abstract methods
3. Register it in get_database_adapter() in session.py
"""

from shortener.db.interface import DatabaseAdapter
from shortener.db.session import create_session_maker, get_database_adapter

__all__ = [
    "DatabaseAdapter",
    "create_session_maker",
    "get_database_adapter",
]
