"""
Storage backends for short URL mappings.

- URLRepository: interface used by the service layer
- MemoryURLRepository: dictionaries plus an append-only recovery log
- RelationalURLRepository: SQL table with soft deletion
- create_repository: picks one of them from settings
"""

from shortener.repositories.factory import create_repository
from shortener.repositories.interface import URLRepository
from shortener.repositories.memory import MemoryURLRepository
from shortener.repositories.relational import RelationalURLRepository

__all__ = [
    "URLRepository",
    "MemoryURLRepository",
    "RelationalURLRepository",
    "create_repository",
]
