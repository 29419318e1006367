"""
Repository Factory

Chooses the storage backend once, at startup:
- DATABASE_URL set: RelationalURLRepository (table created on init)
- otherwise: MemoryURLRepository persisted to FILE_STORAGE_PATH
"""

import logging

from shortener.core.setting import Settings
from shortener.repositories.interface import URLRepository
from shortener.repositories.memory import MemoryURLRepository
from shortener.repositories.relational import RelationalURLRepository

logger = logging.getLogger(__name__)


async def create_repository(settings: Settings) -> URLRepository:
    """
    Build and initialize the configured repository.

    Args:
        settings: Application settings

    Returns:
        A ready-to-use URLRepository
    """
    if settings.DATABASE_URL:
        repository = RelationalURLRepository(settings.DATABASE_URL)
        await repository.initialize()
        logger.info(f"Using relational storage ({repository.adapter.get_dialect_name()})")
        return repository

    logger.info(f"Using in-memory storage with log at {settings.FILE_STORAGE_PATH}")
    return MemoryURLRepository(
        settings.FILE_STORAGE_PATH,
        batch_size=settings.MEMORY_FLUSH_BATCH_SIZE
    )
