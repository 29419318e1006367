"""
Relational URL Repository

Stores mappings in a single SQL table (see db.models.ShortenedURL) through
SQLAlchemy's async engine.

Design Decisions:
- Inserts use "ON CONFLICT (original_url) DO NOTHING" so that storing an
  already known URL is a no-op enforced by the database, not a
  read-then-write race
- A short_code clash violates the primary key, rolls the transaction back
  and is reported as ShortCodeCollisionError for the caller to retry
- Batch stores and bulk deletes run in one transaction each
- Deletion is a soft delete scoped to the owner
"""

import logging
import uuid
from typing import Any, Iterable, Optional

from sqlalchemy import distinct, false, func, select, text, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from shortener.core.exceptions import (
    RepositoryError,
    ShortCodeCollisionError,
    StorageUnavailableError,
    URLDeletedError,
    URLNotFoundError,
)
from shortener.core.schemas import ServiceStats, URLMapping
from shortener.db.interface import DatabaseAdapter
from shortener.db.models import ShortenedURL
from shortener.db.session import create_session_maker, get_database_adapter
from shortener.repositories.interface import URLRepository

logger = logging.getLogger(__name__)

# Keeps IN (...) lists well below driver parameter limits
LOOKUP_CHUNK_SIZE = 500


def _chunks(items: list[str], size: int = LOOKUP_CHUNK_SIZE):
    for start in range(0, len(items), size):
        yield items[start:start + size]


class RelationalURLRepository(URLRepository):
    """
    URL repository backed by a relational database.

    Call initialize() once after construction to create the table.
    """

    def __init__(self, database_url: str, adapter: Optional[DatabaseAdapter] = None):
        """
        Args:
            database_url: SQLAlchemy async URL
            adapter: Dialect adapter; derived from the URL when omitted
        """
        self.adapter = adapter or get_database_adapter(database_url)
        self.engine = self.adapter.create_engine(database_url)
        self.session_maker = create_session_maker(self.engine)
        self._table = ShortenedURL.__table__

    async def initialize(self) -> None:
        """
        Create the shortened_urls table if it does not exist yet.

        Raises:
            StorageUnavailableError: If the database cannot be reached
        """
        try:
            async with self.engine.begin() as connection:
                await connection.run_sync(self._table.create, checkfirst=True)
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Failed to create table {self._table.name}: {e}", exc_info=True)
            raise StorageUnavailableError(self.adapter.get_dialect_name(), original_error=e) from e
        logger.info(f"Table {self._table.name} is ready ({self.adapter.get_dialect_name()})")

    async def _fetch_one(self, statement, operation: str, key: str) -> Optional[Any]:
        try:
            async with self.session_maker() as session:
                result = await session.execute(statement)
                return result.first()
        except SQLAlchemyError as e:
            logger.error(f"{operation} failed for '{key}': {e}", exc_info=True)
            raise RepositoryError(f"{operation} failed for '{key}'", original_error=e) from e

    async def _insert_mappings(
        self,
        user_id: uuid.UUID,
        batch: dict[str, str],
        operation: str
    ) -> dict[str, str]:
        """Insert rows ignoring known URLs, then read back the effective codes."""
        rows = [
            {
                "short_code": short_code,
                "original_url": original_url,
                "owner": user_id,
                "deleted": False,
            }
            for short_code, original_url in batch.items()
        ]
        original_urls = list(dict.fromkeys(batch.values()))
        statement = self.adapter.insert_ignore_conflicts(self._table, ["original_url"])

        stored: dict[str, str] = {}
        try:
            async with self.session_maker() as session:
                async with session.begin():
                    await session.execute(statement, rows)
                    for chunk in _chunks(original_urls):
                        lookup = select(ShortenedURL.original_url, ShortenedURL.short_code).where(
                            ShortenedURL.original_url.in_(chunk)
                        )
                        result = await session.execute(lookup)
                        stored.update({row.original_url: row.short_code for row in result})
        except IntegrityError as e:
            codes = ", ".join(batch)
            logger.warning(f"{operation}: short code collision among [{codes}]")
            raise ShortCodeCollisionError(codes, original_error=e) from e
        except SQLAlchemyError as e:
            logger.error(f"{operation} failed for {len(rows)} URLs: {e}", exc_info=True)
            raise RepositoryError(f"{operation} failed for {len(rows)} URLs", original_error=e) from e

        return stored

    async def ping(self) -> None:
        try:
            async with self.engine.connect() as connection:
                await connection.execute(text("SELECT 1"))
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Database ping failed: {e}", exc_info=True)
            raise StorageUnavailableError(self.adapter.get_dialect_name(), original_error=e) from e

    async def store_url(self, user_id: uuid.UUID, original_url: str, short_code: str) -> str:
        stored = await self._insert_mappings(user_id, {short_code: original_url}, "store_url")
        return stored[original_url]

    async def get_short_url(self, original_url: str) -> str:
        statement = select(ShortenedURL.short_code).where(
            ShortenedURL.original_url == original_url
        )
        row = await self._fetch_one(statement, "get_short_url", original_url)
        if row is None:
            raise URLNotFoundError(original_url)
        return row.short_code

    async def get_original_url(self, short_code: str) -> str:
        statement = select(ShortenedURL.original_url, ShortenedURL.deleted).where(
            ShortenedURL.short_code == short_code
        )
        row = await self._fetch_one(statement, "get_original_url", short_code)
        if row is None:
            raise URLNotFoundError(short_code)
        if row.deleted:
            raise URLDeletedError(short_code)
        return row.original_url

    async def store_batch_url(
        self,
        user_id: uuid.UUID,
        batch: dict[str, str]
    ) -> dict[str, str]:
        if not batch:
            return {}
        return await self._insert_mappings(user_id, batch, "store_batch_url")

    async def get_short_batch_url(self, original_urls: Iterable[str]) -> dict[str, str]:
        requested = list(dict.fromkeys(original_urls))
        if not requested:
            return {}

        found: dict[str, str] = {}
        try:
            async with self.session_maker() as session:
                async with session.begin():
                    for chunk in _chunks(requested):
                        statement = select(
                            ShortenedURL.original_url, ShortenedURL.short_code
                        ).where(ShortenedURL.original_url.in_(chunk))
                        result = await session.execute(statement)
                        found.update({row.original_url: row.short_code for row in result})
        except SQLAlchemyError as e:
            logger.error(f"get_short_batch_url failed for {len(requested)} URLs: {e}", exc_info=True)
            raise RepositoryError(
                f"get_short_batch_url failed for {len(requested)} URLs",
                original_error=e
            ) from e
        return found

    async def get_user_urls(self, user_id: uuid.UUID) -> list[URLMapping]:
        statement = select(ShortenedURL.short_code, ShortenedURL.original_url).where(
            ShortenedURL.owner == user_id,
            ShortenedURL.deleted == false()
        )
        try:
            async with self.session_maker() as session:
                result = await session.execute(statement)
                rows = result.all()
        except SQLAlchemyError as e:
            logger.error(f"get_user_urls failed for '{user_id}': {e}", exc_info=True)
            raise RepositoryError(f"get_user_urls failed for '{user_id}'", original_error=e) from e

        return [URLMapping(short_url=row.short_code, original_url=row.original_url) for row in rows]

    async def mark_urls_as_deleted(self, user_id: uuid.UUID, short_codes: list[str]) -> None:
        if not short_codes:
            return

        codes = list(dict.fromkeys(short_codes))
        marked = 0
        try:
            async with self.session_maker() as session:
                async with session.begin():
                    for chunk in _chunks(codes):
                        statement = (
                            update(self._table)
                            .where(
                                self._table.c.short_code.in_(chunk),
                                self._table.c.owner == user_id
                            )
                            .values(deleted=True)
                        )
                        result = await session.execute(statement)
                        marked += result.rowcount or 0
        except SQLAlchemyError as e:
            logger.error(f"mark_urls_as_deleted failed for '{user_id}': {e}", exc_info=True)
            raise RepositoryError(
                f"mark_urls_as_deleted failed for '{user_id}'",
                original_error=e
            ) from e

        logger.info(f"Marked {marked} of {len(codes)} URLs as deleted for {user_id}")

    async def get_stats(self) -> ServiceStats:
        statement = select(
            func.count(ShortenedURL.short_code),
            func.count(distinct(ShortenedURL.owner))
        )
        row = await self._fetch_one(statement, "get_stats", self._table.name)
        urls, users = row if row is not None else (0, 0)
        return ServiceStats(urls=urls, users=users)

    async def close(self) -> None:
        await self.engine.dispose()
