"""
In-Memory URL Repository

Keeps every mapping in process memory and persists it to an append-only
newline-delimited JSON log.

Persistence model:
- On construction the whole log is replayed into memory
- Every write appends a LogRecord to a pending buffer
- When the buffer holds batch_size records it is written to disk, fsynced
  and cleared before the triggering call returns; if that write fails the
  triggering change is reverted and the call raises RepositoryError
- flush() (called by close()) persists a partial batch on shutdown

A crash loses at most one batch of writes.

Concurrency:
- All read-modify-write sequences run under one asyncio.Lock, so two
  concurrent stores of the same URL cannot both see it as absent
- Pure reads have no await points and need no lock
"""

import asyncio
import logging
import os
import time
import uuid
from pathlib import Path
from typing import Callable, Iterable

from pydantic import ValidationError

from shortener.core.exceptions import (
    RepositoryError,
    ShortCodeCollisionError,
    StorageUnavailableError,
    URLDeletedError,
    URLNotFoundError,
)
from shortener.core.schemas import LogRecord, ServiceStats, URLMapping
from shortener.repositories.interface import URLRepository

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 100


class MemoryURLRepository(URLRepository):
    """
    URL repository backed by dictionaries and a recovery log.

    State:
    - short code -> original URL, and the reverse map
    - short code -> owner
    - set of soft-deleted short codes
    - owner -> short codes in creation order
    - pending log records not yet written to disk
    """

    def __init__(self, storage_file_path: str, batch_size: int = DEFAULT_BATCH_SIZE):
        """
        Create the repository and replay the log file into memory.

        Args:
            storage_file_path: Path of the NDJSON log (created on first flush)
            batch_size: Pending records that trigger a flush

        Raises:
            RepositoryError: If the log cannot be read or a line is malformed
        """
        self.storage_file_path = Path(storage_file_path)
        self.batch_size = batch_size

        self._short_to_original: dict[str, str] = {}
        self._original_to_short: dict[str, str] = {}
        self._owners: dict[str, uuid.UUID] = {}
        self._deleted: set[str] = set()
        self._user_urls: dict[uuid.UUID, list[str]] = {}

        self._buffer: list[LogRecord] = []
        self._lock = asyncio.Lock()

        self._load()

    def _load(self) -> None:
        """Replay the log file. A missing file means an empty store."""
        if not self.storage_file_path.exists():
            logger.info(f"No log at {self.storage_file_path}, starting with an empty store")
            return

        records = 0
        try:
            with self.storage_file_path.open("rb") as file:
                for line_number, raw_line in enumerate(file, start=1):
                    try:
                        line = raw_line.decode("utf-8").strip()
                        if not line:
                            continue
                        self._apply(LogRecord.model_validate_json(line))
                    except ValueError as e:
                        # ValidationError and UnicodeDecodeError are ValueError subclasses
                        logger.error(
                            f"Malformed record at {self.storage_file_path}:{line_number}: {e}",
                            exc_info=True
                        )
                        raise RepositoryError(
                            f"malformed record at {self.storage_file_path}:{line_number}",
                            original_error=e
                        ) from e
                    records += 1
        except OSError as e:
            logger.error(f"Failed to read log {self.storage_file_path}: {e}", exc_info=True)
            raise RepositoryError(
                f"failed to read log {self.storage_file_path}",
                original_error=e
            ) from e

        logger.info(
            f"Restored {len(self._short_to_original)} URLs from {records} records "
            f"in {self.storage_file_path}"
        )

    def _apply(self, record: LogRecord) -> None:
        """
        Apply one replayed record. Replaying a record twice is harmless.

        Raises:
            ValueError: If the record contradicts a mapping replayed earlier
        """
        known_original = self._short_to_original.get(record.short_url)
        if known_original is not None and known_original != record.original_url:
            raise ValueError(
                f"short code '{record.short_url}' already maps to {known_original}"
            )

        if record.deleted:
            if known_original is not None:
                self._deleted.add(record.short_url)
            return

        known_code = self._original_to_short.get(record.original_url)
        if known_code is not None and known_code != record.short_url:
            raise ValueError(
                f"{record.original_url} already has short code '{known_code}'"
            )
        if known_original is None:
            self._insert(record.owner, record.short_url, record.original_url)

    def _insert(self, user_id: uuid.UUID, short_code: str, original_url: str) -> None:
        self._short_to_original[short_code] = original_url
        self._original_to_short[original_url] = short_code
        self._owners[short_code] = user_id
        self._user_urls.setdefault(user_id, []).append(short_code)

    def _remove(self, short_code: str) -> None:
        """Undo _insert for a mapping whose log record could not be persisted."""
        original_url = self._short_to_original.pop(short_code)
        del self._original_to_short[original_url]
        user_id = self._owners.pop(short_code)
        codes = self._user_urls[user_id]
        codes.remove(short_code)
        if not codes:
            del self._user_urls[user_id]

    def _flush_locked(self) -> None:
        """Write the pending buffer to disk. Caller must hold the lock."""
        if not self._buffer:
            return

        start_time = time.perf_counter()
        count = len(self._buffer)
        try:
            self.storage_file_path.parent.mkdir(parents=True, exist_ok=True)
            with self.storage_file_path.open("a", encoding="utf-8") as file:
                for record in self._buffer:
                    file.write(record.model_dump_json() + "\n")
                file.flush()
                os.fsync(file.fileno())
        except OSError as e:
            # buffer is kept so the next flush retries it
            logger.error(
                f"Failed to flush {count} records to {self.storage_file_path}: {e}",
                exc_info=True
            )
            raise RepositoryError(
                f"failed to flush {count} records to {self.storage_file_path}",
                original_error=e
            ) from e

        self._buffer.clear()
        elapsed = time.perf_counter() - start_time
        logger.info(f"{count} URL records saved in {elapsed * 1000:.2f}ms")

    def _append_locked(self, records: list[LogRecord], undo: Callable[[], None]) -> None:
        """
        Buffer records for changes already applied in memory.

        If this triggers a flush that fails, the records are dropped from the
        buffer and undo() reverts the in-memory change, so a failed call
        leaves no visible state behind.
        """
        self._buffer.extend(records)
        if len(self._buffer) < self.batch_size:
            return
        try:
            self._flush_locked()
        except RepositoryError:
            del self._buffer[len(self._buffer) - len(records):]
            undo()
            raise

    async def flush(self) -> None:
        """Persist any pending records, even a partial batch."""
        async with self._lock:
            self._flush_locked()

    async def ping(self) -> None:
        directory = self.storage_file_path.parent
        if not directory.exists():
            try:
                directory.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise StorageUnavailableError("memory", original_error=e) from e
        if not os.access(directory, os.W_OK):
            raise StorageUnavailableError("memory")

    async def store_url(self, user_id: uuid.UUID, original_url: str, short_code: str) -> str:
        async with self._lock:
            existing = self._original_to_short.get(original_url)
            if existing is not None:
                return existing

            if short_code in self._short_to_original:
                raise ShortCodeCollisionError(short_code)

            self._insert(user_id, short_code, original_url)
            self._append_locked(
                [LogRecord(owner=user_id, short_url=short_code, original_url=original_url)],
                undo=lambda: self._remove(short_code)
            )
            return short_code

    async def get_short_url(self, original_url: str) -> str:
        short_code = self._original_to_short.get(original_url)
        if short_code is None:
            raise URLNotFoundError(original_url)
        return short_code

    async def get_original_url(self, short_code: str) -> str:
        original_url = self._short_to_original.get(short_code)
        if original_url is None:
            raise URLNotFoundError(short_code)
        if short_code in self._deleted:
            raise URLDeletedError(short_code)
        return original_url

    async def store_batch_url(
        self,
        user_id: uuid.UUID,
        batch: dict[str, str]
    ) -> dict[str, str]:
        async with self._lock:
            result: dict[str, str] = {}
            new_mappings: dict[str, str] = {}

            # validate the whole batch before touching any state
            for short_code, original_url in batch.items():
                existing = (
                    self._original_to_short.get(original_url)
                    or new_mappings.get(original_url)
                )
                if existing is not None:
                    result[original_url] = existing
                    continue
                if short_code in self._short_to_original:
                    raise ShortCodeCollisionError(short_code)
                new_mappings[original_url] = short_code
                result[original_url] = short_code

            records = []
            for original_url, short_code in new_mappings.items():
                self._insert(user_id, short_code, original_url)
                records.append(
                    LogRecord(owner=user_id, short_url=short_code, original_url=original_url)
                )

            def undo():
                for code in new_mappings.values():
                    self._remove(code)

            self._append_locked(records, undo=undo)
            return result

    async def get_short_batch_url(self, original_urls: Iterable[str]) -> dict[str, str]:
        return {
            original_url: self._original_to_short[original_url]
            for original_url in original_urls
            if original_url in self._original_to_short
        }

    async def get_user_urls(self, user_id: uuid.UUID) -> list[URLMapping]:
        return [
            URLMapping(short_url=short_code, original_url=self._short_to_original[short_code])
            for short_code in self._user_urls.get(user_id, [])
            if short_code not in self._deleted
        ]

    async def mark_urls_as_deleted(self, user_id: uuid.UUID, short_codes: list[str]) -> None:
        if not short_codes:
            return

        async with self._lock:
            tombstones = []
            for short_code in short_codes:
                if self._owners.get(short_code) != user_id or short_code in self._deleted:
                    continue
                self._deleted.add(short_code)
                tombstones.append(LogRecord(
                    owner=user_id,
                    short_url=short_code,
                    original_url=self._short_to_original[short_code],
                    deleted=True
                ))
            self._append_locked(
                tombstones,
                undo=lambda: self._deleted.difference_update(r.short_url for r in tombstones)
            )

        logger.info(f"Marked {len(tombstones)} of {len(short_codes)} URLs as deleted for {user_id}")

    async def get_stats(self) -> ServiceStats:
        return ServiceStats(urls=len(self._short_to_original), users=len(self._user_urls))

    async def close(self) -> None:
        await self.flush()
