"""
URL Repository Interface

This module defines the storage contract used by the service layer. Two
implementations exist:
- MemoryURLRepository: in-process maps plus an append-only recovery log
- RelationalURLRepository: SQL table with a soft-delete flag

The backend is selected once at startup (see repositories.factory); the
service layer only ever sees this interface.

Ownership is passed explicitly as a user_id on every call that creates,
lists or deletes mappings.
"""

import uuid
from abc import ABC, abstractmethod
from typing import Iterable

from shortener.core.schemas import ServiceStats, URLMapping


class URLRepository(ABC):
    """
    Abstract base class for short URL storage backends.

    Error contract:
    - URLNotFoundError: key absent
    - URLDeletedError: short code resolved to a soft-deleted mapping
    - ShortCodeCollisionError: the short code is taken by another URL
    - StorageUnavailableError / RepositoryError: backend failures
    """

    @abstractmethod
    async def ping(self) -> None:
        """
        Check that the storage is usable.

        Raises:
            StorageUnavailableError: If the backend cannot be reached
        """
        pass

    @abstractmethod
    async def store_url(self, user_id: uuid.UUID, original_url: str, short_code: str) -> str:
        """
        Store a mapping unless original_url is already mapped.

        A conflicting insert on original_url is a no-op, not an error.

        Args:
            user_id: Owner of the new mapping
            original_url: The long URL
            short_code: Freshly generated code

        Returns:
            The short code actually mapped to original_url (the existing one
            if the URL was already stored)

        Raises:
            ShortCodeCollisionError: If short_code belongs to another URL
        """
        pass

    @abstractmethod
    async def get_short_url(self, original_url: str) -> str:
        """
        Look up the short code of an original URL.

        Raises:
            URLNotFoundError: If the URL has never been stored
        """
        pass

    @abstractmethod
    async def get_original_url(self, short_code: str) -> str:
        """
        Resolve a short code.

        Raises:
            URLNotFoundError: If the code is unknown
            URLDeletedError: If the mapping is soft-deleted
        """
        pass

    @abstractmethod
    async def store_batch_url(
        self,
        user_id: uuid.UUID,
        batch: dict[str, str]
    ) -> dict[str, str]:
        """
        Store several mappings, all or nothing.

        Args:
            user_id: Owner of the new mappings
            batch: short_code -> original_url

        Returns:
            original_url -> effective short code for every URL in the batch

        Raises:
            ShortCodeCollisionError: If any code is taken; nothing is stored
        """
        pass

    @abstractmethod
    async def get_short_batch_url(self, original_urls: Iterable[str]) -> dict[str, str]:
        """
        Look up short codes for many URLs at once.

        Returns:
            original_url -> short_code for the URLs that are already stored;
            misses are omitted
        """
        pass

    @abstractmethod
    async def get_user_urls(self, user_id: uuid.UUID) -> list[URLMapping]:
        """
        List the non-deleted mappings owned by user_id.

        short_url holds the bare short code at this layer.
        """
        pass

    @abstractmethod
    async def mark_urls_as_deleted(self, user_id: uuid.UUID, short_codes: list[str]) -> None:
        """
        Soft-delete the given codes owned by user_id.

        Codes owned by someone else, or unknown codes, are skipped silently.
        """
        pass

    @abstractmethod
    async def get_stats(self) -> ServiceStats:
        """Count distinct short codes and distinct owners."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Persist pending state and release resources."""
        pass
