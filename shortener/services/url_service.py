"""
URL Shortening Service

This service handles the core business logic for URL shortening:
- One mapping per original URL: shortening a known URL returns the existing
  short URL flagged as already_exists
- Short code generation with bounded retries on collision
- Batch shortening in two repository round trips
- Fire-and-forget bulk deletion scoped to the caller
- Building full short URLs from the configured base URL

The service is stateless per request; all state lives in the repository.
Caller identity is passed explicitly as user_id.
"""

import asyncio
import logging
import uuid
from typing import Optional

from shortener.core.exceptions import (
    EncodingExhaustedError,
    InvalidURLError,
    ShortCodeCollisionError,
    StorageUnavailableError,
    URLNotFoundError,
)
from shortener.core.schemas import (
    BatchURLRequest,
    BatchURLResponse,
    ServiceStats,
    ShortenResult,
    URLMapping,
)
from shortener.core.validators import is_valid_url
from shortener.repositories.interface import URLRepository
from shortener.services.encoder import Base62Encoder

logger = logging.getLogger(__name__)

DEFAULT_DELETE_TIMEOUT = 60.0
DEFAULT_MAX_ATTEMPTS = 5


class ShortURLService:
    """
    Core business logic for URL shortening.

    Orchestrates the encoder and the repository. Separated from the API layer
    for testability.
    """

    def __init__(
        self,
        repository: URLRepository,
        encoder: Optional[Base62Encoder] = None,
        base_url: str = "http://localhost:8080",
        delete_timeout: float = DEFAULT_DELETE_TIMEOUT,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ):
        """
        Initialize the URL shortening service.

        Args:
            repository: Storage backend
            encoder: Short code generator
            base_url: Prefix of every returned short URL
            delete_timeout: Seconds a detached delete may run
            max_attempts: Codes to try before raising EncodingExhaustedError
        """
        self.repository = repository
        self.encoder = encoder or Base62Encoder()
        self.base_url = base_url
        self.delete_timeout = delete_timeout
        self.max_attempts = max_attempts
        self._pending_deletes: set[asyncio.Task] = set()

    def final_url_builder(self, short_code: str) -> str:
        """
        Join the base URL and a short code with exactly one slash.

        Example:
            base_url "http://localhost:8080/" + "abc" -> "http://localhost:8080/abc"
        """
        return f"{self.base_url.rstrip('/')}/{short_code.lstrip('/')}"

    @staticmethod
    def _validate(original_url: str) -> None:
        if not is_valid_url(original_url):
            raise InvalidURLError(
                original_url,
                reason="Invalid URL format. URL must have a scheme and a host"
            )

    async def get_short_url(self, user_id: uuid.UUID, original_url: str) -> ShortenResult:
        """
        Shorten a URL, or return the existing short URL.

        Args:
            user_id: Caller identity; becomes the owner of a new mapping
            original_url: The long URL to shorten

        Returns:
            ShortenResult with already_exists=True when the URL was known

        Raises:
            InvalidURLError: If the URL has no scheme or host
            EncodingExhaustedError: If every generated code collided
            RepositoryError: If storage fails
        """
        self._validate(original_url)

        try:
            short_code = await self.repository.get_short_url(original_url)
            return ShortenResult(short_url=self.final_url_builder(short_code), already_exists=True)
        except URLNotFoundError:
            pass

        for attempt in range(1, self.max_attempts + 1):
            short_code = self.encoder.generate()
            try:
                stored_code = await self.repository.store_url(user_id, original_url, short_code)
            except ShortCodeCollisionError:
                logger.warning(f"Short code collision on attempt {attempt} for {original_url}")
                continue

            # another request stored the same URL first
            already_exists = stored_code != short_code
            if not already_exists:
                logger.info(f"Created short URL: {stored_code} -> {original_url}")
            return ShortenResult(
                short_url=self.final_url_builder(stored_code),
                already_exists=already_exists
            )

        logger.error(f"Encoding exhausted after {self.max_attempts} attempts for {original_url}")
        raise EncodingExhaustedError(self.max_attempts)

    def _mint_codes(self, original_urls: list[str]) -> dict[str, str]:
        """Generate one code per URL, unique within the batch."""
        batch: dict[str, str] = {}
        for original_url in original_urls:
            short_code = self.encoder.generate()
            while short_code in batch:
                short_code = self.encoder.generate()
            batch[short_code] = original_url
        return batch

    async def get_batch_short_url(
        self,
        user_id: uuid.UUID,
        batch_requests: list[BatchURLRequest]
    ) -> list[BatchURLResponse]:
        """
        Shorten many URLs with at most two repository round trips.

        Known URLs are looked up in one call; codes are minted only for
        misses and stored in one call. The same URL appearing twice gets the
        same short URL and one stored mapping.

        Returns:
            One response per request, in request order

        Raises:
            InvalidURLError: If any URL is invalid; nothing is stored
            EncodingExhaustedError: If every attempt to store the misses collided
        """
        for request in batch_requests:
            self._validate(request.original_url)

        original_urls = list(dict.fromkeys(request.original_url for request in batch_requests))
        short_codes = await self.repository.get_short_batch_url(original_urls)

        misses = [original_url for original_url in original_urls if original_url not in short_codes]
        if misses:
            for attempt in range(1, self.max_attempts + 1):
                try:
                    stored = await self.repository.store_batch_url(user_id, self._mint_codes(misses))
                except ShortCodeCollisionError:
                    logger.warning(f"Short code collision on attempt {attempt} for a batch of {len(misses)}")
                    continue
                short_codes.update(stored)
                logger.info(f"Created {len(misses)} short URLs in batch")
                break
            else:
                logger.error(f"Encoding exhausted after {self.max_attempts} attempts for a batch")
                raise EncodingExhaustedError(self.max_attempts)

        return [
            BatchURLResponse(
                correlation_id=request.correlation_id,
                short_url=self.final_url_builder(short_codes[request.original_url])
            )
            for request in batch_requests
        ]

    async def get_original_url(self, short_code: str) -> str:
        """
        Resolve a short code to its original URL.

        Raises:
            URLNotFoundError: If the code is unknown
            URLDeletedError: If the mapping has been deleted
        """
        return await self.repository.get_original_url(short_code)

    async def get_user_urls(self, user_id: uuid.UUID) -> list[URLMapping]:
        """List the caller's non-deleted mappings as full short URLs."""
        mappings = await self.repository.get_user_urls(user_id)
        return [
            URLMapping(
                short_url=self.final_url_builder(mapping.short_url),
                original_url=mapping.original_url
            )
            for mapping in mappings
        ]

    async def _delete_user_urls(self, user_id: uuid.UUID, short_codes: list[str]) -> None:
        """Run one bulk delete under its own timeout; never raises."""
        try:
            await asyncio.wait_for(
                self.repository.mark_urls_as_deleted(user_id, short_codes),
                timeout=self.delete_timeout
            )
        except asyncio.TimeoutError:
            logger.error(
                f"Deleting {len(short_codes)} URLs for {user_id} timed out "
                f"after {self.delete_timeout}s"
            )
        except Exception as e:
            logger.error(
                f"Failed to delete {len(short_codes)} URLs for {user_id}: {e}",
                exc_info=True
            )

    def async_delete_user_urls(self, user_id: uuid.UUID, short_codes: list[str]) -> None:
        """
        Schedule deletion of the caller's short codes and return immediately.

        The deletion runs as its own task: cancelling the request that
        scheduled it does not cancel the deletion. Errors are logged only,
        since the caller has already been acknowledged.
        """
        task = asyncio.create_task(self._delete_user_urls(user_id, list(short_codes)))
        self._pending_deletes.add(task)
        task.add_done_callback(self._pending_deletes.discard)

    async def wait_for_pending_deletes(self) -> None:
        """Wait until every scheduled deletion has finished."""
        while self._pending_deletes:
            await asyncio.gather(*list(self._pending_deletes))

    async def get_service_stats(self) -> ServiceStats:
        """Count stored short URLs and distinct users."""
        return await self.repository.get_stats()

    async def get_storage_status(self) -> None:
        """
        Check that storage is usable.

        Raises:
            StorageUnavailableError: If the backend cannot be reached
        """
        try:
            await self.repository.ping()
        except StorageUnavailableError as e:
            logger.error(f"Storage check failed: {e}")
            raise

    async def close(self) -> None:
        """Finish pending deletions, then close the repository."""
        await self.wait_for_pending_deletes()
        await self.repository.close()
