"""
Custom Exceptions

This module defines custom exceptions for better error handling
and more specific error messages.

Taxonomy:
- URLNotFoundError: key absent from the store (either direction)
- URLDeletedError: short code exists but the mapping is soft-deleted
- RepositoryError: storage I/O or SQL failure, with operation context
- StorageUnavailableError: backend connectivity failure
- ShortCodeCollisionError: generated code already taken (retryable)
- EncodingExhaustedError: too many collisions in a row

"Already exists" is not an error: it is reported through
ShortenResult.already_exists.
"""

from typing import Optional


class URLShortenerException(Exception):
    """Base exception for URL shortener service."""
    pass


class InvalidURLError(URLShortenerException):
    """Raised when URL validation fails."""

    def __init__(self, url: str, reason: str = "Invalid URL format"):
        self.url = url
        self.reason = reason
        super().__init__(f"{reason}: {url}")


class URLNotFoundError(URLShortenerException):
    """Raised when a short code or original URL is not in the store."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"URL '{key}' not found")


class URLDeletedError(URLShortenerException):
    """Raised when a short code resolves to a soft-deleted mapping."""

    def __init__(self, short_code: str):
        self.short_code = short_code
        super().__init__(f"Short code '{short_code}' is marked as deleted")


class RepositoryError(URLShortenerException):
    """Raised when a storage operation fails."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        self.original_error = original_error
        super().__init__(f"Repository error: {message}")


class StorageUnavailableError(RepositoryError):
    """Raised when the storage backend cannot be reached."""

    def __init__(self, backend: str, original_error: Optional[Exception] = None):
        self.backend = backend
        super().__init__(f"storage '{backend}' is unavailable", original_error=original_error)


class ShortCodeCollisionError(RepositoryError):
    """Raised when a freshly generated short code is already taken."""

    def __init__(self, short_code: str, original_error: Optional[Exception] = None):
        self.short_code = short_code
        super().__init__(f"short code '{short_code}' already in use", original_error=original_error)


class EncodingExhaustedError(URLShortenerException):
    """Raised when no free short code was found within the retry budget."""

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(f"Failed to generate a unique short code after {attempts} attempts")
