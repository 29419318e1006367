"""
Domain Value Types

Plain pydantic models passed between the service layer, the repositories
and the API layer. Field names match the JSON used on the wire and in the
in-memory repository's log file.
"""

import uuid

from pydantic import BaseModel, Field


class URLMapping(BaseModel):
    """A short URL and the original it points to."""
    short_url: str
    original_url: str


class BatchURLRequest(BaseModel):
    """One entry of a batch shorten request."""
    correlation_id: str
    original_url: str


class BatchURLResponse(BaseModel):
    """One entry of a batch shorten response."""
    correlation_id: str
    short_url: str


class ShortenResult(BaseModel):
    """
    Result of shortening a single URL.

    already_exists is True when the URL had been shortened before and the
    existing short URL is returned instead of a new one.
    """
    short_url: str
    already_exists: bool = False


class ServiceStats(BaseModel):
    """Aggregate counts over the whole store."""
    urls: int = Field(..., ge=0, description="Number of distinct short codes")
    users: int = Field(..., ge=0, description="Number of distinct owners")


class LogRecord(BaseModel):
    """
    One line of the in-memory repository's append-only log.

    A record with deleted=True is a tombstone for a mapping written earlier.
    """
    owner: uuid.UUID
    short_url: str
    original_url: str
    deleted: bool = False
