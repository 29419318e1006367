"""
API Request and Response Schemas

Pydantic models for the JSON endpoints. Batch entries and user URL listings
reuse the domain types from core.schemas.
"""

from pydantic import BaseModel, Field

from shortener.core.schemas import BatchURLRequest, BatchURLResponse, ServiceStats, URLMapping


class ShortenRequest(BaseModel):
    """Request model for POST /api/shorten."""
    url: str = Field(..., description="The long URL to shorten")


class ShortenResponse(BaseModel):
    """Response model for POST /api/shorten."""
    result: str = Field(..., description="The complete short URL")


__all__ = [
    "ShortenRequest",
    "ShortenResponse",
    "BatchURLRequest",
    "BatchURLResponse",
    "ServiceStats",
    "URLMapping",
]
