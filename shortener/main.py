"""
FastAPI Application Entry Point

This module initializes the FastAPI application and configures:
- API routes
- Middleware (request logging, caller identity)
- Storage backend and service lifecycle

Run with:
    uvicorn shortener.main:app --host 127.0.0.1 --port 8080
"""

import logging

from fastapi import FastAPI

from shortener.api import endpoints
from shortener.core.logging_config import setup_logging
from shortener.core.setting import settings
from shortener.middleware.identity import add_identity_middleware
from shortener.middleware.logging import add_logging_middleware
from shortener.repositories.factory import create_repository
from shortener.services.encoder import Base62Encoder
from shortener.services.url_service import ShortURLService

logger = logging.getLogger(__name__)

app = FastAPI(
    title="URL Shortener Service",
    description="Maps long URLs to short codes with per-user ownership",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

add_identity_middleware(app)
add_logging_middleware(app)

app.include_router(endpoints.router, tags=["URL Shortener"])


@app.on_event("startup")
async def startup_event():
    """Build the configured repository and the service on top of it."""
    setup_logging(settings.LOG_LEVEL)
    repository = await create_repository(settings)
    app.state.url_service = ShortURLService(
        repository,
        encoder=Base62Encoder(),
        base_url=settings.BASE_URL,
        delete_timeout=settings.DELETE_TIMEOUT_SECONDS,
        max_attempts=settings.SHORT_CODE_MAX_ATTEMPTS,
    )
    logger.info(f"URL shortener started, base URL {settings.BASE_URL}")


@app.on_event("shutdown")
async def shutdown_event():
    """Finish pending deletions and persist buffered state."""
    service = getattr(app.state, "url_service", None)
    if service is not None:
        await service.close()
        logger.info("URL shortener stopped")
