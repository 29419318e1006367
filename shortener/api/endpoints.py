"""
FastAPI Endpoints for URL Shortener Service

This module defines all REST API endpoints with minimal logic.
Endpoints only handle:
- Request validation (Pydantic models)
- Error handling and HTTP responses
- Delegating to the service layer

Status code mapping:
- already shortened URL: 409 with the existing short URL
- unknown short code: 400
- deleted short code: 410
- internal route outside TRUSTED_SUBNET: 403
- storage failures: 500

Fixed paths are declared before the catch-all /{short_code} route.
"""

import logging
import uuid

from fastapi import APIRouter, Body, Depends, HTTPException, Request, Response, status
from fastapi.responses import JSONResponse, PlainTextResponse, RedirectResponse

from shortener.api.dependencies import get_url_service, get_user_id, require_trusted_subnet
from shortener.api.schemas import (
    BatchURLRequest,
    BatchURLResponse,
    ServiceStats,
    ShortenRequest,
    ShortenResponse,
    URLMapping,
)
from shortener.core.exceptions import (
    EncodingExhaustedError,
    InvalidURLError,
    RepositoryError,
    StorageUnavailableError,
    URLDeletedError,
    URLNotFoundError,
)
from shortener.core.validators import sanitize_short_code
from shortener.services.url_service import ShortURLService

logger = logging.getLogger(__name__)

router = APIRouter()


def _shorten_error(error: Exception) -> HTTPException:
    """Map a shortening failure to an HTTP error."""
    if isinstance(error, InvalidURLError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))
    logger.error(f"Shortening failed: {error}")
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(error))


@router.get("/ping", summary="Check storage availability")
async def ping(service: ShortURLService = Depends(get_url_service)) -> dict:
    """
    Health check that probes the storage backend.

    Raises:
        HTTPException 500: If storage is unavailable
    """
    try:
        await service.get_storage_status()
    except StorageUnavailableError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e)
        )
    return {"status": "ok"}


@router.post(
    "/",
    status_code=status.HTTP_201_CREATED,
    response_class=PlainTextResponse,
    summary="Create a short URL from a plain-text body"
)
async def create_short_url_text(
    request: Request,
    service: ShortURLService = Depends(get_url_service),
    user_id: uuid.UUID = Depends(get_user_id)
) -> PlainTextResponse:
    """
    Shorten the URL sent as the raw request body.

    Returns:
        201 with the short URL, or 409 with the existing one
    """
    original_url = (await request.body()).decode("utf-8", errors="replace").strip()
    try:
        result = await service.get_short_url(user_id, original_url)
    except (InvalidURLError, RepositoryError, EncodingExhaustedError) as e:
        raise _shorten_error(e)

    return PlainTextResponse(
        result.short_url,
        status_code=status.HTTP_409_CONFLICT if result.already_exists else status.HTTP_201_CREATED
    )


@router.post(
    "/api/shorten",
    response_model=ShortenResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a short URL"
)
async def create_short_url(
    body: ShortenRequest,
    service: ShortURLService = Depends(get_url_service),
    user_id: uuid.UUID = Depends(get_user_id)
) -> JSONResponse:
    """
    Shorten a URL sent as JSON.

    Returns:
        201 {"result": short_url}, or 409 with the existing short URL
    """
    try:
        result = await service.get_short_url(user_id, body.url)
    except (InvalidURLError, RepositoryError, EncodingExhaustedError) as e:
        raise _shorten_error(e)

    return JSONResponse(
        content=ShortenResponse(result=result.short_url).model_dump(),
        status_code=status.HTTP_409_CONFLICT if result.already_exists else status.HTTP_201_CREATED
    )


@router.post(
    "/api/shorten/batch",
    response_model=list[BatchURLResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create short URLs in batch"
)
async def create_batch_short_urls(
    body: list[BatchURLRequest],
    service: ShortURLService = Depends(get_url_service),
    user_id: uuid.UUID = Depends(get_user_id)
) -> list[BatchURLResponse]:
    """
    Shorten several URLs; correlation IDs are echoed back.

    Raises:
        HTTPException 400: If the batch is empty or holds an invalid URL
    """
    if not body:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Empty batch")

    try:
        return await service.get_batch_short_url(user_id, body)
    except (InvalidURLError, RepositoryError, EncodingExhaustedError) as e:
        raise _shorten_error(e)


@router.get(
    "/api/user/urls",
    response_model=list[URLMapping],
    summary="List the caller's short URLs"
)
async def get_user_urls(
    service: ShortURLService = Depends(get_url_service),
    user_id: uuid.UUID = Depends(get_user_id)
):
    """
    Returns:
        200 with the caller's non-deleted URLs, or 204 if there are none
    """
    try:
        urls = await service.get_user_urls(user_id)
    except RepositoryError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))

    if not urls:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    return urls


@router.delete(
    "/api/user/urls",
    status_code=status.HTTP_202_ACCEPTED,
    summary="Delete the caller's short URLs"
)
async def delete_user_urls(
    short_codes: list[str] = Body(...),
    service: ShortURLService = Depends(get_url_service),
    user_id: uuid.UUID = Depends(get_user_id)
) -> Response:
    """
    Schedule deletion and acknowledge immediately.

    Malformed codes are dropped; codes owned by other users are ignored by
    the repository.
    """
    codes = [code for code in map(sanitize_short_code, short_codes) if code]
    service.async_delete_user_urls(user_id, codes)
    return Response(status_code=status.HTTP_202_ACCEPTED)


@router.get(
    "/api/internal/stats",
    response_model=ServiceStats,
    dependencies=[Depends(require_trusted_subnet)],
    summary="Get service statistics"
)
async def get_service_stats(
    service: ShortURLService = Depends(get_url_service)
) -> ServiceStats:
    """
    Return the number of short URLs and distinct users.

    Only callers whose X-Real-IP is inside TRUSTED_SUBNET are served; others
    get 403.
    """
    try:
        return await service.get_service_stats()
    except RepositoryError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


@router.get(
    "/{short_code}",
    status_code=status.HTTP_307_TEMPORARY_REDIRECT,
    summary="Redirect to original URL"
)
async def redirect_to_url(
    short_code: str,
    service: ShortURLService = Depends(get_url_service)
) -> RedirectResponse:
    """
    Redirect to the original URL for a given short code.

    Raises:
        HTTPException 400: If the code is malformed or unknown
        HTTPException 410: If the URL has been deleted
    """
    sanitized_code = sanitize_short_code(short_code)
    if not sanitized_code:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid short code format: '{short_code}'"
        )

    try:
        original_url = await service.get_original_url(sanitized_code)
    except URLDeletedError as e:
        raise HTTPException(status_code=status.HTTP_410_GONE, detail=str(e))
    except URLNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except RepositoryError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))

    return RedirectResponse(url=original_url, status_code=status.HTTP_307_TEMPORARY_REDIRECT)
