"""
FastAPI Dependencies

- get_url_service: the ShortURLService created at startup
- get_user_id: caller identity attached by IdentityMiddleware
- get_trusted_networks / require_trusted_subnet: access guard for the
  internal routes

All are plain functions so tests can replace them through
app.dependency_overrides.
"""

import ipaddress
import logging
import uuid

from fastapi import Depends, HTTPException, Request, status

from shortener.core.setting import settings
from shortener.services.url_service import ShortURLService

logger = logging.getLogger(__name__)

REAL_IP_HEADER = "X-Real-IP"


def get_url_service(request: Request) -> ShortURLService:
    """Return the service stored on the application state at startup."""
    return request.app.state.url_service


def get_user_id(request: Request) -> uuid.UUID:
    """Return the caller identity attached to this request."""
    return request.state.user_id


def get_trusted_networks() -> list:
    """Networks parsed from TRUSTED_SUBNET."""
    return settings.trusted_networks()


def require_trusted_subnet(
    request: Request,
    networks: list = Depends(get_trusted_networks)
) -> None:
    """
    Allow the request only if X-Real-IP lies in a trusted network.

    Raises:
        HTTPException 403: If no subnet is configured, the header is missing
            or malformed, or the address is outside every trusted network
    """
    raw_ip = request.headers.get(REAL_IP_HEADER, "").strip()
    try:
        client_ip = ipaddress.ip_address(raw_ip)
    except ValueError:
        client_ip = None

    if client_ip is None or not any(client_ip in network for network in networks):
        logger.warning(f"Rejected {request.url.path} from untrusted address '{raw_ip}'")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="this ip is not in trusted subnet"
        )
