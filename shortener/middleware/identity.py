"""
Caller Identity Middleware

Attaches an opaque caller identity to every request as request.state.user_id.

The identity comes from the user_id cookie. A missing or unparsable cookie
gets a fresh UUID, which is set on the response so later requests from the
same client carry it. The value is neither signed nor verified here; a real
deployment puts an authenticating provider in front of this.
"""

import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

USER_ID_COOKIE = "user_id"


class IdentityMiddleware(BaseHTTPMiddleware):
    """Middleware that resolves or mints the caller identity."""

    async def dispatch(self, request: Request, call_next):
        user_id = self._read_user_id(request)
        is_new = user_id is None
        if is_new:
            user_id = uuid.uuid4()

        request.state.user_id = user_id
        response = await call_next(request)

        if is_new:
            response.set_cookie(USER_ID_COOKIE, str(user_id), httponly=True)
        return response

    @staticmethod
    def _read_user_id(request: Request):
        raw_value = request.cookies.get(USER_ID_COOKIE)
        if not raw_value:
            return None
        try:
            return uuid.UUID(raw_value)
        except ValueError:
            return None


def add_identity_middleware(app):
    """
    Add identity middleware to FastAPI app.

    Args:
        app: FastAPI application instance
    """
    app.add_middleware(IdentityMiddleware)
