"""Authentication middleware for JWT token validation."""

import logging
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from schoolsync.utils.security import decode_access_token
from schoolsync.utils.tenant_context import (
    clear_all_context,
    set_current_user_id,
    set_current_user_role,
    set_tenant_id,
)

logger = logging.getLogger(__name__)


class AuthMiddleware(BaseHTTPMiddleware):
    """Middleware that extracts and validates JWT tokens from requests.

    Accepts a Bearer token in the Authorization header. Requests without a
    valid token proceed with an empty context and are rejected by the
    endpoint permission decorators.
    """

    # Paths that don't require authentication
    EXEMPT_PATHS = {
        "/health",
        "/api/docs",
        "/api/redoc",
        "/api/openapi.json",
        "/api/v1/auth/login",
    }

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process request and extract authentication context."""
        clear_all_context()

        if request.url.path in self.EXEMPT_PATHS:
            return await call_next(request)

        token = self._extract_token(request)
        if token:
            payload = decode_access_token(token)
            if payload:
                try:
                    set_current_user_id(uuid.UUID(payload["sub"]))

                    if payload.get("tenant_id"):
                        set_tenant_id(uuid.UUID(payload["tenant_id"]))

                    if payload.get("role"):
                        set_current_user_role(payload["role"])
                except (KeyError, ValueError, TypeError):
                    # Malformed claims: drop the whole principal
                    logger.warning("Rejected access token with malformed claims")
                    clear_all_context()

        try:
            return await call_next(request)
        finally:
            clear_all_context()

    def _extract_token(self, request: Request) -> str | None:
        """Extract the Bearer token from the Authorization header."""
        auth_header = request.headers.get("Authorization", "")
        if auth_header.startswith("Bearer "):
            return auth_header.removeprefix("Bearer ").strip()
        return None
