"""Authentication middleware for API key validation."""

import hmac
import logging
from typing import Callable

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from app.config import get_settings

logger = logging.getLogger(__name__)


class APIKeyMiddleware(BaseHTTPMiddleware):
    """Middleware to validate API key for protected endpoints.

    All endpoints under /api prefix require the X-API-KEY header. Caller
    identity (X-User-Id, X-User-Role) is checked later, per route.
    Other endpoints (root, health, docs) are public.
    """

    PROTECTED_PREFIX: str = "/api"
    HEADER_NAME: str = "X-API-KEY"

    @classmethod
    def is_protected_path(cls, path: str) -> bool:
        """Check if path requires authentication.

        Args:
            path: Request URL path.

        Returns:
            True if path is under protected prefix and requires auth.
        """
        return path == cls.PROTECTED_PREFIX or path.startswith(
            f"{cls.PROTECTED_PREFIX}/"
        )

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process request and validate API key if required."""
        if not self.is_protected_path(request.url.path):
            return await call_next(request)

        expected = get_settings().api_key
        api_key = request.headers.get(self.HEADER_NAME)

        if not api_key or not expected or not hmac.compare_digest(api_key, expected):
            logger.warning(
                "Unauthorized request",
                extra={
                    "path": request.url.path,
                    "method": request.method,
                    "has_key": bool(api_key),
                },
            )
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={
                    "error": "Unauthorized",
                    "message": "Invalid or missing API key",
                },
            )

        return await call_next(request)
