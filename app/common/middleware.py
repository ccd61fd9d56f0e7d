"""
Middleware for handling billing sessions
"""
from fastapi import Request, status
from fastapi.responses import Response
from starlette.middleware.base import BaseHTTPMiddleware
import logging

from app.core.config import settings

logger = logging.getLogger(__name__)


class SessionMiddleware(BaseHTTPMiddleware):
    """
    Middleware that extracts the cashier session id from the X-Session-ID header
    and sets it on request.state for the billing endpoints
    """

    # Paths that require a session context
    SESSION_PATHS = [
        "/billing",
    ]

    async def dispatch(self, request: Request, call_next):
        if not any(request.url.path.startswith(path) for path in self.SESSION_PATHS):
            return await call_next(request)

        # Skip for OPTIONS requests (CORS preflight)
        if request.method == "OPTIONS":
            return await call_next(request)

        session_header = request.headers.get(settings.SESSION_HEADER)

        if not session_header or not session_header.strip():
            return Response(
                content=f'{{"detail":"Missing {settings.SESSION_HEADER} header"}}',
                status_code=status.HTTP_400_BAD_REQUEST,
                media_type="application/json"
            )

        session_id = session_header.strip()
        if len(session_id) > settings.MAX_SESSION_ID_LENGTH:
            return Response(
                content=f'{{"detail":"Invalid {settings.SESSION_HEADER}: too long"}}',
                status_code=status.HTTP_400_BAD_REQUEST,
                media_type="application/json"
            )

        request.state.session_id = session_id
        logger.debug(f"Request to {request.url.path} with session_id: {session_id}")

        response = await call_next(request)
        response.headers["X-Session-ID"] = session_id

        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Middleware to add security headers for production
    """

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        return response
