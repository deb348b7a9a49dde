"""Admin authentication middleware: Basic header or signed session cookie."""

import logging

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from clawmgr.errors.handlers import error_response
from clawmgr.logging_config import bind_request_context
from clawmgr.services.auth import AuthService

logger = logging.getLogger(__name__)

# Paths that do not require authentication
_PUBLIC_PATHS = {
    "/health",
    "/api/auth/status",
    "/api/auth/session",
    "/api/auth/login",
    "/docs",
    "/openapi.json",
}

# Paths that run for anonymous callers; the handler decides what to reveal
_OPTIONAL_AUTH_PATHS = {"/api/status"}


class AuthMiddleware(BaseHTTPMiddleware):
    """Resolve the caller and attach it to ``request.state.user``.

    Anonymous requests to protected ``/api`` paths are rejected with 401.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path
        auth: AuthService = request.app.state.auth

        if request.method == "OPTIONS" or path in _PUBLIC_PATHS or not path.startswith("/api"):
            request.state.user = None
            return await call_next(request)

        user = auth.authenticate(
            request.headers.get("authorization"),
            request.cookies.get(auth.cookie_name),
        )
        request.state.user = user
        if user is not None:
            bind_request_context(getattr(request.state, "trace_id", "unknown"), user)

        if user is None and path not in _OPTIONAL_AUTH_PATHS:
            trace_id = getattr(request.state, "trace_id", None)
            logger.debug("Rejected unauthenticated request to %s", path)
            return error_response(401, "AUTHENTICATION_ERROR", "unauthorized", trace_id)
        return await call_next(request)
