"""FastAPI exception handlers producing the ``{ok: false, error, code, traceId}`` body."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from clawmgr.errors.exceptions import AuthenticationError, ManagerError
from clawmgr.models.common import ErrorResponse

logger = logging.getLogger(__name__)


def error_response(status_code: int, code: str, message: str, trace_id: str | None) -> JSONResponse:
    body = ErrorResponse(error=message, code=code, trace_id=trace_id)
    return JSONResponse(status_code=status_code, content=body.to_wire())


def register_exception_handlers(app: FastAPI) -> None:
    """Register all custom exception handlers on the FastAPI app."""

    @app.exception_handler(ManagerError)
    async def manager_error_handler(request: Request, exc: ManagerError):
        trace_id = getattr(request.state, "trace_id", None)
        if isinstance(exc, AuthenticationError):
            logger.warning("Authentication failed on %s %s: %s", request.method, request.url.path, exc.message)
        return error_response(exc.status_code, exc.code, exc.message, trace_id)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        trace_id = getattr(request.state, "trace_id", None)
        errors = exc.errors()
        message = errors[0].get("msg", "invalid request") if errors else "invalid request"
        return error_response(400, "VALIDATION_ERROR", message, trace_id)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        trace_id = getattr(request.state, "trace_id", None)
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return error_response(500, "INTERNAL_ERROR", "internal error", trace_id)
