"""API middleware: request logging and error handling.

Starlette middleware is a stack (last added runs first).  ``main.py``
adds ErrorHandlingMiddleware first and RequestLoggingMiddleware second:

    Client -> RequestLogging -> ErrorHandling -> route handler

so the request log records the final status code even when the error
handler replaced an exception with a JSON error body.
"""

from __future__ import annotations

import time

import structlog
from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

from src.api.schemas import ErrorResponse
from src.utils.errors import LinkVaultError
from src.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

_GENERIC_DETAIL = "Internal server error"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every HTTP request with method, path, status code, and duration."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        start = time.perf_counter()
        response: Response | None = None

        try:
            response = await call_next(request)
            return response
        finally:
            duration_ms = round((time.perf_counter() - start) * 1000, 2)
            status_code = response.status_code if response else 500
            _logger.info(
                "http_request",
                method=request.method,
                path=str(request.url.path),
                status=status_code,
                duration_ms=duration_ms,
            )


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Convert ``LinkVaultError`` subclasses into ``{error, detail}`` JSON.

    The HTTP status comes from the exception's ``status_code`` (400, 401,
    404, otherwise 500).  In production the detail of a 5xx is replaced
    with a generic message; the full error is always logged server-side.
    """

    def __init__(self, app: ASGIApp, production: bool = False) -> None:
        super().__init__(app)
        self._production = production

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        try:
            return await call_next(request)
        except LinkVaultError as exc:
            status_code = exc.status_code
            log = _logger.error if status_code >= 500 else _logger.info
            log(
                "application_error",
                error_type=type(exc).__name__,
                message=exc.message,
                provider=exc.provider_name,
                status=status_code,
                path=str(request.url.path),
            )
            detail = exc.message
            if status_code >= 500 and self._production:
                detail = _GENERIC_DETAIL
            body = ErrorResponse(error=type(exc).__name__, detail=detail)
            return JSONResponse(status_code=status_code, content=body.model_dump())
