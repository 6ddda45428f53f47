"""API middleware -- CORS, request logging, and error handling.

Starlette runs middleware last-added-first, so ``main.py`` adds
:class:`ErrorHandlingMiddleware` before :class:`RequestLoggingMiddleware`;
the logger then sees the final status code after errors were mapped.
"""

from __future__ import annotations

import time

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from rechtspraak.api.schemas import ErrorResponse
from rechtspraak.utils.errors import (
    EmptyContentError,
    NotFoundError,
    ProviderError,
    RateLimitedError,
    RechtspraakError,
    UnsupportedFormatError,
    ValidationError,
)
from rechtspraak.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

# Most specific first: RateLimitedError is also a ProviderError.
_STATUS_BY_ERROR: tuple[tuple[type[RechtspraakError], int], ...] = (
    (ValidationError, 400),
    (NotFoundError, 404),
    (UnsupportedFormatError, 415),
    (EmptyContentError, 422),
    (RateLimitedError, 429),
    (ProviderError, 502),
)


def status_code_for(exc: RechtspraakError) -> int:
    """Return the HTTP status for an application error (500 when unmapped)."""
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return 500


# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------


def configure_cors(app: FastAPI, *, allowed_origins: list[str] | None = None) -> None:
    """Add CORS middleware to the FastAPI application.

    Parameters
    ----------
    app:
        The FastAPI application instance.
    allowed_origins:
        Explicit list of allowed origins.  Defaults to ``["*"]``.
    """
    origins = allowed_origins or ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


# ---------------------------------------------------------------------------
# Request Logging
# ---------------------------------------------------------------------------


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
            _logger.info(
                "http_request",
                method=request.method,
                path=str(request.url.path),
                status=response.status_code if response else 500,
                duration_ms=duration_ms,
            )


# ---------------------------------------------------------------------------
# Error Handling
# ---------------------------------------------------------------------------


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Turn ``RechtspraakError`` subclasses into JSON :class:`ErrorResponse` bodies.

    Input errors map to 4xx codes, provider failures to 502 (429 when rate
    limited).  Details are logged server-side; the client sees only the
    error class name and message.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        try:
            return await call_next(request)
        except RechtspraakError as exc:
            status_code = status_code_for(exc)
            log = _logger.error if status_code >= 500 else _logger.warning
            log(
                "application_error",
                error_type=type(exc).__name__,
                message=exc.message,
                provider=exc.provider_name,
                path=str(request.url.path),
                status=status_code,
            )
            body = ErrorResponse(error=type(exc).__name__, detail=exc.message)
            return JSONResponse(status_code=status_code, content=body.model_dump())
