"""Rechtspraak API layer -- routes, schemas, and middleware."""

from rechtspraak.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from rechtspraak.api.routes import router
from rechtspraak.api.schemas import ErrorResponse, HealthResponse

__all__ = [
    "ErrorHandlingMiddleware",
    "ErrorResponse",
    "HealthResponse",
    "RequestLoggingMiddleware",
    "configure_cors",
    "router",
]
