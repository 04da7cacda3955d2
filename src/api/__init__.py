"""Inkwell API layer: routes, schemas, and middleware."""

from src.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from src.api.routes import health_router, router
from src.api.schemas import ErrorResponse, HealthResponse, PostListResponse, PostResponse

__all__ = [
    "ErrorHandlingMiddleware",
    "RequestLoggingMiddleware",
    "configure_cors",
    "health_router",
    "router",
    "ErrorResponse",
    "HealthResponse",
    "PostListResponse",
    "PostResponse",
]
