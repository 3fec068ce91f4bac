"""Unstream API layer -- routes, schemas, and middleware."""

from unstream.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from unstream.api.routes import router
from unstream.api.schemas import (
    EmbedResponse,
    EnrichmentResponse,
    ErrorResponse,
    HealthResponse,
    ReleaseCheckRequest,
    ReleaseCheckResponse,
    ResolveResponse,
)

__all__ = [
    "ErrorHandlingMiddleware",
    "RequestLoggingMiddleware",
    "configure_cors",
    "router",
    "EmbedResponse",
    "EnrichmentResponse",
    "ErrorResponse",
    "HealthResponse",
    "ReleaseCheckRequest",
    "ReleaseCheckResponse",
    "ResolveResponse",
]
