"""tunefeed API layer -- routes, schemas, and middleware."""

from src.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
    status_for,
)
from src.api.routes import router
from src.api.schemas import (
    ArchiveSongRequest,
    ArchiveSongResponse,
    ErrorResponse,
    FeedResponse,
    HealthResponse,
)

__all__ = [
    "ErrorHandlingMiddleware",
    "RequestLoggingMiddleware",
    "configure_cors",
    "status_for",
    "router",
    "ArchiveSongRequest",
    "ArchiveSongResponse",
    "ErrorResponse",
    "FeedResponse",
    "HealthResponse",
]
