"""
Middleware Package

Provides FastAPI middleware for:
- Rate limiting
- Error handling
"""

from studytrack.middleware.error_handling import (
    ErrorHandlingMiddleware,
    NotFoundError,
    PersistenceError,
    RecordDecodeError,
    ServiceError,
    ValidationError,
    handle_endpoint_errors,
    setup_error_handling,
)
from studytrack.middleware.rate_limit import limiter, limit_session, setup_rate_limiting

__all__ = [
    "ErrorHandlingMiddleware",
    "NotFoundError",
    "PersistenceError",
    "RecordDecodeError",
    "ServiceError",
    "ValidationError",
    "handle_endpoint_errors",
    "limit_session",
    "limiter",
    "setup_error_handling",
    "setup_rate_limiting",
]
