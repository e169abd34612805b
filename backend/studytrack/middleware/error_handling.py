"""
Error Handling

Provides the service exception hierarchy and consistent error responses
across the API.

Features:
- Custom exception classes for different error types
- Standardized error response format
- Correlation IDs for log tracking
- Sanitized responses (hides internal details in production)

Usage:
    from studytrack.middleware.error_handling import ValidationError, setup_error_handling

    # Add middleware to app
    setup_error_handling(app, debug=settings.DEBUG)

    # Raise custom exceptions from services
    raise ValidationError("Choose a subject to start focus mode.")

Exception handling hierarchy:
    - HTTPException: Re-raised for FastAPI's built-in handler
    - ServiceError: Custom exceptions → structured JSON response
    - Exception: Catch-all for unexpected errors → sanitized response
"""

import logging
import traceback
from datetime import datetime, timezone
from functools import wraps
from typing import Any, Awaitable, Callable, Optional, TypeVar
from uuid import uuid4

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

T = TypeVar("T")


# =============================================================================
# Error Response Schema
# =============================================================================


class ErrorResponse(BaseModel):
    """Standardized error response."""

    error: str  # Error code (e.g., "validation_error")
    message: str  # Human-readable message
    error_id: str  # For log correlation
    details: Optional[dict] = None  # Additional context (sanitized)
    timestamp: datetime


# =============================================================================
# Custom Exceptions
# =============================================================================


class ServiceError(Exception):
    """
    Base exception for service errors.

    Provides consistent error handling with:
    - HTTP status code
    - Error code for categorization
    - Optional details for debugging

    Example:
        raise ServiceError("Store unavailable", status_code=503)
    """

    status_code: int = 500
    error_code: str = "service_error"

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        error_code: Optional[str] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message)
        self.message = message
        if status_code:
            self.status_code = status_code
        if error_code:
            self.error_code = error_code
        self.details = details


class ValidationError(ServiceError):
    """
    Invalid user action or input.

    Raised for invalid session transitions (start without a subject, pause
    when not running, stop without an active session). Surfaced to the user
    synchronously; never retried.
    """

    status_code = 422
    error_code = "validation_error"


class NotFoundError(ServiceError):
    """
    Resource not found error.

    The repository reports missing rows as None; routers raise this when the
    resource is required.
    """

    status_code = 404
    error_code = "not_found"


class PersistenceError(ServiceError):
    """
    Durable store write or read failed.

    On the finalize path this is retried with backoff before the session is
    parked in the sync-pending state.
    """

    status_code = 503
    error_code = "persistence_error"


class RecordDecodeError(ServiceError):
    """
    A stored row failed validation at the store boundary.

    Raised instead of silently defaulting missing or malformed fields.
    """

    status_code = 500
    error_code = "record_decode_error"


class AuthorizationError(ServiceError):
    """
    Authorization error.

    Raised when the request carries no user identity.
    """

    status_code = 401
    error_code = "unauthorized"


# =============================================================================
# Error Handling Middleware
# =============================================================================


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """
    Global error handling middleware.

    - Catches unhandled exceptions
    - Logs with correlation ID
    - Returns consistent error format
    - Hides internal details in production
    """

    def __init__(self, app, debug: bool = False):
        """
        Initialize middleware.

        Args:
            app: FastAPI/Starlette application
            debug: Whether to include stack traces in responses
        """
        super().__init__(app)
        self.debug = debug

    async def dispatch(self, request: Request, call_next):
        """Process request and handle any errors."""
        error_id = str(uuid4())[:8]

        try:
            response = await call_next(request)
            return response

        except HTTPException:
            raise

        except ServiceError as e:
            logger.error(
                f"[{error_id}] {e.error_code}: {e.message}",
                extra={
                    "error_id": error_id,
                    "error_code": e.error_code,
                    "path": request.url.path,
                    "method": request.method,
                    "details": e.details,
                },
            )

            return create_error_response(
                error_code=e.error_code,
                message=e.message,
                status_code=e.status_code,
                details=e.details if self.debug else None,
                error_id=error_id,
            )

        except Exception as e:
            logger.error(
                f"[{error_id}] Unhandled error: {type(e).__name__}: {e}",
                extra={
                    "error_id": error_id,
                    "path": request.url.path,
                    "method": request.method,
                    "traceback": traceback.format_exc(),
                },
            )

            details = None
            if self.debug:
                details = {
                    "exception": type(e).__name__,
                    "message": str(e),
                    "traceback": traceback.format_exc(),
                }

            return create_error_response(
                error_code="internal_server_error",
                message="An unexpected error occurred",
                status_code=500,
                details=details,
                error_id=error_id,
            )


# =============================================================================
# Setup Function
# =============================================================================


def setup_error_handling(app: FastAPI, debug: bool = False) -> None:
    """
    Configure error handling on the FastAPI app.

    Args:
        app: FastAPI application instance
        debug: Whether to include stack traces in responses
    """
    app.add_middleware(ErrorHandlingMiddleware, debug=debug)
    logger.info(f"Error handling middleware enabled (debug={debug})")


# =============================================================================
# Helper Functions
# =============================================================================


def create_error_response(
    error_code: str,
    message: str,
    status_code: int = 500,
    details: Optional[dict] = None,
    error_id: Optional[str] = None,
) -> JSONResponse:
    """
    Create a standardized error response.

    Args:
        error_code: Error code for categorization
        message: Human-readable error message
        status_code: HTTP status code
        details: Optional additional details
        error_id: Correlation id; generated when omitted

    Returns:
        JSONResponse with standardized error format
    """
    return JSONResponse(
        status_code=status_code,
        content={
            "error": error_code,
            "message": message,
            "error_id": error_id or str(uuid4())[:8],
            "details": details,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )


def handle_endpoint_errors(
    operation: str,
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """
    Decorator translating service exceptions raised inside a route handler.

    ServiceError subclasses become HTTPException with the error's status code
    and a {"error", "message"} detail. HTTPException passes through. Anything
    else propagates to ErrorHandlingMiddleware.

    Usage:
        @router.post("/start")
        @handle_endpoint_errors("Start session")
        async def start_session(...):
            ...
    """

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            try:
                return await func(*args, **kwargs)
            except HTTPException:
                raise
            except ServiceError as e:
                log = logger.warning if e.status_code < 500 else logger.error
                log(f"{operation} failed: {e.error_code}: {e.message}")
                raise HTTPException(
                    status_code=e.status_code,
                    detail={"error": e.error_code, "message": e.message},
                ) from e

        return wrapper

    return decorator
