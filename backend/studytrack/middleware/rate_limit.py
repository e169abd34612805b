"""
Rate Limiting Middleware

Prevents abuse of the API using SlowAPI. Every route gets the default limit
through SlowAPIMiddleware; session transitions get the tighter SESSION limit.

Usage:
    from studytrack.middleware.rate_limit import limit_session

    @router.post("/start")
    @limit_session
    async def start_session(request: Request, ...):
        ...

Rate limit configurations (from settings):
- DEFAULT: General API endpoints (RATE_LIMIT_DEFAULT)
- SESSION: Timer transitions (RATE_LIMIT_SESSION)
"""

import logging

from fastapi import FastAPI, Request
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from studytrack.config import settings
from studytrack.enums import RateLimitType

logger = logging.getLogger(__name__)


def get_client_identifier(request: Request) -> str:
    """
    Get client identifier for rate limiting.

    Prefers the user identity header, then X-Forwarded-For when behind a
    proxy, then the direct client address.

    Args:
        request: FastAPI request object

    Returns:
        Client identifier string
    """
    user_id = request.headers.get("X-User-Id")
    if user_id:
        return f"user:{user_id}"

    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    return get_remote_address(request)


limiter = Limiter(
    key_func=get_client_identifier,
    default_limits=[settings.get_rate_limit(RateLimitType.DEFAULT)],
    enabled=settings.RATE_LIMIT_ENABLED,
)


def setup_rate_limiting(app: FastAPI, enabled: bool = True) -> None:
    """
    Configure rate limiting on the FastAPI app.

    Args:
        app: FastAPI application instance
        enabled: Whether to enable rate limiting
    """
    limiter.enabled = enabled
    if not enabled:
        logger.info("Rate limiting disabled")
        return

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    logger.info("Rate limiting enabled")


def limit_session(func):
    """Decorator for session timer transitions."""
    return limiter.limit(settings.get_rate_limit(RateLimitType.SESSION))(func)
