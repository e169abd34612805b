"""
API-related enums.

Defines enums for rate limiting and other API concerns.
"""

from enum import Enum


class RateLimitType(str, Enum):
    """
    Rate limit categories for different endpoint types.

    Each category has a corresponding rate limit configured in settings.
    Usage:
        from studytrack.enums import RateLimitType
        from studytrack.config import settings

        limit = settings.get_rate_limit(RateLimitType.SESSION)
    """

    # General API endpoints
    DEFAULT = "default"

    # Session timer transitions
    SESSION = "session"
