"""
Redis Connection and Active-Session Storage

Provides Redis connection pooling and a Redis-backed active-session slot for
deployments where several API workers serve the same user.

Usage:
    from studytrack.db.redis import get_redis, RedisActiveSessionStore

    redis = await get_redis()
    await redis.set("key", "value")

    store = RedisActiveSessionStore(user_id)
    await store.set(session)
"""

from typing import Any, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from studytrack.config import settings, yaml_config
from studytrack.db.local_store import decode_active_session, session_payload
from studytrack.middleware.error_handling import PersistenceError
from studytrack.models.study import StudySession

# Get Redis configuration from yaml config
redis_config: dict[str, Any] = yaml_config.get("redis", {})
DEFAULT_ACTIVE_SESSION_TTL: int = redis_config.get("active_session_ttl", 7 * 24 * 3600)
DEFAULT_KEY_PREFIX: str = redis_config.get("key_prefix", "active_session")


# Connection pool (lazily initialized)
_redis_pool: Optional[redis.ConnectionPool] = None


async def get_redis_pool() -> redis.ConnectionPool:
    """Get or create the Redis connection pool."""
    global _redis_pool
    if _redis_pool is None:
        _redis_pool = redis.ConnectionPool.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            max_connections=10,
        )
    return _redis_pool


async def get_redis() -> redis.Redis:
    """
    Get a Redis connection from the pool.

    Usage:
        redis = await get_redis()
        await redis.set("key", "value")
    """
    pool = await get_redis_pool()
    return redis.Redis(connection_pool=pool)


async def close_redis_pool() -> None:
    """Close the Redis connection pool."""
    global _redis_pool
    if _redis_pool is not None:
        await _redis_pool.disconnect()
        _redis_pool = None


class RedisActiveSessionStore:
    """
    Active-session slot stored under one Redis key per user.

    Keys are "{prefix}:{user_id}". Each write refreshes the TTL, so a session
    left untouched for longer than the TTL (default 7 days) is dropped.
    """

    def __init__(
        self,
        user_id: str,
        prefix: str = DEFAULT_KEY_PREFIX,
        ttl: int = DEFAULT_ACTIVE_SESSION_TTL,
    ) -> None:
        """
        Initialize the store.

        Args:
            user_id: User whose slot this is.
            prefix: Redis key prefix for namespacing.
            ttl: Expiry in seconds, refreshed on every write.
        """
        self.user_id = user_id
        self.prefix = prefix
        self.ttl = ttl

    @property
    def key(self) -> str:
        return f"{self.prefix}:{self.user_id}"

    async def get(self) -> Optional[StudySession]:
        try:
            r = await get_redis()
            raw = await r.get(self.key)
        except RedisError as e:
            raise PersistenceError(f"Failed to read active session: {e}") from e
        if raw is None:
            return None
        return decode_active_session(raw, self.key)

    async def set(self, session: StudySession) -> None:
        try:
            r = await get_redis()
            await r.setex(self.key, self.ttl, session_payload(session))
        except RedisError as e:
            raise PersistenceError(f"Failed to save active session: {e}") from e

    async def clear(self) -> None:
        try:
            r = await get_redis()
            await r.delete(self.key)
        except RedisError as e:
            raise PersistenceError(f"Failed to clear active session: {e}") from e
