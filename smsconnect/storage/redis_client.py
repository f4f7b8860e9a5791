"""Redis client management."""

import redis.asyncio as redis
from redis.asyncio import Redis

from smsconnect.core.config import get_settings

# Global connection pool
_pool: redis.ConnectionPool | None = None


async def init_redis_pool() -> None:
    """Initialize Redis connection pool."""
    global _pool
    if _pool is None:
        settings = get_settings()
        _pool = redis.ConnectionPool.from_url(
            settings.redis_url,
            decode_responses=True,
            max_connections=20,
        )


async def close_redis_pool() -> None:
    """Close Redis connection pool."""
    global _pool
    if _pool is not None:
        await _pool.disconnect()
        _pool = None


def get_redis() -> Redis:
    """Get Redis client from pool.

    Returns:
        Redis client instance

    Raises:
        RuntimeError: If pool not initialized
    """
    if _pool is None:
        raise RuntimeError("Redis pool not initialized. Call init_redis_pool() first.")
    return redis.Redis(connection_pool=_pool)


class RedisKeys:
    """Redis key patterns."""

    CONFIG = "smsconnect:config"
    RULES = "smsconnect:rules"
    RULES_VERSION = "smsconnect:rules:version"
    DELIVERY_LOG = "smsconnect:delivery_log"
    LOW_POINT_NOTIFIED = "smsconnect:low_point_notified"
