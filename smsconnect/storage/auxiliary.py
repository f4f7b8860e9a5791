"""Auxiliary storage operations."""

from redis.asyncio import Redis

from smsconnect.storage.redis_client import RedisKeys, get_redis


class CooldownFlag:
    """Flag that expires on its own after a fixed period."""

    def __init__(self, redis: Redis | None = None, key: str = RedisKeys.LOW_POINT_NOTIFIED):
        self._redis = redis
        self._key = key

    @property
    def redis(self) -> Redis:
        return self._redis or get_redis()

    async def is_active(self) -> bool:
        """Check whether the flag is currently set."""
        return await self.redis.exists(self._key) > 0

    async def acquire(self, ttl_seconds: int) -> bool:
        """Set the flag if it is not already set.

        Args:
            ttl_seconds: Lifetime of the flag

        Returns:
            True if this call set the flag
        """
        result = await self.redis.set(self._key, "1", nx=True, ex=ttl_seconds)
        return bool(result)

    async def clear(self) -> None:
        """Remove the flag."""
        await self.redis.delete(self._key)
