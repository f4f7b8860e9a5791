"""Append-only delivery log."""

from redis.asyncio import Redis

from smsconnect.core.config import get_settings
from smsconnect.models.delivery import DeliveryLogEntry
from smsconnect.storage.redis_client import RedisKeys, get_redis


class DeliveryLog:
    """Delivery records kept newest first in a capped Redis list."""

    def __init__(self, redis: Redis | None = None, max_entries: int | None = None):
        self._redis = redis
        self._max_entries = max_entries or get_settings().delivery_log_max_entries

    @property
    def redis(self) -> Redis:
        return self._redis or get_redis()

    async def append(self, entry: DeliveryLogEntry) -> None:
        """Record one send attempt.

        Args:
            entry: Entry to store
        """
        await self.redis.lpush(RedisKeys.DELIVERY_LOG, entry.model_dump_json())
        await self.redis.ltrim(RedisKeys.DELIVERY_LOG, 0, self._max_entries - 1)

    async def recent(self, offset: int = 0, limit: int = 20) -> list[DeliveryLogEntry]:
        """Return entries newest first.

        Args:
            offset: Entries to skip
            limit: Maximum entries to return
        """
        rows = await self.redis.lrange(RedisKeys.DELIVERY_LOG, offset, offset + limit - 1)
        return [DeliveryLogEntry.model_validate_json(row) for row in rows]

    async def count(self) -> int:
        """Number of stored entries."""
        return await self.redis.llen(RedisKeys.DELIVERY_LOG)

    async def for_subject(self, subject_id: int) -> list[DeliveryLogEntry]:
        """All stored entries for an order, subscription or user, newest first."""
        rows = await self.redis.lrange(RedisKeys.DELIVERY_LOG, 0, -1)
        entries = (DeliveryLogEntry.model_validate_json(row) for row in rows)
        return [entry for entry in entries if entry.subject_id == subject_id]
