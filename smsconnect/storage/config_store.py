"""Notification configuration storage."""

from redis.asyncio import Redis

from smsconnect.models.settings import NotificationConfig
from smsconnect.storage.redis_client import RedisKeys, get_redis


class ConfigStore:
    """Stores the whole notification configuration under one key."""

    def __init__(self, redis: Redis | None = None):
        self._redis = redis

    @property
    def redis(self) -> Redis:
        return self._redis or get_redis()

    async def load(self) -> NotificationConfig:
        """Load the configuration, or defaults if nothing is stored."""
        data = await self.redis.get(RedisKeys.CONFIG)
        if not data:
            return NotificationConfig()
        return NotificationConfig.model_validate_json(data)

    async def save(self, config: NotificationConfig) -> None:
        """Replace the stored configuration."""
        await self.redis.set(RedisKeys.CONFIG, config.model_dump_json())
