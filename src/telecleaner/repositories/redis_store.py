"""Redis implementation of KeyValueStore.

Plain string keys on an asyncio Redis client. It's the default durable
backend and satisfies the KeyValueStore protocol.
"""

import logging

import redis.asyncio as redis

from telecleaner.config import get_redis_client

logger = logging.getLogger(__name__)


class RedisKeyValueStore:
    """Redis implementation of the KeyValueStore protocol.

    This class satisfies the protocol through structural typing - no
    explicit inheritance needed. Keys are stored verbatim (the callers
    own their prefixes, e.g. ``@avatar_cache:``).
    """

    def __init__(self, redis_client: redis.Redis | None = None) -> None:
        """Initialize the Redis store.

        Args:
            redis_client: asyncio Redis client (``decode_responses=True``). If None, creates default.
        """
        self._client = redis_client or get_redis_client()

    @classmethod
    def create(cls, redis_client: redis.Redis | None = None) -> "RedisKeyValueStore":
        """Factory method to create RedisKeyValueStore with defaults.

        Args:
            redis_client: Client to use. If None, one is built from settings.

        Returns:
            Configured RedisKeyValueStore
        """
        return cls(redis_client=redis_client)

    async def get(self, key: str) -> str | None:
        return await self._client.get(key)

    async def set(self, key: str, value: str) -> None:
        await self._client.set(key, value)

    async def remove(self, key: str) -> None:
        await self._client.delete(key)

    async def multi_get(self, keys: list[str]) -> list[str | None]:
        if not keys:
            return []
        return await self._client.mget(keys)

    async def multi_remove(self, keys: list[str]) -> None:
        if not keys:
            return
        await self._client.delete(*keys)

    async def health_check(self) -> bool:
        """Check if Redis is accessible.

        Returns:
            True if healthy, False otherwise
        """
        try:
            return bool(await self._client.ping())
        except Exception as e:
            logger.warning("Redis health check failed: %s", e)
            return False

    async def close(self) -> None:
        """Close the Redis connection pool."""
        await self._client.aclose()

    @property
    def client(self) -> redis.Redis:
        """Get the Redis client."""
        return self._client
