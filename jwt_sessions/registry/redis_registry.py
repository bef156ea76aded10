"""Redis-backed session registry.

Tracks which session ids are live. A key's presence is what makes a token
valid, so deleting it revokes the token before its natural expiry.
Expiry is delegated to Redis key TTLs.

Usage::

    from redis.asyncio import Redis
    from jwt_sessions.registry.redis_registry import RedisRegistry

    registry = RedisRegistry(Redis.from_url("redis://localhost:6379/0"))
    await registry.set("session:abc", "true", ttl=1800)
    assert await registry.exists("session:abc")
"""

import logging

from redis.asyncio import Redis

logger = logging.getLogger(__name__)


class RedisRegistry:
    """Thin adapter from the ``Registry`` protocol onto ``redis.asyncio``."""

    def __init__(self, redis: Redis):
        self.redis = redis

    async def set(self, key: str, value: str, ttl: int | None = None) -> None:
        """Write *key*; with a TTL it is removed by Redis once *ttl* seconds pass."""
        if ttl is not None and ttl <= 0:
            raise ValueError(f"ttl must be positive, got {ttl}")
        await self.redis.set(key, value, ex=ttl)

    async def exists(self, key: str) -> bool:
        return await self.redis.exists(key) > 0

    async def delete(self, key: str) -> None:
        """Remove *key*. Deleting a missing key is not an error."""
        await self.redis.delete(key)

    async def expire(self, key: str, ttl: int) -> bool:
        """Reset the TTL of an existing *key*.

        Returns ``False`` when the key no longer exists; Redis does not
        recreate it.
        """
        if ttl <= 0:
            raise ValueError(f"ttl must be positive, got {ttl}")
        refreshed = bool(await self.redis.expire(key, ttl))
        if not refreshed:
            logger.debug("Registry key %s is gone; TTL not refreshed", key)
        return refreshed
