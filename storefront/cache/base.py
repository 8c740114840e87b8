import logging

import redis.asyncio as redis

from storefront.core.cache import get_redis

logger = logging.getLogger(__name__)


class RedisCache:
    """Shared plumbing for the per-resource caches."""

    def __init__(self, client: redis.Redis | None = None) -> None:
        self._client = client

    @property
    def redis(self) -> redis.Redis:
        return self._client or get_redis()

    async def _keys(self, pattern: str) -> list[str]:
        return list(await self.redis.keys(pattern))

    async def _delete_pattern(self, pattern: str) -> int:
        keys = await self._keys(pattern)
        if not keys:
            return 0
        return await self.redis.delete(*keys)
