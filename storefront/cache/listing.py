"""Cached storefront section listings and brand media libraries."""

from uuid import UUID

from pydantic import TypeAdapter

from storefront.cache.base import RedisCache
from storefront.core.config import settings
from storefront.models.dto.media import MediaItemResponse
from storefront.models.dto.product import ProductSnapshot

_snapshots = TypeAdapter(list[ProductSnapshot])
_media = TypeAdapter(list[MediaItemResponse])


class FeaturedSectionCache(RedisCache):
    ttl = settings.listing_cache_ttl_seconds

    @staticmethod
    def key(section: str) -> str:
        return f"featured:{section}"

    async def get(self, section: str) -> list[ProductSnapshot] | None:
        cached = await self.redis.get(self.key(section))
        if cached is None:
            return None
        return _snapshots.validate_json(cached)

    async def set(self, section: str, items: list[ProductSnapshot]) -> None:
        await self.redis.set(self.key(section), _snapshots.dump_json(items), ex=self.ttl)

    async def invalidate(self, section: str) -> None:
        await self.redis.delete(self.key(section))


class BrandMediaCache(RedisCache):
    ttl = settings.listing_cache_ttl_seconds

    @staticmethod
    def key(brand_id: UUID) -> str:
        return f"media:{brand_id}"

    async def get(self, brand_id: UUID) -> list[MediaItemResponse] | None:
        cached = await self.redis.get(self.key(brand_id))
        if cached is None:
            return None
        return _media.validate_json(cached)

    async def set(self, brand_id: UUID, items: list[MediaItemResponse]) -> None:
        await self.redis.set(self.key(brand_id), _media.dump_json(items), ex=self.ttl)

    async def invalidate(self, brand_id: UUID) -> None:
        await self.redis.delete(self.key(brand_id))


featured_cache = FeaturedSectionCache()
media_cache = BrandMediaCache()
