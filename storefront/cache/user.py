from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.cache.base import RedisCache
from storefront.core.config import settings
from storefront.models.dto.address import AddressResponse
from storefront.models.dto.user import UserProfile
from storefront.models.orm.address import Address
from storefront.models.orm.user import User


def user_key(user_id: UUID) -> str:
    return f"user:{user_id}"


class UserCache(RedisCache):
    ttl = settings.user_cache_ttl_seconds

    async def get(self, db: AsyncSession, user_id: UUID) -> UserProfile | None:
        cached = await self.redis.get(user_key(user_id))
        if cached:
            return UserProfile.model_validate_json(cached)

        user = await db.get(User, user_id)
        if not user:
            return None
        result = await db.execute(
            select(Address)
            .where(Address.user_id == user_id)
            .order_by(Address.is_primary.desc(), Address.created_at)
        )
        profile = UserProfile.model_validate(user, from_attributes=True)
        profile.addresses = [AddressResponse.model_validate(a) for a in result.scalars().all()]
        await self.redis.set(user_key(user_id), profile.model_dump_json(), ex=self.ttl)
        return profile

    async def remove(self, user_id: UUID) -> None:
        await self.redis.delete(user_key(user_id))


user_cache = UserCache()
