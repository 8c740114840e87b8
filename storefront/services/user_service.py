from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from storefront.cache.user import user_cache
from storefront.core.exceptions import NotFoundError
from storefront.models.dto.user import UserProfile
from storefront.models.orm.user import User
from storefront.repositories import user_repo


async def get_profile(db: AsyncSession, user_id: UUID) -> UserProfile:
    profile = await user_cache.get(db, user_id)
    if not profile:
        raise NotFoundError("User not found")
    return profile


async def list_users(
    db: AsyncSession,
    *,
    page: int = 1,
    per_page: int = 20,
    q: str | None = None,
    role: str | None = None,
    brand_id: UUID | None = None,
) -> tuple[list[User], int]:
    return await user_repo.get_all(
        db, page=page, per_page=per_page, q=q, role=role, brand_id=brand_id
    )
