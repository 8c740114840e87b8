import logging
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.cache.base import RedisCache
from storefront.core.config import settings
from storefront.models.dto.product import ProductSnapshot
from storefront.models.dto.wishlist import CachedWishlistItem
from storefront.models.orm.product import Product
from storefront.models.orm.wishlist_item import WishlistItem

logger = logging.getLogger(__name__)


def wishlist_key(user_id: UUID, product_id: UUID | None = None) -> str:
    if product_id is None:
        return f"wishlist:{user_id}"
    return f"wishlist:{user_id}:{product_id}"


def build_wishlist_item(item: WishlistItem, product: Product) -> CachedWishlistItem:
    return CachedWishlistItem(
        id=item.id,
        user_id=item.user_id,
        product_id=item.product_id,
        created_at=item.created_at,
        product=ProductSnapshot(
            id=product.id,
            brand_id=product.brand_id,
            title=product.title,
            slug=product.slug,
            image_url=product.image_url,
            price=product.price,
            compare_at_price=product.compare_at_price,
            quantity=product.quantity,
            has_variants=product.has_variants,
            is_purchasable=product.is_purchasable,
        ),
    )


class UserWishlistCache(RedisCache):
    ttl = settings.cart_cache_ttl_seconds

    async def get(self, db: AsyncSession, user_id: UUID) -> list[CachedWishlistItem]:
        keys = await self._keys(f"{wishlist_key(user_id)}:*")
        db_count = (
            await db.execute(
                select(func.count())
                .select_from(WishlistItem)
                .where(WishlistItem.user_id == user_id)
            )
        ).scalar() or 0

        if len(keys) != db_count:
            await self.drop(user_id)
            result = await db.execute(
                select(WishlistItem, Product)
                .join(Product, WishlistItem.product_id == Product.id)
                .where(WishlistItem.user_id == user_id)
            )
            items = [build_wishlist_item(w, p) for w, p in result.all()]
            await self.add_bulk(items)
        elif keys:
            values = await self.redis.mget(keys)
            items = [CachedWishlistItem.model_validate_json(v) for v in values if v]
        else:
            items = []
        return sorted(items, key=lambda i: i.created_at, reverse=True)

    async def get_product(
        self, db: AsyncSession, user_id: UUID, product_id: UUID
    ) -> CachedWishlistItem | None:
        cached = await self.redis.get(wishlist_key(user_id, product_id))
        if cached:
            return CachedWishlistItem.model_validate_json(cached)

        result = await db.execute(
            select(WishlistItem, Product)
            .join(Product, WishlistItem.product_id == Product.id)
            .where(WishlistItem.user_id == user_id, WishlistItem.product_id == product_id)
        )
        row = result.first()
        if not row:
            return None
        item = build_wishlist_item(*row)
        await self.add(item)
        return item

    async def add(self, item: CachedWishlistItem) -> None:
        await self.redis.set(
            wishlist_key(item.user_id, item.product_id), item.model_dump_json(), ex=self.ttl
        )

    async def add_bulk(self, items: list[CachedWishlistItem]) -> None:
        if not items:
            return
        async with self.redis.pipeline(transaction=False) as pipe:
            for item in items:
                pipe.set(
                    wishlist_key(item.user_id, item.product_id),
                    item.model_dump_json(),
                    ex=self.ttl,
                )
            await pipe.execute()

    async def remove(self, user_id: UUID, product_id: UUID) -> None:
        await self.redis.delete(wishlist_key(user_id, product_id))

    async def drop(self, user_id: UUID) -> None:
        await self._delete_pattern(f"{wishlist_key(user_id)}:*")


wishlist_cache = UserWishlistCache()
