"""Per-user cart snapshot in Redis.

Each cart line is stored under ``cart:{user}:{product}:{size}:{color}``, with
``-`` standing in for an unset size or color.
A full read compares the number of cached keys with the number of rows in
``cart_items`` and rebuilds the user's keyspace when they disagree.
"""

import logging
from uuid import UUID

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.cache.base import RedisCache
from storefront.core.config import settings
from storefront.models.dto.cart import CachedCartItem
from storefront.models.dto.product import ProductSnapshot
from storefront.models.orm.cart_item import CartItem
from storefront.models.orm.product import Product, ProductVariant

logger = logging.getLogger(__name__)

NO_OPTION = "-"


def cart_key(
    user_id: UUID,
    product_id: UUID | None = None,
    size: str | None = None,
    color: str | None = None,
) -> str:
    if product_id is None:
        return f"cart:{user_id}"
    return f"cart:{user_id}:{product_id}:{size or NO_OPTION}:{color or NO_OPTION}"


def sort_cart_items(items: list[CachedCartItem]) -> list[CachedCartItem]:
    """Newest first, with active lines ahead of inactive ones."""
    items = sorted(items, key=lambda i: i.created_at, reverse=True)
    return sorted(items, key=lambda i: not i.status)


def build_cart_item(
    item: CartItem, product: Product, variant: ProductVariant | None
) -> CachedCartItem:
    return CachedCartItem(
        id=item.id,
        user_id=item.user_id,
        product_id=item.product_id,
        size=item.size,
        color=item.color,
        quantity=item.quantity,
        status=item.status,
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
        variant_price=variant.price if variant else None,
        variant_quantity=variant.quantity if variant else None,
    )


def cart_rows_stmt(user_id: UUID):
    return (
        select(CartItem, Product, ProductVariant)
        .join(Product, CartItem.product_id == Product.id)
        .outerjoin(
            ProductVariant,
            and_(
                ProductVariant.product_id == CartItem.product_id,
                ProductVariant.size.is_not_distinct_from(CartItem.size),
                ProductVariant.color.is_not_distinct_from(CartItem.color),
                ProductVariant.is_deleted.is_(False),
            ),
        )
        .where(CartItem.user_id == user_id)
    )


class UserCartCache(RedisCache):
    ttl = settings.cart_cache_ttl_seconds

    async def get(self, db: AsyncSession, user_id: UUID) -> list[CachedCartItem]:
        keys = await self._keys(f"{cart_key(user_id)}:*")
        db_count = (
            await db.execute(
                select(func.count()).select_from(CartItem).where(CartItem.user_id == user_id)
            )
        ).scalar() or 0

        if len(keys) != db_count:
            logger.debug(
                "Cart cache for user %s out of sync (%d keys, %d rows), rebuilding",
                user_id, len(keys), db_count,
            )
            await self.drop(user_id)
            result = await db.execute(cart_rows_stmt(user_id))
            items = [build_cart_item(c, p, v) for c, p, v in result.all()]
            await self.add_bulk(items)
            return sort_cart_items(items)

        if not keys:
            return []
        values = await self.redis.mget(keys)
        items = [CachedCartItem.model_validate_json(v) for v in values if v]
        return sort_cart_items(items)

    async def get_product(
        self,
        db: AsyncSession,
        user_id: UUID,
        product_id: UUID,
        size: str | None = None,
        color: str | None = None,
    ) -> CachedCartItem | None:
        cached = await self.redis.get(cart_key(user_id, product_id, size, color))
        if cached:
            return CachedCartItem.model_validate_json(cached)

        result = await db.execute(
            cart_rows_stmt(user_id).where(
                CartItem.product_id == product_id,
                CartItem.size.is_not_distinct_from(size),
                CartItem.color.is_not_distinct_from(color),
            )
        )
        row = result.first()
        if not row:
            return None
        item = build_cart_item(*row)
        await self.add(item)
        return item

    async def add(self, item: CachedCartItem) -> None:
        await self.redis.set(
            cart_key(item.user_id, item.product_id, item.size, item.color),
            item.model_dump_json(),
            ex=self.ttl,
        )

    async def add_bulk(self, items: list[CachedCartItem]) -> None:
        if not items:
            return
        async with self.redis.pipeline(transaction=False) as pipe:
            for item in items:
                pipe.set(
                    cart_key(item.user_id, item.product_id, item.size, item.color),
                    item.model_dump_json(),
                    ex=self.ttl,
                )
            await pipe.execute()

    async def remove(
        self,
        user_id: UUID,
        product_id: UUID,
        size: str | None = None,
        color: str | None = None,
    ) -> None:
        await self.redis.delete(cart_key(user_id, product_id, size, color))

    async def drop(self, user_id: UUID) -> None:
        await self._delete_pattern(f"{cart_key(user_id)}:*")

    async def drop_all(self) -> None:
        await self._delete_pattern("cart:*")


cart_cache = UserCartCache()
