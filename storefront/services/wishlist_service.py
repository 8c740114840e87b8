import logging
from typing import Literal
from uuid import UUID

from sqlalchemy import delete, update
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.cache.cart import cart_cache
from storefront.cache.wishlist import wishlist_cache
from storefront.core.exceptions import ConflictError, ForbiddenError, NotFoundError, ensure_owner
from storefront.models.dto.wishlist import CachedWishlistItem
from storefront.models.orm.cart_item import CartItem
from storefront.models.orm.product import Product
from storefront.models.orm.user import User
from storefront.models.orm.wishlist_item import WishlistItem
from storefront.services.cart_service import (
    flush_or_conflict,
    check_stock,
    get_available_stock,
    get_purchasable_product,
)

logger = logging.getLogger(__name__)


async def get_wishlist(
    db: AsyncSession, caller_id: UUID, user_id: UUID
) -> list[CachedWishlistItem]:
    ensure_owner(caller_id, user_id)
    return await wishlist_cache.get(db, user_id)


async def add_to_wishlist(
    db: AsyncSession, caller: User, user_id: UUID, product_id: UUID
) -> None:
    ensure_owner(caller.id, user_id)
    if caller.role != "customer":
        raise ForbiddenError("Only customers can add products to a wishlist")

    existing = await wishlist_cache.get_product(db, user_id, product_id)
    if existing:
        raise ConflictError("This product is already in your wishlist")

    product = await db.get(Product, product_id)
    if not product or not product.is_purchasable:
        raise NotFoundError("Product not found")

    db.add(WishlistItem(user_id=user_id, product_id=product_id))
    await flush_or_conflict(db, "This product is already in your wishlist")


async def remove_from_wishlist(
    db: AsyncSession, caller_id: UUID, user_id: UUID, product_id: UUID
) -> None:
    ensure_owner(caller_id, user_id)

    existing = await wishlist_cache.get_product(db, user_id, product_id)
    if not existing:
        raise NotFoundError("This product is not in your wishlist")

    await db.execute(delete(WishlistItem).where(WishlistItem.id == existing.id))
    await db.flush()
    await wishlist_cache.remove(user_id, product_id)


async def move_to_cart(
    db: AsyncSession,
    caller_id: UUID,
    user_id: UUID,
    product_id: UUID,
    *,
    size: str | None = None,
    color: str | None = None,
    quantity: int = 1,
) -> Literal["add", "update"]:
    ensure_owner(caller_id, user_id)

    wishlisted = await wishlist_cache.get_product(db, user_id, product_id)
    if not wishlisted:
        raise NotFoundError("This product is not in your wishlist")

    product = await get_purchasable_product(db, product_id)
    stock = await get_available_stock(db, product, size, color)

    in_cart = await cart_cache.get_product(db, user_id, product_id, size, color)
    if in_cart:
        check_stock(stock, in_cart.quantity + quantity)
        await db.execute(
            update(CartItem)
            .where(CartItem.id == in_cart.id)
            .values(quantity=in_cart.quantity + quantity)
        )
        outcome: Literal["add", "update"] = "update"
    else:
        check_stock(stock, quantity)
        db.add(CartItem(
            user_id=user_id,
            product_id=product_id,
            size=size,
            color=color,
            quantity=quantity,
            status=True,
        ))
        outcome = "add"

    await db.execute(delete(WishlistItem).where(WishlistItem.id == wishlisted.id))
    await flush_or_conflict(db, "This product was just added to your cart, please try again")

    await wishlist_cache.remove(user_id, product_id)
    await cart_cache.remove(user_id, product_id, size, color)
    return outcome
