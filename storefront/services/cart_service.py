import logging
from typing import Literal
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.cache.cart import cart_cache
from storefront.cache.wishlist import wishlist_cache
from storefront.core.exceptions import BadRequestError, ConflictError, NotFoundError, ensure_owner
from storefront.models.dto.cart import CachedCartItem, CartItemAdd, CartItemRef
from storefront.models.orm.cart_item import CartItem
from storefront.models.orm.product import Product, ProductVariant
from storefront.models.orm.wishlist_item import WishlistItem

logger = logging.getLogger(__name__)


async def get_purchasable_product(db: AsyncSession, product_id: UUID) -> Product:
    product = await db.get(Product, product_id)
    if not product or product.is_deleted:
        raise NotFoundError("Product not found")
    if not product.is_purchasable:
        raise BadRequestError("This product is not available for purchase")
    return product


async def get_available_stock(
    db: AsyncSession, product: Product, size: str | None, color: str | None
) -> int:
    """Stock for the selected variant, or for the product itself when it has none."""
    if size is None and color is None:
        if product.has_variants:
            raise BadRequestError("Please select a size or color")
        return product.quantity or 0

    result = await db.execute(
        select(ProductVariant).where(
            ProductVariant.product_id == product.id,
            ProductVariant.size.is_not_distinct_from(size),
            ProductVariant.color.is_not_distinct_from(color),
            ProductVariant.is_deleted.is_(False),
        )
    )
    variant = result.scalar_one_or_none()
    if not variant:
        raise NotFoundError("Variant not found")
    return variant.quantity


def check_stock(available: int, requested: int) -> None:
    if requested > available:
        raise BadRequestError("Not enough stock available")


async def flush_or_conflict(db: AsyncSession, message: str) -> None:
    try:
        await db.flush()
    except IntegrityError as exc:
        logger.info("Unique constraint hit: %s", exc.orig)
        raise ConflictError(message) from exc


async def get_cart(db: AsyncSession, caller_id: UUID, user_id: UUID) -> dict:
    ensure_owner(caller_id, user_id)
    items = await cart_cache.get(db, user_id)
    active = [i for i in items if i.status]
    return {
        "items": items,
        "total_items": sum(i.quantity for i in active),
        "total_amount": sum(i.unit_price * i.quantity for i in active),
    }


async def add_to_cart(
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
    if quantity <= 0:
        raise BadRequestError("Quantity must be greater than zero")

    product = await get_purchasable_product(db, product_id)
    stock = await get_available_stock(db, product, size, color)

    existing = await cart_cache.get_product(db, user_id, product_id, size, color)
    if existing:
        new_quantity = existing.quantity + quantity
        check_stock(stock, new_quantity)
        await db.execute(
            update(CartItem).where(CartItem.id == existing.id).values(quantity=new_quantity)
        )
        await db.flush()
        await cart_cache.remove(user_id, product_id, size, color)
        return "update"

    check_stock(stock, quantity)
    db.add(CartItem(
        user_id=user_id,
        product_id=product_id,
        size=size,
        color=color,
        quantity=quantity,
        status=True,
    ))
    await flush_or_conflict(db, "This product was just added to your cart, please try again")
    return "add"


async def update_quantity(
    db: AsyncSession,
    caller_id: UUID,
    user_id: UUID,
    product_id: UUID,
    *,
    size: str | None = None,
    color: str | None = None,
    quantity: int,
) -> CachedCartItem:
    ensure_owner(caller_id, user_id)
    if quantity <= 0:
        raise BadRequestError("Quantity must be greater than zero")

    existing = await cart_cache.get_product(db, user_id, product_id, size, color)
    if not existing:
        raise NotFoundError("This product is not in your cart")
    if existing.quantity == quantity:
        raise BadRequestError("No changes were made to the cart")

    product = await get_purchasable_product(db, product_id)
    check_stock(await get_available_stock(db, product, size, color), quantity)

    await db.execute(
        update(CartItem).where(CartItem.id == existing.id).values(quantity=quantity)
    )
    await db.flush()
    await cart_cache.remove(user_id, product_id, size, color)
    return existing.model_copy(update={"quantity": quantity})


async def update_status(
    db: AsyncSession,
    caller_id: UUID,
    user_id: UUID,
    status: bool,
    *,
    product_id: UUID | None = None,
    size: str | None = None,
    color: str | None = None,
) -> int:
    """Select or deselect one cart line, or every line when no product is given."""
    ensure_owner(caller_id, user_id)

    if product_id is not None:
        existing = await cart_cache.get_product(db, user_id, product_id, size, color)
        if not existing:
            raise NotFoundError("This product is not in your cart")
        # A deleted variant drops out of the cart join, leaving no variant data
        variant_gone = (existing.size or existing.color) and existing.variant_quantity is None
        if not existing.product.is_purchasable or variant_gone:
            raise BadRequestError("This product is not available")
        stmt = update(CartItem).where(CartItem.id == existing.id)
    else:
        stmt = update(CartItem).where(CartItem.user_id == user_id)

    result = await db.execute(stmt.values(status=status))
    await db.flush()
    await cart_cache.drop(user_id)
    return result.rowcount


async def move_to_wishlist(
    db: AsyncSession,
    caller_id: UUID,
    user_id: UUID,
    product_id: UUID,
    *,
    size: str | None = None,
    color: str | None = None,
) -> None:
    ensure_owner(caller_id, user_id)

    existing = await cart_cache.get_product(db, user_id, product_id, size, color)
    if not existing:
        raise NotFoundError("This product is not in your cart")

    wishlisted = await wishlist_cache.get_product(db, user_id, product_id)
    if wishlisted:
        raise BadRequestError(
            "This product is already in your wishlist, you can remove it from your cart instead"
        )

    product = await db.get(Product, product_id)
    if not product or not product.is_purchasable:
        raise BadRequestError("This product is not available anymore")

    db.add(WishlistItem(user_id=user_id, product_id=product_id))
    await db.execute(delete(CartItem).where(CartItem.id == existing.id))
    await flush_or_conflict(db, "This product is already in your wishlist")

    await cart_cache.remove(user_id, product_id, size, color)
    await wishlist_cache.remove(user_id, product_id)


async def remove_from_cart(
    db: AsyncSession,
    caller_id: UUID,
    user_id: UUID,
    product_id: UUID,
    *,
    size: str | None = None,
    color: str | None = None,
) -> None:
    ensure_owner(caller_id, user_id)

    existing = await cart_cache.get_product(db, user_id, product_id, size, color)
    if not existing:
        raise NotFoundError("This product is not in your cart")

    await db.execute(delete(CartItem).where(CartItem.id == existing.id))
    await db.flush()
    await cart_cache.remove(user_id, product_id, size, color)


async def remove_items(
    db: AsyncSession, caller_id: UUID, user_id: UUID, items: list[CartItemRef]
) -> int:
    ensure_owner(caller_id, user_id)

    wanted = {(i.product_id, i.size, i.color) for i in items}
    cached = await cart_cache.get(db, user_id)
    matches = [c for c in cached if (c.product_id, c.size, c.color) in wanted]
    if not matches:
        raise NotFoundError("These variants are not in your cart")

    await db.execute(delete(CartItem).where(CartItem.id.in_([m.id for m in matches])))
    await db.flush()
    await cart_cache.drop(user_id)
    return len(matches)


async def merge_guest_cart(
    db: AsyncSession, caller_id: UUID, user_id: UUID, items: list[CartItemAdd]
) -> int:
    """Fold an anonymous browser cart into the signed-in user's cart.

    Lines whose product or variant is no longer sellable are skipped.
    Returns the number of merged lines.
    """
    ensure_owner(caller_id, user_id)
    merged = 0
    for line in items:
        try:
            product = await get_purchasable_product(db, line.product_id)
            await get_available_stock(db, product, line.size, line.color)
        except (NotFoundError, BadRequestError) as exc:
            logger.info("Skipping guest cart line %s: %s", line.product_id, exc.detail)
            continue

        existing = await cart_cache.get_product(
            db, user_id, line.product_id, line.size, line.color
        )
        if existing:
            await db.execute(
                update(CartItem)
                .where(CartItem.id == existing.id)
                .values(quantity=existing.quantity + line.quantity)
            )
        else:
            db.add(CartItem(
                user_id=user_id,
                product_id=line.product_id,
                size=line.size,
                color=line.color,
                quantity=line.quantity,
                status=True,
            ))
        await db.flush()
        merged += 1

    await cart_cache.drop(user_id)
    return merged
