from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.dependencies.auth import get_current_user
from storefront.api.dependencies.database import get_db
from storefront.models.dto import DetailResponse
from storefront.models.dto.cart import CartMutationResponse
from storefront.models.dto.wishlist import CachedWishlistItem, WishlistItemAdd, WishlistMoveToCart
from storefront.models.orm.user import User
from storefront.services import wishlist_service

router = APIRouter(prefix="/users/{user_id}/wishlist", tags=["wishlist"])


@router.get("", response_model=list[CachedWishlistItem])
async def get_wishlist(
    user_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return await wishlist_service.get_wishlist(db, user.id, user_id)


@router.post("/items", response_model=DetailResponse, status_code=201)
async def add_to_wishlist(
    user_id: UUID,
    body: WishlistItemAdd,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    await wishlist_service.add_to_wishlist(db, user, user_id, body.product_id)
    return {"detail": "Product added to wishlist"}


@router.delete("/items/{product_id}", status_code=204)
async def remove_from_wishlist(
    user_id: UUID,
    product_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    await wishlist_service.remove_from_wishlist(db, user.id, user_id, product_id)


@router.post("/items/move-to-cart", response_model=CartMutationResponse)
async def move_to_cart(
    user_id: UUID,
    body: WishlistMoveToCart,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    kind = await wishlist_service.move_to_cart(
        db, user.id, user_id, body.product_id,
        size=body.size, color=body.color, quantity=body.quantity,
    )
    detail = "Product moved to cart" if kind == "add" else "Cart quantity updated"
    return {"detail": detail, "type": kind}
