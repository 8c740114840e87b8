from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.dependencies.auth import get_current_user
from storefront.api.dependencies.database import get_db
from storefront.audit.service import audit_context, write_audit_log
from storefront.models.dto import DetailResponse
from storefront.models.dto.cart import (
    CachedCartItem,
    CartItemAdd,
    CartItemRef,
    CartItemsRemove,
    CartItemUpdate,
    CartMutationResponse,
    CartResponse,
    CartStatusUpdate,
    GuestCartMerge,
)
from storefront.models.dto.common import CountResponse
from storefront.models.orm.user import User
from storefront.services import cart_service

router = APIRouter(prefix="/users/{user_id}/cart", tags=["cart"])


@router.get("", response_model=CartResponse)
async def get_cart(
    user_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return await cart_service.get_cart(db, user.id, user_id)


@router.post("/items", response_model=CartMutationResponse, status_code=201)
async def add_to_cart(
    user_id: UUID,
    body: CartItemAdd,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    kind = await cart_service.add_to_cart(
        db, user.id, user_id, body.product_id,
        size=body.size, color=body.color, quantity=body.quantity,
    )
    detail = "Product added to cart" if kind == "add" else "Cart quantity updated"
    return {"detail": detail, "type": kind}


@router.put("/items", response_model=CachedCartItem)
async def update_cart_item(
    user_id: UUID,
    body: CartItemUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return await cart_service.update_quantity(
        db, user.id, user_id, body.product_id,
        size=body.size, color=body.color, quantity=body.quantity,
    )


@router.patch("/status", response_model=CountResponse)
async def update_cart_status(
    user_id: UUID,
    body: CartStatusUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    count = await cart_service.update_status(
        db, user.id, user_id, body.status,
        product_id=body.product_id, size=body.size, color=body.color,
    )
    return {"count": count}


@router.post("/items/move-to-wishlist", response_model=DetailResponse)
async def move_to_wishlist(
    user_id: UUID,
    body: CartItemRef,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    await cart_service.move_to_wishlist(
        db, user.id, user_id, body.product_id, size=body.size, color=body.color,
    )
    return {"detail": "Product moved to wishlist"}


@router.delete("/items/{product_id}", status_code=204)
async def remove_from_cart(
    user_id: UUID,
    product_id: UUID,
    size: str | None = Query(None, max_length=50),
    color: str | None = Query(None, max_length=50),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    await cart_service.remove_from_cart(
        db, user.id, user_id, product_id, size=size, color=color,
    )


@router.post("/items/remove", response_model=CountResponse)
async def remove_items(
    user_id: UUID,
    body: CartItemsRemove,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    count = await cart_service.remove_items(db, user.id, user_id, body.items)
    return {"count": count}


@router.post("/merge", response_model=CountResponse)
async def merge_guest_cart(
    user_id: UUID,
    body: GuestCartMerge,
    request: Request,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    merged = await cart_service.merge_guest_cart(db, user.id, user_id, body.items)
    ip, ua = audit_context(request)
    await write_audit_log(
        db, user_id=user.id, action="cart.guest_merged",
        resource_type="cart", resource_id=user_id,
        details={"submitted": len(body.items), "merged": merged},
        ip_address=ip, user_agent=ua,
    )
    return {"count": merged}
