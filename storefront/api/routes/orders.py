from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.dependencies.auth import get_current_user
from storefront.api.dependencies.database import get_db
from storefront.audit.service import audit_context, write_audit_log
from storefront.integrations.razorpay.client import razorpay_client
from storefront.models.dto.order import (
    CheckoutResponse,
    OrderCancel,
    OrderCreate,
    OrderListResponse,
    OrderResponse,
    PaymentVerify,
)
from storefront.models.orm.user import User
from storefront.services import order_service

router = APIRouter(prefix="/users/{user_id}/orders", tags=["orders"])


@router.get("", response_model=OrderListResponse)
async def list_my_orders(
    user_id: UUID,
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    items, total = await order_service.get_orders_for_user(
        db, user.id, user_id, page=page, per_page=per_page
    )
    return {"items": items, "total": total, "page": page, "per_page": per_page}


@router.post("", response_model=CheckoutResponse, status_code=201)
async def create_order(
    user_id: UUID,
    body: OrderCreate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    order = await order_service.create_order(db, user.id, user_id, body)
    ip, ua = audit_context(request)
    await write_audit_log(
        db, user_id=user.id, action="order.created",
        resource_type="order", resource_id=order.id,
        details={
            "receipt_id": order.receipt_id,
            "total_amount": order.total_amount,
            "coupon_code": order.coupon_code,
        },
        ip_address=ip, user_agent=ua,
    )
    return {
        "order": await order_service.get_order(db, user.id, user_id, order.id),
        "gateway_order_id": order.gateway_order_id,
        "gateway_key_id": razorpay_client.key_id,
        "amount": order.total_amount,
    }


@router.post("/verify-payment", response_model=OrderResponse)
async def verify_payment(
    user_id: UUID,
    body: PaymentVerify,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    order = await order_service.verify_payment(db, user.id, user_id, body)
    return await order_service.get_order(db, user.id, user_id, order.id)


@router.get("/{order_id}", response_model=OrderResponse)
async def get_my_order(
    user_id: UUID,
    order_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return await order_service.get_order(db, user.id, user_id, order_id)


@router.post("/{order_id}/cancel", response_model=OrderResponse)
async def cancel_order(
    user_id: UUID,
    order_id: UUID,
    body: OrderCancel,
    request: Request,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    order = await order_service.cancel_order(db, user.id, user_id, order_id, body.reason)
    ip, ua = audit_context(request)
    await write_audit_log(
        db, user_id=user.id, action="order.cancelled",
        resource_type="order", resource_id=order.id,
        details={"reason": body.reason, "payment_status": order.payment_status},
        ip_address=ip, user_agent=ua,
    )
    return await order_service.get_order(db, user.id, user_id, order_id)
