from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.dependencies.auth import require_admin
from storefront.api.dependencies.database import get_db
from storefront.audit.service import audit_context, write_audit_log
from storefront.models.dto import DetailResponse
from storefront.models.dto.coupon import (
    CouponCreate,
    CouponListResponse,
    CouponResponse,
    CouponStatusUpdate,
    CouponUpdate,
)
from storefront.models.orm.user import User
from storefront.services import coupon_service

router = APIRouter(prefix="/coupons", tags=["admin-coupons"])


@router.get("", response_model=CouponListResponse)
async def list_coupons(
    q: str | None = Query(None, max_length=200),
    is_active: bool | None = None,
    category: UUID | None = None,
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
):
    items, total = await coupon_service.list_coupons(
        db, page=page, per_page=per_page, q=q, is_active=is_active, category_id=category,
    )
    return {"items": items, "total": total, "page": page, "per_page": per_page}


@router.get("/{code}", response_model=CouponResponse)
async def get_coupon(
    code: str,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
):
    return await coupon_service.get_coupon(db, code)


@router.post("", response_model=CouponResponse, status_code=201)
async def create_coupon(
    body: CouponCreate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
):
    coupon = await coupon_service.create_coupon(db, body)
    ip, ua = audit_context(request)
    await write_audit_log(
        db, user_id=admin.id, action="admin.coupon.created",
        resource_type="coupon", resource_id=coupon.code,
        details={
            "discount_type": coupon.discount_type,
            "discount_value": coupon.discount_value,
            "expires_at": coupon.expires_at.isoformat(),
        },
        ip_address=ip, user_agent=ua,
    )
    return coupon


@router.put("/{code}", response_model=CouponResponse)
async def update_coupon(
    code: str,
    body: CouponUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
):
    coupon, changes = await coupon_service.update_coupon(db, code, body)
    if changes:
        ip, ua = audit_context(request)
        await write_audit_log(
            db, user_id=admin.id, action="admin.coupon.updated",
            resource_type="coupon", resource_id=coupon.code,
            details={"changes": changes},
            ip_address=ip, user_agent=ua,
        )
    return coupon


@router.patch("/{code}/status", response_model=CouponResponse)
async def update_coupon_status(
    code: str,
    body: CouponStatusUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
):
    coupon = await coupon_service.update_coupon_status(db, code, body.is_active)
    ip, ua = audit_context(request)
    await write_audit_log(
        db, user_id=admin.id, action="admin.coupon.status_changed",
        resource_type="coupon", resource_id=coupon.code,
        details={"is_active": body.is_active},
        ip_address=ip, user_agent=ua,
    )
    return coupon


@router.delete("/{code}", response_model=DetailResponse)
async def delete_coupon(
    code: str,
    request: Request,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
):
    await coupon_service.delete_coupon(db, code)
    ip, ua = audit_context(request)
    await write_audit_log(
        db, user_id=admin.id, action="admin.coupon.deleted",
        resource_type="coupon", resource_id=code.upper(),
        ip_address=ip, user_agent=ua,
    )
    return {"detail": "Coupon deleted"}
