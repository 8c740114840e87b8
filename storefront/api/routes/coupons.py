from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.dependencies.auth import get_current_user
from storefront.api.dependencies.database import get_db
from storefront.models.dto.coupon import CouponResponse, CouponValidate, CouponValidationResponse
from storefront.models.orm.user import User
from storefront.services import coupon_service

router = APIRouter(prefix="/coupons", tags=["coupons"])


@router.get("", response_model=list[CouponResponse])
async def get_active_coupons(db: AsyncSession = Depends(get_db)):
    return await coupon_service.get_active_coupons(db)


@router.post("/validate", response_model=CouponValidationResponse)
async def validate_coupon(
    body: CouponValidate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    coupon, discount = await coupon_service.validate_coupon(db, body.code, body.total_amount)
    return {
        "code": coupon.code,
        "discount_amount": discount,
        "total_after_discount": body.total_amount - discount,
    }
