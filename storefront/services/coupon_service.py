import logging
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.exceptions import BadRequestError, ConflictError, NotFoundError
from storefront.core.search import ilike_escape
from storefront.models.dto.coupon import CouponCreate, CouponUpdate
from storefront.models.orm.coupon import Coupon

logger = logging.getLogger(__name__)


def compute_discount(coupon: Coupon, total_amount: int) -> int:
    if coupon.discount_type == "percentage":
        discount = total_amount * coupon.discount_value // 100
    else:
        discount = coupon.discount_value
    if coupon.max_discount_amount is not None:
        discount = min(discount, coupon.max_discount_amount)
    return discount


async def get_active_coupons(db: AsyncSession) -> list[Coupon]:
    result = await db.execute(
        select(Coupon)
        .where(Coupon.is_active.is_(True), Coupon.expires_at > func.now())
        .order_by(Coupon.created_at.desc())
    )
    return list(result.scalars().all())


async def list_coupons(
    db: AsyncSession,
    *,
    page: int = 1,
    per_page: int = 20,
    q: str | None = None,
    is_active: bool | None = None,
    category_id: UUID | None = None,
) -> tuple[list[Coupon], int]:
    base = select(Coupon)
    if q:
        pattern = ilike_escape(q)
        base = base.where(or_(Coupon.code.ilike(pattern), Coupon.description.ilike(pattern)))
    if is_active is not None:
        base = base.where(Coupon.is_active == is_active)
    if category_id is not None:
        base = base.where(Coupon.category_id == category_id)

    total = (await db.execute(select(func.count()).select_from(base.subquery()))).scalar() or 0
    result = await db.execute(
        base.order_by(Coupon.created_at.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
    )
    return list(result.scalars().all()), total


async def get_coupon(db: AsyncSession, code: str) -> Coupon:
    coupon = await db.get(Coupon, code.strip().upper())
    if not coupon:
        raise NotFoundError("Coupon not found")
    return coupon


async def validate_coupon(
    db: AsyncSession, code: str, total_amount: int
) -> tuple[Coupon, int]:
    """Check a coupon against an order total. Returns the coupon and its discount."""
    coupon = await db.get(Coupon, code.strip().upper())
    if not coupon or not coupon.is_active:
        raise NotFoundError("Invalid coupon code")

    if coupon.expires_at <= datetime.now(timezone.utc):
        raise BadRequestError("Coupon has expired")

    if total_amount < coupon.min_order_amount:
        raise BadRequestError(
            f"Minimum order amount of ₹{coupon.min_order_amount / 100:.2f} "
            "is required to use this coupon"
        )

    if coupon.max_uses != 0 and coupon.uses >= coupon.max_uses:
        raise BadRequestError("Coupon usage limit has been reached")

    discount = compute_discount(coupon, total_amount)
    if discount > total_amount:
        raise BadRequestError("Discount amount exceeds the order total")

    return coupon, discount


async def create_coupon(db: AsyncSession, data: CouponCreate) -> Coupon:
    if await db.get(Coupon, data.code):
        raise ConflictError("Coupon with this code already exists")

    coupon = Coupon(**data.model_dump(), uses=0)
    db.add(coupon)
    await db.flush()
    return coupon


async def update_coupon(db: AsyncSession, code: str, data: CouponUpdate) -> tuple[Coupon, dict]:
    coupon = await get_coupon(db, code)

    changes: dict = {}
    for field, value in data.model_dump(exclude_unset=True).items():
        old = getattr(coupon, field)
        if old != value:
            changes[field] = {"old": str(old), "new": str(value)}
            setattr(coupon, field, value)

    if coupon.discount_type == "percentage" and coupon.discount_value > 100:
        raise BadRequestError("Percentage discount cannot exceed 100")

    await db.flush()
    return coupon, changes


async def update_coupon_status(db: AsyncSession, code: str, is_active: bool) -> Coupon:
    coupon = await get_coupon(db, code)
    if coupon.is_active == is_active:
        raise BadRequestError(
            f"Coupon is already {'active' if is_active else 'inactive'}"
        )
    coupon.is_active = is_active
    await db.flush()
    return coupon


async def delete_coupon(db: AsyncSession, code: str) -> None:
    coupon = await get_coupon(db, code)
    await db.delete(coupon)
    await db.flush()


async def increment_usage(db: AsyncSession, code: str) -> None:
    await db.execute(
        update(Coupon).where(Coupon.code == code).values(uses=Coupon.uses + 1)
    )
