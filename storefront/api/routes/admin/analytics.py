from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.dependencies.auth import require_dashboard_user
from storefront.api.dependencies.database import get_db
from storefront.core.exceptions import BadRequestError, NotFoundError
from storefront.models.dto.analytics import RevenueResponse
from storefront.models.orm.brand import Brand
from storefront.models.orm.user import User
from storefront.services import analytics_service

router = APIRouter(prefix="/analytics", tags=["admin-analytics"])


@router.get("/revenue", response_model=RevenueResponse)
async def get_revenue(
    days: int = Query(30, ge=1, le=365),
    brand: UUID | None = None,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_dashboard_user),
):
    if user.role == "brand":
        brand_id = user.brand_id
    else:
        if brand is None:
            raise BadRequestError("A brand must be selected")
        if not await db.get(Brand, brand):
            raise NotFoundError("Brand not found")
        brand_id = brand
    return await analytics_service.get_revenue(brand_id, days)
