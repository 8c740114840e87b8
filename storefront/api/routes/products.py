from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.dependencies.database import get_db
from storefront.core.exceptions import BadRequestError
from storefront.models.dto.featured import FeaturedListResponse, FeaturedSection
from storefront.models.dto.product import ProductListResponse, ProductResponse
from storefront.services import featured_service, product_service

VALID_SORTS = {"newest", "price_asc", "price_desc", "title_asc"}

router = APIRouter(prefix="/products", tags=["products"])


@router.get("", response_model=ProductListResponse)
async def list_products(
    q: str | None = Query(None, max_length=200),
    category: UUID | None = None,
    brand: UUID | None = None,
    sort: str = "newest",
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    if sort not in VALID_SORTS:
        raise BadRequestError(f"Invalid sort. Must be one of: {', '.join(sorted(VALID_SORTS))}")
    return await product_service.search_products(
        db,
        q=q,
        category_id=category,
        brand_id=brand,
        sort=sort,
        page=page,
        per_page=per_page,
    )


@router.get("/featured/{section}", response_model=FeaturedListResponse)
async def list_featured(
    section: FeaturedSection,
    db: AsyncSession = Depends(get_db),
):
    items = await featured_service.list_featured(db, section)
    return {"section": section, "items": items}


@router.get("/{slug}", response_model=ProductResponse)
async def get_product(
    slug: str,
    db: AsyncSession = Depends(get_db),
):
    return await product_service.get_by_slug(db, slug)
