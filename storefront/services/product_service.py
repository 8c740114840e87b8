import logging
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from storefront.core.exceptions import BadRequestError, NotFoundError
from storefront.core.search import ilike_escape
from storefront.models.orm.product import VERIFICATION_STATUSES, Product

logger = logging.getLogger(__name__)

_SORT_OPTIONS = {
    "newest": Product.created_at.desc(),
    "price_asc": Product.price.asc().nulls_last(),
    "price_desc": Product.price.desc().nulls_last(),
    "title_asc": Product.title.asc(),
}


def _visible_conditions() -> list:
    return [
        Product.is_deleted.is_(False),
        Product.is_published.is_(True),
        Product.is_active.is_(True),
        Product.verification_status == "approved",
    ]


async def search_products(
    db: AsyncSession,
    *,
    q: str | None = None,
    category_id: UUID | None = None,
    brand_id: UUID | None = None,
    verification_status: str | None = None,
    storefront_only: bool = True,
    sort: str = "newest",
    page: int = 1,
    per_page: int = 20,
) -> dict:
    conditions = _visible_conditions() if storefront_only else [Product.is_deleted.is_(False)]

    if category_id:
        conditions.append(Product.category_id == category_id)
    if brand_id:
        conditions.append(Product.brand_id == brand_id)
    if verification_status:
        conditions.append(Product.verification_status == verification_status)
    if q:
        pattern = ilike_escape(q)
        conditions.append(or_(
            Product.title.ilike(pattern),
            Product.meta_keywords.ilike(pattern),
            Product.sku.ilike(pattern),
        ))

    count_result = await db.execute(select(func.count()).select_from(Product).where(*conditions))
    total = count_result.scalar() or 0

    result = await db.execute(
        select(Product)
        .options(selectinload(Product.variants))
        .where(*conditions)
        .order_by(_SORT_OPTIONS.get(sort, _SORT_OPTIONS["newest"]))
        .offset((page - 1) * per_page)
        .limit(per_page)
    )
    return {
        "items": list(result.scalars().all()),
        "total": total,
        "page": page,
        "per_page": per_page,
    }


async def get_by_slug(db: AsyncSession, slug: str) -> Product:
    result = await db.execute(
        select(Product)
        .options(selectinload(Product.variants))
        .where(Product.slug == slug, *_visible_conditions())
    )
    product = result.scalar_one_or_none()
    if not product:
        raise NotFoundError("Product not found")
    return product


async def get_by_id(db: AsyncSession, product_id: UUID) -> Product:
    product = await db.get(Product, product_id)
    if not product or product.is_deleted:
        raise NotFoundError("Product not found")
    return product


async def set_verification_status(
    db: AsyncSession, product_id: UUID, status: str
) -> Product:
    if status not in VERIFICATION_STATUSES:
        raise BadRequestError(f"Unknown verification status '{status}'")
    product = await get_by_id(db, product_id)
    if product.verification_status == status:
        raise BadRequestError(f"Product is already {status}")
    product.verification_status = status
    await db.flush()
    return product


async def set_published(db: AsyncSession, product_id: UUID, published: bool) -> Product:
    product = await get_by_id(db, product_id)
    if published and product.verification_status != "approved":
        raise BadRequestError("Only approved products can be published")
    product.is_published = published
    await db.flush()
    return product


async def get_with_variants(db: AsyncSession, product_id: UUID) -> Product:
    result = await db.execute(
        select(Product)
        .options(selectinload(Product.variants))
        .where(Product.id == product_id, Product.is_deleted.is_(False))
        .execution_options(populate_existing=True)
    )
    product = result.scalar_one_or_none()
    if not product:
        raise NotFoundError("Product not found")
    return product
