"""Storefront section curation.

Every section is a (join table, product flag) pair. The join row and the
flag move together: removal soft-deletes the row and clears the flag,
featuring restores or inserts the row and sets the flag.
"""

import logging
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.cache.listing import featured_cache
from storefront.core.exceptions import ConflictError, NotFoundError
from storefront.models.dto.product import ProductSnapshot
from storefront.models.orm.featured import (
    BeautyBestSellerProduct,
    BeautyNewArrivalProduct,
    BeautyTopPickProduct,
    FeaturedProductMixin,
    HomeBestSellerProduct,
    HomeLivingFeaturedProduct,
    HomeNewArrivalProduct,
    KidsFeaturedProduct,
    KidsNewArrivalProduct,
    MenFeaturedProduct,
    MenNewArrivalProduct,
    WomenFeaturedProduct,
)
from storefront.models.orm.product import Product

logger = logging.getLogger(__name__)

FEATURED_SECTIONS: dict[str, tuple[type[FeaturedProductMixin], str]] = {
    "women": (WomenFeaturedProduct, "is_featured_women"),
    "men": (MenFeaturedProduct, "is_featured_men"),
    "kids": (KidsFeaturedProduct, "is_featured_kids"),
    "home_living": (HomeLivingFeaturedProduct, "is_featured_home_living"),
    "beauty_top_picks": (BeautyTopPickProduct, "is_beauty_top_pick"),
    "beauty_new_arrivals": (BeautyNewArrivalProduct, "is_beauty_new_arrival"),
    "beauty_best_sellers": (BeautyBestSellerProduct, "is_beauty_best_seller"),
    "home_new_arrivals": (HomeNewArrivalProduct, "is_home_new_arrival"),
    "home_best_sellers": (HomeBestSellerProduct, "is_home_best_seller"),
    "kids_new_arrivals": (KidsNewArrivalProduct, "is_kids_new_arrival"),
    "men_new_arrivals": (MenNewArrivalProduct, "is_men_new_arrival"),
}


def _resolve(section: str) -> tuple[type[FeaturedProductMixin], str]:
    try:
        return FEATURED_SECTIONS[section]
    except KeyError:
        raise NotFoundError(f"Unknown section '{section}'") from None


async def toggle_featured(
    db: AsyncSession, section: str, product_id: UUID, is_featured: bool
) -> bool:
    """Flip a product's membership in a section.

    ``is_featured`` is the flag value the caller currently sees: True removes
    the product from the section, False adds it. Returns the new flag value.
    """
    model, flag = _resolve(section)

    product = await db.get(Product, product_id)
    if not product or product.is_deleted:
        raise NotFoundError("Product not found")

    result = await db.execute(select(model).where(model.product_id == product_id))
    row = result.scalar_one_or_none()

    if is_featured:
        if not row or row.is_deleted:
            raise NotFoundError("Featured product not found")
        row.is_deleted = True
        row.deleted_at = datetime.now(timezone.utc)
        setattr(product, flag, False)
    else:
        if row and not row.is_deleted:
            raise ConflictError("Product is already featured")
        if row:
            row.is_deleted = False
            row.deleted_at = None
        else:
            db.add(model(product_id=product_id))
        setattr(product, flag, True)

    await db.flush()
    await featured_cache.invalidate(section)
    logger.info(
        "Product %s %s section '%s'",
        product_id, "removed from" if is_featured else "added to", section,
    )
    return not is_featured


async def list_featured(db: AsyncSession, section: str) -> list[ProductSnapshot]:
    model, _ = _resolve(section)

    cached = await featured_cache.get(section)
    if cached is not None:
        return cached

    result = await db.execute(
        select(Product)
        .join(model, model.product_id == Product.id)
        .where(
            model.is_deleted.is_(False),
            Product.is_deleted.is_(False),
            Product.is_published.is_(True),
            Product.is_active.is_(True),
            Product.verification_status == "approved",
        )
        .order_by(model.updated_at.desc())
    )
    items = [ProductSnapshot.model_validate(p) for p in result.scalars().all()]
    await featured_cache.set(section, items)
    return items
