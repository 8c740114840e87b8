import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, declared_attr, mapped_column

from storefront.models.orm.base import Base


class FeaturedProductMixin:
    """A product pinned to a storefront section. Removal is a soft delete."""

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )

    @declared_attr
    def product_id(cls) -> Mapped[uuid.UUID]:
        return mapped_column(
            UUID(as_uuid=True),
            ForeignKey("products.id", ondelete="CASCADE"),
            unique=True,
            nullable=False,
        )

    is_deleted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    deleted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )


class WomenFeaturedProduct(FeaturedProductMixin, Base):
    __tablename__ = "featured_women_products"


class MenFeaturedProduct(FeaturedProductMixin, Base):
    __tablename__ = "featured_men_products"


class KidsFeaturedProduct(FeaturedProductMixin, Base):
    __tablename__ = "featured_kids_products"


class HomeLivingFeaturedProduct(FeaturedProductMixin, Base):
    __tablename__ = "featured_home_living_products"


class BeautyTopPickProduct(FeaturedProductMixin, Base):
    __tablename__ = "featured_beauty_top_picks"


class BeautyNewArrivalProduct(FeaturedProductMixin, Base):
    __tablename__ = "featured_beauty_new_arrivals"


class BeautyBestSellerProduct(FeaturedProductMixin, Base):
    __tablename__ = "featured_beauty_best_sellers"


class HomeNewArrivalProduct(FeaturedProductMixin, Base):
    __tablename__ = "featured_home_new_arrivals"


class HomeBestSellerProduct(FeaturedProductMixin, Base):
    __tablename__ = "featured_home_best_sellers"


class KidsNewArrivalProduct(FeaturedProductMixin, Base):
    __tablename__ = "featured_kids_new_arrivals"


class MenNewArrivalProduct(FeaturedProductMixin, Base):
    __tablename__ = "featured_men_new_arrivals"
