import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from storefront.models.orm.base import Base

VERIFICATION_STATUSES = ("pending", "approved", "rejected")


class Product(Base):
    __tablename__ = "products"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    brand_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("brands.id"), nullable=False
    )
    category_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("categories.id"), nullable=True
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Prices in paise
    price: Mapped[int | None] = mapped_column(Integer, nullable=True)
    compare_at_price: Mapped[int | None] = mapped_column(Integer, nullable=True)
    sku: Mapped[str | None] = mapped_column(String(100), nullable=True)
    native_sku: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    quantity: Mapped[int | None] = mapped_column(Integer, nullable=True)
    has_variants: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    meta_title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    meta_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    meta_keywords: Mapped[str | None] = mapped_column(Text, nullable=True)

    is_available: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_published: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_deleted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    deleted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    verification_status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="pending"
    )

    # Storefront section flags, kept in sync with the featured_* tables
    is_featured_women: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_featured_men: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_featured_kids: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_featured_home_living: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_beauty_top_pick: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_beauty_new_arrival: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_beauty_best_seller: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_home_new_arrival: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_home_best_seller: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_kids_new_arrival: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_men_new_arrival: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    variants: Mapped[list["ProductVariant"]] = relationship(
        "ProductVariant", back_populates="product", cascade="all, delete-orphan"
    )

    @property
    def is_purchasable(self) -> bool:
        return (
            self.is_available
            and self.is_active
            and self.is_published
            and not self.is_deleted
            and self.verification_status == "approved"
        )


class ProductVariant(Base):
    __tablename__ = "product_variants"
    __table_args__ = (
        UniqueConstraint("product_id", "size", "color", name="uq_variant_product_size_color"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    product_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("products.id", ondelete="CASCADE"), nullable=False
    )
    size: Mapped[str | None] = mapped_column(String(50), nullable=True)
    color: Mapped[str | None] = mapped_column(String(50), nullable=True)
    sku: Mapped[str | None] = mapped_column(String(100), nullable=True)
    native_sku: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    price: Mapped[int] = mapped_column(Integer, nullable=False)
    compare_at_price: Mapped[int | None] = mapped_column(Integer, nullable=True)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_deleted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    deleted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    product: Mapped["Product"] = relationship("Product", back_populates="variants")
