from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field, model_validator


class ProductSnapshot(BaseModel):
    """Denormalized product fields stored alongside cached cart and wishlist lines."""

    id: UUID
    brand_id: UUID
    title: str
    slug: str
    image_url: str | None = None
    price: int | None = None
    compare_at_price: int | None = None
    quantity: int | None = None
    has_variants: bool = False
    is_purchasable: bool = True

    model_config = {"from_attributes": True}


class VariantResponse(BaseModel):
    id: UUID
    size: str | None = None
    color: str | None = None
    sku: str | None = None
    native_sku: str
    price: int
    compare_at_price: int | None = None
    quantity: int

    model_config = {"from_attributes": True}


class ProductResponse(BaseModel):
    id: UUID
    brand_id: UUID
    category_id: UUID | None = None
    title: str
    slug: str
    description: str | None = None
    image_url: str | None = None
    price: int | None = None
    compare_at_price: int | None = None
    sku: str | None = None
    native_sku: str
    quantity: int | None = None
    has_variants: bool
    meta_title: str | None = None
    meta_description: str | None = None
    meta_keywords: str | None = None
    is_available: bool
    is_active: bool
    is_published: bool
    verification_status: str
    is_featured_women: bool = False
    is_featured_men: bool = False
    is_featured_kids: bool = False
    is_featured_home_living: bool = False
    is_beauty_top_pick: bool = False
    is_beauty_new_arrival: bool = False
    is_beauty_best_seller: bool = False
    is_home_new_arrival: bool = False
    is_home_best_seller: bool = False
    is_kids_new_arrival: bool = False
    is_men_new_arrival: bool = False
    variants: list[VariantResponse] = []
    created_at: datetime

    model_config = {"from_attributes": True}


class ProductListResponse(BaseModel):
    items: list[ProductResponse]
    total: int
    page: int
    per_page: int


class VariantCreate(BaseModel):
    size: str | None = Field(default=None, max_length=50)
    color: str | None = Field(default=None, max_length=50)
    sku: str | None = Field(default=None, max_length=100)
    price: int = Field(ge=0)
    compare_at_price: int | None = Field(default=None, ge=0)
    quantity: int = Field(default=0, ge=0)


class ProductCreate(BaseModel):
    """One product of an import batch, before categories are resolved."""

    title: str = Field(min_length=3, max_length=255)
    description: str | None = None
    meta_title: str | None = Field(default=None, max_length=255)
    meta_description: str | None = None
    meta_keywords: str | None = None
    category: str | None = None
    has_variants: bool = False
    sku: str | None = Field(default=None, max_length=100)
    price: int | None = Field(default=None, ge=0)
    compare_at_price: int | None = Field(default=None, ge=0)
    quantity: int | None = Field(default=None, ge=0)
    variants: list[VariantCreate] = []

    @model_validator(mode="after")
    def check_pricing(self) -> "ProductCreate":
        if self.has_variants:
            if not self.variants:
                raise ValueError("Products with variants need at least one variant")
        elif self.price is None:
            raise ValueError("Price is required for products without variants")
        return self


class ProductImportResult(BaseModel):
    created: int
    product_ids: list[UUID]


class VerificationUpdate(BaseModel):
    verification_status: Literal["pending", "approved", "rejected"]


class PublishUpdate(BaseModel):
    is_published: bool


class FeatureToggleResult(BaseModel):
    section: str
    product_id: UUID
    is_featured: bool
