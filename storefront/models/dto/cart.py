from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field

from storefront.models.dto.product import ProductSnapshot


class CartItemAdd(BaseModel):
    product_id: UUID
    size: str | None = Field(default=None, max_length=50)
    color: str | None = Field(default=None, max_length=50)
    quantity: int = Field(default=1, ge=1, le=100)


class CartItemUpdate(BaseModel):
    product_id: UUID
    size: str | None = Field(default=None, max_length=50)
    color: str | None = Field(default=None, max_length=50)
    quantity: int = Field(ge=1, le=100)


class CartItemRef(BaseModel):
    product_id: UUID
    size: str | None = Field(default=None, max_length=50)
    color: str | None = Field(default=None, max_length=50)


class CartItemsRemove(BaseModel):
    items: list[CartItemRef] = Field(min_length=1, max_length=100)


class CartStatusUpdate(BaseModel):
    status: bool
    product_id: UUID | None = None
    size: str | None = Field(default=None, max_length=50)
    color: str | None = Field(default=None, max_length=50)


class GuestCartMerge(BaseModel):
    items: list[CartItemAdd] = Field(max_length=50)


class CachedCartItem(BaseModel):
    """One cart line as stored in the per-user cache."""

    id: UUID
    user_id: UUID
    product_id: UUID
    size: str | None = None
    color: str | None = None
    quantity: int
    status: bool
    created_at: datetime
    product: ProductSnapshot
    variant_price: int | None = None
    variant_quantity: int | None = None

    @property
    def unit_price(self) -> int:
        if self.variant_price is not None:
            return self.variant_price
        return self.product.price or 0


class CartResponse(BaseModel):
    items: list[CachedCartItem]
    total_items: int
    total_amount: int


class CartMutationResponse(BaseModel):
    detail: str
    type: Literal["add", "update"]
