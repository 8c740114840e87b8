from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from storefront.models.dto.product import ProductSnapshot


class WishlistItemAdd(BaseModel):
    product_id: UUID


class WishlistMoveToCart(BaseModel):
    product_id: UUID
    size: str | None = Field(default=None, max_length=50)
    color: str | None = Field(default=None, max_length=50)
    quantity: int = Field(default=1, ge=1, le=100)


class CachedWishlistItem(BaseModel):
    id: UUID
    user_id: UUID
    product_id: UUID
    created_at: datetime
    product: ProductSnapshot
