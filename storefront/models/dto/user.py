from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from storefront.models.dto.address import AddressResponse


class UserResponse(BaseModel):
    id: UUID
    email: str
    first_name: str
    last_name: str
    phone: str | None = None
    avatar_url: str | None = None
    role: str = "customer"
    brand_id: UUID | None = None
    is_active: bool = True
    created_at: datetime

    model_config = {"from_attributes": True}


class UserProfile(UserResponse):
    """Cached profile returned by /users/me."""

    addresses: list[AddressResponse] = []


class UserListResponse(BaseModel):
    items: list[UserResponse]
    total: int
    page: int
    per_page: int
