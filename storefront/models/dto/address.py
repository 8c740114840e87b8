from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field

AddressType = Literal["home", "work", "other"]


class AddressCreate(BaseModel):
    alias: str = Field(min_length=1, max_length=255)
    type: AddressType = "home"
    is_primary: bool = False
    full_name: str = Field(min_length=1, max_length=255)
    street: str = Field(min_length=1, max_length=512)
    city: str = Field(min_length=1, max_length=255)
    state: str = Field(min_length=1, max_length=255)
    zip: str = Field(pattern=r"^\d{6}$")
    phone: str = Field(pattern=r"^\+?\d{10,15}$")


class AddressUpdate(AddressCreate):
    pass


class AddressResponse(BaseModel):
    id: UUID
    user_id: UUID
    alias: str
    alias_slug: str
    type: str
    is_primary: bool
    full_name: str
    street: str
    city: str
    state: str
    zip: str
    phone: str
    created_at: datetime

    model_config = {"from_attributes": True}
