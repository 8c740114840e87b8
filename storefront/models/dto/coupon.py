from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator


class CouponCreate(BaseModel):
    code: str = Field(min_length=3, max_length=50)
    description: str = Field(min_length=1)
    discount_type: Literal["percentage", "fixed"]
    discount_value: int = Field(ge=0)
    min_order_amount: int = Field(default=0, ge=0)
    max_discount_amount: int | None = Field(default=None, ge=0)
    category_id: UUID | None = None
    max_uses: int = Field(default=0, ge=0)
    is_active: bool = True
    expires_at: datetime

    @field_validator("code")
    @classmethod
    def normalize_code(cls, v: str) -> str:
        return v.strip().upper()

    @model_validator(mode="after")
    def check_percentage(self) -> "CouponCreate":
        if self.discount_type == "percentage" and self.discount_value > 100:
            raise ValueError("Percentage discount cannot exceed 100")
        return self


class CouponUpdate(BaseModel):
    description: str | None = Field(default=None, min_length=1)
    discount_type: Literal["percentage", "fixed"] | None = None
    discount_value: int | None = Field(default=None, ge=0)
    min_order_amount: int | None = Field(default=None, ge=0)
    max_discount_amount: int | None = Field(default=None, ge=0)
    category_id: UUID | None = None
    max_uses: int | None = Field(default=None, ge=0)
    expires_at: datetime | None = None


class CouponStatusUpdate(BaseModel):
    is_active: bool


class CouponValidate(BaseModel):
    code: str = Field(min_length=3, max_length=50)
    total_amount: int = Field(ge=0)


class CouponResponse(BaseModel):
    code: str
    description: str
    discount_type: str
    discount_value: int
    min_order_amount: int
    max_discount_amount: int | None = None
    category_id: UUID | None = None
    max_uses: int
    uses: int
    is_active: bool
    expires_at: datetime
    created_at: datetime

    model_config = {"from_attributes": True}


class CouponListResponse(BaseModel):
    items: list[CouponResponse]
    total: int
    page: int
    per_page: int


class CouponValidationResponse(BaseModel):
    code: str
    discount_amount: int
    total_after_discount: int
