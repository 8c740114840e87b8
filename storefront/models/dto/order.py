from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class OrderCreate(BaseModel):
    address_id: UUID
    coupon_code: str | None = Field(default=None, min_length=3, max_length=50)


class PaymentVerify(BaseModel):
    gateway_order_id: str = Field(min_length=1, max_length=100)
    payment_id: str = Field(min_length=1, max_length=100)
    signature: str = Field(min_length=1, max_length=256)


class OrderCancel(BaseModel):
    reason: str | None = Field(default=None, max_length=1000)


class ShipmentAssign(BaseModel):
    awb_number: str = Field(min_length=1, max_length=100)
    courier_name: str = Field(default="Delhivery", max_length=100)


class OrderItemResponse(BaseModel):
    id: UUID
    product_id: UUID
    product_title: str | None = None
    brand_id: UUID
    size: str | None = None
    color: str | None = None
    quantity: int
    price: int


class ShipmentResponse(BaseModel):
    awb_number: str | None = None
    courier_name: str | None = None
    status: str
    updated_at: datetime | None = None


class OrderResponse(BaseModel):
    id: UUID
    user_id: UUID
    address_id: UUID
    receipt_id: str
    status: str
    payment_status: str
    payment_method: str | None = None
    payment_id: str | None = None
    gateway_order_id: str | None = None
    coupon_code: str | None = None
    total_items: int
    item_amount: int
    delivery_amount: int
    discount_amount: int
    total_amount: int
    payment_expires_at: datetime | None = None
    cancellation_reason: str | None = None
    cancelled_at: datetime | None = None
    items: list[OrderItemResponse] = []
    shipment: ShipmentResponse | None = None
    created_at: datetime
    updated_at: datetime


class OrderListResponse(BaseModel):
    items: list[OrderResponse]
    total: int
    page: int
    per_page: int


class CheckoutResponse(BaseModel):
    order: OrderResponse
    gateway_order_id: str
    gateway_key_id: str
    amount: int
    currency: str = "INR"
