# bookstore/schemas/checkout_schemas.py
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from typing import List, Optional
from datetime import datetime

from bookstore.constants.currency import Currency
from bookstore.constants.order_status import OrderStatus, PaymentMethod


class ShippingDetails(BaseModel):
    shipping_name: str = Field(min_length=2, max_length=100)
    shipping_email: EmailStr
    shipping_phone: str = Field(pattern=r"^\+?[0-9\s\-()]{8,20}$")
    shipping_address: str = Field(min_length=5, max_length=200)
    shipping_city: str = Field(min_length=2, max_length=100)
    shipping_zip: str = Field(pattern=r"^[0-9A-Za-z\s-]{3,10}$")
    shipping_country: str = Field(min_length=2, max_length=100)

    @field_validator(
        "shipping_name", "shipping_address", "shipping_city",
        "shipping_zip", "shipping_country", "shipping_phone",
    )
    @classmethod
    def strip(cls, value: str) -> str:
        return value.strip()


class CreateOrderRequest(ShippingDetails):
    payment_method: PaymentMethod
    currency: Currency
    coupon_code: Optional[str] = Field(default=None, max_length=50)

    @field_validator("coupon_code")
    @classmethod
    def normalize_coupon(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip().upper()
        return value or None


class RateSnapshot(BaseModel):
    """Exchange rate read once and handed to the order pipeline."""

    from_currency: Currency = Currency.EUR
    to_currency: Currency = Currency.ALL
    rate: float


class OrderTotals(BaseModel):
    subtotal: float
    shipping_cost: float
    discount: float = 0.0
    total_amount: float


class OrderItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    book_id: int
    book_title: str
    price: float
    quantity: int
    currency: str
    format: str
    is_rental: bool
    line_total: float


class OrderOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    order_number: str
    status: OrderStatus
    currency: str
    exchange_rate: float
    subtotal: float
    shipping_cost: float
    discount: float
    total_amount: float
    payment_method: str
    payment_reference: Optional[str] = None
    coupon_code: Optional[str] = None
    shipping_name: str
    shipping_address: str
    shipping_city: str
    shipping_country: str
    created_at: datetime
    paid_at: Optional[datetime] = None
    items: List[OrderItemOut] = []


class OrderStatusUpdate(BaseModel):
    status: OrderStatus
    payment_reference: Optional[str] = None


class PaymentCallback(BaseModel):
    payment_reference: str
    new_status: OrderStatus
