from sqlmodel import SQLModel, Field, Relationship
from typing import List, Optional
from datetime import datetime

from bookstore.models.order_item import OrderItem
from bookstore.utils.clock import utcnow


class Order(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    # unique: concurrent checkouts racing for the same daily sequence collide here
    order_number: str = Field(index=True, unique=True)
    user_id: int = Field(foreign_key="user.id", index=True)

    status: str = Field(default="PENDING", index=True)

    currency: str
    exchange_rate: float  # EUR -> ALL, frozen at creation

    subtotal: float
    shipping_cost: float
    discount: float = 0.0
    total_amount: float

    # shipping snapshot
    shipping_name: str
    shipping_email: str
    shipping_phone: str
    shipping_address: str
    shipping_city: str
    shipping_zip: str
    shipping_country: str

    payment_method: str
    payment_reference: Optional[str] = Field(default=None, index=True)
    coupon_code: Optional[str] = None
    paid_at: Optional[datetime] = None

    created_at: datetime = Field(default_factory=utcnow, index=True)
    updated_at: datetime = Field(default_factory=utcnow)

    items: List["OrderItem"] = Relationship(back_populates="order")
