from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime

from bookstore.utils.clock import utcnow


class Coupon(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    code: str = Field(index=True, unique=True)
    discount_type: str = Field(default="percentage")  # percentage | fixed
    value: float
    currency: Optional[str] = None  # required for fixed discounts
    min_subtotal: float = 0.0
    max_uses: Optional[int] = None
    used_count: int = 0
    is_active: bool = True
    expires_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utcnow)


class CouponUsage(SQLModel, table=True):
    __tablename__ = "coupon_usage"
    id: Optional[int] = Field(default=None, primary_key=True)
    coupon_id: int = Field(foreign_key="coupon.id", index=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    order_id: int = Field(foreign_key="order.id", unique=True)
    discount: float
    created_at: datetime = Field(default_factory=utcnow)
