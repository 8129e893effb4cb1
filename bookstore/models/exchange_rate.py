from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime

from bookstore.utils.clock import utcnow


class ExchangeRate(SQLModel, table=True):
    __tablename__ = "exchange_rate"
    id: Optional[int] = Field(default=None, primary_key=True)
    from_currency: str = Field(index=True)
    to_currency: str = Field(index=True)
    rate: float
    is_active: bool = True
    updated_at: datetime = Field(default_factory=utcnow, index=True)
