from datetime import datetime
from typing import Optional
from uuid import uuid4

from sqlmodel import SQLModel, Field
from sqlalchemy import Column, JSON

from bookstore.utils.clock import utcnow


class OrderEvent(SQLModel, table=True):
    """Order timeline row. Rows are only ever inserted."""

    __tablename__ = "order_event"
    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)

    order_id: int = Field(foreign_key="order.id", index=True)
    event_type: str = Field(index=True)  # ORDER_PLACED | STATUS_CHANGED

    from_status: Optional[str] = None
    to_status: Optional[str] = None
    meta: Optional[dict] = Field(default=None, sa_column=Column(JSON))

    created_at: datetime = Field(default_factory=utcnow)
    created_by: str = Field(default="system")
