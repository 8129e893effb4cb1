from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime

from bookstore.utils.clock import utcnow


class StoreSetting(SQLModel, table=True):
    """Admin-editable key/value configuration (shipping cost, thresholds)."""

    __tablename__ = "store_setting"
    key: str = Field(primary_key=True)
    value: str
    description: Optional[str] = None
    updated_at: datetime = Field(default_factory=utcnow)
