from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime

from bookstore.utils.clock import utcnow


class Book(SQLModel, table=True):
    #main info
    id: Optional[int] = Field(default=None, primary_key=True)
    title: str
    author: str
    slug: Optional[str] = None

    #Shop Details (each currency stored independently, never converted)
    price_all: Optional[float] = None
    price_eur: Optional[float] = None
    digital_price_all: Optional[float] = None
    digital_price_eur: Optional[float] = None
    inventory: int = Field(default=0)
    active: bool = True

    #Digital asset
    has_digital: bool = False
    digital_file_url: Optional[str] = None
    digital_file_size: Optional[int] = None

    #timestamps
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def in_stock(self) -> bool:
        return self.inventory is not None and self.inventory > 0

    @property
    def has_digital_asset(self) -> bool:
        return bool(self.has_digital and self.digital_file_url)
