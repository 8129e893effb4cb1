from sqlmodel import SQLModel, Field
from sqlalchemy import UniqueConstraint
from typing import Optional
from datetime import datetime

from bookstore.utils.clock import utcnow


class CartItem(SQLModel, table=True):
    __table_args__ = (
        # one line per (user, book, format); re-adding merges quantity
        UniqueConstraint("user_id", "book_id", "format", name="uq_cartitem_user_book_format"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    book_id: int = Field(foreign_key="book.id")
    format: str = Field(default="physical")  # physical | digital
    quantity: int = 1
    currency: str = Field(default="ALL")
    is_rental: bool = False
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def is_digital(self) -> bool:
        return self.format == "digital"
