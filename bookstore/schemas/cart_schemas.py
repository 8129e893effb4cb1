from pydantic import BaseModel, Field
from typing import List

from bookstore.constants.currency import BookFormat, Currency


class CartAddRequest(BaseModel):
    book_id: int
    quantity: int = Field(default=1, ge=1, le=99)
    format: BookFormat = BookFormat.PHYSICAL
    currency: Currency = Currency.ALL
    is_rental: bool = False

class CartUpdateRequest(BaseModel):
    quantity: int  # 0 or less removes the line


class CartLine(BaseModel):
    item_id: int
    book_id: int
    book_title: str
    format: BookFormat
    is_rental: bool
    quantity: int
    unit_price: float
    line_total: float
    in_stock: bool


class CartSummary(BaseModel):
    items: List[CartLine]
    total_items: int
    currency: Currency
    subtotal: float
    shipping_cost: float
    total_amount: float
    has_physical_items: bool
    has_digital_items: bool
