# bookstore/services/pricing.py
"""Pricing and shipping calculator.

Everything here is pure: callers load books and shipping rates, this module
only does arithmetic. The cart preview and order finalization both go
through ``calculate_totals`` so a quote and the order it turns into agree.
"""
from typing import Iterable, NamedTuple, Optional

from bookstore.constants.currency import (
    BookFormat,
    Currency,
    DEFAULT_FREE_SHIPPING_THRESHOLD,
    DEFAULT_SHIPPING_COST,
)
from bookstore.models.book import Book
from bookstore.schemas.checkout_schemas import OrderTotals


class PricedLine(NamedTuple):
    unit_price: float
    quantity: int
    format: BookFormat


class ShippingRates(NamedTuple):
    shipping_cost: float
    free_shipping_threshold: float


def default_shipping_rates(currency: Currency) -> ShippingRates:
    return ShippingRates(
        shipping_cost=DEFAULT_SHIPPING_COST[currency],
        free_shipping_threshold=DEFAULT_FREE_SHIPPING_THRESHOLD[currency],
    )


def unit_price_for(book: Book, format: BookFormat, currency: Currency) -> float:
    """Stored price for a format in a currency. A missing price counts as 0."""
    if BookFormat(format) == BookFormat.DIGITAL:
        price = book.digital_price_all if currency == Currency.ALL else book.digital_price_eur
    else:
        price = book.price_all if currency == Currency.ALL else book.price_eur
    return price or 0.0


def calculate_shipping(subtotal: float, has_physical_items: bool, rates: ShippingRates) -> float:
    if not has_physical_items:
        return 0.0
    if subtotal >= rates.free_shipping_threshold:
        return 0.0
    return rates.shipping_cost


def calculate_totals(
    lines: Iterable[PricedLine],
    currency: Currency,
    rates: Optional[ShippingRates] = None,
    discount: float = 0.0,
) -> OrderTotals:
    lines = list(lines)
    rates = rates or default_shipping_rates(currency)

    subtotal = round(sum(line.unit_price * line.quantity for line in lines), 2)
    has_physical = any(BookFormat(line.format) == BookFormat.PHYSICAL for line in lines)
    shipping_cost = calculate_shipping(subtotal, has_physical, rates)

    discount = round(min(max(discount, 0.0), subtotal + shipping_cost), 2)
    total_amount = round(subtotal + shipping_cost - discount, 2)

    return OrderTotals(
        subtotal=subtotal,
        shipping_cost=shipping_cost,
        discount=discount,
        total_amount=total_amount,
    )
