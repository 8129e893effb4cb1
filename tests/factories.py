"""
Model factories for creating valid test data.

Every factory produces a valid, insertable SQLModel instance.
Override any field via kwargs.

Usage:
    book = persist(session, BookFactory.create(price_all=1500.0))
"""

import uuid
from datetime import timedelta

from bookstore.constants.order_status import OrderStatus
from bookstore.models.book import Book
from bookstore.models.cart import CartItem
from bookstore.models.coupon import Coupon
from bookstore.models.order import Order
from bookstore.models.order_item import OrderItem
from bookstore.models.user import User
from bookstore.schemas.checkout_schemas import CreateOrderRequest
from bookstore.utils.clock import utcnow

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _short_id() -> str:
    return uuid.uuid4().hex[:8]


def persist(session, obj):
    session.add(obj)
    session.commit()
    session.refresh(obj)
    return obj


# ---------------------------------------------------------------------------
# Catalogue and users
# ---------------------------------------------------------------------------


class UserFactory:
    @staticmethod
    def create(**overrides):
        suffix = _short_id()
        defaults = {
            "first_name": "Test",
            "last_name": "Reader",
            "username": f"reader-{suffix}",
            "email": f"reader-{suffix}@bookshop.al",
            "role": "user",
            "can_login": True,
        }
        defaults.update(overrides)
        return User(**defaults)


class BookFactory:
    @staticmethod
    def create(**overrides):
        defaults = {
            "title": "The Mountain Road",
            "author": "Ismail Kadare",
            "slug": f"the-mountain-road-{_short_id()}",
            "price_all": 1000.0,
            "price_eur": 10.0,
            "inventory": 5,
            "active": True,
            "has_digital": False,
        }
        defaults.update(overrides)
        return Book(**defaults)


class CouponFactory:
    @staticmethod
    def create(**overrides):
        defaults = {
            "code": f"SAVE{_short_id().upper()}",
            "discount_type": "percentage",
            "value": 10.0,
            "is_active": True,
        }
        defaults.update(overrides)
        return Coupon(**defaults)


# ---------------------------------------------------------------------------
# Cart and orders
# ---------------------------------------------------------------------------


class CartItemFactory:
    @staticmethod
    def create(user, book, **overrides):
        defaults = {
            "user_id": user.id,
            "book_id": book.id,
            "format": "physical",
            "quantity": 1,
            "currency": "ALL",
            "is_rental": False,
        }
        defaults.update(overrides)
        return CartItem(**defaults)


def checkout_request(**overrides) -> CreateOrderRequest:
    defaults = {
        "shipping_name": "Test Reader",
        "shipping_email": "reader@bookshop.al",
        "shipping_phone": "+355 69 123 4567",
        "shipping_address": "Rruga e Durresit 12",
        "shipping_city": "Tirana",
        "shipping_zip": "1001",
        "shipping_country": "Albania",
        "payment_method": "PAYPAL",
        "currency": "ALL",
    }
    defaults.update(overrides)
    return CreateOrderRequest(**defaults)


class OrderFactory:
    @staticmethod
    def create(user, **overrides):
        now = utcnow()
        defaults = {
            "order_number": f"T{_short_id().upper()}",
            "user_id": user.id,
            "status": OrderStatus.PENDING.value,
            "currency": "ALL",
            "exchange_rate": 100.0,
            "subtotal": 1000.0,
            "shipping_cost": 300.0,
            "total_amount": 1300.0,
            "shipping_name": "Test Reader",
            "shipping_email": "reader@bookshop.al",
            "shipping_phone": "+355 69 123 4567",
            "shipping_address": "Rruga e Durresit 12",
            "shipping_city": "Tirana",
            "shipping_zip": "1001",
            "shipping_country": "Albania",
            "payment_method": "PAYPAL",
            "created_at": now,
            "updated_at": now,
        }
        defaults.update(overrides)
        return Order(**defaults)


def rental_purchase(session, user, book, *, status=OrderStatus.PAID, format="digital", currency="ALL", price=None):
    """An order holding one rental line for ``book``; returns the order item."""
    order = persist(session, OrderFactory.create(user, status=status.value, currency=currency))
    if price is None:
        price = book.price_all if currency == "ALL" else book.price_eur
    return persist(session, OrderItem(
        order_id=order.id,
        book_id=book.id,
        book_title=book.title,
        price=price,
        quantity=1,
        currency=currency,
        format=format,
        is_rental=True,
    ))


def days_ago(days: float):
    return utcnow() - timedelta(days=days)
