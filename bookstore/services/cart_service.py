# bookstore/services/cart_service.py
import logging
from typing import List

from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from bookstore.constants.currency import BookFormat, Currency
from bookstore.errors import (
    InsufficientInventoryError,
    NoDigitalVersionError,
    NotFoundError,
)
from bookstore.models.book import Book
from bookstore.models.cart import CartItem
from bookstore.schemas.cart_schemas import CartAddRequest, CartLine, CartSummary
from bookstore.services.currency_service import load_shipping_rates
from bookstore.services.pricing import PricedLine, calculate_totals, unit_price_for
from bookstore.utils.clock import utcnow

logger = logging.getLogger(__name__)


def get_current_cart_lines(session: Session, user_id: int) -> List[CartItem]:
    return session.exec(
        select(CartItem)
        .where(CartItem.user_id == user_id)
        .order_by(CartItem.created_at, CartItem.id)
    ).all()


def _check_availability(book: Book, format: BookFormat, quantity: int):
    if format == BookFormat.DIGITAL:
        if not book.has_digital:
            raise NoDigitalVersionError("Digital version not available for this book")
    elif book.inventory < quantity:
        raise InsufficientInventoryError(
            f"Insufficient inventory for {book.title}",
            available=book.inventory,
            requested=quantity,
        )


def _find_line(session: Session, user_id: int, book_id: int, format: BookFormat):
    return session.exec(
        select(CartItem).where(
            CartItem.user_id == user_id,
            CartItem.book_id == book_id,
            CartItem.format == format.value,
        )
    ).first()


def add_to_cart(session: Session, user_id: int, data: CartAddRequest) -> CartItem:
    """Add a book to the cart, merging with an existing (book, format) line."""
    book = session.get(Book, data.book_id)
    if not book or not book.active:
        raise NotFoundError("Book not found or not available")

    for attempt in range(2):
        existing_item = _find_line(session, user_id, data.book_id, data.format)

        if existing_item:
            new_quantity = existing_item.quantity + data.quantity
            _check_availability(book, data.format, new_quantity)
            existing_item.quantity = new_quantity
            existing_item.currency = data.currency.value
            existing_item.is_rental = data.is_rental
            existing_item.updated_at = utcnow()
            item = existing_item
        else:
            _check_availability(book, data.format, data.quantity)
            item = CartItem(
                user_id=user_id,
                book_id=book.id,
                format=data.format.value,
                quantity=data.quantity,
                currency=data.currency.value,
                is_rental=data.is_rental,
            )

        session.add(item)
        try:
            session.commit()
        except IntegrityError:
            # a concurrent add created the line first; merge into it
            session.rollback()
            if attempt:
                raise
            continue

        session.refresh(item)
        logger.info(
            f"Cart line {item.id} for user {user_id}: book {book.id} "
            f"({item.format}) qty {item.quantity}"
        )
        return item


def update_cart_item(session: Session, user_id: int, item_id: int, quantity: int):
    """Set a line's quantity. Zero or less removes the line and returns None."""
    item = session.get(CartItem, item_id)
    if not item or item.user_id != user_id:
        raise NotFoundError("Cart item not found")

    if quantity <= 0:
        session.delete(item)
        session.commit()
        logger.info(f"Cart line {item_id} removed for user {user_id}")
        return None

    book = session.get(Book, item.book_id)
    if not book:
        raise NotFoundError("Book not found")
    _check_availability(book, BookFormat(item.format), quantity)

    item.quantity = quantity
    item.updated_at = utcnow()
    session.add(item)
    session.commit()
    session.refresh(item)
    return item


def remove_from_cart(session: Session, user_id: int, item_id: int):
    item = session.get(CartItem, item_id)
    if not item or item.user_id != user_id:
        raise NotFoundError("Cart item not found")

    session.delete(item)
    session.commit()
    logger.info(f"Cart line {item_id} removed for user {user_id}")


def clear_cart(session: Session, user_id: int, commit: bool = True) -> int:
    """Delete every line for the user. The order pipeline passes commit=False
    so the delete lands in its own transaction."""
    result = session.execute(delete(CartItem).where(CartItem.user_id == user_id))
    if commit:
        session.commit()
    return result.rowcount


def get_cart_summary(session: Session, user_id: int, currency: Currency = None) -> CartSummary:
    """Live preview of the cart totals, priced the same way checkout prices them."""
    lines = get_current_cart_lines(session, user_id)
    if currency is None:
        currency = Currency(lines[0].currency) if lines else Currency.ALL

    items = []
    priced = []
    for line in lines:
        book = session.get(Book, line.book_id)
        if not book:
            continue
        unit_price = unit_price_for(book, BookFormat(line.format), currency)
        priced.append(PricedLine(unit_price, line.quantity, BookFormat(line.format)))
        items.append(CartLine(
            item_id=line.id,
            book_id=book.id,
            book_title=book.title,
            format=BookFormat(line.format),
            is_rental=line.is_rental,
            quantity=line.quantity,
            unit_price=unit_price,
            line_total=round(unit_price * line.quantity, 2),
            in_stock=line.is_digital or book.inventory >= line.quantity,
        ))

    totals = calculate_totals(priced, currency, load_shipping_rates(session, currency))

    return CartSummary(
        items=items,
        total_items=sum(line.quantity for line in priced),
        currency=currency,
        subtotal=totals.subtotal,
        shipping_cost=totals.shipping_cost,
        total_amount=totals.total_amount,
        has_physical_items=any(i.format == BookFormat.PHYSICAL for i in items),
        has_digital_items=any(i.format == BookFormat.DIGITAL for i in items),
    )
