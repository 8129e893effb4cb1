# bookstore/services/order_service.py
"""Order pipeline: cart -> priced, numbered, immutable order.

``create_order`` runs in a single transaction. Order numbers come from a
daily count and are protected by the UNIQUE constraint on
``Order.order_number``; a collision rolls the whole attempt back and the
pipeline retries with the next sequence, up to
``settings.order_number_max_retries`` times.
"""
import logging
from datetime import date, datetime, time, timedelta
from typing import Optional, Tuple

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from bookstore.config import settings
from bookstore.constants.currency import BookFormat
from bookstore.constants.order_status import OrderStatus, can_transition
from bookstore.errors import (
    BookstoreError,
    EmptyCartError,
    InvalidStatusTransitionError,
    NotFoundError,
    OrderCreationError,
)
from bookstore.models.book import Book
from bookstore.models.order import Order
from bookstore.models.order_item import OrderItem
from bookstore.schemas.checkout_schemas import CreateOrderRequest, RateSnapshot
from bookstore.services.cart_service import clear_cart, get_current_cart_lines
from bookstore.services.coupon_service import record_coupon_usage, validate_coupon
from bookstore.services.currency_service import load_shipping_rates
from bookstore.services.order_event_service import log_order_event
from bookstore.services.pricing import PricedLine, calculate_totals, unit_price_for
from bookstore.utils.clock import utcnow
from bookstore.utils.pagination import paginate

logger = logging.getLogger(__name__)


class OrderNumberTaken(Exception):
    def __init__(self, order_number: str, sequence: int):
        super().__init__(order_number)
        self.order_number = order_number
        self.sequence = sequence


def format_order_number(prefix: str, day: date, sequence: int) -> str:
    return f"{prefix}{day:%y%m%d}{sequence:04d}"


def count_orders_on(session: Session, day: date) -> int:
    start = datetime.combine(day, time.min)
    end = start + timedelta(days=1)
    return session.exec(
        select(func.count())
        .select_from(Order)
        .where(Order.created_at >= start, Order.created_at < end)
    ).one()


def next_order_sequence(session: Session, day: date, last_taken: int = 0) -> int:
    """Next daily sequence, never at or below ``last_taken``.

    The count alone is not a uniqueness guarantee; ``last_taken`` is the
    sequence that just lost a race, so a retry starts past it without
    skipping a number the recount already covers.
    """
    return max(count_orders_on(session, day) + 1, last_taken + 1)


def generate_order_number(session: Session, now: datetime, last_taken: int = 0) -> Tuple[str, int]:
    sequence = next_order_sequence(session, now.date(), last_taken)
    return format_order_number(settings.order_number_prefix, now.date(), sequence), sequence


def _place_order(
    session: Session,
    user_id: int,
    details: CreateOrderRequest,
    rate: RateSnapshot,
    last_taken: int,
) -> Order:
    # 1. price snapshot happens here, from the cart as it is right now
    lines = get_current_cart_lines(session, user_id)
    if not lines:
        raise EmptyCartError()

    currency = details.currency
    priced = []
    snapshots = []
    for line in lines:
        book = session.get(Book, line.book_id)
        if not book:
            raise NotFoundError(f"Book {line.book_id} is no longer available", book_id=line.book_id)
        book_format = BookFormat(line.format)
        unit_price = unit_price_for(book, book_format, currency)
        priced.append(PricedLine(unit_price, line.quantity, book_format))
        snapshots.append((book, line, unit_price))

    # 2. totals, then coupon discount
    rates = load_shipping_rates(session, currency)
    totals = calculate_totals(priced, currency, rates)

    coupon = None
    if details.coupon_code:
        coupon, discount = validate_coupon(session, details.coupon_code, totals.subtotal, currency)
        totals = calculate_totals(priced, currency, rates, discount=discount)

    # 3 + 4. number and frozen rate
    now = utcnow()
    order_number, sequence = generate_order_number(session, now, last_taken)

    order = Order(
        order_number=order_number,
        user_id=user_id,
        status=OrderStatus.PENDING.value,
        currency=currency.value,
        exchange_rate=rate.rate,
        subtotal=totals.subtotal,
        shipping_cost=totals.shipping_cost,
        discount=totals.discount,
        total_amount=totals.total_amount,
        shipping_name=details.shipping_name,
        shipping_email=str(details.shipping_email),
        shipping_phone=details.shipping_phone,
        shipping_address=details.shipping_address,
        shipping_city=details.shipping_city,
        shipping_zip=details.shipping_zip,
        shipping_country=details.shipping_country,
        payment_method=details.payment_method.value,
        coupon_code=coupon.code if coupon else None,
        created_at=now,
        updated_at=now,
    )
    session.add(order)
    try:
        session.flush()
    except IntegrityError as exc:
        raise OrderNumberTaken(order_number, sequence) from exc

    # 5. items
    for book, line, unit_price in snapshots:
        session.add(OrderItem(
            order_id=order.id,
            book_id=book.id,
            book_title=book.title,
            price=unit_price,
            quantity=line.quantity,
            currency=currency.value,
            format=line.format,
            is_rental=line.is_rental,
        ))

    # 6. cart
    clear_cart(session, user_id, commit=False)

    # 7. coupon usage
    if coupon:
        record_coupon_usage(session, coupon, user_id, order.id, totals.discount)

    log_order_event(
        session,
        order.id,
        "ORDER_PLACED",
        to_status=OrderStatus.PENDING.value,
        created_by=f"user:{user_id}",
        meta={"item_count": len(snapshots), "total_amount": totals.total_amount},
    )
    return order


def create_order(
    session: Session,
    user_id: int,
    details: CreateOrderRequest,
    rate: RateSnapshot,
) -> Order:
    """Turn the user's cart into a PENDING order.

    All or nothing: on any failure the transaction is rolled back and the
    cart is left as it was. Inventory is not touched here.
    """
    retries = max(1, settings.order_number_max_retries)

    last_taken = 0
    for attempt in range(retries):
        try:
            order = _place_order(session, user_id, details, rate, last_taken)
            session.commit()
        except OrderNumberTaken as exc:
            session.rollback()
            taken = session.exec(
                select(Order.id).where(Order.order_number == exc.order_number)
            ).first()
            if taken is None:
                # the conflict was on something other than the order number
                logger.exception(f"Integrity error creating order for user {user_id}")
                raise OrderCreationError(cause=str(exc.__cause__)) from exc.__cause__
            logger.warning(
                f"Order number {exc.order_number} already taken, "
                f"retrying ({attempt + 1}/{retries})"
            )
            last_taken = exc.sequence
            continue
        except BookstoreError:
            session.rollback()
            raise
        except Exception as exc:
            session.rollback()
            logger.exception(f"Error creating order for user {user_id}")
            raise OrderCreationError(cause=str(exc)) from exc

        session.refresh(order)
        logger.info(
            f"Order {order.order_number} created for user {user_id}: "
            f"{order.total_amount} {order.currency}"
        )
        return order

    logger.error(f"Could not allocate an order number for user {user_id} after {retries} attempts")
    raise OrderCreationError("Could not allocate a unique order number")


def update_order_status(
    session: Session,
    order_id: int,
    new_status: OrderStatus,
    payment_reference: Optional[str] = None,
    changed_by: str = "system",
) -> Order:
    """Move an order forward. Re-applying the current status is a no-op,
    so repeated payment callbacks are harmless. Pricing is never re-run."""
    order = session.get(Order, order_id)
    if not order:
        raise NotFoundError("Order not found", order_id=order_id)

    new_status = OrderStatus(new_status)
    current = OrderStatus(order.status)

    if new_status == current:
        return order

    if not can_transition(current, new_status):
        raise InvalidStatusTransitionError(
            f"Cannot move order from {current.value} to {new_status.value}",
            current_status=current.value,
        )

    now = utcnow()
    values = {"status": new_status.value, "updated_at": now}
    if new_status == OrderStatus.PAID:
        values["paid_at"] = now
        if payment_reference:
            values["payment_reference"] = payment_reference

    # compare-and-set on the status we read
    result = session.execute(
        update(Order)
        .where(Order.id == order_id, Order.status == current.value)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        session.rollback()
        raise InvalidStatusTransitionError(
            "Order status changed concurrently, reload and retry",
            current_status=current.value,
        )

    log_order_event(
        session,
        order_id,
        "STATUS_CHANGED",
        from_status=current.value,
        to_status=new_status.value,
        created_by=changed_by,
        meta={"payment_reference": payment_reference} if payment_reference else None,
    )
    session.commit()
    session.refresh(order)

    logger.info(f"Order {order.order_number}: {current.value} -> {new_status.value}")
    return order


def get_order(session: Session, order_id: int, user_id: Optional[int] = None) -> Order:
    order = session.get(Order, order_id)
    if not order or (user_id is not None and order.user_id != user_id):
        raise NotFoundError("Order not found", order_id=order_id)
    return order


def list_user_orders(session: Session, user_id: int, page: int = 1, limit: int = 10, transform=None):
    query = (
        select(Order)
        .where(Order.user_id == user_id)
        .order_by(Order.created_at.desc(), Order.id.desc())
    )
    return paginate(session=session, query=query, page=page, limit=limit, transform=transform)
