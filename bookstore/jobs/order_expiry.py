import logging
from datetime import timedelta
from typing import Optional

from sqlmodel import Session, select

from bookstore.config import settings
from bookstore.constants.order_status import OrderStatus
from bookstore.database import engine
from bookstore.errors import InvalidStatusTransitionError
from bookstore.models.order import Order
from bookstore.services.order_service import update_order_status
from bookstore.utils.clock import utcnow

logger = logging.getLogger(__name__)


def expire_unpaid_orders(session: Optional[Session] = None) -> int:
    """Cancel PENDING orders older than the payment window."""
    if session is None:
        with Session(engine) as own_session:
            return expire_unpaid_orders(own_session)

    cutoff = utcnow() - timedelta(days=settings.payment_expiry_days)

    order_ids = session.exec(
        select(Order.id)
        .where(Order.status == OrderStatus.PENDING.value)
        .where(Order.created_at < cutoff)
    ).all()

    cancelled = 0
    for order_id in order_ids:
        try:
            update_order_status(session, order_id, OrderStatus.CANCELLED, changed_by="job:order_expiry")
            cancelled += 1
        except InvalidStatusTransitionError:
            # paid while we were looking
            logger.info(f"Order {order_id} left PENDING before expiry, skipped")

    logger.info(f"Cancelled {cancelled} unpaid orders")
    return cancelled
