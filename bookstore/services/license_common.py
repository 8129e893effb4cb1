# bookstore/services/license_common.py
"""Checks and transitions shared by digital and hardcopy rentals."""
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from bookstore.constants.currency import BookFormat
from bookstore.constants.order_status import PAID_STATUSES
from bookstore.constants.rentals import LicenseKind, LicenseStatus
from bookstore.errors import (
    DuplicateActiveRentalError,
    RentalAlreadyIssuedError,
    UnpaidRentalError,
)
from bookstore.models.access_log import AccessEvent
from bookstore.models.license import License
from bookstore.models.order import Order
from bookstore.models.order_item import OrderItem
from bookstore.services.access_log_service import log_access_event
from bookstore.utils.clock import utcnow

logger = logging.getLogger(__name__)


def find_paid_rental_item(
    session: Session,
    user_id: int,
    book_id: int,
    order_item_id: int,
    book_format: BookFormat,
) -> OrderItem:
    """The paid rental line being redeemed, in the format it was bought in."""
    order_item = session.exec(
        select(OrderItem)
        .join(Order, OrderItem.order_id == Order.id)
        .where(
            OrderItem.id == order_item_id,
            OrderItem.book_id == book_id,
            OrderItem.format == book_format.value,
            OrderItem.is_rental == True,  # noqa: E712
            Order.user_id == user_id,
            Order.status.in_([s.value for s in PAID_STATUSES]),
        )
    ).first()

    if not order_item:
        raise UnpaidRentalError(order_item_id=order_item_id)
    return order_item


def find_active_license(session: Session, user_id: int, book_id: int) -> Optional[License]:
    return session.exec(
        select(License).where(
            License.user_id == user_id,
            License.book_id == book_id,
            License.is_active == True,  # noqa: E712
        )
    ).first()


def close_license(license: License, status: LicenseStatus, now: datetime):
    """Move a license to a terminal state. Licenses are never deleted."""
    license.is_active = False
    license.status = status.value
    license.updated_at = now
    if status == LicenseStatus.RETURNED:
        license.returned_at = now


def expire_stale_licenses(
    session: Session,
    now: Optional[datetime] = None,
    user_id: Optional[int] = None,
    book_id: Optional[int] = None,
) -> List[License]:
    """Close digital licenses whose end date has passed.

    Hardcopy licenses stay open past their end date until the copy comes
    back; they are overdue, not expired.
    """
    now = now or utcnow()
    query = select(License).where(
        License.kind == LicenseKind.DIGITAL.value,
        License.is_active == True,  # noqa: E712
        License.end_date <= now,
    )
    if user_id is not None:
        query = query.where(License.user_id == user_id)
    if book_id is not None:
        query = query.where(License.book_id == book_id)

    stale = session.exec(query).all()
    for license in stale:
        close_license(license, LicenseStatus.EXPIRED, now)
        session.add(license)
        log_access_event(session, license, AccessEvent.RENTAL_EXPIRED, "Rental period ended")
    if stale:
        session.flush()
    return stale


def ensure_no_active_license(session: Session, user_id: int, book_id: int):
    existing = find_active_license(session, user_id, book_id)
    if existing:
        raise DuplicateActiveRentalError(existing.id)


def ensure_order_item_unredeemed(session: Session, order_item_id: int):
    issued = session.exec(
        select(License.id).where(License.order_item_id == order_item_id)
    ).first()
    if issued is not None:
        raise RentalAlreadyIssuedError(
            "A rental was already issued for this order item",
            order_item_id=order_item_id,
            license_id=issued,
        )


def insert_license(session: Session, license: License) -> License:
    """Flush a new license, translating constraint races into domain errors.

    Two requests can both pass the checks above; the partial unique index on
    active (user, book) and the unique order_item_id let only one through.
    """
    user_id, book_id, order_item_id = license.user_id, license.book_id, license.order_item_id
    session.add(license)
    try:
        session.flush()
    except IntegrityError as exc:
        session.rollback()
        logger.warning(f"License insert conflict for user {user_id}, book {book_id}")
        existing = find_active_license(session, user_id, book_id)
        if existing:
            raise DuplicateActiveRentalError(existing.id) from exc
        raise RentalAlreadyIssuedError(
            "A rental was already issued for this order item",
            order_item_id=order_item_id,
        ) from exc
    return license


def list_active_licenses(session: Session, user_id: int, kind: Optional[LicenseKind] = None) -> List[License]:
    now = utcnow()
    query = select(License).where(
        License.user_id == user_id,
        License.is_active == True,  # noqa: E712
    )
    if kind is not None:
        query = query.where(License.kind == kind.value)
    licenses = session.exec(query.order_by(License.created_at.desc())).all()
    # stale digital rows may not have been swept yet
    return [
        lic for lic in licenses
        if lic.kind == LicenseKind.PHYSICAL.value or not lic.is_expired(now)
    ]


def list_license_history(session: Session, user_id: int, kind: Optional[LicenseKind] = None) -> List[License]:
    query = select(License).where(License.user_id == user_id)
    if kind is not None:
        query = query.where(License.kind == kind.value)
    return session.exec(query.order_by(License.created_at.desc())).all()
