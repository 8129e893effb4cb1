# bookstore/services/hardcopy_rental_service.py
"""Physical (hardcopy) rentals.

Issuing a rental reserves one copy of the book; returning it puts the copy
back and settles the guarantee deposit against the returned condition and
any late days.
"""
import logging
import math
from datetime import timedelta
from typing import List, Optional

from sqlmodel import Session

from bookstore.config import settings
from bookstore.constants.currency import BookFormat, Currency
from bookstore.constants.rentals import (
    CONDITION_DEDUCTIONS,
    GUARANTEE_RATE,
    HARDCOPY_RENTAL_TERMS,
    BookCondition,
    LicenseKind,
    LicenseStatus,
    rental_amount,
    resolve_hardcopy_rental_type,
)
from bookstore.errors import (
    BookstoreError,
    InsufficientInventoryError,
    NotFoundError,
)
from bookstore.models.access_log import AccessEvent
from bookstore.models.book import Book
from bookstore.models.license import License, PhysicalLicense
from bookstore.schemas.rental_schemas import (
    HardcopyLicenseOut,
    RentalPricingOption,
    ReturnAssessment,
    ReturnResult,
)
from bookstore.services.access_log_service import log_access_event
from bookstore.services.inventory_service import reserve_copy, restock_copy
from bookstore.services.license_common import (
    close_license,
    ensure_no_active_license,
    ensure_order_item_unredeemed,
    expire_stale_licenses,
    find_paid_rental_item,
    insert_license,
)
from bookstore.services.pricing import unit_price_for
from bookstore.utils.clock import utcnow

logger = logging.getLogger(__name__)


def calculate_rental_pricing(list_price: float, currency: Currency = Currency.ALL) -> List[RentalPricingOption]:
    guarantee = rental_amount(list_price, GUARANTEE_RATE, currency.value)
    return [
        RentalPricingOption(
            rental_type=rental_type.value,
            duration_days=term.duration.days,
            rental_price=rental_amount(list_price, term.price_rate, currency.value),
            guarantee_amount=guarantee,
        )
        for rental_type, term in HARDCOPY_RENTAL_TERMS.items()
    ]


def issue_hardcopy_license(
    session: Session,
    user_id: int,
    book_id: int,
    order_item_id: int,
    rental_type,
    shipping_address: str,
    guarantee_amount: Optional[float] = None,
) -> License:
    rental_type = resolve_hardcopy_rental_type(rental_type)

    book = session.get(Book, book_id)
    if not book or not book.active:
        raise NotFoundError("Book not available for rental", book_id=book_id)
    if not book.in_stock:
        raise InsufficientInventoryError("Book not in stock for rental", book_id=book_id)

    order_item = find_paid_rental_item(session, user_id, book_id, order_item_id, BookFormat.PHYSICAL)

    currency = order_item.currency
    list_price = unit_price_for(book, BookFormat.PHYSICAL, Currency(currency))
    term = HARDCOPY_RENTAL_TERMS[rental_type]
    rental_price = rental_amount(list_price, term.price_rate, currency)
    guarantee = guarantee_amount or rental_amount(list_price, GUARANTEE_RATE, currency)

    now = utcnow()
    try:
        expire_stale_licenses(session, now, user_id=user_id, book_id=book_id)
        ensure_no_active_license(session, user_id, book_id)
        ensure_order_item_unredeemed(session, order_item_id)

        license = insert_license(session, License(
            user_id=user_id,
            book_id=book_id,
            order_item_id=order_item_id,
            kind=LicenseKind.PHYSICAL.value,
            rental_type=rental_type.value,
            rental_price=rental_price,
            currency=currency,
            start_date=now,
            end_date=now + term.duration,
        ))
        session.add(PhysicalLicense(
            license_id=license.id,
            guarantee_amount=guarantee,
            shipping_address=shipping_address,
            initial_condition=BookCondition.EXCELLENT.value,
        ))

        # the one place a physical copy leaves stock
        reserve_copy(session, book_id)

        log_access_event(
            session,
            license,
            AccessEvent.RENTAL_CREATED,
            f"Hardcopy rental created for {rental_type.value} period",
            amount=rental_price,
        )
        log_access_event(
            session,
            license,
            AccessEvent.GUARANTEE_CHARGED,
            f"Guarantee amount charged: {guarantee} {currency}",
            amount=guarantee,
        )
        session.commit()
    except BookstoreError:
        session.rollback()
        raise
    except Exception:
        session.rollback()
        logger.exception(f"Error issuing hardcopy rental of book {book_id} for user {user_id}")
        raise

    session.refresh(license)
    logger.info(f"Hardcopy license {license.id} issued to user {user_id} for book {book_id} ({rental_type.value})")
    return license


def _load_physical(session: Session, license_id: int, user_id: Optional[int] = None) -> License:
    license = session.get(License, license_id)
    if (
        not license
        or license.kind != LicenseKind.PHYSICAL.value
        or license.physical is None
        or (user_id is not None and license.user_id != user_id)
    ):
        raise NotFoundError("Rental not found", license_id=license_id)
    return license


def to_hardcopy_license_out(session: Session, license: License) -> HardcopyLicenseOut:
    book = session.get(Book, license.book_id)
    physical = license.physical
    return HardcopyLicenseOut(
        license_id=license.id,
        book_id=license.book_id,
        title=book.title if book else "",
        rental_type=license.rental_type,
        rental_price=license.rental_price,
        guarantee_amount=physical.guarantee_amount,
        currency=license.currency,
        start_date=license.start_date,
        end_date=license.end_date,
        status=license.status,
        is_overdue=license.is_active and license.is_expired(utcnow()),
        initial_condition=physical.initial_condition,
        return_condition=physical.return_condition,
        shipping_address=physical.shipping_address,
        tracking_number=physical.tracking_number,
        return_tracking=physical.return_tracking,
        guarantee_refunded=physical.guarantee_refunded,
        refund_amount=physical.refund_amount,
    )


def get_hardcopy_license(session: Session, license_id: int, user_id: int) -> HardcopyLicenseOut:
    return to_hardcopy_license_out(session, _load_physical(session, license_id, user_id))


def mark_hardcopy_shipped(session: Session, license_id: int, tracking_number: str) -> License:
    license = _load_physical(session, license_id)
    if not license.is_active:
        raise NotFoundError("Rental not found or already returned", license_id=license_id)

    license.physical.tracking_number = tracking_number
    license.updated_at = utcnow()
    session.add(license.physical)
    session.add(license)
    log_access_event(
        session,
        license,
        AccessEvent.SHIPPED,
        f"Shipped with tracking number {tracking_number}",
    )
    session.commit()
    session.refresh(license)
    return license


def late_fee_for(license: License, returned_at) -> float:
    if returned_at <= license.end_date:
        return 0.0
    days_late = math.ceil((returned_at - license.end_date) / timedelta(days=1))
    return round(days_late * license.rental_price * settings.late_fee_daily_rate, 2)


def return_hardcopy_license(session: Session, license_id: int, assessment: ReturnAssessment) -> ReturnResult:
    """Close a hardcopy rental when the copy comes back.

    Refund = guarantee - condition deduction - late fee, never below zero.
    The copy goes back into stock.
    """
    license = _load_physical(session, license_id)
    if not license.is_active:
        raise NotFoundError("Rental not found or already returned", license_id=license_id)

    physical = license.physical
    now = utcnow()
    condition = BookCondition(assessment.return_condition)

    damage_deduction = round(physical.guarantee_amount * CONDITION_DEDUCTIONS[condition], 2)
    is_late = now > license.end_date
    late_fee = late_fee_for(license, now)
    refund_amount = round(max(0.0, physical.guarantee_amount - damage_deduction - late_fee), 2)
    is_damaged = assessment.is_damaged or condition == BookCondition.DAMAGED

    try:
        physical.return_condition = condition.value
        physical.condition_notes = assessment.condition_notes
        physical.return_tracking = assessment.return_tracking
        physical.is_damaged = is_damaged
        physical.damage_notes = assessment.damage_notes
        physical.guarantee_refunded = True
        physical.refund_amount = refund_amount
        physical.late_fee = late_fee
        close_license(license, LicenseStatus.RETURNED, now)
        session.add(physical)
        session.add(license)

        log_access_event(session, license, AccessEvent.RETURNED, f"Book returned in {condition.value} condition")
        if damage_deduction > 0:
            log_access_event(
                session, license, AccessEvent.DAMAGE_ASSESSED,
                f"Damage deduction: {damage_deduction} {license.currency}",
                amount=damage_deduction,
            )
        if late_fee > 0:
            log_access_event(
                session, license, AccessEvent.LATE_FEE_CHARGED,
                f"Late fee: {late_fee} {license.currency}",
                amount=late_fee,
            )
        log_access_event(
            session, license, AccessEvent.GUARANTEE_REFUNDED,
            f"Guarantee refunded: {refund_amount} {license.currency}",
            amount=refund_amount,
        )
        log_access_event(session, license, AccessEvent.RENTAL_COMPLETED, "Hardcopy rental completed")

        restock_copy(session, license.book_id)
        session.commit()
    except Exception:
        session.rollback()
        logger.exception(f"Error returning hardcopy license {license_id}")
        raise

    logger.info(f"Hardcopy license {license_id} returned ({condition.value}), refund {refund_amount}")
    return ReturnResult(
        license_id=license_id,
        book_id=license.book_id,
        returned_at=now,
        return_condition=condition.value,
        is_damaged=is_damaged,
        is_late=is_late,
        damage_deduction=damage_deduction,
        late_fee=late_fee,
        guarantee_amount=physical.guarantee_amount,
        refund_amount=refund_amount,
        currency=license.currency,
    )
