# bookstore/services/digital_rental_service.py
"""Digital (ebook) rentals: issue, verify-and-read, end, security events."""
import logging
from typing import Optional

from sqlalchemy import update
from sqlmodel import Session

from bookstore.config import settings
from bookstore.constants.currency import BookFormat
from bookstore.constants.rentals import (
    DIGITAL_RENTAL_TERMS,
    DigitalRentalType,
    LicenseKind,
    LicenseStatus,
    resolve_digital_rental_type,
)
from bookstore.errors import (
    AccessLimitReachedError,
    BookstoreError,
    InvalidLicenseTokenError,
    LicenseExpiredError,
    LicenseInactiveError,
    NoDigitalVersionError,
    NotFoundError,
)
from bookstore.models.access_log import AccessEvent, AccessLogEntry
from bookstore.models.book import Book
from bookstore.models.license import DigitalLicense, License
from bookstore.models.user import User
from bookstore.schemas.rental_schemas import DigitalLicenseOut, ReadAccess, RequestInfo
from bookstore.services.access_log_service import log_access_event
from bookstore.services.license_common import (
    close_license,
    ensure_no_active_license,
    ensure_order_item_unredeemed,
    expire_stale_licenses,
    find_paid_rental_item,
    insert_license,
)
from bookstore.utils.clock import utcnow
from bookstore.utils.security import mint_security_token, tokens_match, watermark_payload

logger = logging.getLogger(__name__)

SECURITY_EVENTS = {
    "security_violation": (AccessEvent.SECURITY_VIOLATION, True),
    "suspicious_activity": (AccessEvent.SUSPICIOUS_ACTIVITY, True),
    "rental_end": (AccessEvent.RENTAL_ENDED, False),
}


def access_limit_for(rental_type: str) -> Optional[int]:
    """Read cap for a rental type, or None when reads are unlimited."""
    if rental_type == DigitalRentalType.SINGLE_READ.value:
        return settings.single_read_access_limit
    return None


def issue_digital_license(
    session: Session,
    user_id: int,
    book_id: int,
    order_item_id: int,
    rental_type,
    device_fingerprint: Optional[str] = None,
) -> License:
    rental_type = resolve_digital_rental_type(rental_type)

    book = session.get(Book, book_id)
    if not book:
        raise NotFoundError("Book not found", book_id=book_id)
    if not book.has_digital_asset:
        raise NoDigitalVersionError(book_id=book_id)

    order_item = find_paid_rental_item(session, user_id, book_id, order_item_id, BookFormat.DIGITAL)

    now = utcnow()
    try:
        expire_stale_licenses(session, now, user_id=user_id, book_id=book_id)
        ensure_no_active_license(session, user_id, book_id)
        ensure_order_item_unredeemed(session, order_item_id)

        license = insert_license(session, License(
            user_id=user_id,
            book_id=book_id,
            order_item_id=order_item_id,
            kind=LicenseKind.DIGITAL.value,
            rental_type=rental_type.value,
            rental_price=order_item.price,
            currency=order_item.currency,
            start_date=now,
            end_date=now + DIGITAL_RENTAL_TERMS[rental_type],
        ))

        user = session.get(User, user_id)
        session.add(DigitalLicense(
            license_id=license.id,
            security_token=mint_security_token(),
            watermark=watermark_payload(user, license.id, now, device_fingerprint),
        ))
        log_access_event(
            session,
            license,
            AccessEvent.RENTAL_CREATED,
            f"Digital rental created for {rental_type.value} period",
            amount=license.rental_price,
        )
        session.commit()
    except BookstoreError:
        session.rollback()
        raise
    except Exception:
        session.rollback()
        logger.exception(f"Error issuing digital rental of book {book_id} for user {user_id}")
        raise

    session.refresh(license)
    logger.info(f"Digital license {license.id} issued to user {user_id} for book {book_id} ({rental_type.value})")
    return license


def to_digital_license_out(session: Session, license: License) -> DigitalLicenseOut:
    book = session.get(Book, license.book_id)
    return DigitalLicenseOut(
        license_id=license.id,
        security_token=license.digital.security_token,
        book_id=license.book_id,
        title=book.title,
        author=book.author,
        rental_type=license.rental_type,
        start_date=license.start_date,
        end_date=license.end_date,
        access_count=license.digital.access_count,
        has_access=license.is_active and not license.is_expired(utcnow()),
    )


def _load_digital(session: Session, license_id: int, user_id: int, book_id: Optional[int] = None) -> License:
    license = session.get(License, license_id)
    if (
        not license
        or license.kind != LicenseKind.DIGITAL.value
        or license.user_id != user_id
        or (book_id is not None and license.book_id != book_id)
        or license.digital is None
    ):
        raise NotFoundError("Rental not found", license_id=license_id)
    return license


def verify_and_record_access(
    session: Session,
    license_id: int,
    security_token: str,
    user_id: int,
    book_id: int,
    request_info: Optional[RequestInfo] = None,
) -> ReadAccess:
    """Gate a read of rented content and count it.

    A license past its end date is treated as expired whether or not its
    flags were ever updated; the first such read closes it.
    """
    license = _load_digital(session, license_id, user_id, book_id)

    if not tokens_match(license.digital.security_token, security_token):
        logger.warning(f"Bad security token presented for license {license_id} by user {user_id}")
        raise InvalidLicenseTokenError(license_id=license_id)

    if license.status == LicenseStatus.EXPIRED.value:
        raise LicenseExpiredError(license_id=license_id)
    if not license.is_active:
        raise LicenseInactiveError(f"Rental is {license.status}", license_id=license_id, status=license.status)

    now = utcnow()
    if license.is_expired(now):
        close_license(license, LicenseStatus.EXPIRED, now)
        session.add(license)
        log_access_event(session, license, AccessEvent.RENTAL_EXPIRED, "Rental period ended")
        session.commit()
        raise LicenseExpiredError(license_id=license_id)

    book = session.get(Book, license.book_id)
    if not book or not book.has_digital_asset:
        raise NoDigitalVersionError(book_id=license.book_id)

    limit = access_limit_for(license.rental_type)
    statement = update(DigitalLicense).where(DigitalLicense.license_id == license.id)
    if limit is not None:
        statement = statement.where(DigitalLicense.access_count < limit)
    result = session.execute(
        statement
        .values(access_count=DigitalLicense.access_count + 1, last_access_at=now)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        session.rollback()
        raise AccessLimitReachedError(
            "Access limit reached for this rental",
            license_id=license_id,
            limit=limit,
        )

    log_access_event(
        session,
        license,
        AccessEvent.RENTAL_READ,
        "Rental content accessed",
        meta=request_info.model_dump() if request_info else None,
    )
    session.commit()
    session.refresh(license.digital)

    access_count = license.digital.access_count
    return ReadAccess(
        license_id=license.id,
        book_id=book.id,
        title=book.title,
        asset_url=book.digital_file_url,
        file_size=book.digital_file_size or 0,
        rental_type=license.rental_type,
        start_date=license.start_date,
        end_date=license.end_date,
        access_count=access_count,
        remaining_accesses=None if limit is None else max(limit - access_count, 0),
        seconds_remaining=int((license.end_date - now).total_seconds()),
        watermark=license.digital.watermark,
    )


def end_digital_license(session: Session, license_id: int, user_id: int) -> License:
    """User ends a rental early."""
    license = _load_digital(session, license_id, user_id)
    if not license.is_active:
        raise LicenseInactiveError(f"Rental is {license.status}", license_id=license_id, status=license.status)

    now = utcnow()
    close_license(license, LicenseStatus.RETURNED, now)
    license.end_date = min(license.end_date, now)
    session.add(license)
    log_access_event(session, license, AccessEvent.RENTAL_ENDED, "Rental ended early by user")
    session.commit()
    session.refresh(license)

    logger.info(f"Digital license {license_id} ended by user {user_id}")
    return license


def report_security_event(
    session: Session,
    license_id: int,
    user_id: int,
    book_id: int,
    event_type: str,
    details: Optional[dict] = None,
    request_info: Optional[RequestInfo] = None,
) -> AccessLogEntry:
    """Record a client-reported event against an active rental.

    Violations and suspicious activity revoke the rental; ``rental_end``
    closes it as returned. Unknown event types count as suspicious.
    """
    license = _load_digital(session, license_id, user_id, book_id)
    if not license.is_active:
        raise LicenseInactiveError(f"Rental is {license.status}", license_id=license_id, status=license.status)

    access_event, suspicious = SECURITY_EVENTS.get(event_type, (AccessEvent.SUSPICIOUS_ACTIVITY, True))
    now = utcnow()

    meta = {"event_type": event_type, "details": details or {}}
    if request_info:
        meta.update(request_info.model_dump())

    entry = log_access_event(
        session,
        license,
        access_event,
        f"Client reported {event_type}",
        suspicious=suspicious,
        meta=meta,
    )

    if suspicious:
        close_license(license, LicenseStatus.REVOKED, now)
        logger.warning(f"Digital license {license_id} revoked after {event_type}")
    else:
        close_license(license, LicenseStatus.RETURNED, now)
        license.end_date = min(license.end_date, now)
    session.add(license)
    session.commit()
    session.refresh(entry)
    return entry
