# bookstore/services/access_log_service.py

from typing import List, Optional
from sqlmodel import Session, select
from bookstore.models.access_log import AccessEvent, AccessLogEntry
from bookstore.models.license import License
from bookstore.utils.clock import utcnow


def log_access_event(
    session: Session,
    license: License,
    event_type: AccessEvent,
    description: str,
    amount: float = 0.0,
    suspicious: bool = False,
    meta: Optional[dict] = None,
) -> AccessLogEntry:
    """
    Append-only record of a license event.
    Added to the caller's session so it commits with the state change.
    """

    entry = AccessLogEntry(
        license_id=license.id,
        user_id=license.user_id,
        book_id=license.book_id,
        event_type=AccessEvent(event_type).value,
        description=description,
        amount=amount,
        currency=license.currency,
        suspicious=suspicious,
        meta=meta,
        created_at=utcnow(),
    )

    session.add(entry)
    return entry


def get_access_logs(session: Session, license_id: int, user_id: Optional[int] = None) -> List[AccessLogEntry]:
    query = select(AccessLogEntry).where(AccessLogEntry.license_id == license_id)
    if user_id is not None:
        query = query.where(AccessLogEntry.user_id == user_id)
    return session.exec(query.order_by(AccessLogEntry.created_at.desc())).all()
