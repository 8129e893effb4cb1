import logging
from typing import Optional

from sqlmodel import Session

from bookstore.database import engine
from bookstore.services.license_common import expire_stale_licenses

logger = logging.getLogger(__name__)


def expire_digital_licenses(session: Optional[Session] = None) -> int:
    """Close digital rentals past their end date.

    Reads already refuse expired rentals on their own; this keeps the
    ``status`` column and the access log tidy for reporting.
    """
    if session is None:
        with Session(engine) as own_session:
            return expire_digital_licenses(own_session)

    expired = expire_stale_licenses(session)
    session.commit()

    logger.info(f"Expired {len(expired)} digital rentals")
    return len(expired)
