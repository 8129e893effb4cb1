from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import uuid4

from sqlmodel import SQLModel, Field
from sqlalchemy import Column, JSON

from bookstore.utils.clock import utcnow


class AccessEvent(str, Enum):
    RENTAL_CREATED = "RENTAL_CREATED"
    GUARANTEE_CHARGED = "GUARANTEE_CHARGED"
    RENTAL_READ = "RENTAL_READ"
    RENTAL_ENDED = "RENTAL_ENDED"
    RENTAL_EXPIRED = "RENTAL_EXPIRED"
    SHIPPED = "SHIPPED"
    RETURNED = "RETURNED"
    DAMAGE_ASSESSED = "DAMAGE_ASSESSED"
    LATE_FEE_CHARGED = "LATE_FEE_CHARGED"
    GUARANTEE_REFUNDED = "GUARANTEE_REFUNDED"
    RENTAL_COMPLETED = "RENTAL_COMPLETED"
    SECURITY_VIOLATION = "SECURITY_VIOLATION"
    SUSPICIOUS_ACTIVITY = "SUSPICIOUS_ACTIVITY"


class AccessLogEntry(SQLModel, table=True):
    __tablename__ = "access_log"
    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)

    license_id: int = Field(foreign_key="license.id", index=True)
    user_id: int = Field(index=True)
    book_id: int = Field(index=True)
    event_type: str = Field(index=True)

    description: str
    amount: float = 0.0
    currency: Optional[str] = None
    suspicious: bool = False
    # ip / user agent / device fingerprint of the request, never the token
    meta: Optional[dict] = Field(default=None, sa_column=Column(JSON))

    created_at: datetime = Field(default_factory=utcnow, index=True)
