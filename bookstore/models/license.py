# bookstore/models/license.py
"""Rental licenses.

``License`` holds what every rental shares (who, what, when, state).
``DigitalLicense`` and ``PhysicalLicense`` hang off it one-to-one and carry
the variant payload; ``License.kind`` says which one is present.
"""
from sqlmodel import SQLModel, Field, Relationship
from sqlalchemy import Column, Index, JSON, text
from typing import Optional
from datetime import datetime

from bookstore.utils.clock import utcnow


class License(SQLModel, table=True):
    __table_args__ = (
        # at most one active rental per (user, book), digital or physical
        Index(
            "uq_license_active_user_book",
            "user_id",
            "book_id",
            unique=True,
            postgresql_where=text("is_active"),
            sqlite_where=text("is_active = 1"),
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    book_id: int = Field(foreign_key="book.id", index=True)
    # weak link back to the purchase; one license per order item
    order_item_id: int = Field(foreign_key="orderitem.id", unique=True)

    kind: str  # digital | physical
    rental_type: str
    rental_price: float
    currency: str

    start_date: datetime
    end_date: datetime

    is_active: bool = True
    status: str = Field(default="active", index=True)  # active | returned | expired | revoked
    returned_at: Optional[datetime] = None

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    digital: Optional["DigitalLicense"] = Relationship(
        back_populates="license", sa_relationship_kwargs={"uselist": False}
    )
    physical: Optional["PhysicalLicense"] = Relationship(
        back_populates="license", sa_relationship_kwargs={"uselist": False}
    )

    def is_expired(self, now: datetime) -> bool:
        return self.end_date <= now


class DigitalLicense(SQLModel, table=True):
    __tablename__ = "digital_license"
    license_id: int = Field(foreign_key="license.id", primary_key=True)

    security_token: str = Field(unique=True, index=True)
    watermark: Optional[dict] = Field(default=None, sa_column=Column(JSON))
    access_count: int = 0
    last_access_at: Optional[datetime] = None

    license: Optional[License] = Relationship(back_populates="digital")


class PhysicalLicense(SQLModel, table=True):
    __tablename__ = "physical_license"
    license_id: int = Field(foreign_key="license.id", primary_key=True)

    guarantee_amount: float
    shipping_address: str

    initial_condition: str = Field(default="EXCELLENT")
    return_condition: Optional[str] = None
    condition_notes: Optional[str] = None
    is_damaged: bool = False
    damage_notes: Optional[str] = None

    tracking_number: Optional[str] = None
    return_tracking: Optional[str] = None

    guarantee_refunded: bool = False
    refund_amount: Optional[float] = None
    late_fee: float = 0.0

    license: Optional[License] = Relationship(back_populates="physical")
