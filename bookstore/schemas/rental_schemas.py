from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional
from datetime import datetime

from bookstore.constants.rentals import BookCondition


class DigitalRentalRequest(BaseModel):
    order_item_id: int
    # unknown values fall back to SINGLE_READ in the issuer
    rental_type: str = "SINGLE_READ"
    device_fingerprint: Optional[str] = None


class HardcopyRentalRequest(BaseModel):
    order_item_id: int
    rental_type: str = "SHORT_TERM"
    shipping_address: str = Field(min_length=5, max_length=300)
    guarantee_amount: Optional[float] = Field(default=None, gt=0)


class ReturnAssessment(BaseModel):
    return_condition: BookCondition
    condition_notes: Optional[str] = None
    return_tracking: Optional[str] = None
    is_damaged: bool = False
    damage_notes: Optional[str] = None


class ShipmentUpdate(BaseModel):
    tracking_number: str = Field(min_length=3, max_length=100)


class SecurityEventRequest(BaseModel):
    event_type: str  # security_violation | suspicious_activity | rental_end
    details: Optional[Dict[str, Any]] = None
    device_fingerprint: Optional[str] = None


class RequestInfo(BaseModel):
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    device_fingerprint: Optional[str] = None


class DigitalLicenseOut(BaseModel):
    license_id: int
    security_token: str
    book_id: int
    title: str
    author: str
    rental_type: str
    start_date: datetime
    end_date: datetime
    access_count: int
    has_access: bool


class ReadAccess(BaseModel):
    license_id: int
    book_id: int
    title: str
    asset_url: str
    file_size: int
    rental_type: str
    start_date: datetime
    end_date: datetime
    access_count: int
    remaining_accesses: Optional[int] = None  # None means unlimited
    seconds_remaining: int
    watermark: Optional[Dict[str, Any]] = None


class HardcopyLicenseOut(BaseModel):
    license_id: int
    book_id: int
    title: str
    rental_type: str
    rental_price: float
    guarantee_amount: float
    currency: str
    start_date: datetime
    end_date: datetime
    status: str
    is_overdue: bool
    initial_condition: str
    return_condition: Optional[str] = None
    shipping_address: str
    tracking_number: Optional[str] = None
    return_tracking: Optional[str] = None
    guarantee_refunded: bool
    refund_amount: Optional[float] = None


class ReturnResult(BaseModel):
    license_id: int
    book_id: int
    returned_at: datetime
    return_condition: str
    is_damaged: bool
    is_late: bool
    damage_deduction: float
    late_fee: float
    guarantee_amount: float
    refund_amount: float
    currency: str


class RentalPricingOption(BaseModel):
    rental_type: str
    duration_days: int
    rental_price: float
    guarantee_amount: float


class AccessLogOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    license_id: int
    event_type: str
    description: str
    amount: float
    currency: Optional[str] = None
    suspicious: bool
    created_at: datetime


class LicenseSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    book_id: int
    kind: str
    rental_type: str
    status: str
    start_date: datetime
    end_date: datetime


class LicenseList(BaseModel):
    licenses: List[LicenseSummary]
