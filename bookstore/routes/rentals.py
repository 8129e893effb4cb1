from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from bookstore.constants.currency import BookFormat, Currency
from bookstore.constants.rentals import LicenseKind
from bookstore.database import get_session
from bookstore.dependencies.rentals import get_rental_token, get_request_info
from bookstore.errors import NotFoundError
from bookstore.models.book import Book
from bookstore.models.user import User
from bookstore.schemas.rental_schemas import (
    AccessLogOut,
    DigitalLicenseOut,
    DigitalRentalRequest,
    HardcopyLicenseOut,
    HardcopyRentalRequest,
    LicenseList,
    LicenseSummary,
    ReadAccess,
    RentalPricingOption,
    RequestInfo,
    SecurityEventRequest,
)
from bookstore.services import digital_rental_service, hardcopy_rental_service
from bookstore.services.access_log_service import get_access_logs
from bookstore.services.license_common import list_active_licenses, list_license_history
from bookstore.services.pricing import unit_price_for
from bookstore.utils.token import get_current_user

router = APIRouter()


# ---------------- Digital ----------------

@router.post("/books/{book_id}/digital", response_model=DigitalLicenseOut, status_code=201)
def rent_digital(
    book_id: int,
    data: DigitalRentalRequest,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    license = digital_rental_service.issue_digital_license(
        session,
        current_user.id,
        book_id,
        data.order_item_id,
        data.rental_type,
        device_fingerprint=data.device_fingerprint,
    )
    return digital_rental_service.to_digital_license_out(session, license)


@router.post("/{license_id}/read", response_model=ReadAccess)
def read_rental(
    license_id: int,
    book_id: int = Query(...),
    token: str = Depends(get_rental_token),
    request_info: RequestInfo = Depends(get_request_info),
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return digital_rental_service.verify_and_record_access(
        session, license_id, token, current_user.id, book_id, request_info
    )


@router.post("/{license_id}/end")
def end_rental(
    license_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    license = digital_rental_service.end_digital_license(session, license_id, current_user.id)
    return {"message": "Rental ended", "license_id": license.id, "status": license.status}


@router.post("/{license_id}/security-event", response_model=AccessLogOut)
def security_event(
    license_id: int,
    data: SecurityEventRequest,
    book_id: int = Query(...),
    request_info: RequestInfo = Depends(get_request_info),
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    if data.device_fingerprint and not request_info.device_fingerprint:
        request_info.device_fingerprint = data.device_fingerprint
    entry = digital_rental_service.report_security_event(
        session,
        license_id,
        current_user.id,
        book_id,
        data.event_type,
        details=data.details,
        request_info=request_info,
    )
    return AccessLogOut.model_validate(entry)


# ---------------- Hardcopy ----------------

@router.get("/books/{book_id}/hardcopy-pricing", response_model=List[RentalPricingOption])
def hardcopy_pricing(
    book_id: int,
    currency: Currency = Currency.ALL,
    session: Session = Depends(get_session),
):
    book = session.get(Book, book_id)
    if not book or not book.active:
        raise NotFoundError("Book not found", book_id=book_id)
    list_price = unit_price_for(book, BookFormat.PHYSICAL, currency)
    return hardcopy_rental_service.calculate_rental_pricing(list_price, currency)


@router.post("/books/{book_id}/hardcopy", response_model=HardcopyLicenseOut, status_code=201)
def rent_hardcopy(
    book_id: int,
    data: HardcopyRentalRequest,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    license = hardcopy_rental_service.issue_hardcopy_license(
        session,
        current_user.id,
        book_id,
        data.order_item_id,
        data.rental_type,
        data.shipping_address,
        guarantee_amount=data.guarantee_amount,
    )
    return hardcopy_rental_service.to_hardcopy_license_out(session, license)


@router.get("/hardcopy/{license_id}", response_model=HardcopyLicenseOut)
def get_hardcopy(
    license_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return hardcopy_rental_service.get_hardcopy_license(session, license_id, current_user.id)


# ---------------- Library ----------------

@router.get("/active", response_model=LicenseList)
def my_active_rentals(
    kind: Optional[LicenseKind] = None,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    licenses = list_active_licenses(session, current_user.id, kind)
    return LicenseList(licenses=[LicenseSummary.model_validate(l) for l in licenses])


@router.get("/history", response_model=LicenseList)
def my_rental_history(
    kind: Optional[LicenseKind] = None,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    licenses = list_license_history(session, current_user.id, kind)
    return LicenseList(licenses=[LicenseSummary.model_validate(l) for l in licenses])


@router.get("/{license_id}/logs", response_model=List[AccessLogOut])
def my_rental_logs(
    license_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return [
        AccessLogOut.model_validate(entry)
        for entry in get_access_logs(session, license_id, current_user.id)
    ]
