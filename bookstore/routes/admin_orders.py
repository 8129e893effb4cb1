# -------- ADMIN ORDERS --------
from datetime import date, datetime, time
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session, or_, select

from bookstore.constants.order_status import OrderStatus
from bookstore.database import get_session
from bookstore.dependencies.admin import require_admin
from bookstore.models.order import Order
from bookstore.models.user import User
from bookstore.schemas.checkout_schemas import OrderOut, OrderStatusUpdate
from bookstore.schemas.rental_schemas import (
    HardcopyLicenseOut,
    ReturnAssessment,
    ReturnResult,
    ShipmentUpdate,
)
from bookstore.services import hardcopy_rental_service, order_service
from bookstore.services.order_event_service import get_order_timeline
from bookstore.utils.pagination import paginate


router = APIRouter()


@router.get("/orders")
def list_orders(
    page: int = 1,
    limit: int = 10,
    search: Optional[str] = None,
    status: Optional[OrderStatus] = None,
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin)
):
    query = select(Order)

    if search:
        query = query.where(
            or_(
                Order.order_number.ilike(f"%{search}%"),
                Order.shipping_email.ilike(f"%{search}%"),
                Order.shipping_name.ilike(f"%{search}%"),
            )
        )
    if status:
        query = query.where(Order.status == status.value)
    if start_date:
        query = query.where(Order.created_at >= datetime.combine(start_date, time.min))
    if end_date:
        query = query.where(Order.created_at <= datetime.combine(end_date, time.max))

    query = query.order_by(Order.created_at.desc(), Order.id.desc())
    return paginate(
        session=session,
        query=query,
        page=page,
        limit=limit,
        transform=OrderOut.model_validate,
    )


@router.get("/orders/{order_id}")
def get_order_detail(
    order_id: int,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin)
):
    order = order_service.get_order(session, order_id)
    return {
        "order": OrderOut.model_validate(order),
        "timeline": get_order_timeline(session, order.id),
    }


@router.patch("/orders/{order_id}/status", response_model=OrderOut)
def update_order_status(
    order_id: int,
    data: OrderStatusUpdate,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin)
):
    order = order_service.update_order_status(
        session,
        order_id,
        data.status,
        payment_reference=data.payment_reference,
        changed_by=f"admin:{admin.id}",
    )
    return OrderOut.model_validate(order)


# -------- ADMIN HARDCOPY RENTALS --------

@router.post("/hardcopy-rentals/{license_id}/ship", response_model=HardcopyLicenseOut)
def ship_hardcopy_rental(
    license_id: int,
    data: ShipmentUpdate,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin)
):
    license = hardcopy_rental_service.mark_hardcopy_shipped(session, license_id, data.tracking_number)
    return hardcopy_rental_service.to_hardcopy_license_out(session, license)


@router.post("/hardcopy-rentals/{license_id}/return", response_model=ReturnResult)
def return_hardcopy_rental(
    license_id: int,
    data: ReturnAssessment,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin)
):
    return hardcopy_rental_service.return_hardcopy_license(session, license_id, data)
