from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from bookstore.database import get_session
from bookstore.models.user import User
from bookstore.schemas.checkout_schemas import OrderOut
from bookstore.services import order_service
from bookstore.services.order_event_service import get_order_timeline
from bookstore.utils.token import get_current_user

router = APIRouter()


@router.get("")
def list_my_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return order_service.list_user_orders(
        session, current_user.id, page, limit, transform=OrderOut.model_validate
    )


@router.get("/{order_id}", response_model=OrderOut)
def get_my_order(
    order_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return OrderOut.model_validate(order_service.get_order(session, order_id, current_user.id))


# Track order
@router.get("/{order_id}/track")
def track_order(
    order_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    order = order_service.get_order(session, order_id, current_user.id)

    return {
        "order_number": order.order_number,
        "status": order.status,
        "created_at": order.created_at,
        "timeline": [
            {
                "event": e.event_type,
                "from_status": e.from_status,
                "to_status": e.to_status,
                "at": e.created_at,
            }
            for e in get_order_timeline(session, order.id)
        ],
    }
