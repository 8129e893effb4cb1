import hmac
import logging

from fastapi import APIRouter, Depends, Header, HTTPException
from sqlmodel import Session

from bookstore.config import settings
from bookstore.database import get_session
from bookstore.schemas.checkout_schemas import OrderOut, PaymentCallback
from bookstore.services import order_service

logger = logging.getLogger(__name__)

router = APIRouter()


def verify_webhook_secret(x_webhook_secret: str = Header(default="")):
    if not settings.payment_webhook_secret or not hmac.compare_digest(
        x_webhook_secret.encode(), settings.payment_webhook_secret.encode()
    ):
        raise HTTPException(status_code=401, detail="Invalid webhook signature")


# Payment processor status callback; only ever moves the order forward
@router.post("/{order_id}/payment-callback", response_model=OrderOut, dependencies=[Depends(verify_webhook_secret)])
def payment_callback(
    order_id: int,
    payload: PaymentCallback,
    session: Session = Depends(get_session),
):
    logger.info(f"Payment callback for order {order_id}: {payload.new_status.value}")
    order = order_service.update_order_status(
        session,
        order_id,
        payload.new_status,
        payment_reference=payload.payment_reference,
        changed_by="payment_processor",
    )
    return OrderOut.model_validate(order)
