from fastapi import APIRouter, Depends
from sqlmodel import Session
from bookstore.constants.currency import Currency
from bookstore.database import get_session
from bookstore.models.user import User
from bookstore.schemas.cart_schemas import CartSummary
from bookstore.schemas.checkout_schemas import CreateOrderRequest, OrderOut
from bookstore.services import cart_service, currency_service, order_service
from bookstore.utils.token import get_current_user

router = APIRouter()


# Checkout summary before placing the order
@router.get("/summary", response_model=CartSummary)
def checkout_summary(
    currency: Currency = Currency.ALL,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    return cart_service.get_cart_summary(session, current_user.id, currency)


#Place order
@router.post("/place-order", response_model=OrderOut, status_code=201)
def place_order(
    data: CreateOrderRequest,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    # rate is read once here and frozen onto the order
    rate = currency_service.get_active_rate(session)
    order = order_service.create_order(session, current_user.id, data, rate)
    return OrderOut.model_validate(order)
