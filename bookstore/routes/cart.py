from typing import Optional
from fastapi import APIRouter, Depends
from sqlmodel import Session
from bookstore.constants.currency import Currency
from bookstore.database import get_session
from bookstore.models.user import User
from bookstore.schemas.cart_schemas import CartAddRequest, CartSummary, CartUpdateRequest
from bookstore.services import cart_service
from bookstore.utils.token import get_current_user  # JWT dependency


router = APIRouter()

# Add to Cart

@router.post("/add")
def add_to_cart(
    data: CartAddRequest,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    item = cart_service.add_to_cart(session, current_user.id, data)
    return {"message": "Added to cart", "item": item}


# View Cart

@router.get("/", response_model=CartSummary)
def get_cart(
    currency: Optional[Currency] = None,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    return cart_service.get_cart_summary(session, current_user.id, currency)

# Update Cart
@router.put("/update/{item_id}")
def update_cart_item(
    item_id: int,
    data: CartUpdateRequest,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    item = cart_service.update_cart_item(session, current_user.id, item_id, data.quantity)
    if item is None:
        return {"message": "Item removed"}
    return {"message": "Quantity updated", "item": item}

# Remove Cart

@router.delete("/remove/{item_id}")
def remove_item(
    item_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    cart_service.remove_from_cart(session, current_user.id, item_id)
    return {"message": "Item removed from cart"}

# Clear Cart

@router.delete("/clear")
def clear_cart_endpoint(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    removed = cart_service.clear_cart(session, current_user.id)
    return {"message": "Cart cleared", "items_removed": removed}
