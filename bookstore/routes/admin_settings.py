from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlmodel import Session

from bookstore.constants.currency import Currency
from bookstore.database import get_session
from bookstore.dependencies.admin import require_admin
from bookstore.services import currency_service


router = APIRouter()


class ExchangeRateUpdate(BaseModel):
    rate: float = Field(gt=0)
    from_currency: Currency = Currency.EUR
    to_currency: Currency = Currency.ALL


class ShippingSettingsUpdate(BaseModel):
    shipping_cost: Optional[float] = Field(default=None, ge=0)
    free_shipping_threshold: Optional[float] = Field(default=None, ge=0)


@router.get("/exchange-rate")
def get_exchange_rate(
    from_currency: Currency = Currency.EUR,
    to_currency: Currency = Currency.ALL,
    session: Session = Depends(get_session),
    admin=Depends(require_admin)
):
    return currency_service.get_active_rate(session, from_currency, to_currency)


@router.put("/exchange-rate")
def update_exchange_rate(
    data: ExchangeRateUpdate,
    session: Session = Depends(get_session),
    admin=Depends(require_admin)
):
    if data.from_currency == data.to_currency:
        raise HTTPException(400, "Currencies must differ")
    row = currency_service.set_exchange_rate(session, data.rate, data.from_currency, data.to_currency)
    return {
        "message": "Exchange rate updated",
        "from_currency": row.from_currency,
        "to_currency": row.to_currency,
        "rate": row.rate,
        "updated_at": row.updated_at,
    }


@router.get("/shipping/{currency}")
def get_shipping_settings(
    currency: Currency,
    session: Session = Depends(get_session),
    admin=Depends(require_admin)
):
    rates = currency_service.load_shipping_rates(session, currency)
    return {"currency": currency, **rates._asdict()}


@router.put("/shipping/{currency}")
def update_shipping_settings(
    currency: Currency,
    data: ShippingSettingsUpdate,
    session: Session = Depends(get_session),
    admin=Depends(require_admin)
):
    rates = currency_service.set_shipping_rates(
        session, currency, data.shipping_cost, data.free_shipping_threshold
    )
    return {"message": "Shipping settings updated", "currency": currency, **rates._asdict()}
