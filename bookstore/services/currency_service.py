import logging
from typing import Optional

from sqlmodel import Session, select

from bookstore.config import settings
from bookstore.constants.currency import (
    Currency,
    free_shipping_threshold_key,
    shipping_cost_key,
)
from bookstore.models.exchange_rate import ExchangeRate
from bookstore.models.store_setting import StoreSetting
from bookstore.schemas.checkout_schemas import RateSnapshot
from bookstore.services.pricing import ShippingRates, default_shipping_rates
from bookstore.utils.clock import utcnow

logger = logging.getLogger(__name__)


def _setting_float(session: Session, key: str) -> Optional[float]:
    row = session.get(StoreSetting, key)
    if row is None:
        return None
    try:
        return float(row.value)
    except ValueError:
        logger.warning(f"Ignoring non-numeric store setting {key}={row.value!r}")
        return None


def load_shipping_rates(session: Session, currency: Currency) -> ShippingRates:
    """Configured shipping rates for a currency, falling back to defaults."""
    defaults = default_shipping_rates(currency)
    cost = _setting_float(session, shipping_cost_key(currency))
    threshold = _setting_float(session, free_shipping_threshold_key(currency))
    return ShippingRates(
        shipping_cost=defaults.shipping_cost if cost is None else cost,
        free_shipping_threshold=defaults.free_shipping_threshold if threshold is None else threshold,
    )


def get_active_rate(
    session: Session,
    from_currency: Currency = Currency.EUR,
    to_currency: Currency = Currency.ALL,
) -> RateSnapshot:
    """Most recently updated active rate for a direction."""
    row = session.exec(
        select(ExchangeRate)
        .where(
            ExchangeRate.from_currency == from_currency.value,
            ExchangeRate.to_currency == to_currency.value,
            ExchangeRate.is_active == True,  # noqa: E712
        )
        .order_by(ExchangeRate.updated_at.desc(), ExchangeRate.id.desc())
    ).first()

    if row is None:
        if (from_currency, to_currency) == (Currency.EUR, Currency.ALL):
            rate = settings.default_exchange_rate_eur_to_all
        elif (from_currency, to_currency) == (Currency.ALL, Currency.EUR):
            rate = 1 / settings.default_exchange_rate_eur_to_all
        else:
            rate = 1.0
        return RateSnapshot(from_currency=from_currency, to_currency=to_currency, rate=rate)

    return RateSnapshot(from_currency=from_currency, to_currency=to_currency, rate=row.rate)


def set_exchange_rate(
    session: Session,
    rate: float,
    from_currency: Currency = Currency.EUR,
    to_currency: Currency = Currency.ALL,
) -> ExchangeRate:
    """Publish a new authoritative rate; older rows for the direction go inactive."""
    if rate <= 0:
        raise ValueError("Exchange rate must be positive")

    previous = session.exec(
        select(ExchangeRate).where(
            ExchangeRate.from_currency == from_currency.value,
            ExchangeRate.to_currency == to_currency.value,
            ExchangeRate.is_active == True,  # noqa: E712
        )
    ).all()
    for row in previous:
        row.is_active = False
        session.add(row)

    new_rate = ExchangeRate(
        from_currency=from_currency.value,
        to_currency=to_currency.value,
        rate=rate,
        is_active=True,
        updated_at=utcnow(),
    )
    session.add(new_rate)
    session.commit()
    session.refresh(new_rate)

    logger.info(f"Exchange rate {from_currency.value}->{to_currency.value} set to {rate}")
    return new_rate


def _put_setting(session: Session, key: str, value: float):
    row = session.get(StoreSetting, key)
    if row is None:
        row = StoreSetting(key=key, value=str(value))
    else:
        row.value = str(value)
        row.updated_at = utcnow()
    session.add(row)


def set_shipping_rates(
    session: Session,
    currency: Currency,
    shipping_cost: Optional[float] = None,
    free_shipping_threshold: Optional[float] = None,
) -> ShippingRates:
    if shipping_cost is not None:
        _put_setting(session, shipping_cost_key(currency), shipping_cost)
    if free_shipping_threshold is not None:
        _put_setting(session, free_shipping_threshold_key(currency), free_shipping_threshold)
    session.commit()
    return load_shipping_rates(session, currency)
