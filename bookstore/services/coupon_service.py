import logging
from typing import Tuple

from sqlalchemy import or_, update
from sqlmodel import Session, select

from bookstore.constants.currency import Currency
from bookstore.errors import InvalidCouponError
from bookstore.models.coupon import Coupon, CouponUsage
from bookstore.utils.clock import utcnow

logger = logging.getLogger(__name__)


def validate_coupon(session: Session, code: str, subtotal: float, currency: Currency) -> Tuple[Coupon, float]:
    """Look up a coupon and compute its discount against ``subtotal``.

    Raises InvalidCouponError for unknown, inactive, expired, exhausted or
    inapplicable coupons.
    """
    coupon = session.exec(select(Coupon).where(Coupon.code == code)).first()

    if not coupon or not coupon.is_active:
        raise InvalidCouponError("Invalid coupon code", coupon_code=code)

    if coupon.expires_at and coupon.expires_at <= utcnow():
        raise InvalidCouponError("Coupon has expired", coupon_code=code)

    if coupon.max_uses is not None and coupon.used_count >= coupon.max_uses:
        raise InvalidCouponError("Coupon usage limit reached", coupon_code=code)

    if subtotal < coupon.min_subtotal:
        raise InvalidCouponError(
            f"Order subtotal must be at least {coupon.min_subtotal}",
            coupon_code=code,
        )

    if coupon.discount_type == "percentage":
        discount = subtotal * min(coupon.value, 100) / 100
    elif coupon.discount_type == "fixed":
        if coupon.currency and coupon.currency != currency.value:
            raise InvalidCouponError(
                f"Coupon is only valid for {coupon.currency} orders",
                coupon_code=code,
            )
        discount = min(coupon.value, subtotal)
    else:
        raise InvalidCouponError("Invalid coupon code", coupon_code=code)

    return coupon, round(discount, 2)


def record_coupon_usage(
    session: Session,
    coupon: Coupon,
    user_id: int,
    order_id: int,
    discount: float,
) -> CouponUsage:
    """Count one use of the coupon inside the caller's transaction.

    The increment is a guarded UPDATE so two checkouts cannot both take the
    last remaining use.
    """
    result = session.execute(
        update(Coupon)
        .where(
            Coupon.id == coupon.id,
            or_(Coupon.max_uses.is_(None), Coupon.used_count < Coupon.max_uses),
        )
        .values(used_count=Coupon.used_count + 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise InvalidCouponError("Coupon usage limit reached", coupon_code=coupon.code)

    usage = CouponUsage(
        coupon_id=coupon.id,
        user_id=user_id,
        order_id=order_id,
        discount=discount,
    )
    session.add(usage)
    logger.info(f"Coupon {coupon.code} used by user {user_id} on order {order_id}")
    return usage
