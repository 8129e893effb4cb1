from datetime import timedelta
from enum import Enum
from typing import NamedTuple, Optional, Union


class LicenseKind(str, Enum):
    DIGITAL = "digital"
    PHYSICAL = "physical"


class LicenseStatus(str, Enum):
    ACTIVE = "active"
    RETURNED = "returned"
    EXPIRED = "expired"
    REVOKED = "revoked"


class DigitalRentalType(str, Enum):
    SINGLE_READ = "SINGLE_READ"
    TIME_LIMITED = "TIME_LIMITED"
    UNLIMITED_READS = "UNLIMITED_READS"


class HardcopyRentalType(str, Enum):
    SHORT_TERM = "SHORT_TERM"
    MEDIUM_TERM = "MEDIUM_TERM"
    LONG_TERM = "LONG_TERM"
    EXTENDED_TERM = "EXTENDED_TERM"


class BookCondition(str, Enum):
    EXCELLENT = "EXCELLENT"
    VERY_GOOD = "VERY_GOOD"
    GOOD = "GOOD"
    FAIR = "FAIR"
    POOR = "POOR"
    DAMAGED = "DAMAGED"


class HardcopyTerm(NamedTuple):
    duration: timedelta
    price_rate: float   # share of the list price charged for the rental


DIGITAL_RENTAL_TERMS = {
    DigitalRentalType.SINGLE_READ: timedelta(hours=24),
    DigitalRentalType.TIME_LIMITED: timedelta(days=7),
    DigitalRentalType.UNLIMITED_READS: timedelta(days=30),
}
DEFAULT_DIGITAL_RENTAL_TYPE = DigitalRentalType.SINGLE_READ

HARDCOPY_RENTAL_TERMS = {
    HardcopyRentalType.SHORT_TERM: HardcopyTerm(timedelta(days=7), 0.15),
    HardcopyRentalType.MEDIUM_TERM: HardcopyTerm(timedelta(days=14), 0.25),
    HardcopyRentalType.LONG_TERM: HardcopyTerm(timedelta(days=30), 0.40),
    HardcopyRentalType.EXTENDED_TERM: HardcopyTerm(timedelta(days=60), 0.60),
}
DEFAULT_HARDCOPY_RENTAL_TYPE = HardcopyRentalType.SHORT_TERM

GUARANTEE_RATE = 0.8

# share of the guarantee kept back for each return condition
CONDITION_DEDUCTIONS = {
    BookCondition.EXCELLENT: 0.0,
    BookCondition.VERY_GOOD: 0.05,
    BookCondition.GOOD: 0.10,
    BookCondition.FAIR: 0.25,
    BookCondition.POOR: 0.50,
    BookCondition.DAMAGED: 0.90,
}


def resolve_digital_rental_type(value: Union[str, DigitalRentalType, None]) -> DigitalRentalType:
    """Map caller input to a known digital rental type.

    Anything unrecognised resolves to ``DEFAULT_DIGITAL_RENTAL_TYPE`` (24h).
    """
    try:
        return DigitalRentalType(value)
    except ValueError:
        return DEFAULT_DIGITAL_RENTAL_TYPE


def resolve_hardcopy_rental_type(value: Union[str, HardcopyRentalType, None]) -> HardcopyRentalType:
    """Map caller input to a known hardcopy rental type, defaulting to SHORT_TERM."""
    try:
        return HardcopyRentalType(value)
    except ValueError:
        return DEFAULT_HARDCOPY_RENTAL_TYPE


def rental_amount(list_price: float, rate: float, currency: Optional[str] = None) -> float:
    # ALL has no minor unit in practice, EUR keeps cents
    digits = 0 if currency == "ALL" else 2
    return round(list_price * rate, digits)
