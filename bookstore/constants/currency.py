from enum import Enum


class Currency(str, Enum):
    ALL = "ALL"
    EUR = "EUR"


class BookFormat(str, Enum):
    PHYSICAL = "physical"
    DIGITAL = "digital"


# used when no StoreSetting row overrides them
DEFAULT_SHIPPING_COST = {
    Currency.ALL: 300.0,
    Currency.EUR: 3.0,
}

DEFAULT_FREE_SHIPPING_THRESHOLD = {
    Currency.ALL: 3000.0,
    Currency.EUR: 30.0,
}


def shipping_cost_key(currency: Currency) -> str:
    return f"shipping_cost_{currency.value.lower()}"


def free_shipping_threshold_key(currency: Currency) -> str:
    return f"free_shipping_threshold_{currency.value.lower()}"
