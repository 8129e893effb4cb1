"""Unit tests for the pricing and shipping calculator.

Pure arithmetic, no database.
"""
import pytest

from bookstore.constants.currency import BookFormat, Currency
from bookstore.constants.rentals import (
    DigitalRentalType,
    HardcopyRentalType,
    rental_amount,
    resolve_digital_rental_type,
    resolve_hardcopy_rental_type,
)
from bookstore.services.pricing import (
    PricedLine,
    ShippingRates,
    calculate_shipping,
    calculate_totals,
    default_shipping_rates,
    unit_price_for,
)
from tests.factories import BookFactory


class TestCalculateTotals:
    def test_physical_order_below_threshold_pays_shipping(self):
        lines = [PricedLine(1000.0, 2, BookFormat.PHYSICAL)]
        totals = calculate_totals(lines, Currency.ALL)

        assert totals.subtotal == 2000.0
        assert totals.shipping_cost == 300.0
        assert totals.total_amount == 2300.0

    def test_free_shipping_at_threshold(self):
        lines = [PricedLine(1500.0, 2, BookFormat.PHYSICAL)]
        totals = calculate_totals(lines, Currency.ALL)

        assert totals.subtotal == 3000.0
        assert totals.shipping_cost == 0.0
        assert totals.total_amount == 3000.0

    def test_digital_only_order_never_pays_shipping(self):
        lines = [PricedLine(5.0, 1, BookFormat.DIGITAL)]
        totals = calculate_totals(lines, Currency.EUR)

        assert totals.shipping_cost == 0.0
        assert totals.total_amount == 5.0

    def test_eur_uses_eur_rates(self):
        lines = [PricedLine(10.0, 2, BookFormat.PHYSICAL)]
        totals = calculate_totals(lines, Currency.EUR)

        assert totals.subtotal == 20.0
        assert totals.shipping_cost == 3.0
        assert totals.total_amount == 23.0

    def test_configured_rates_override_defaults(self):
        lines = [PricedLine(1000.0, 1, BookFormat.PHYSICAL)]
        totals = calculate_totals(lines, Currency.ALL, ShippingRates(450.0, 900.0))

        # 1000 >= 900, free
        assert totals.shipping_cost == 0.0

    def test_discount_is_clamped_to_order_value(self):
        lines = [PricedLine(100.0, 1, BookFormat.DIGITAL)]
        totals = calculate_totals(lines, Currency.ALL, discount=500.0)

        assert totals.discount == 100.0
        assert totals.total_amount == 0.0

    def test_empty_lines_total_zero(self):
        totals = calculate_totals([], Currency.ALL)
        assert totals.total_amount == 0.0
        assert totals.shipping_cost == 0.0


class TestShipping:
    def test_no_physical_items(self):
        assert calculate_shipping(10.0, False, default_shipping_rates(Currency.EUR)) == 0.0

    def test_just_below_threshold(self):
        assert calculate_shipping(29.99, True, default_shipping_rates(Currency.EUR)) == 3.0


class TestUnitPrice:
    def test_reads_price_for_currency_and_format(self):
        book = BookFactory.create(price_all=1200.0, price_eur=12.0, digital_price_all=400.0, digital_price_eur=4.0)

        assert unit_price_for(book, BookFormat.PHYSICAL, Currency.ALL) == 1200.0
        assert unit_price_for(book, BookFormat.PHYSICAL, Currency.EUR) == 12.0
        assert unit_price_for(book, BookFormat.DIGITAL, Currency.ALL) == 400.0
        assert unit_price_for(book, BookFormat.DIGITAL, Currency.EUR) == 4.0

    def test_missing_price_counts_as_zero(self):
        book = BookFactory.create(price_eur=None)
        assert unit_price_for(book, BookFormat.PHYSICAL, Currency.EUR) == 0.0


class TestRentalAmounts:
    def test_all_rounds_to_whole_lek(self):
        assert rental_amount(999.0, 0.15, "ALL") == 150.0

    def test_eur_keeps_cents(self):
        assert rental_amount(20.0, 0.15, "EUR") == pytest.approx(3.0)
        assert rental_amount(9.99, 0.8, "EUR") == pytest.approx(7.99)

    def test_unknown_rental_types_fall_back(self):
        assert resolve_digital_rental_type("FOREVER") == DigitalRentalType.SINGLE_READ
        assert resolve_digital_rental_type(None) == DigitalRentalType.SINGLE_READ
        assert resolve_hardcopy_rental_type("weekly") == HardcopyRentalType.SHORT_TERM
        assert resolve_hardcopy_rental_type("LONG_TERM") == HardcopyRentalType.LONG_TERM


class TestShippingThresholdBoundaries:
    @pytest.mark.parametrize(
        "currency, subtotal, expected",
        [
            (Currency.ALL, 2999.0, 300.0),
            (Currency.ALL, 3000.0, 0.0),
            (Currency.EUR, 29.99, 3.0),
            (Currency.EUR, 30.0, 0.0),
        ],
    )
    def test_threshold_is_inclusive(self, currency, subtotal, expected):
        assert calculate_shipping(subtotal, True, default_shipping_rates(currency)) == expected
