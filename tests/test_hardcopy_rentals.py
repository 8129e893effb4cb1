"""Hardcopy rentals: pricing, issuance against stock, shipping and returns."""
from datetime import timedelta

import pytest
from sqlmodel import select

from bookstore.constants.currency import Currency
from bookstore.constants.rentals import BookCondition, LicenseStatus
from bookstore.errors import (
    DuplicateActiveRentalError,
    InsufficientInventoryError,
    NotFoundError,
    UnpaidRentalError,
)
from bookstore.models.access_log import AccessLogEntry
from bookstore.models.license import License
from bookstore.schemas.rental_schemas import ReturnAssessment
from bookstore.services import digital_rental_service
from bookstore.services import hardcopy_rental_service as hardcopy
from bookstore.services.license_common import list_active_licenses
from bookstore.utils.clock import utcnow
from tests.factories import BookFactory, persist, rental_purchase

ADDRESS = "Rruga e Kavajes 40, Tirana"


def _issue(session, user, book, rental_type="SHORT_TERM", currency="ALL"):
    item = rental_purchase(session, user, book, format="physical", currency=currency)
    return hardcopy.issue_hardcopy_license(session, user.id, book.id, item.id, rental_type, ADDRESS)


class TestRentalPricing:
    def test_all_prices(self):
        options = {o.rental_type: o for o in hardcopy.calculate_rental_pricing(1000.0, Currency.ALL)}

        assert options["SHORT_TERM"].rental_price == 150.0
        assert options["SHORT_TERM"].duration_days == 7
        assert options["MEDIUM_TERM"].rental_price == 250.0
        assert options["LONG_TERM"].rental_price == 400.0
        assert options["EXTENDED_TERM"].rental_price == 600.0
        assert options["EXTENDED_TERM"].duration_days == 60
        assert all(o.guarantee_amount == 800.0 for o in options.values())

    def test_eur_prices_keep_cents(self):
        options = {o.rental_type: o for o in hardcopy.calculate_rental_pricing(12.99, Currency.EUR)}
        assert options["SHORT_TERM"].rental_price == pytest.approx(1.95)
        assert options["SHORT_TERM"].guarantee_amount == pytest.approx(10.39)


class TestIssueHardcopyLicense:
    def test_issue_reserves_a_copy(self, session, user, book):
        license = _issue(session, user, book, rental_type="MEDIUM_TERM")

        session.refresh(book)
        assert book.inventory == 4
        assert license.kind == "physical"
        assert license.rental_price == 250.0
        assert license.end_date - license.start_date == timedelta(days=14)
        assert license.physical.guarantee_amount == 800.0
        assert license.physical.shipping_address == ADDRESS
        assert license.physical.initial_condition == BookCondition.EXCELLENT.value

        events = session.exec(
            select(AccessLogEntry.event_type).where(AccessLogEntry.license_id == license.id)
        ).all()
        assert sorted(events) == ["GUARANTEE_CHARGED", "RENTAL_CREATED"]

    def test_out_of_stock_rejected(self, session, user):
        book = persist(session, BookFactory.create(inventory=0))
        with pytest.raises(InsufficientInventoryError):
            _issue(session, user, book)

    def test_one_active_rental_per_book(self, session, user, ebook):
        _issue(session, user, ebook)

        with pytest.raises(DuplicateActiveRentalError):
            _issue(session, user, ebook)

        session.refresh(ebook)
        assert ebook.inventory == 4

    def test_active_digital_rental_blocks_hardcopy(self, session, user, ebook):
        item = rental_purchase(session, user, ebook)
        existing = digital_rental_service.issue_digital_license(session, user.id, ebook.id, item.id, "SINGLE_READ")

        with pytest.raises(DuplicateActiveRentalError) as exc_info:
            _issue(session, user, ebook)

        assert exc_info.value.license_id == existing.id
        session.refresh(ebook)
        assert ebook.inventory == 5

    def test_digital_rental_line_cannot_be_redeemed_for_hardcopy(self, session, user, ebook):
        item = rental_purchase(session, user, ebook, format="digital", price=100.0)

        with pytest.raises(UnpaidRentalError):
            hardcopy.issue_hardcopy_license(session, user.id, ebook.id, item.id, "EXTENDED_TERM", ADDRESS)

        session.refresh(ebook)
        assert ebook.inventory == 5
        assert session.exec(select(License)).all() == []

    def test_active_license_index_rejects_second_hardcopy(self, session, user, book, monkeypatch):
        first = _issue(session, user, book)
        first_id = first.id
        monkeypatch.setattr(hardcopy, "ensure_no_active_license", lambda *args: None)

        with pytest.raises(DuplicateActiveRentalError) as exc_info:
            _issue(session, user, book)

        assert exc_info.value.license_id == first_id
        assert len(session.exec(select(License)).all()) == 1
        session.refresh(book)
        assert book.inventory == 4

    def test_overdue_rental_stays_active(self, session, user, book):
        license = _issue(session, user, book)
        license.end_date = utcnow() - timedelta(days=3)
        session.add(license)
        session.commit()

        active = list_active_licenses(session, user.id)
        assert [lic.id for lic in active] == [license.id]
        assert hardcopy.get_hardcopy_license(session, license.id, user.id).is_overdue is True

        with pytest.raises(DuplicateActiveRentalError):
            _issue(session, user, book)


class TestShippingAndReturn:
    def test_mark_shipped(self, session, user, book):
        license = _issue(session, user, book)
        shipped = hardcopy.mark_hardcopy_shipped(session, license.id, "AL123456789")
        assert shipped.physical.tracking_number == "AL123456789"

    def test_on_time_excellent_return_refunds_everything(self, session, user, book):
        license = _issue(session, user, book)

        result = hardcopy.return_hardcopy_license(
            session, license.id, ReturnAssessment(return_condition=BookCondition.EXCELLENT)
        )

        assert result.is_late is False
        assert result.late_fee == 0.0
        assert result.damage_deduction == 0.0
        assert result.refund_amount == 800.0

        session.refresh(book)
        session.refresh(license)
        assert book.inventory == 5
        assert license.status == LicenseStatus.RETURNED.value
        assert license.is_active is False
        assert license.physical.guarantee_refunded is True

    def test_late_worn_return_deducts_damage_and_late_fee(self, session, user, book):
        license = _issue(session, user, book)
        # 2 days and an hour late: billed as 3 days
        license.end_date = utcnow() - timedelta(days=2, hours=1)
        session.add(license)
        session.commit()

        result = hardcopy.return_hardcopy_license(
            session,
            license.id,
            ReturnAssessment(return_condition=BookCondition.GOOD, condition_notes="creased spine"),
        )

        assert result.is_late is True
        assert result.damage_deduction == pytest.approx(80.0)
        assert result.late_fee == pytest.approx(45.0)
        assert result.refund_amount == pytest.approx(675.0)

        events = session.exec(
            select(AccessLogEntry.event_type).where(AccessLogEntry.license_id == license.id)
        ).all()
        assert "LATE_FEE_CHARGED" in events
        assert "DAMAGE_ASSESSED" in events
        assert "RENTAL_COMPLETED" in events

    def test_refund_never_negative(self, session, user, book):
        license = _issue(session, user, book)
        license.end_date = utcnow() - timedelta(days=60)
        session.add(license)
        session.commit()

        result = hardcopy.return_hardcopy_license(
            session, license.id, ReturnAssessment(return_condition=BookCondition.DAMAGED)
        )
        assert result.refund_amount == 0.0
        assert result.is_damaged is True

    def test_cannot_return_twice(self, session, user, book):
        license = _issue(session, user, book)
        assessment = ReturnAssessment(return_condition=BookCondition.EXCELLENT)
        hardcopy.return_hardcopy_license(session, license.id, assessment)

        with pytest.raises(NotFoundError):
            hardcopy.return_hardcopy_license(session, license.id, assessment)

        session.refresh(book)
        assert book.inventory == 5

    def test_new_rental_allowed_after_return(self, session, user, book):
        first = _issue(session, user, book)
        hardcopy.return_hardcopy_license(
            session, first.id, ReturnAssessment(return_condition=BookCondition.EXCELLENT)
        )

        second = _issue(session, user, book)
        assert second.is_active is True
