import pytest
from sqlmodel import select

from bookstore.constants.currency import BookFormat, Currency
from bookstore.errors import InsufficientInventoryError, NoDigitalVersionError, NotFoundError
from bookstore.models.cart import CartItem
from bookstore.models.store_setting import StoreSetting
from bookstore.schemas.cart_schemas import CartAddRequest
from bookstore.services import cart_service
from tests.factories import BookFactory, persist


def _add(session, user, book, **kwargs):
    return cart_service.add_to_cart(session, user.id, CartAddRequest(book_id=book.id, **kwargs))


class TestAddToCart:
    def test_adds_new_line(self, session, user, book):
        item = _add(session, user, book, quantity=2)

        assert item.id is not None
        assert item.quantity == 2
        assert item.format == "physical"
        assert item.currency == "ALL"

    def test_readding_merges_quantity_and_takes_latest_flags(self, session, user, book):
        _add(session, user, book, quantity=1)
        item = _add(session, user, book, quantity=2, currency=Currency.EUR, is_rental=True)

        lines = session.exec(select(CartItem).where(CartItem.user_id == user.id)).all()
        assert len(lines) == 1
        assert item.quantity == 3
        assert item.currency == "EUR"
        assert item.is_rental is True

    def test_formats_are_separate_lines(self, session, user, ebook):
        _add(session, user, ebook, format=BookFormat.PHYSICAL)
        _add(session, user, ebook, format=BookFormat.DIGITAL)

        assert len(cart_service.get_current_cart_lines(session, user.id)) == 2

    def test_rejects_more_than_inventory(self, session, user):
        book = persist(session, BookFactory.create(inventory=1))
        with pytest.raises(InsufficientInventoryError):
            _add(session, user, book, quantity=2)

    def test_rejects_digital_when_no_digital_version(self, session, user, book):
        with pytest.raises(NoDigitalVersionError):
            _add(session, user, book, format=BookFormat.DIGITAL)

    def test_rejects_inactive_book(self, session, user):
        book = persist(session, BookFactory.create(active=False))
        with pytest.raises(NotFoundError):
            _add(session, user, book)


class TestUpdateAndRemove:
    def test_update_quantity(self, session, user, book):
        item = _add(session, user, book)
        updated = cart_service.update_cart_item(session, user.id, item.id, 4)
        assert updated.quantity == 4

    def test_zero_quantity_removes_line(self, session, user, book):
        item = _add(session, user, book)
        assert cart_service.update_cart_item(session, user.id, item.id, 0) is None
        assert cart_service.get_current_cart_lines(session, user.id) == []

    def test_cannot_touch_someone_elses_line(self, session, user, admin, book):
        item = _add(session, user, book)
        with pytest.raises(NotFoundError):
            cart_service.remove_from_cart(session, admin.id, item.id)

    def test_clear_cart_returns_removed_count(self, session, user, book, ebook):
        _add(session, user, book)
        _add(session, user, ebook)
        assert cart_service.clear_cart(session, user.id) == 2
        assert cart_service.get_current_cart_lines(session, user.id) == []


class TestCartSummary:
    def test_summary_matches_checkout_pricing(self, session, user, book):
        _add(session, user, book, quantity=2)
        summary = cart_service.get_cart_summary(session, user.id)

        assert summary.currency == Currency.ALL
        assert summary.subtotal == 2000.0
        assert summary.shipping_cost == 300.0
        assert summary.total_amount == 2300.0
        assert summary.total_items == 2
        assert summary.has_physical_items is True
        assert summary.items[0].line_total == 2000.0

    def test_summary_uses_stored_shipping_settings(self, session, user, book):
        persist(session, StoreSetting(key="shipping_cost_all", value="450"))
        _add(session, user, book)

        summary = cart_service.get_cart_summary(session, user.id, Currency.ALL)
        assert summary.shipping_cost == 450.0

    def test_empty_cart_summary(self, session, user):
        summary = cart_service.get_cart_summary(session, user.id)
        assert summary.items == []
        assert summary.total_amount == 0.0
