"""HTTP surface: routing, auth, and mapping of domain errors to status codes."""
from sqlmodel import select

from bookstore.models.order import Order
from bookstore.services import digital_rental_service
from tests.conftest import auth_headers
from tests.factories import CartItemFactory, OrderFactory, persist, rental_purchase

CHECKOUT_BODY = {
    "shipping_name": "Test Reader",
    "shipping_email": "reader@bookshop.al",
    "shipping_phone": "+355 69 123 4567",
    "shipping_address": "Rruga e Durresit 12",
    "shipping_city": "Tirana",
    "shipping_zip": "1001",
    "shipping_country": "Albania",
    "payment_method": "PAYPAL",
    "currency": "ALL",
}

WEBHOOK_HEADERS = {"X-Webhook-Secret": "whsec-test"}


def test_health(client):
    response = client.get("/health/check")
    assert response.status_code == 200
    assert response.json()["database"] == "ok"


def test_requires_authentication(client):
    assert client.get("/cart/").status_code == 401


class TestCartAndCheckout:
    def test_add_view_and_place_order(self, client, user_headers, book):
        response = client.post("/cart/add", json={"book_id": book.id, "quantity": 2}, headers=user_headers)
        assert response.status_code == 200

        cart = client.get("/cart/", headers=user_headers).json()
        assert cart["total_amount"] == 2300.0

        response = client.post("/checkout/place-order", json=CHECKOUT_BODY, headers=user_headers)
        assert response.status_code == 201
        order = response.json()
        assert order["status"] == "PENDING"
        assert order["order_number"].startswith("BL")
        assert order["total_amount"] == 2300.0
        assert order["items"][0]["line_total"] == 2000.0

        assert client.get("/cart/", headers=user_headers).json()["items"] == []

    def test_empty_cart_is_bad_request(self, client, user_headers):
        response = client.post("/checkout/place-order", json=CHECKOUT_BODY, headers=user_headers)
        assert response.status_code == 400
        assert response.json()["detail"] == "Cart is empty"

    def test_invalid_shipping_details_rejected(self, client, session, user, user_headers, book):
        persist(session, CartItemFactory.create(user, book))
        body = {**CHECKOUT_BODY, "shipping_email": "not-an-email"}
        response = client.post("/checkout/place-order", json=body, headers=user_headers)
        assert response.status_code == 422

    def test_insufficient_inventory_is_conflict(self, client, user_headers, book):
        response = client.post("/cart/add", json={"book_id": book.id, "quantity": 50}, headers=user_headers)
        assert response.status_code == 409


class TestOrders:
    def test_list_and_get_own_orders(self, client, session, user, admin, user_headers):
        mine = persist(session, OrderFactory.create(user))
        theirs = persist(session, OrderFactory.create(admin))

        listing = client.get("/orders", headers=user_headers).json()
        assert listing["total_items"] == 1
        assert listing["results"][0]["id"] == mine.id

        assert client.get(f"/orders/{mine.id}", headers=user_headers).status_code == 200
        assert client.get(f"/orders/{theirs.id}", headers=user_headers).status_code == 404

    def test_payment_callback_requires_secret(self, client, session, user):
        order = persist(session, OrderFactory.create(user))
        body = {"payment_reference": "PAY-1", "new_status": "PAID"}

        response = client.post(f"/orders/{order.id}/payment-callback", json=body, headers={"X-Webhook-Secret": "wrong"})
        assert response.status_code == 401

    def test_payment_callback_is_idempotent(self, client, session, user):
        order = persist(session, OrderFactory.create(user))
        body = {"payment_reference": "PAY-1", "new_status": "PAID"}

        first = client.post(f"/orders/{order.id}/payment-callback", json=body, headers=WEBHOOK_HEADERS)
        second = client.post(f"/orders/{order.id}/payment-callback", json=body, headers=WEBHOOK_HEADERS)

        assert first.status_code == 200
        assert second.status_code == 200
        assert second.json()["status"] == "PAID"
        assert second.json()["payment_reference"] == "PAY-1"

    def test_admin_status_update(self, client, session, user, user_headers, admin_headers):
        order = persist(session, OrderFactory.create(user, status="PAID"))
        url = f"/admin/orders/{order.id}/status"

        assert client.patch(url, json={"status": "PROCESSING"}, headers=user_headers).status_code == 403

        response = client.patch(url, json={"status": "PROCESSING"}, headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["status"] == "PROCESSING"

        response = client.patch(url, json={"status": "PENDING"}, headers=admin_headers)
        assert response.status_code == 409

        session.expire_all()
        assert session.exec(select(Order.status).where(Order.id == order.id)).one() == "PROCESSING"


class TestRentals:
    def test_rent_and_read_digital(self, client, session, user, user_headers, ebook):
        item = rental_purchase(session, user, ebook)

        response = client.post(
            f"/rentals/books/{ebook.id}/digital",
            json={"order_item_id": item.id, "rental_type": "TIME_LIMITED"},
            headers=user_headers,
        )
        assert response.status_code == 201
        rental = response.json()
        assert rental["has_access"] is True

        read_url = f"/rentals/{rental['license_id']}/read?book_id={ebook.id}"
        response = client.post(read_url, headers={**user_headers, "X-Rental-Token": rental["security_token"]})
        assert response.status_code == 200
        assert response.json()["access_count"] == 1

        assert client.post(read_url, headers=user_headers).status_code == 401
        response = client.post(read_url, headers={**user_headers, "X-Rental-Token": "f" * 64})
        assert response.status_code == 403

        logs = client.get(f"/rentals/{rental['license_id']}/logs", headers=user_headers).json()
        assert {entry["event_type"] for entry in logs} == {"RENTAL_CREATED", "RENTAL_READ"}

    def test_duplicate_rental_reports_existing_license(self, client, session, user, user_headers, ebook):
        first_item = rental_purchase(session, user, ebook)
        existing = digital_rental_service.issue_digital_license(session, user.id, ebook.id, first_item.id, "SINGLE_READ")
        item = rental_purchase(session, user, ebook)

        response = client.post(
            f"/rentals/books/{ebook.id}/digital",
            json={"order_item_id": item.id},
            headers=user_headers,
        )
        assert response.status_code == 409
        assert response.json()["license_id"] == existing.id

    def test_unpaid_rental_is_payment_required(self, client, session, user, user_headers, ebook):
        order = persist(session, OrderFactory.create(user))
        response = client.post(
            f"/rentals/books/{ebook.id}/digital",
            json={"order_item_id": order.id + 1000},
            headers=user_headers,
        )
        assert response.status_code == 402

    def test_hardcopy_rent_ship_and_return(self, client, session, user, admin, user_headers, admin_headers, book):
        pricing = client.get(f"/rentals/books/{book.id}/hardcopy-pricing").json()
        assert {p["rental_type"] for p in pricing} == {"SHORT_TERM", "MEDIUM_TERM", "LONG_TERM", "EXTENDED_TERM"}

        item = rental_purchase(session, user, book, format="physical")
        response = client.post(
            f"/rentals/books/{book.id}/hardcopy",
            json={"order_item_id": item.id, "shipping_address": "Rruga e Kavajes 40, Tirana"},
            headers=user_headers,
        )
        assert response.status_code == 201
        license_id = response.json()["license_id"]

        response = client.post(
            f"/admin/hardcopy-rentals/{license_id}/ship",
            json={"tracking_number": "AL123456789"},
            headers=admin_headers,
        )
        assert response.json()["tracking_number"] == "AL123456789"

        response = client.post(
            f"/admin/hardcopy-rentals/{license_id}/return",
            json={"return_condition": "VERY_GOOD"},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.json()["refund_amount"] == 760.0

        active = client.get("/rentals/active", headers=user_headers).json()
        assert active["licenses"] == []
