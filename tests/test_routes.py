from decimal import Decimal

import pytest

from app import create_app
from config import StorefrontConfig
from storefront.config import AppConfig

CHECKOUT_FORM = {
    "full_name": "Ada Lovelace",
    "email": "ada@example.com",
    "address_line1": "12 Analytical Row",
    "city": "London",
    "state": "LDN",
    "postal_code": "N1 9GU",
    "country": "UK",
    "card_number": "4242 4242 4242 4242",
    "card_expiry": "12/30",
    "card_cvc": "123",
}


@pytest.fixture
def app(tmp_path, session_factory):
    store = AppConfig(
        database_url="sqlite://",
        secret_key="test-secret",
        log_level="INFO",
        currency="USD",
        tax_rate=Decimal("0.10"),
        shipping_flat=Decimal("10.00"),
        enforce_stock=False,
    )
    config = StorefrontConfig(
        secret_key="test-secret",
        admin_username="admin",
        admin_password="s3cret",
        data_dir=tmp_path,
        store=store,
    )
    flask_app = create_app(config, session_factory=session_factory)
    flask_app.config["TESTING"] = True
    return flask_app


@pytest.fixture
def client(app):
    return app.test_client()


def _sign_up(client, email="ada@example.com"):
    resp = client.post("/auth/sign-up", json={"email": email, "password": "analytical", "full_name": "Ada"})
    assert resp.status_code == 201
    return resp.get_json()["user"]


def test_anonymous_cart_is_empty_and_cannot_be_changed(client, make_product):
    pid = make_product()
    resp = client.get("/api/cart")
    assert resp.get_json() == {"items": [], "subtotal": "0.00", "count": 0}

    resp = client.post("/api/cart", json={"product_id": pid})
    assert resp.status_code == 401
    assert resp.get_json()["error"] == "Unauthenticated"


def test_shopping_flow_end_to_end(client, make_product):
    shirt = make_product(name="Shirt", price="19.99")
    socks = make_product(name="Socks", price="5.00")
    _sign_up(client)

    client.post("/api/cart", json={"product_id": shirt, "quantity": 1})
    resp = client.post("/api/cart", json={"product_id": shirt, "quantity": 1})
    assert resp.status_code == 201
    client.post("/api/cart", json={"product_id": socks})

    cart = client.get("/api/cart").get_json()
    assert cart["count"] == 3
    assert cart["subtotal"] == "44.98"

    totals = client.get("/api/cart/totals").get_json()
    assert totals == {"subtotal": "44.98", "tax": "4.50", "shipping": "10.00", "total": "59.48", "currency": "USD"}

    resp = client.post("/api/checkout", json=CHECKOUT_FORM)
    assert resp.status_code == 201
    order = resp.get_json()
    assert order["total"] == "59.48"
    assert order["status"] == "processing"

    assert client.get("/api/cart").get_json()["items"] == []
    orders = client.get("/api/orders").get_json()["orders"]
    assert [o["order_number"] for o in orders] == [order["order_number"]]
    detail = client.get(f"/api/orders/{order['order_id']}").get_json()
    assert len(detail["items"]) == 2


def test_update_and_remove_cart_lines(client, make_product):
    pid = make_product(price="3.00")
    _sign_up(client)
    item_id = client.post("/api/cart", json={"product_id": pid}).get_json()["item_id"]

    resp = client.patch(f"/api/cart/{item_id}", json={"quantity": 4})
    assert resp.get_json()["cart"]["subtotal"] == "12.00"

    resp = client.patch(f"/api/cart/{item_id}", json={"quantity": 0})
    assert resp.get_json()["status"] == "removed"
    assert client.delete(f"/api/cart/{item_id}").status_code == 200
    assert client.patch("/api/cart/unknown", json={"quantity": 2}).status_code == 404


def test_checkout_errors_are_mapped(app, client, make_product):
    pid = make_product()
    _sign_up(client)
    assert client.post("/api/checkout", json=CHECKOUT_FORM).status_code == 400

    client.post("/api/cart", json={"product_id": pid})
    resp = client.post("/api/checkout", json={**CHECKOUT_FORM, "postal_code": ""})
    assert resp.status_code == 400
    assert "postal_code" in resp.get_json()["message"]

    def no_numbers(session):
        raise RuntimeError("numbering offline")

    app.extensions["storefront_components"]["orders"]._order_number_factory = no_numbers
    resp = client.post("/api/checkout", json=CHECKOUT_FORM)
    assert resp.status_code == 502
    assert resp.get_json()["stage"] == "order"
    assert client.get("/api/cart").get_json()["count"] == 1


def test_sign_in_and_out(client):
    _sign_up(client)
    client.post("/auth/sign-out")
    assert client.get("/auth/me").status_code == 401

    assert client.post("/auth/sign-in", json={"email": "ada@example.com", "password": "nope"}).status_code == 401
    resp = client.post("/auth/sign-in", json={"email": "ada@example.com", "password": "analytical"})
    assert resp.status_code == 200
    assert client.get("/auth/me").get_json()["user"]["email"] == "ada@example.com"


def test_catalog_endpoints(client, make_product, make_category):
    make_category("Lamps")
    make_product(name="Desk Lamp", price="12.5", is_featured=True)
    make_product(name="Rug")

    body = client.get("/api/products?q=lamp").get_json()
    assert [p["name"] for p in body["items"]] == ["Desk Lamp"]
    assert body["items"][0]["price"] == "12.50"
    assert client.get("/api/products/missing").status_code == 404
    assert [c["slug"] for c in client.get("/api/categories").get_json()["categories"]] == ["lamps"]


def test_admin_requires_login(client):
    assert client.get("/admin/products").status_code == 401
    assert client.post("/admin/login", json={"username": "admin", "password": "bad"}).status_code == 401
    assert client.post("/admin/login", json={"username": "admin", "password": "s3cret"}).status_code == 200

    resp = client.post("/admin/products", json={"name": "Desk Lamp", "price": "12.50"})
    assert resp.status_code == 201
    product = resp.get_json()
    assert client.get("/api/products/desk-lamp").get_json()["id"] == product["id"]

    resp = client.put(f"/admin/products/{product['id']}", json={"compare_at_price": "1.00"})
    assert resp.status_code == 400

    cat = client.post("/admin/categories", json={"name": "Home Office"}).get_json()
    assert cat["slug"] == "home-office"
    assert client.delete(f"/admin/products/{product['id']}").status_code == 200
    assert client.delete(f"/admin/products/{product['id']}").status_code == 404

    client.post("/admin/logout")
    assert client.get("/admin/categories").status_code == 401


def test_fractional_quantity_is_a_bad_request(client, make_product):
    pid = make_product()
    _sign_up(client)
    resp = client.post("/api/cart", json={"product_id": pid, "quantity": 2.9})
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "ValidationFailed"
    assert client.get("/api/cart").get_json()["count"] == 0


def test_null_fields_are_treated_as_missing(client):
    assert client.post("/auth/sign-up", json={"email": None, "password": None}).status_code == 400
    assert client.post("/admin/login", json={"username": None, "password": None}).status_code == 401
    assert client.post("/admin/login", json={"username": "admin", "password": "s3cret"}).status_code == 200

    resp = client.post("/admin/categories", json={"name": None})
    assert resp.status_code == 400
    assert client.get("/admin/categories").get_json()["categories"] == []

    _sign_up(client)
    resp = client.post("/api/cart", json={"product_id": None})
    assert resp.status_code == 400


def test_database_outage_returns_json_500(app, client, unavailable_session_factory):
    app.extensions["storefront_components"]["catalog"]._session_factory = unavailable_session_factory
    resp = client.get("/api/products")
    assert resp.status_code == 500
    body = resp.get_json()
    assert body["error"] == "PersistenceFailure"
    assert body["message"] == "product list failed"
