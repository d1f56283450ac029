"""HTTP tests through the FastAPI app with an in-memory database."""

import pytest

from conftest import auth


@pytest.fixture
def shopper(make_user):
    return make_user(name="Shopper")


@pytest.fixture
def admin(make_user):
    return make_user(name="Admin", role="admin")


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200


class TestUsersApi:
    def test_signup_and_get_own_account(self, client):
        resp = client.post("/users/", json={"name": "Lia", "email": "lia@example.com"})
        assert resp.status_code == 201
        user = resp.json()
        assert user["role"] == "user"

        resp = client.get(f"/users/{user['id']}", headers={"X-User-Id": str(user["id"])})
        assert resp.json()["email"] == "lia@example.com"

    def test_signup_cannot_grant_admin(self, client):
        resp = client.post("/users/", json={"name": "Mal", "email": "mal@example.com", "role": "admin"})
        assert resp.status_code == 201
        user = resp.json()
        assert user["role"] == "user"

        resp = client.post("/products/", json=TestProductsApi.payload, headers={"X-User-Id": str(user["id"])})
        assert resp.status_code == 403

    def test_duplicate_signup_conflicts(self, client, admin):
        resp = client.post("/users/", json={"name": "Again", "email": "ADMIN@example.com"})

        assert resp.status_code == 409
        assert resp.json()["detail"]["code"] == "EMAIL_ALREADY_EXISTS"

    def test_register_is_admin_only(self, client, admin, shopper):
        body = {"name": "Ops", "email": "ops@example.com", "role": "admin"}

        assert client.post("/users/register", json=body).status_code == 401
        assert client.post("/users/register", json=body, headers=auth(shopper)).status_code == 403

        resp = client.post("/users/register", json=body, headers=auth(admin))
        assert resp.status_code == 201
        assert resp.json()["role"] == "admin"

    def test_invalid_email(self, client):
        resp = client.post("/users/", json={"name": "Lia", "email": "not-an-email"})
        assert resp.status_code == 422

    def test_missing_user(self, client, admin):
        resp = client.get("/users/999", headers=auth(admin))
        assert resp.status_code == 404
        assert resp.json()["detail"]["code"] == "USER_NOT_FOUND"

    def test_admin_manages_users(self, client, admin, shopper):
        resp = client.get("/users/", headers=auth(admin))
        assert [u["email"] for u in resp.json()] == ["admin@example.com", "shopper@example.com"]
        assert client.get("/users/", headers=auth(shopper)).status_code == 403

        resp = client.patch(f"/users/{shopper.id}", json={"role": "admin"}, headers=auth(shopper))
        assert resp.status_code == 403

        resp = client.patch(f"/users/{shopper.id}", json={"name": "Shop"}, headers=auth(shopper))
        assert resp.json()["name"] == "Shop"

        assert client.delete(f"/users/{shopper.id}", headers=auth(admin)).status_code == 204
        assert client.get(f"/users/{shopper.id}", headers=auth(admin)).status_code == 404

    def test_other_users_are_private(self, client, shopper, make_user):
        other = make_user(name="Other")

        assert client.get(f"/users/{other.id}", headers=auth(shopper)).status_code == 403
        assert client.delete(f"/users/{other.id}", headers=auth(shopper)).status_code == 403


class TestProductsApi:
    payload = {
        "title": "Desk",
        "description": "Standing desk",
        "code": "dsk-1",
        "price": "300.00",
        "stock": 3,
        "category": "furniture",
    }

    def test_admin_manages_catalog(self, client, admin):
        resp = client.post("/products/", json=self.payload, headers=auth(admin))
        assert resp.status_code == 201
        product = resp.json()
        assert product["code"] == "DSK-1"

        resp = client.post(f"/products/{product['id']}/restock", json={"quantity": 2}, headers=auth(admin))
        assert resp.json()["stock"] == 5

        resp = client.patch(f"/products/{product['id']}", json={"title": "Desk XL"}, headers=auth(admin))
        assert resp.json()["title"] == "Desk XL"

        resp = client.delete(f"/products/{product['id']}", headers=auth(admin))
        assert resp.status_code == 204
        assert client.get(f"/products/{product['id']}").status_code == 404

    def test_duplicate_code_conflicts(self, client, admin):
        client.post("/products/", json=self.payload, headers=auth(admin))

        resp = client.post("/products/", json=self.payload, headers=auth(admin))

        assert resp.status_code == 409
        assert resp.json()["detail"]["code"] == "DUPLICATE_PRODUCT_CODE"

    def test_shopper_cannot_write(self, client, shopper):
        resp = client.post("/products/", json=self.payload, headers=auth(shopper))
        assert resp.status_code == 403

    def test_listing_is_public(self, client, make_product):
        make_product(stock=0)
        make_product(stock=2)

        resp = client.get("/products/", params={"in_stock": True})

        assert resp.status_code == 200
        assert resp.json()["total"] == 1


class TestCartsApi:
    def test_requires_identity(self, client):
        assert client.get("/carts/").status_code == 401
        assert client.get("/carts/", headers={"X-User-Id": "999"}).status_code == 401

    def test_admin_is_not_a_shopper(self, client, admin):
        assert client.get("/carts/", headers=auth(admin)).status_code == 403

    def test_no_active_cart(self, client, shopper):
        resp = client.get("/carts/", headers=auth(shopper))
        assert resp.status_code == 404
        assert resp.json()["detail"]["code"] == "CART_NOT_FOUND"

    def test_cart_lifecycle(self, client, shopper, make_product):
        product = make_product(price="4.00", stock=10)
        headers = auth(shopper)

        resp = client.post("/carts/items", json={"product_id": product.id, "quantity": 3}, headers=headers)
        assert resp.status_code == 200
        assert resp.json()["total"] == "12.00"

        resp = client.put(f"/carts/items/{product.id}", json={"quantity": 5}, headers=headers)
        assert resp.json()["items"][0]["quantity"] == 5

        assert client.get(f"/products/{product.id}").json()["stock"] == 5

        resp = client.delete(f"/carts/items/{product.id}", headers=headers)
        assert resp.json()["items"] == []

        resp = client.delete("/carts/", headers=headers)
        assert resp.json()["status"] == "active"
        assert client.get(f"/products/{product.id}").json()["stock"] == 10

    def test_add_errors(self, client, shopper, make_product):
        product = make_product(stock=1)
        headers = auth(shopper)

        resp = client.post("/carts/items", json={"product_id": product.id, "quantity": 2}, headers=headers)
        assert resp.status_code == 400
        assert resp.json()["detail"]["code"] == "INSUFFICIENT_STOCK"

        resp = client.post("/carts/items", json={"product_id": 999, "quantity": 1}, headers=headers)
        assert resp.status_code == 404

        resp = client.post("/carts/items", json={"product_id": product.id, "quantity": 0}, headers=headers)
        assert resp.status_code == 422

    def test_cancel_and_history(self, client, shopper, make_product):
        product = make_product(stock=5)
        headers = auth(shopper)
        cart = client.post("/carts/items", json={"product_id": product.id}, headers=headers).json()

        resp = client.post(f"/carts/{cart['cart_id']}/cancel", headers=headers)
        assert resp.json()["status"] == "cancelled"

        history = client.get("/carts/history", headers=headers).json()
        assert [c["status"] for c in history] == ["cancelled"]

    def test_cannot_touch_someone_elses_cart(self, client, shopper, make_user, make_product):
        product = make_product(stock=5)
        cart = client.post("/carts/items", json={"product_id": product.id}, headers=auth(shopper)).json()
        other = make_user(name="Other")

        assert client.post(f"/carts/{cart['cart_id']}/cancel", headers=auth(other)).status_code == 403
        assert client.post(f"/carts/{cart['cart_id']}/purchase", headers=auth(other)).status_code == 403


class TestPurchaseApi:
    def test_full_purchase(self, client, shopper, make_product):
        product = make_product(price="10.00", stock=10)
        headers = auth(shopper)
        cart = client.post("/carts/items", json={"product_id": product.id, "quantity": 2}, headers=headers).json()

        resp = client.post(f"/carts/{cart['cart_id']}/purchase", headers=headers)

        assert resp.status_code == 201
        body = resp.json()
        assert body["partial"] is False
        assert body["cart_status"] == "completed"
        assert body["total_amount"] == "20.00"
        assert body["ticket"]["purchaser"] == "shopper@example.com"
        assert body["ticket"]["code"].startswith("TICKET-")

        tickets = client.get("/tickets/", headers=headers).json()
        assert [t["code"] for t in tickets] == [body["ticket"]["code"]]

        resp = client.get(f"/tickets/{body['ticket']['id']}", headers=headers)
        assert resp.status_code == 200

    def test_partial_purchase(self, client, shopper, admin, make_product, db):
        ok = make_product(price="10.00", stock=10)
        short = make_product(price="3.00", stock=4)
        headers = auth(shopper)
        client.post("/carts/items", json={"product_id": ok.id, "quantity": 2}, headers=headers)
        cart = client.post("/carts/items", json={"product_id": short.id, "quantity": 3}, headers=headers).json()

        # another sale leaves the product with less than the line asks for
        short.stock = 0
        db.commit()

        resp = client.post(f"/carts/{cart['cart_id']}/purchase", headers=headers)

        assert resp.status_code == 201
        body = resp.json()
        assert body["partial"] is True
        assert body["cart_status"] == "active"
        assert [p["product_id"] for p in body["products_processed"]] == [ok.id]
        assert body["products_not_processed"] == [
            {"product_id": short.id, "title": short.title, "requested_quantity": 3, "available_stock": 0}
        ]

    def test_nothing_purchasable(self, client, shopper, make_product, db):
        product = make_product(stock=5)
        headers = auth(shopper)
        cart = client.post("/carts/items", json={"product_id": product.id, "quantity": 4}, headers=headers).json()

        product.stock = 1
        db.commit()

        resp = client.post(f"/carts/{cart['cart_id']}/purchase", headers=headers)

        assert resp.status_code == 400
        detail = resp.json()["detail"]
        assert detail["code"] == "NOTHING_PURCHASABLE"
        assert detail["products_not_processed"][0]["requested_quantity"] == 4
        assert client.get("/tickets/", headers=headers).json() == []

    def test_empty_cart(self, client, shopper, make_product):
        product = make_product(stock=5)
        headers = auth(shopper)
        cart = client.post("/carts/items", json={"product_id": product.id}, headers=headers).json()
        client.delete(f"/carts/items/{product.id}", headers=headers)

        resp = client.post(f"/carts/{cart['cart_id']}/purchase", headers=headers)

        assert resp.status_code == 400
        assert resp.json()["detail"]["code"] == "EMPTY_CART"

    def test_ticket_of_another_user(self, client, shopper, make_user, make_product):
        product = make_product(stock=10)
        headers = auth(shopper)
        cart = client.post("/carts/items", json={"product_id": product.id}, headers=headers).json()
        ticket = client.post(f"/carts/{cart['cart_id']}/purchase", headers=headers).json()["ticket"]

        other = make_user(name="Other")
        assert client.get(f"/tickets/{ticket['id']}", headers=auth(other)).status_code == 403
        assert client.get("/tickets/9999", headers=headers).status_code == 404
