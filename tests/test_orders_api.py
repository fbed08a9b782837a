"""API tests for checkout and order reads."""

import re
from decimal import Decimal

import pytest

from storefront.core.exceptions import StorageError
from storefront.services.inventory import InventoryLedger
from tests.factories import checkout_payload


class TestCheckoutEndpoint:

    def test_successful_checkout(self, client, make_product, read_stock):
        make_product(name="Mug", price="10.00", stock=3, product_id=5)

        response = client.post("/api/orders", json=checkout_payload([(5, 2)]))

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Order created successfully"
        assert body["orderNumber"] == f"ORD-{body['orderId']:06d}"
        assert re.fullmatch(r"ORD-\d{6}", body["orderNumber"])
        assert read_stock(5) == 1

    def test_browser_payload_with_client_totals(self, client, make_product):
        product_id = make_product(price="10.00", stock=3)
        payload = checkout_payload([(product_id, 1)])
        payload["items"][0].update({"name": "Widget", "price": 1.0})
        payload.update({"subtotal": 1.0, "tax": 0.08, "total": 1.08})

        response = client.post("/api/orders", json=payload)
        order = client.get(f"/api/orders/{response.json()['orderId']}").json()["order"]

        assert Decimal(str(order["total"])) == Decimal("10.80")

    def test_insufficient_stock_is_409(self, client, make_product, read_stock):
        make_product(stock=2, product_id=7)

        response = client.post("/api/orders", json=checkout_payload([(7, 5)]))

        assert response.status_code == 409
        body = response.json()
        assert body["success"] is False
        assert body["category"] == "insufficient_stock"
        assert body["retriable"] is False
        assert read_stock(7) == 2
        assert client.get("/api/orders").json() == []

    def test_unknown_product_is_422(self, client):
        response = client.post("/api/orders", json=checkout_payload([(999, 1)]))

        assert response.status_code == 422
        assert response.json()["category"] == "validation"

    def test_empty_cart_is_422(self, client):
        response = client.post("/api/orders", json=checkout_payload([]))

        assert response.status_code == 422
        assert response.json()["error"] == "Cart is empty"

    def test_blank_customer_name_is_422(self, client, make_product):
        product_id = make_product()
        response = client.post("/api/orders", json=checkout_payload([(product_id, 1)], name=""))

        assert response.status_code == 422
        assert response.json()["category"] == "validation"

    def test_missing_customer_field_is_422(self, client, make_product):
        product_id = make_product()
        payload = checkout_payload([(product_id, 1)])
        del payload["customer"]["zipCode"]

        response = client.post("/api/orders", json=payload)

        assert response.status_code == 422
        body = response.json()
        assert body["category"] == "validation"
        assert "zipCode" in body["error"]

    @pytest.mark.parametrize("quantity", [10 ** 19, 10 ** 27])
    def test_huge_quantity_is_422(self, client, make_product, read_stock, quantity):
        product_id = make_product(stock=3)

        response = client.post("/api/orders", json=checkout_payload([(product_id, quantity)]))

        assert response.status_code == 422
        body = response.json()
        assert body["success"] is False
        assert body["category"] == "validation"
        assert read_stock(product_id) == 3
        assert client.get("/api/orders").json() == []

    def test_out_of_range_client_total_does_not_block_checkout(self, client, make_product, read_stock):
        product_id = make_product(price="10.00", stock=3)
        payload = checkout_payload([(product_id, 1)])
        payload["total"] = "1e999"

        response = client.post("/api/orders", json=payload)

        assert response.status_code == 201
        order = client.get(f"/api/orders/{response.json()['orderId']}").json()["order"]
        assert Decimal(str(order["total"])) == Decimal("10.80")
        assert read_stock(product_id) == 2

    def test_storage_failure_is_503_and_rolled_back(self, client, make_product, read_stock, monkeypatch):
        product_id = make_product(stock=4)

        def unavailable(self, product_id, quantity):
            raise StorageError("connection reset")

        monkeypatch.setattr(InventoryLedger, "conditional_decrement", unavailable)

        response = client.post("/api/orders", json=checkout_payload([(product_id, 1)]))

        assert response.status_code == 503
        assert response.json()["retriable"] is True
        assert read_stock(product_id) == 4
        assert client.get("/api/orders").json() == []

    def test_idempotency_key_replays_order(self, client, make_product, read_stock):
        product_id = make_product(stock=5)
        headers = {"Idempotency-Key": "checkout-7f3a"}

        first = client.post("/api/orders", json=checkout_payload([(product_id, 2)]), headers=headers)
        second = client.post("/api/orders", json=checkout_payload([(product_id, 2)]), headers=headers)

        assert first.status_code == 201
        assert second.status_code == 200
        assert second.json()["orderId"] == first.json()["orderId"]
        assert read_stock(product_id) == 3


class TestOrderReads:

    def test_get_order_returns_order_and_items(self, client, make_product):
        pen = make_product(name="Pen", price="2.50", stock=10)
        ink = make_product(name="Ink", price="6.00", stock=10)
        order_id = client.post("/api/orders", json=checkout_payload([(pen, 2), (ink, 1)])).json()["orderId"]

        response = client.get(f"/api/orders/{order_id}")

        assert response.status_code == 200
        body = response.json()
        assert body["order"]["id"] == order_id
        assert body["order"]["status"] == "pending"
        assert body["order"]["customer_zipcode"] == "N1 9GU"
        assert Decimal(str(body["order"]["subtotal"])) == Decimal("11.00")
        assert Decimal(str(body["order"]["tax"])) == Decimal("0.88")
        assert Decimal(str(body["order"]["total"])) == Decimal("11.88")
        assert [(i["product_name"], i["quantity"]) for i in body["items"]] == [("Pen", 2), ("Ink", 1)]

    def test_repeated_reads_are_identical(self, client, make_product, read_stock):
        product_id = make_product(stock=5)
        order_id = client.post("/api/orders", json=checkout_payload([(product_id, 1)])).json()["orderId"]

        first = client.get(f"/api/orders/{order_id}").json()
        second = client.get(f"/api/orders/{order_id}").json()

        assert first == second
        assert read_stock(product_id) == 4

    def test_missing_order_is_404(self, client):
        response = client.get("/api/orders/31337")

        assert response.status_code == 404
        assert response.json()["category"] == "not_found"

    def test_list_orders_newest_first(self, client, make_product):
        product_id = make_product(stock=10)
        ids = [
            client.post("/api/orders", json=checkout_payload([(product_id, 1)])).json()["orderId"]
            for _ in range(3)
        ]

        listed = [order["id"] for order in client.get("/api/orders").json()]

        assert listed == list(reversed(ids))


class TestOrderStatus:

    def test_update_status(self, client, make_product):
        product_id = make_product(stock=10)
        order_id = client.post("/api/orders", json=checkout_payload([(product_id, 1)])).json()["orderId"]

        response = client.patch(f"/api/orders/{order_id}/status", json={"status": "shipped"})

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Order status updated"}
        assert client.get(f"/api/orders/{order_id}").json()["order"]["status"] == "shipped"

    def test_unknown_status_is_rejected(self, client, make_product):
        product_id = make_product(stock=10)
        order_id = client.post("/api/orders", json=checkout_payload([(product_id, 1)])).json()["orderId"]

        response = client.patch(f"/api/orders/{order_id}/status", json={"status": "teleported"})

        assert response.status_code == 422

    @pytest.mark.parametrize("status", ["pending", "cancelled"])
    def test_missing_order_is_404(self, client, status):
        response = client.patch("/api/orders/404/status", json={"status": status})

        assert response.status_code == 404
