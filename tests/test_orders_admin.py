"""Tests for the order admin endpoints."""

import pytest

from services.order_service.service import normalize_search_text


@pytest.mark.parametrize(
    "value,expected",
    [
        ("São Paulo", "sao paulo"),
        ("Rua-das.Flores, 12!", "ruadasflores 12"),
        (12345, "12345"),
        (None, ""),
        ("", ""),
    ],
)
def test_normalize_search_text(value, expected):
    assert normalize_search_text(value) == expected


class TestListOrders:
    async def test_lists_orders_with_items(self, client, place_order):
        order_id = await place_order()

        response = await client.get("/api/orders")

        assert response.status_code == 200
        orders = response.json()["orders"]
        assert len(orders) == 1
        order = orders[0]
        assert order["id"] == order_id
        assert order["status"] == "pending_mp"
        assert order["total_amount"] == pytest.approx(99.8)
        assert order["order_items"][0]["product_name"] == "Shirt"
        assert order["order_items"][0]["unit_price"] == pytest.approx(49.9)

    async def test_empty(self, client):
        response = await client.get("/api/orders")
        assert response.json() == {"orders": []}


class TestUpdateStatus:
    async def test_marks_delivered(self, client, place_order, stored_orders):
        order_id = await place_order()

        response = await client.post(
            "/api/orders/update-status", json={"orderId": order_id, "newStatus": "delivered"}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["order"]["status"] == "delivered"
        assert (await stored_orders())[0].status == "delivered"

    async def test_unknown_order(self, client):
        response = await client.post(
            "/api/orders/update-status", json={"orderId": "missing", "newStatus": "delivered"}
        )
        assert response.status_code == 404
        assert response.json()["error"] == "Order not found."

    @pytest.mark.parametrize("payload", [{"orderId": "x"}, {"newStatus": "delivered"}, {}])
    async def test_requires_both_fields(self, client, payload):
        response = await client.post("/api/orders/update-status", json=payload)
        assert response.status_code == 400


class TestDeliveredOrders:
    async def _deliver(self, client, order_id):
        response = await client.post(
            "/api/orders/update-status", json={"orderId": order_id, "newStatus": "delivered"}
        )
        assert response.status_code == 200

    async def test_only_delivered(self, client, place_order):
        delivered_id = await place_order()
        await place_order()
        await self._deliver(client, delivered_id)

        response = await client.get("/api/delivered-orders")

        assert response.status_code == 200
        assert [order["id"] for order in response.json()] == [delivered_id]

    async def test_search_ignores_accents_and_case(self, client, place_order, customer_info):
        other_customer = {**customer_info, "name": "Carlos Pereira",
                          "address": {**customer_info["address"], "city": "Recife"}}
        sp_order = await place_order()
        recife_order = await place_order(customer=other_customer)
        await self._deliver(client, sp_order)
        await self._deliver(client, recife_order)

        response = await client.get("/api/delivered-orders", params={"q": "SAO PAULO"})
        assert [order["id"] for order in response.json()] == [sp_order]

        response = await client.get("/api/delivered-orders", params={"q": "carlos"})
        assert [order["id"] for order in response.json()] == [recife_order]

    async def test_search_matches_item_fields(self, client, place_order):
        order_id = await place_order()
        await self._deliver(client, order_id)

        response = await client.get("/api/delivered-orders", params={"q": "shirt-001"})
        assert [order["id"] for order in response.json()] == [order_id]

        response = await client.get("/api/delivered-orders", params={"q": "trousers"})
        assert response.json() == []
