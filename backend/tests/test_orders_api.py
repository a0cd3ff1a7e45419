"""Tests for the order endpoints."""

from decimal import Decimal


def _order_payload(recipe_id, quantity=10, **overrides):
    payload = {
        "customer_name": "Asha Rao",
        "customer_phone": "+919876543210",
        "delivery_address": "12 MG Road, Bengaluru",
        "items": [{"recipe_id": recipe_id, "quantity": quantity}],
    }
    payload.update(overrides)
    return payload


class TestCreateOrder:

    def test_create(self, client, auth_headers, test_recipe):
        response = client.post("/api/orders/", json=_order_payload(test_recipe.id, 2), headers=auth_headers)
        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "pending"
        assert data["order_number"].startswith("ORD-")
        assert len(data["order_number"]) == len("ORD-20260315-001")
        assert Decimal(data["total_amount"]) == Decimal("500")
        assert data["version"] == 1
        assert data["delivery_confirmation"] is None

    def test_empty_items(self, client, auth_headers, test_recipe):
        response = client.post("/api/orders/", json=_order_payload(test_recipe.id, items=[]), headers=auth_headers)
        assert response.status_code == 400

    def test_unknown_recipe(self, client, auth_headers, test_recipe):
        response = client.post("/api/orders/", json=_order_payload(9999), headers=auth_headers)
        assert response.status_code == 404

    def test_requires_auth(self, client, test_recipe):
        response = client.post("/api/orders/", json=_order_payload(test_recipe.id))
        assert response.status_code == 401


class TestReadOrders:

    def test_list_and_filter(self, client, auth_headers, test_order, make_order):
        other = make_order(phone="+919811111111")
        client.patch(f"/api/orders/{other.id}/status", json={"status": "cancelled"}, headers=auth_headers)

        response = client.get("/api/orders/", headers=auth_headers)
        assert response.status_code == 200
        assert {o["id"] for o in response.json()} == {test_order.id, other.id}

        response = client.get("/api/orders/?status=cancelled", headers=auth_headers)
        assert [o["id"] for o in response.json()] == [other.id]

    def test_get_not_found(self, client, auth_headers):
        response = client.get("/api/orders/9999", headers=auth_headers)
        assert response.status_code == 404
        assert response.json()["error"] == "NotFound"

    def test_filter_by_assigned_staff(self, client, auth_headers, test_staff, test_order, make_order):
        """A courier's view: only the orders handed to them."""
        mine = make_order(phone="+919811111111", assigned_staff_id=test_staff.id)

        response = client.get(f"/api/orders/?assigned_staff_id={test_staff.id}", headers=auth_headers)
        assert response.status_code == 200
        assert [o["id"] for o in response.json()] == [mine.id]

        response = client.get(
            f"/api/orders/?assigned_staff_id={test_staff.id}&status=cooking", headers=auth_headers
        )
        assert response.json() == []


class TestUpdateStatus:

    def test_advance(self, client, auth_headers, test_order):
        response = client.patch(
            f"/api/orders/{test_order.id}/status", json={"status": "cooking"}, headers=auth_headers
        )
        assert response.status_code == 200
        assert response.json()["status"] == "cooking"
        assert response.json()["version"] == 2

    def test_deliver_with_confirmation(self, client, auth_headers, test_staff, out_for_delivery_order):
        response = client.patch(
            f"/api/orders/{out_for_delivery_order.id}/status",
            json={
                "status": "delivered",
                "actor_id": test_staff.id,
                "delivery_data": {"quantity": 12, "notes": "extra given"},
            },
            headers=auth_headers,
        )
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "delivered"
        assert data["assigned_staff_id"] == test_staff.id
        assert data["delivery_confirmation"]["delivery_status"] == "completed"
        assert data["delivery_confirmation"]["ordered_quantity"] == 10
        assert data["delivery_confirmation"]["variance"] == 2

    def test_illegal_transition_is_conflict(self, client, auth_headers, test_order):
        response = client.patch(
            f"/api/orders/{test_order.id}/status", json={"status": "delivered"}, headers=auth_headers
        )
        assert response.status_code == 409
        body = response.json()
        assert body["error"] == "InvalidTransition"
        assert body["context"]["current"] == "pending"

    def test_stale_version_is_conflict(self, client, auth_headers, test_order):
        response = client.patch(
            f"/api/orders/{test_order.id}/status",
            json={"status": "cooking", "expected_version": 7},
            headers=auth_headers,
        )
        assert response.status_code == 409
        assert response.json()["error"] == "ConcurrentModification"

    def test_unknown_status_value(self, client, auth_headers, test_order):
        response = client.patch(
            f"/api/orders/{test_order.id}/status", json={"status": "eaten"}, headers=auth_headers
        )
        assert response.status_code == 400

    def test_negative_delivery_quantity(self, client, auth_headers, out_for_delivery_order):
        response = client.patch(
            f"/api/orders/{out_for_delivery_order.id}/status",
            json={"status": "delivered", "delivery_data": {"quantity": -1}},
            headers=auth_headers,
        )
        assert response.status_code == 400

    def test_unknown_order(self, client, auth_headers):
        response = client.patch("/api/orders/9999/status", json={"status": "cooking"}, headers=auth_headers)
        assert response.status_code == 404


class TestAssign:

    def test_assign(self, client, auth_headers, test_staff, test_order):
        response = client.patch(
            f"/api/orders/{test_order.id}/assign", json={"staff_id": test_staff.id}, headers=auth_headers
        )
        assert response.status_code == 200
        assert response.json()["assigned_staff_id"] == test_staff.id

    def test_unknown_staff(self, client, auth_headers, test_order):
        response = client.patch(
            f"/api/orders/{test_order.id}/assign", json={"staff_id": 9999}, headers=auth_headers
        )
        assert response.status_code == 404


class TestDeliveryEndpoints:

    def test_confirm_then_read(self, client, auth_headers, out_for_delivery_order):
        url = f"/api/orders/{out_for_delivery_order.id}/delivery"
        assert client.get(url, headers=auth_headers).status_code == 404

        response = client.post(url, json={"quantity": 9, "notes": "one short"}, headers=auth_headers)
        assert response.status_code == 201
        assert response.json()["delivery_status"] == "partial"

        response = client.get(url, headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["delivered_quantity"] == 9

        listing = client.get("/api/deliveries/", headers=auth_headers)
        assert [d["order_id"] for d in listing.json()] == [out_for_delivery_order.id]

    def test_duplicate_confirmation(self, client, auth_headers, out_for_delivery_order):
        url = f"/api/orders/{out_for_delivery_order.id}/delivery"
        client.post(url, json={"quantity": 10}, headers=auth_headers)
        response = client.post(url, json={"quantity": 10}, headers=auth_headers)
        assert response.status_code == 400

    def test_pending_order(self, client, auth_headers, test_order):
        response = client.post(f"/api/orders/{test_order.id}/delivery", json={"quantity": 10}, headers=auth_headers)
        assert response.status_code == 400


class TestEvents:

    def test_history(self, client, auth_headers, out_for_delivery_order):
        response = client.get(f"/api/orders/{out_for_delivery_order.id}/events", headers=auth_headers)
        assert response.status_code == 200
        events = response.json()
        assert [e["event_type"] for e in events] == [
            "order.created", "order.status_changed", "order.status_changed",
        ]
        assert events[-1]["payload"]["status"] == "out_for_delivery"
