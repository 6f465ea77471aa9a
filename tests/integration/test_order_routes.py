"""
Integration tests for order routes -- order entry, scoped listing, status updates.
"""
import os
import sys
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))
os.environ.setdefault("DATABASE_URL", "")
os.environ.setdefault("SECRET_KEY", "integration-test-secret-key")

from feedportal.orders import get_order

pytestmark = pytest.mark.integration


def _order_form(customer="Route Test Dairy", bags="4", category="Milk Power"):
    return {"customer_name": customer, "feed_category": category, "bags": bags, "customer_mobile": "9876543210"}


def _create(client, cookies, **kwargs):
    response = client.post("/orders", data=_order_form(**kwargs), cookies=cookies, follow_redirects=False)
    assert response.status_code == 302
    assert response.headers["location"] == "/orders?created=1"


def _own_orders(profile_id):
    from feedportal.store import table
    return table("orders").select("*").eq("employee_id", profile_id).execute().data


class TestOrderEntry:
    def test_employee_creates_order(self, client, login_as):
        cookies, profile = login_as("Employee")
        _create(client, cookies)
        rows = _own_orders(profile["id"])
        assert len(rows) == 1
        assert rows[0]["total_price"] == 1400
        assert rows[0]["total_weight"] == 80
        assert rows[0]["status"] == "pending"
        assert rows[0]["district"] == "Kolhapur"

    def test_validation_error_rerenders(self, client, login_as):
        cookies, _ = login_as("Employee")
        response = client.post("/orders", data=_order_form(bags="0"), cookies=cookies)
        assert response.status_code == 400
        assert "Bags must be at least 1" in response.text

    def test_unknown_category(self, client, login_as):
        cookies, _ = login_as("Marketing Executive")
        response = client.post("/orders", data=_order_form(category="Gold Feed"), cookies=cookies)
        assert response.status_code == 400

    def test_owner_cannot_create(self, client, login_as):
        cookies, _ = login_as("Owner", district=None)
        response = client.post("/orders", data=_order_form(), cookies=cookies, follow_redirects=False)
        assert response.status_code == 302
        assert response.headers["location"] == "/dashboard/owner?error=unauthorized"

    def test_anonymous_redirected(self, client):
        response = client.post("/orders", data=_order_form(), follow_redirects=False)
        assert response.headers["location"] == "/login"


class TestOrderList:
    def test_employee_sees_only_own(self, client, login_as):
        mine, _ = login_as("Employee", full_name="List Owner")
        theirs, _ = login_as("Employee", full_name="Someone Else")
        _create(client, mine, customer="Mine Dairy")
        _create(client, theirs, customer="Their Dairy")
        response = client.get("/orders", cookies=mine)
        assert response.status_code == 200
        assert "Mine Dairy" in response.text
        assert "Their Dairy" not in response.text

    def test_manager_sees_district(self, client, login_as):
        employee, _ = login_as("Employee", district="Satara")
        outsider, _ = login_as("Employee", district="Solapur")
        manager, _ = login_as("Marketing Manager", district="Satara")
        _create(client, employee, customer="Satara Dairy")
        _create(client, outsider, customer="Solapur Dairy")
        response = client.get("/orders", cookies=manager)
        assert "Satara Dairy" in response.text
        assert "Solapur Dairy" not in response.text

    def test_bad_status_filter(self, client, login_as):
        cookies, _ = login_as("Employee")
        response = client.get("/orders?status=lost", cookies=cookies)
        assert response.status_code == 400

    def test_requires_login(self, client):
        response = client.get("/orders", follow_redirects=False)
        assert response.headers["location"] == "/login"


class TestStatusUpdates:
    def test_production_updates_status(self, client, login_as):
        employee, profile = login_as("Employee")
        production, _ = login_as("Production Manager", district=None)
        _create(client, employee)
        order_id = _own_orders(profile["id"])[0]["id"]

        response = client.post(f"/orders/{order_id}/status", data={"status": "Packing"}, cookies=production)
        assert response.status_code == 200
        assert response.json() == {"success": True, "status": "packing"}
        assert get_order(order_id)["status"] == "packing"

    def test_unknown_order(self, client, login_as):
        cookies, _ = login_as("Owner", district=None)
        response = client.post("/orders/missing/status", data={"status": "completed"}, cookies=cookies)
        assert response.status_code == 404

    def test_invalid_status(self, client, login_as):
        cookies, _ = login_as("Owner", district=None)
        response = client.post("/orders/missing/status", data={"status": "lost"}, cookies=cookies)
        assert response.status_code == 400

    def test_employee_forbidden(self, client, login_as):
        cookies, _ = login_as("Employee")
        response = client.post("/orders/x/status", data={"status": "completed"}, cookies=cookies)
        assert response.status_code == 403

    def test_anonymous(self, client):
        assert client.post("/orders/x/status", data={"status": "completed"}).status_code == 401

    def test_bulk_update(self, client, login_as):
        employee, profile = login_as("Employee")
        owner, _ = login_as("Owner", district=None)
        _create(client, employee, customer="Bulk One")
        _create(client, employee, customer="Bulk Two")
        ids = [o["id"] for o in _own_orders(profile["id"])]

        response = client.post(
            "/orders/bulk-status",
            data={"order_ids": ids, "status": "dispatched"},
            cookies=owner,
        )
        assert response.status_code == 200
        assert response.json() == {"success": True, "updated": 2}
        assert {get_order(i)["status"] for i in ids} == {"dispatched"}

    def test_bulk_update_without_ids(self, client, login_as):
        owner, _ = login_as("Owner", district=None)
        response = client.post("/orders/bulk-status", data={"status": "dispatched"}, cookies=owner)
        assert response.json() == {"success": True, "updated": 0}

    def test_bulk_update_invalid_status(self, client, login_as):
        owner, _ = login_as("Owner", district=None)
        response = client.post("/orders/bulk-status", data={"order_ids": ["x"], "status": "lost"}, cookies=owner)
        assert response.status_code == 400


class TestOrderStats:
    def test_employee_stats_are_own(self, client, login_as):
        cookies, _ = login_as("Employee")
        _create(client, cookies)
        _create(client, cookies)
        body = client.get("/orders/stats", cookies=cookies).json()
        assert body["total"] == 2
        assert body["pending"] == 2

    def test_requires_login(self, client):
        assert client.get("/orders/stats").status_code == 401
