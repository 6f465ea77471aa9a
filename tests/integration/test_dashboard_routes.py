"""
Integration tests for dashboard routes -- role dashboards and the JSON feed.
"""
import os
import sys
import pytest
from unittest.mock import patch

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))
os.environ.setdefault("DATABASE_URL", "")
os.environ.setdefault("SECRET_KEY", "integration-test-secret-key")

from feedportal.errors import StoreError

pytestmark = pytest.mark.integration


class TestDashboardAccess:
    def test_requires_login(self, client):
        response = client.get("/dashboard/owner", follow_redirects=False)
        assert response.status_code == 302
        assert response.headers["location"] == "/login"

    def test_dashboard_home_redirects_to_role(self, client, login_as):
        cookies, _ = login_as("Marketing Manager")
        response = client.get("/dashboard", cookies=cookies, follow_redirects=False)
        assert response.headers["location"] == "/dashboard/marketing"

    def test_other_role_dashboard_redirects_to_own(self, client, login_as):
        cookies, _ = login_as("Employee")
        response = client.get("/dashboard/owner", cookies=cookies, follow_redirects=False)
        assert response.status_code == 302
        assert response.headers["location"] == "/dashboard/employee"

    @pytest.mark.parametrize("role,slug,heading", [
        ("Owner", "owner", "Business overview"),
        ("Marketing Manager", "marketing", "Kolhapur marketing"),
        ("Production Manager", "production", "Production"),
        ("Employee", "employee", "Welcome"),
        ("Marketing Executive", "employee", "Welcome"),
    ])
    def test_each_role_renders(self, client, login_as, role, slug, heading):
        cookies, _ = login_as(role)
        response = client.get(f"/dashboard/{slug}", cookies=cookies)
        assert response.status_code == 200
        assert heading in response.text

    def test_unauthorized_flash(self, client, login_as):
        cookies, _ = login_as("Employee")
        response = client.get("/dashboard/employee?error=unauthorized", cookies=cookies)
        assert "do not have access" in response.text


class TestDashboardErrors:
    def test_store_outage_renders_message(self, client, login_as):
        cookies, _ = login_as("Owner", district=None)
        with patch("feedportal.dashboards.owner_dashboard", side_effect=StoreError("db down")):
            response = client.get("/dashboard/owner", cookies=cookies)
        assert response.status_code == 200
        assert "could not be loaded" in response.text

    def test_bad_team_filter(self, client, login_as):
        cookies, _ = login_as("Marketing Manager")
        response = client.get("/dashboard/marketing?filter=stars", cookies=cookies)
        assert response.status_code == 200
        assert "Unknown team filter" in response.text


class TestDashboardApi:
    def test_requires_login(self, client):
        assert client.get("/api/dashboard").status_code == 401

    def test_employee_payload(self, client, login_as):
        cookies, _ = login_as("Employee")
        response = client.get("/api/dashboard", cookies=cookies)
        assert response.status_code == 200
        body = response.json()
        assert body["role"] == "Employee"
        assert body["dashboard"] == "employee"
        assert set(body["data"]["progress"]) >= {"revenue_progress", "order_progress", "overall_progress"}

    def test_production_payload_via_poller(self, client, login_as):
        cookies, _ = login_as("Production Manager", district=None)
        response = client.get("/api/dashboard", cookies=cookies)
        assert response.status_code == 200
        body = response.json()["data"]
        assert "inventory" in body
        assert "order_stats" in body

    def test_marketing_month_param(self, client, login_as):
        cookies, _ = login_as("Marketing Manager")
        response = client.get("/api/dashboard?month=2024-03", cookies=cookies)
        assert response.json()["data"]["month"] == "2024-03-01"

    def test_bad_month(self, client, login_as):
        cookies, _ = login_as("Marketing Manager")
        response = client.get("/api/dashboard?month=2024-13", cookies=cookies)
        assert response.status_code == 400

    def test_store_outage(self, client, login_as):
        cookies, _ = login_as("Employee")
        with patch("feedportal.dashboards.employee_dashboard", side_effect=StoreError("db down")):
            response = client.get("/api/dashboard", cookies=cookies)
        assert response.status_code == 503
