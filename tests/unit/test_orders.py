"""
Unit tests for feedportal/orders.py -- status matching, month windows,
summaries, tons conversion, groupings and the order workflow.
"""
import os
import sys
import pytest
from datetime import datetime
from unittest.mock import patch

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))
os.environ.setdefault("DATABASE_URL", "")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

from feedportal.errors import StoreError, ValidationError
from feedportal.orders import (
    aggregate_orders,
    build_order,
    bulk_update_order_status,
    create_order,
    fetch_orders,
    get_order,
    group_orders,
    list_orders,
    month_window,
    monthly_performance,
    normalize_status,
    order_statistics,
    sales_by_taluka,
    summarize_orders,
    to_tons,
    top_customers,
    top_products,
    update_order_status,
    weekly_revenue,
)
from feedportal.store import table

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))
from __mocks__.fixtures import EMPLOYEE_PROFILE, make_order

pytestmark = pytest.mark.unit


# ── normalize_status ─────────────────────────────────────────────────

class TestNormalizeStatus:
    def test_lowercase_passthrough(self):
        assert normalize_status("pending") == "pending"

    def test_case_insensitive(self):
        assert normalize_status("Completed") == "completed"
        assert normalize_status("CANCELLED") == "cancelled"

    def test_spaces_and_dashes(self):
        assert normalize_status("Ready for Dispatch") == "ready_for_dispatch"
        assert normalize_status("ready-for-dispatch") == "ready_for_dispatch"

    def test_unknown_is_none(self):
        assert normalize_status("lost") is None

    def test_none_is_none(self):
        assert normalize_status(None) is None


# ── month_window ─────────────────────────────────────────────────────

class TestMonthWindow:
    def test_march(self):
        start, end = month_window(datetime(2024, 3, 17, 14, 5))
        assert start == datetime(2024, 3, 1, 0, 0, 0)
        assert end == datetime(2024, 3, 31, 23, 59, 59)

    def test_leap_february(self):
        _, end = month_window(datetime(2024, 2, 10))
        assert end.day == 29

    def test_plain_february(self):
        _, end = month_window(datetime(2023, 2, 10))
        assert end.day == 28

    def test_december(self):
        start, end = month_window(datetime(2024, 12, 31, 23, 0))
        assert start == datetime(2024, 12, 1)
        assert end == datetime(2024, 12, 31, 23, 59, 59)

    def test_defaults_to_current_month(self):
        start, end = month_window()
        today = datetime.now()
        assert start.year == today.year and start.month == today.month
        assert start.day == 1


# ── summarize_orders ─────────────────────────────────────────────────

class TestSummarizeOrders:
    def test_empty_is_all_zero(self):
        summary = summarize_orders([])
        assert summary.total == 0
        assert summary.total_price == 0
        assert summary.total_weight == 0
        assert all(count == 0 for count in summary.by_status.values())

    def test_counts_per_status(self):
        orders = [
            make_order(status="pending"),
            make_order(status="Pending"),
            make_order(status="completed"),
        ]
        summary = summarize_orders(orders)
        assert summary.total == 3
        assert summary.by_status["pending"] == 2
        assert summary.by_status["completed"] == 1

    def test_unknown_status_counts_toward_total_only(self):
        orders = [make_order(status="completed"), make_order(status="on_hold")]
        summary = summarize_orders(orders)
        assert summary.total == 2
        assert summary.recognized == 1

    def test_status_counts_never_exceed_total(self):
        orders = [make_order(status=s) for s in ("pending", "weird", "delivered", None, "packing")]
        summary = summarize_orders(orders)
        assert summary.recognized <= summary.total

    def test_status_counts_equal_total_when_all_known(self):
        orders = [make_order(status=s) for s in ("pending", "dispatched", "delivered")]
        summary = summarize_orders(orders)
        assert summary.recognized == summary.total

    def test_sums_price_and_weight(self):
        orders = [
            make_order(total_price=100000, total_weight=400),
            make_order(total_price=150000, total_weight=600),
        ]
        summary = summarize_orders(orders)
        assert summary.total_price == 250000
        assert summary.total_weight == 1000

    def test_missing_numbers_are_zero(self):
        orders = [make_order(total_price=None, total_weight=None), make_order(total_price="", total_weight="abc")]
        summary = summarize_orders(orders)
        assert summary.total == 2
        assert summary.total_price == 0
        assert summary.total_weight == 0

    def test_to_dict_flattens_statuses(self):
        data = summarize_orders([make_order(status="packing")]).to_dict()
        assert data["total"] == 1
        assert data["packing"] == 1
        assert data["cancelled"] == 0


# ── to_tons / sales_by_taluka ────────────────────────────────────────

class TestToTons:
    def test_kg(self):
        assert to_tons(2500, "kg") == pytest.approx(2.5)

    def test_tons(self):
        assert to_tons(3, "ton") == 3

    def test_grams(self):
        assert to_tons(500000, "g") == pytest.approx(0.5)

    def test_case_insensitive_unit(self):
        assert to_tons(1000, "KG") == pytest.approx(1.0)

    def test_unknown_unit_treated_as_kg(self):
        assert to_tons(1000, "sacks") == pytest.approx(1.0)

    def test_missing_unit_treated_as_kg(self):
        assert to_tons(1000, None) == pytest.approx(1.0)

    def test_missing_value_is_zero(self):
        assert to_tons(None, "kg") == 0


class TestSalesByTaluka:
    def test_groups_and_sorts_by_tons(self):
        orders = [
            make_order(taluka="Karveer", total_weight=2000, weight_unit="kg"),
            make_order(taluka="Panhala", total_weight=5, weight_unit="ton"),
            make_order(taluka="Karveer", total_weight=1000, weight_unit="kg"),
        ]
        result = sales_by_taluka(orders)
        assert result["total_tons"] == pytest.approx(8.0)
        assert [row["taluka"] for row in result["chart_data"]] == ["Panhala", "Karveer"]
        assert result["chart_data"][1]["tons"] == pytest.approx(3.0)
        assert result["chart_data"][1]["orders"] == 2

    def test_missing_taluka_grouped_as_unknown(self):
        result = sales_by_taluka([make_order(taluka=None)])
        assert result["chart_data"][0]["taluka"] == "Unknown"

    def test_empty(self):
        assert sales_by_taluka([]) == {"total_tons": 0, "chart_data": []}


# ── groupings ────────────────────────────────────────────────────────

class TestGroupings:
    def test_group_orders_by_district(self):
        orders = [
            make_order(district="Kolhapur", total_price=1000),
            make_order(district="Sangli", total_price=5000),
            make_order(district="Kolhapur", total_price=2000),
        ]
        groups = group_orders(orders, "district")
        assert groups[0]["district"] == "Sangli"
        assert groups[1]["orders"] == 2
        assert groups[1]["revenue"] == 3000

    def test_top_products_limited_to_three(self):
        orders = [make_order(feed_category=f"Feed {i}", total_price=i * 100) for i in range(1, 6)]
        products = top_products(orders)
        assert len(products) == 3
        assert products[0]["name"] == "Feed 5"

    def test_top_products_counts_bags(self):
        orders = [make_order(feed_category="Dugdh Raj", bags=4), make_order(feed_category="Dugdh Raj", bags=6)]
        assert top_products(orders)[0]["sales"] == 10

    def test_top_customers_premium_flag(self):
        orders = [
            make_order(customer_name="Big Dairy", total_price=120000),
            make_order(customer_name="Small Farm", total_price=9000),
        ]
        customers = top_customers(orders)
        assert customers[0] == {"name": "Big Dairy", "orders": 1, "value": 120000, "status": "Premium"}
        assert customers[1]["status"] == "Regular"

    def test_top_customers_limited_to_five(self):
        orders = [make_order(customer_name=f"C{i}") for i in range(8)]
        assert len(top_customers(orders)) == 5


class TestWeeklyRevenue:
    def test_buckets_by_weekday(self):
        reference = datetime(2024, 3, 17, 18, 0)  # Sunday
        orders = [
            make_order(created_at="2024-03-11T10:00:00", total_price=1000),  # Monday
            make_order(created_at="2024-03-17T09:00:00", total_price=500),   # Sunday
            make_order(created_at="2024-03-01T09:00:00", total_price=9999),  # outside window
        ]
        week = weekly_revenue(orders, reference)
        assert [d["day"] for d in week] == ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
        assert week[0]["revenue"] == 1000
        assert week[6]["revenue"] == 500
        assert sum(d["revenue"] for d in week) == 1500


class TestMonthlyPerformance:
    def test_twelve_months(self):
        assert len(monthly_performance([], 2024)) == 12

    def test_orders_and_completed_revenue(self):
        orders = [
            make_order(created_at="2024-03-02T10:00:00", status="completed", total_price=4000),
            make_order(created_at="2024-03-09T10:00:00", status="pending", total_price=7000),
            make_order(created_at="2023-03-09T10:00:00", status="completed", total_price=100),
        ]
        march = monthly_performance(orders, 2024)[2]
        assert march["month"] == "Mar"
        assert march["orders"] == 2
        assert march["revenue"] == 4000


# ── build_order ──────────────────────────────────────────────────────

class TestBuildOrder:
    def _form(self, **overrides):
        form = {"customer_name": "Shree Dairy", "customer_mobile": "9876543210",
                "feed_category": "Dugdh Raj", "bags": "5"}
        form.update(overrides)
        return form

    def test_computes_totals_from_catalogue(self):
        order = build_order(EMPLOYEE_PROFILE, self._form())
        assert order["total_weight"] == 150
        assert order["total_price"] == 3000
        assert order["weight_unit"] == "kg"

    def test_starts_pending(self):
        assert build_order(EMPLOYEE_PROFILE, self._form())["status"] == "pending"

    def test_copies_profile_location(self):
        order = build_order(EMPLOYEE_PROFILE, self._form())
        assert order["employee_id"] == EMPLOYEE_PROFILE["id"]
        assert order["district"] == "Kolhapur"
        assert order["branch"] == "Main"
        assert order["taluka"] == "Karveer"

    def test_taluka_from_form_wins(self):
        assert build_order(EMPLOYEE_PROFILE, self._form(taluka="Panhala"))["taluka"] == "Panhala"

    def test_missing_customer(self):
        with pytest.raises(ValidationError) as exc:
            build_order(EMPLOYEE_PROFILE, self._form(customer_name="  "))
        assert exc.value.field == "customer_name"

    def test_unknown_category(self):
        with pytest.raises(ValidationError):
            build_order(EMPLOYEE_PROFILE, self._form(feed_category="Chicken Feed"))

    def test_zero_bags(self):
        with pytest.raises(ValidationError):
            build_order(EMPLOYEE_PROFILE, self._form(bags="0"))

    def test_non_numeric_bags(self):
        with pytest.raises(ValidationError):
            build_order(EMPLOYEE_PROFILE, self._form(bags="ten"))

    def test_bad_mobile(self):
        with pytest.raises(ValidationError):
            build_order(EMPLOYEE_PROFILE, self._form(customer_mobile="12345"))


# ── Store-backed operations ──────────────────────────────────────────

def _form(**overrides):
    form = {"customer_name": "Shree Dairy", "feed_category": "Milk Power", "bags": "2"}
    form.update(overrides)
    return form


class TestOrderWorkflow:
    def test_create_and_fetch(self, sqlite_db):
        created = create_order(EMPLOYEE_PROFILE, _form())
        assert created["id"]
        assert get_order(created["id"])["total_price"] == 700

    def test_fetch_scoped_by_district(self, sqlite_db):
        create_order(EMPLOYEE_PROFILE, _form())
        create_order(dict(EMPLOYEE_PROFILE, district="Sangli"), _form())
        assert len(fetch_orders(district="Sangli")) == 1
        assert len(fetch_orders()) == 2

    def test_fetch_within_window(self, sqlite_db):
        create_order(EMPLOYEE_PROFILE, _form())
        window = (datetime(2000, 1, 1), datetime(2000, 1, 31, 23, 59, 59))
        assert fetch_orders(window=window) == []
        assert len(fetch_orders(window=month_window())) == 1

    def test_aggregate_empty_scope(self, sqlite_db):
        summary = aggregate_orders(employee_id="nobody")
        assert summary.total == 0 and summary.total_price == 0

    def test_update_status(self, sqlite_db):
        created = create_order(EMPLOYEE_PROFILE, _form())
        assert update_order_status(created["id"], "Dispatched") is True
        assert get_order(created["id"])["status"] == "dispatched"

    def test_any_transition_allowed(self, sqlite_db):
        created = create_order(EMPLOYEE_PROFILE, _form())
        update_order_status(created["id"], "completed")
        assert update_order_status(created["id"], "pending") is True

    def test_update_unknown_order(self, sqlite_db):
        assert update_order_status("missing", "packing") is False

    def test_update_rejects_unknown_status(self, sqlite_db):
        created = create_order(EMPLOYEE_PROFILE, _form())
        with pytest.raises(ValidationError):
            update_order_status(created["id"], "teleported")

    def test_bulk_update(self, sqlite_db):
        ids = [create_order(EMPLOYEE_PROFILE, _form())["id"] for _ in range(3)]
        assert bulk_update_order_status(ids[:2], "packing") == 2
        assert order_statistics().by_status["packing"] == 2

    def test_bulk_update_empty_list(self, sqlite_db):
        assert bulk_update_order_status([], "packing") == 0

    def test_list_orders_paged(self, sqlite_db):
        for _ in range(5):
            create_order(EMPLOYEE_PROFILE, _form())
        rows, total = list_orders(page=2, page_size=2)
        assert total == 5
        assert len(rows) == 2

    def test_list_orders_status_filter(self, sqlite_db):
        created = create_order(EMPLOYEE_PROFILE, _form())
        create_order(EMPLOYEE_PROFILE, _form())
        update_order_status(created["id"], "completed")
        rows, total = list_orders(status="completed")
        assert total == 1
        assert rows[0]["id"] == created["id"]

    def test_status_filters_ignore_stored_case(self, sqlite_db):
        created = create_order(EMPLOYEE_PROFILE, _form())
        table("orders").eq("id", created["id"]).update({"status": "Completed"})
        assert order_statistics().by_status["completed"] == 1
        assert [o["id"] for o in fetch_orders(status="completed")] == [created["id"]]
        rows, total = list_orders(status="completed")
        assert total == 1
        assert rows[0]["status"] == "Completed"

    @patch("feedportal.database.get_db")
    def test_store_failure_raises_store_error(self, mock_get_db):
        mock_get_db.side_effect = RuntimeError("connection refused")
        with pytest.raises(StoreError):
            fetch_orders()
