"""
Shared test fixtures -- record factories for unit and integration tests.
"""
import datetime


# ── Profile fixtures ─────────────────────────────────────────────────

def make_profile(
    id="P001",
    user_id="U001",
    email="employee@feedportal.test",
    full_name="Test Employee",
    role="Employee",
    district="Kolhapur",
    branch="Main",
    taluka="Karveer",
    status="Active",
    **kwargs,
):
    base = {
        "id": id,
        "user_id": user_id,
        "email": email,
        "full_name": full_name,
        "role": role,
        "district": district,
        "branch": branch,
        "taluka": taluka,
        "phone": None,
        "status": status,
        "joining_date": "2024-01-15",
        "created_at": "2024-01-15T09:00:00",
    }
    base.update(kwargs)
    return base


OWNER_PROFILE = make_profile(
    id="P-OWNER", user_id="U-OWNER", email="owner@feedportal.test",
    full_name="Business Owner", role="Owner", district=None,
)

MANAGER_PROFILE = make_profile(
    id="P-MGR", user_id="U-MGR", email="manager@feedportal.test",
    full_name="District Manager", role="Marketing Manager",
)

PRODUCTION_PROFILE = make_profile(
    id="P-PROD", user_id="U-PROD", email="production@feedportal.test",
    full_name="Plant Manager", role="Production Manager", district=None,
)

EMPLOYEE_PROFILE = make_profile()


# ── Order fixtures ───────────────────────────────────────────────────

def make_order(
    id="O001",
    employee_id="P001",
    customer_name="Shree Dairy Farm",
    feed_category="Milk Power",
    bags=10,
    total_weight=200,
    weight_unit="kg",
    total_price=3500,
    status="pending",
    district="Kolhapur",
    taluka="Karveer",
    created_at="2024-03-10T10:30:00",
    **kwargs,
):
    base = {
        "id": id,
        "employee_id": employee_id,
        "customer_name": customer_name,
        "customer_mobile": "9876543210",
        "customer_address": None,
        "feed_category": feed_category,
        "bags": bags,
        "weight_per_bag": 20,
        "weight_unit": weight_unit,
        "total_weight": total_weight,
        "price_per_bag": 350,
        "total_price": total_price,
        "status": status,
        "district": district,
        "taluka": taluka,
        "branch": "Main",
        "remarks": None,
        "created_at": created_at,
        "updated_at": created_at,
    }
    base.update(kwargs)
    return base


# ── Target fixtures ──────────────────────────────────────────────────

def make_target(
    employee_id="P001",
    target_month="2024-03-01",
    revenue_target=500000,
    order_target=50,
    **kwargs,
):
    base = {
        "id": "T001",
        "employee_id": employee_id,
        "target_month": target_month,
        "revenue_target": revenue_target,
        "order_target": order_target,
        "district": "Kolhapur",
        "remarks": None,
        "assigned_by": "P-MGR",
        "assigned_at": datetime.datetime(2024, 3, 1, 9, 0, 0),
    }
    base.update(kwargs)
    return base
