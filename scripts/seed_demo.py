"""
Seed demo data for the Feed Portal.

Creates one account per role, a small district team, a few months of
orders, monthly targets, inventory and raw-material usage.
Every account uses the password Demo@123.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import random
from datetime import timedelta

from feedportal.auth import create_account, get_account_by_email
from feedportal.config import FEED_CATEGORIES, ORDER_STATUSES
from feedportal.database import init_database
from feedportal.inventory import add_product
from feedportal.orders import build_order
from feedportal.profiles import create_profile, get_profile_by_email
from feedportal.roles import Role
from feedportal.store import table
from feedportal.targets import ALL_SCOPE, upsert_target
from feedportal.utils import now

DEMO_PASSWORD = "Demo@123"

DISTRICT = "Kolhapur"
TALUKAS = ["Karveer", "Panhala", "Hatkanangale", "Shirol", "Kagal"]

USERS = [
    ("owner@feedportal.local", "Suresh Patil", Role.OWNER, None),
    ("marketing@feedportal.local", "Anita Jadhav", Role.MARKETING_MANAGER, DISTRICT),
    ("production@feedportal.local", "Ramesh Kulkarni", Role.PRODUCTION_MANAGER, None),
    ("employee1@feedportal.local", "Vikas Shinde", Role.EMPLOYEE, DISTRICT),
    ("employee2@feedportal.local", "Pooja Pawar", Role.EMPLOYEE, DISTRICT),
    ("executive@feedportal.local", "Mahesh Desai", Role.MARKETING_EXECUTIVE, DISTRICT),
]

CUSTOMERS = [
    "Shree Dairy Farm", "Ganesh Dudh Sangh", "Laxmi Goshala", "Om Sai Dairy",
    "Krishna Cattle Farm", "Warana Milk Centre", "Jay Malhar Dairy",
]

PRODUCTS = [
    ("Milk Power", 120, 20),
    ("Dugdh Sarita", 8, 10),
    ("Dugdh Raj", 45, None),
    ("Diamond Balanced Animal Feed", 5, 10),
]

MATERIALS = [
    ("Maize", 2500, 42000),
    ("Cotton seed cake", 1800, 51000),
    ("Soybean meal", 900, 38000),
    ("Mineral mixture", 150, 12000),
]


def seed_people():
    profiles = {}
    for email, name, role, district in USERS:
        account = get_account_by_email(email)
        if not account:
            account = create_account(email, DEMO_PASSWORD, name)
            print(f"  account  {email}")
        profile = get_profile_by_email(email)
        if not profile:
            profile = create_profile(email, name, role, user_id=account['id'], district=district)
            print(f"  profile  {email} ({role.value})")
        profiles[email] = profile
    return profiles


def seed_orders(profiles):
    takers = [p for p in profiles.values() if p['role'] in (Role.EMPLOYEE.value, Role.MARKETING_EXECUTIVE.value)]
    today = now()
    rows = []
    for _ in range(60):
        profile = dict(random.choice(takers), taluka=random.choice(TALUKAS))
        order = build_order(profile, {
            'customer_name': random.choice(CUSTOMERS),
            'customer_mobile': f"98{random.randint(10000000, 99999999)}",
            'feed_category': random.choice(list(FEED_CATEGORIES)),
            'bags': random.choice([2, 5, 10, 20, 40]),
        })
        created = today - timedelta(days=random.randint(0, 120), hours=random.randint(0, 10))
        order['created_at'] = order['updated_at'] = created
        order['status'] = random.choice(ORDER_STATUSES)
        rows.append(order)
    table('orders').insert(rows)
    print(f"  orders   {len(rows)}")


def seed_targets(profiles):
    owner = profiles["owner@feedportal.local"]
    manager = profiles["marketing@feedportal.local"]
    month = now()
    upsert_target(ALL_SCOPE, month, 2500000, 200, assigned_by=owner['id'])
    upsert_target(manager['id'], month, 1500000, 120, assigned_by=owner['id'], district=DISTRICT)
    for email in ("employee1@feedportal.local", "employee2@feedportal.local", "executive@feedportal.local"):
        upsert_target(profiles[email]['id'], month, 400000, 30, assigned_by=manager['id'], district=DISTRICT)
    print("  targets  5")


def seed_production():
    if table('production_products').select('id', count=True, head=True).execute().count:
        return
    for name, bags, reorder_level in PRODUCTS:
        add_product({'name': name, 'category': 'Cattle Feed', 'bags': bags, 'min_bags_stock': reorder_level})
    for material, quantity, cost in MATERIALS:
        table('raw_material_usage').insert({
            'material_name': material,
            'quantity': quantity,
            'total_cost': cost,
            'usage_date': now() - timedelta(days=random.randint(0, 20)),
        })
    print(f"  products {len(PRODUCTS)}, materials {len(MATERIALS)}")


if __name__ == "__main__":
    print("Seeding Feed Portal demo data...")
    init_database()
    profiles = seed_people()
    seed_orders(profiles)
    seed_targets(profiles)
    seed_production()
    print("=" * 50)
    print(f"Done. Sign in with any demo email and password {DEMO_PASSWORD}")
    print("=" * 50)
