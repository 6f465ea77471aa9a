"""
Per-role dashboard data.

Each builder returns a plain dict that the dashboard templates render and
/api/dashboard serialises. Builders only read; they combine the order
aggregator, the target tracker and the production inventory.
"""
import logging
from typing import List, Optional

from feedportal.activity import recent_activity
from feedportal.inventory import list_products
from feedportal.orders import (
    completed_orders,
    fetch_orders,
    group_orders,
    month_window,
    monthly_performance,
    order_statistics,
    recent_orders,
    sales_by_taluka,
    summarize_orders,
    top_customers,
    top_products,
    total_revenue,
    weekly_revenue,
)
from feedportal.profiles import count_active_employees
from feedportal.roles import Role, dashboard_slug
from feedportal.store import table
from feedportal.targets import ALL_SCOPE, month_key, month_reference, progress_for, team_performance
from feedportal.utils import calculate_percentage, now, to_number

logger = logging.getLogger(__name__)


def profit_summary(revenue: float, material_cost: float) -> dict:
    profit = revenue - material_cost
    return {
        'revenue': revenue,
        'material_cost': material_cost,
        'profit': profit,
        'margin': calculate_percentage(profit, revenue) if revenue > 0 else 0,
    }


def material_usage(window=None) -> List[dict]:
    """Raw-material cost per material, most expensive first."""
    query = table('raw_material_usage').select('*')
    if window:
        query = query.gte('usage_date', window[0]).lte('usage_date', window[1])
    breakdown = {}
    for row in query.execute().data:
        name = row.get('material_name') or 'Other'
        entry = breakdown.setdefault(name, {'material': name, 'quantity': 0.0, 'cost': 0.0})
        entry['quantity'] += to_number(row.get('quantity'))
        entry['cost'] += to_number(row.get('total_cost'))
    return sorted(breakdown.values(), key=lambda e: e['cost'], reverse=True)


def activity_feed(limit: int = 5) -> List[dict]:
    """Latest activity entries; falls back to the latest orders when the log is empty."""
    entries = recent_activity(limit)
    if entries:
        return [
            {'type': e['activity_type'], 'description': e['description'], 'created_at': e['created_at']}
            for e in entries
        ]
    logger.debug("Activity log empty, showing latest orders")
    latest = table('orders').select('*').order('created_at', ascending=False).limit(limit).execute().data
    return [
        {
            'type': 'order',
            'description': f"Order from {o['customer_name']} ({o.get('feed_category') or 'feed'}, {o.get('bags') or 0} bags)",
            'created_at': o['created_at'],
        }
        for o in latest
    ]


def owner_dashboard(reference=None) -> dict:
    reference = reference or now()
    orders = fetch_orders()
    completed = completed_orders(orders)
    revenue = total_revenue(completed)
    summary = summarize_orders(orders)
    material_cost = sum(e['cost'] for e in material_usage())

    return {
        'revenue': revenue,
        'total_orders': summary.total,
        'pending_orders': summary.by_status['pending'],
        'active_employees': count_active_employees(),
        'top_products': top_products(completed),
        'top_customers': top_customers(completed),
        'weekly_revenue': weekly_revenue(completed, reference),
        'district_revenue': group_orders(completed, 'district'),
        'activity': activity_feed(),
        'profit': profit_summary(revenue, material_cost),
        'target': progress_for(ALL_SCOPE, reference).to_dict(),
    }


def empty_team(key: str) -> dict:
    return {
        'month': key,
        'members': [],
        'totals': {'members': 0, 'achieved_revenue': 0.0, 'achieved_orders': 0, 'average_progress': 0.0},
    }


def marketing_dashboard(profile: dict, target_month=None, team_filter: str = 'all') -> dict:
    key = month_key(target_month or now())
    district = profile.get('district')
    window = month_window(month_reference(key))
    # A manager without a district has no team and no district sales
    orders = fetch_orders(district=district, window=window) if district else []

    return {
        'month': key,
        'district': district,
        'summary': summarize_orders(orders).to_dict(),
        'sales': sales_by_taluka(orders),
        'progress': progress_for(profile['id'], key, district=district).to_dict(),
        'team': team_performance(district, key, team_filter) if district else empty_team(key),
        'team_filter': team_filter,
    }


def production_dashboard(reference=None) -> dict:
    """Inventory, this month's completed revenue, material costs and order flow."""
    reference = reference or now()
    window = month_window(reference)
    products = list_products()
    month_revenue = total_revenue(fetch_orders(window=window, status='completed'))
    usage = material_usage(window)

    return {
        'inventory': products,
        'low_stock': [p for p in products if p['low_stock']],
        'month_revenue': month_revenue,
        'materials': usage,
        'profit': profit_summary(month_revenue, sum(e['cost'] for e in usage)),
        'order_stats': order_statistics().to_dict(),
        'generated_at': reference,
    }


def employee_dashboard(profile: dict, reference=None) -> dict:
    reference = reference or now()
    orders = fetch_orders(employee_id=profile['id'])
    summary = summarize_orders(orders)

    return {
        'summary': summary.to_dict(),
        'completed_revenue': total_revenue(completed_orders(orders)),
        'recent_orders': recent_orders(profile['id'], limit=5),
        'performance': monthly_performance(orders, reference.year),
        'progress': progress_for(profile['id'], reference).to_dict(),
    }


def build_dashboard(role: Role, profile: dict, params: Optional[dict] = None) -> dict:
    """Dashboard data for a role; every role maps to exactly one builder."""
    params = params or {}
    slug = dashboard_slug(role)
    if slug == 'owner':
        return owner_dashboard()
    if slug == 'marketing':
        return marketing_dashboard(profile, params.get('month'), params.get('filter') or 'all')
    if slug == 'production':
        return production_dashboard()
    if slug == 'employee':
        return employee_dashboard(profile)
    raise ValueError(f"No dashboard for {role!r}")
