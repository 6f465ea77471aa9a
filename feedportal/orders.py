"""
Order aggregation and order workflow.

Orders are read through the store with scope (district or employee) and
date-window filters, then summarised client-side: counts per status, price
and weight totals, and the groupings the dashboards chart.
"""
import calendar
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional, Tuple

from feedportal.config import (
    DEFAULT_PAGE_SIZE,
    FEED_CATEGORIES,
    ORDER_STATUSES,
    PREMIUM_CUSTOMER_VALUE,
)
from feedportal.errors import ValidationError
from feedportal.store import table
from feedportal.utils import now, parse_timestamp, to_number

logger = logging.getLogger(__name__)

ORDERS_TABLE = 'orders'

WEEKDAYS = ['Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat', 'Sun']

# Multipliers that bring a weight into metric tons
TON_FACTORS = {
    't': 1.0,
    'ton': 1.0,
    'tons': 1.0,
    'tonne': 1.0,
    'tonnes': 1.0,
    'kg': 0.001,
    'kgs': 0.001,
    'kilogram': 0.001,
    'kilograms': 0.001,
    'g': 0.000001,
    'gm': 0.000001,
    'gram': 0.000001,
    'grams': 0.000001,
}


# ── Status handling ──────────────────────────────────────────────────

def normalize_status(value) -> Optional[str]:
    """Map a stored status to the canonical lowercase form, None if unknown."""
    if value is None:
        return None
    key = str(value).strip().lower().replace(' ', '_').replace('-', '_')
    return key if key in ORDER_STATUSES else None


def validate_status(value) -> str:
    status = normalize_status(value)
    if status is None:
        raise ValidationError(f"Unknown order status: {value!r}", field='status')
    return status


# ── Date windows ─────────────────────────────────────────────────────

def month_window(reference: Optional[datetime] = None) -> Tuple[datetime, datetime]:
    """First-of-month 00:00:00 to last-of-month 23:59:59, naive local time."""
    reference = reference or now()
    last_day = calendar.monthrange(reference.year, reference.month)[1]
    start = datetime(reference.year, reference.month, 1, 0, 0, 0)
    end = datetime(reference.year, reference.month, last_day, 23, 59, 59)
    return start, end


# ── Summaries ────────────────────────────────────────────────────────

@dataclass
class OrderSummary:
    total: int = 0
    by_status: Dict[str, int] = field(default_factory=lambda: {s: 0 for s in ORDER_STATUSES})
    total_price: float = 0.0
    total_weight: float = 0.0

    @property
    def recognized(self) -> int:
        """Orders whose status is in the fixed enumeration."""
        return sum(self.by_status.values())

    def to_dict(self) -> dict:
        return {
            'total': self.total,
            **self.by_status,
            'total_price': self.total_price,
            'total_weight': self.total_weight,
        }


def summarize_orders(orders: Iterable[dict]) -> OrderSummary:
    """
    Count orders per status and total their price and weight.

    Unrecognised statuses count toward the total only. Missing or null
    numeric fields count as zero.
    """
    summary = OrderSummary()
    for order in orders:
        summary.total += 1
        status = normalize_status(order.get('status'))
        if status is not None:
            summary.by_status[status] += 1
        summary.total_price += to_number(order.get('total_price'))
        summary.total_weight += to_number(order.get('total_weight'))
    return summary


def fetch_orders(district: Optional[str] = None, employee_id: Optional[str] = None,
                 window: Optional[Tuple[datetime, datetime]] = None,
                 status: Optional[str] = None, columns: str = '*') -> List[dict]:
    """Fetch orders for a scope; no district and no employee means all orders."""
    query = table(ORDERS_TABLE).select(columns)
    if district:
        query = query.eq('district', district)
    if employee_id:
        query = query.eq('employee_id', employee_id)
    if window:
        query = query.gte('created_at', window[0]).lte('created_at', window[1])
    if status:
        query = query.ilike('status', validate_status(status))
    return query.order('created_at', ascending=False).execute().data


def aggregate_orders(district: Optional[str] = None, employee_id: Optional[str] = None,
                     window: Optional[Tuple[datetime, datetime]] = None) -> OrderSummary:
    return summarize_orders(fetch_orders(district=district, employee_id=employee_id, window=window))


def order_statistics(district: Optional[str] = None) -> OrderSummary:
    """All-time counts per status for a district (or everything)."""
    return summarize_orders(fetch_orders(district=district, columns='status'))


def completed_orders(orders: Iterable[dict]) -> List[dict]:
    return [o for o in orders if normalize_status(o.get('status')) == 'completed']


def total_revenue(orders: Iterable[dict]) -> float:
    return sum(to_number(o.get('total_price')) for o in orders)


# ── Weight conversion and sales in tons ──────────────────────────────

def to_tons(value, unit: Optional[str] = 'kg') -> float:
    """Convert a weight to tons; an unrecognised unit is treated as kg."""
    factor = TON_FACTORS.get((unit or 'kg').strip().lower())
    if factor is None:
        logger.debug(f"Unknown weight unit {unit!r}, treating as kg")
        factor = TON_FACTORS['kg']
    return to_number(value) * factor


def sales_by_taluka(orders: Iterable[dict]) -> dict:
    """District sales in tons, one bucket per taluka, largest first."""
    buckets = {}
    total_tons = 0.0
    for order in orders:
        taluka = order.get('taluka') or 'Unknown'
        tons = to_tons(order.get('total_weight'), order.get('weight_unit'))
        bucket = buckets.setdefault(taluka, {'taluka': taluka, 'tons': 0.0, 'orders': 0})
        bucket['tons'] += tons
        bucket['orders'] += 1
        total_tons += tons
    chart = sorted(buckets.values(), key=lambda b: b['tons'], reverse=True)
    for bucket in chart:
        bucket['tons'] = round(bucket['tons'], 3)
    return {'total_tons': round(total_tons, 3), 'chart_data': chart}


# ── Groupings ────────────────────────────────────────────────────────

def group_orders(orders: Iterable[dict], key: str, default: str = 'Unknown') -> List[dict]:
    """Per-key order count, revenue, bags and weight, highest revenue first."""
    groups = {}
    for order in orders:
        name = order.get(key) or default
        group = groups.setdefault(name, {key: name, 'orders': 0, 'revenue': 0.0, 'bags': 0, 'weight': 0.0})
        group['orders'] += 1
        group['revenue'] += to_number(order.get('total_price'))
        group['bags'] += int(to_number(order.get('bags')))
        group['weight'] += to_number(order.get('total_weight'))
    return sorted(groups.values(), key=lambda g: g['revenue'], reverse=True)


def top_products(orders: Iterable[dict], limit: int = 3) -> List[dict]:
    return [
        {'name': g['feed_category'], 'sales': g['bags'], 'revenue': g['revenue']}
        for g in group_orders(orders, 'feed_category')[:limit]
    ]


def top_customers(orders: Iterable[dict], limit: int = 5) -> List[dict]:
    customers = []
    for g in group_orders(orders, 'customer_name')[:limit]:
        customers.append({
            'name': g['customer_name'],
            'orders': g['orders'],
            'value': g['revenue'],
            'status': 'Premium' if g['revenue'] > PREMIUM_CUSTOMER_VALUE else 'Regular',
        })
    return customers


def weekly_revenue(orders: Iterable[dict], reference: Optional[datetime] = None) -> List[dict]:
    """Revenue of the last seven days bucketed by weekday, Monday first."""
    reference = reference or now()
    since = reference - timedelta(days=7)
    revenue = {day: 0.0 for day in WEEKDAYS}
    for order in orders:
        created = parse_timestamp(order.get('created_at'))
        if created is None or created < since or created > reference:
            continue
        revenue[WEEKDAYS[created.weekday()]] += to_number(order.get('total_price'))
    return [{'day': day, 'revenue': revenue[day]} for day in WEEKDAYS]


def monthly_performance(orders: Iterable[dict], year: int) -> List[dict]:
    """Orders per month and completed revenue per month for one year."""
    months = [
        {'month': calendar.month_abbr[m], 'orders': 0, 'revenue': 0.0}
        for m in range(1, 13)
    ]
    for order in orders:
        created = parse_timestamp(order.get('created_at'))
        if created is None or created.year != year:
            continue
        bucket = months[created.month - 1]
        bucket['orders'] += 1
        if normalize_status(order.get('status')) == 'completed':
            bucket['revenue'] += to_number(order.get('total_price'))
    return months


# ── Order workflow ───────────────────────────────────────────────────

def build_order(profile: dict, data: dict) -> dict:
    """Validate order form data and compute weight and price from the catalogue."""
    customer_name = (data.get('customer_name') or '').strip()
    if not customer_name:
        raise ValidationError("Customer name is required", field='customer_name')

    mobile = (data.get('customer_mobile') or '').strip()
    if mobile and not (mobile.isdigit() and len(mobile) == 10):
        raise ValidationError("Mobile number must be 10 digits", field='customer_mobile')

    category = (data.get('feed_category') or '').strip()
    if category not in FEED_CATEGORIES:
        raise ValidationError(f"Unknown feed category: {category!r}", field='feed_category')

    try:
        bags = int(data.get('bags') or 0)
    except (TypeError, ValueError):
        raise ValidationError("Bags must be a whole number", field='bags')
    if bags <= 0:
        raise ValidationError("Bags must be at least 1", field='bags')

    info = FEED_CATEGORIES[category]
    timestamp = now()
    return {
        'employee_id': profile['id'],
        'customer_name': customer_name,
        'customer_mobile': mobile or None,
        'customer_address': (data.get('customer_address') or '').strip() or None,
        'feed_category': category,
        'bags': bags,
        'weight_per_bag': info['weight'],
        'weight_unit': info['unit'],
        'total_weight': bags * info['weight'],
        'price_per_bag': info['price'],
        'total_price': bags * info['price'],
        'status': 'pending',
        'district': profile.get('district'),
        'taluka': (data.get('taluka') or '').strip() or profile.get('taluka'),
        'branch': profile.get('branch'),
        'remarks': (data.get('remarks') or '').strip() or None,
        'created_at': timestamp,
        'updated_at': timestamp,
    }


def create_order(profile: dict, data: dict) -> dict:
    order = build_order(profile, data)
    created = table(ORDERS_TABLE).insert(order)[0]
    logger.info(f"Order {created['id']} created by profile {profile['id']}")
    return created


def get_order(order_id: str) -> Optional[dict]:
    return table(ORDERS_TABLE).select('*').eq('id', order_id).maybe_single()


def list_orders(page: int = 1, page_size: int = DEFAULT_PAGE_SIZE, status: str = 'all',
                district: Optional[str] = None, employee_id: Optional[str] = None) -> Tuple[List[dict], int]:
    """One page of orders, newest first, with the total matching count."""
    query = table(ORDERS_TABLE).select('*', count=True)
    if district:
        query = query.eq('district', district)
    if employee_id:
        query = query.eq('employee_id', employee_id)
    if status and status != 'all':
        query = query.ilike('status', validate_status(status))
    result = query.order('created_at', ascending=False).page(page, page_size).execute()
    return result.data, result.count or 0


def recent_orders(employee_id: str, limit: int = 10) -> List[dict]:
    return (
        table(ORDERS_TABLE).select('*')
        .eq('employee_id', employee_id)
        .order('created_at', ascending=False)
        .limit(limit)
        .execute().data
    )


def update_order_status(order_id: str, new_status: str) -> bool:
    """Set an order's status. Any status may move to any other."""
    status = validate_status(new_status)
    touched = table(ORDERS_TABLE).eq('id', order_id).update({'status': status, 'updated_at': now()})
    return touched > 0


def bulk_update_order_status(order_ids: List[str], new_status: str) -> int:
    status = validate_status(new_status)
    if not order_ids:
        return 0
    return table(ORDERS_TABLE).in_('id', order_ids).update({'status': status, 'updated_at': now()})
