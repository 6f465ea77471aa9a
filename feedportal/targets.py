"""
Monthly targets and achieved-vs-target progress.

A target belongs to a scope (a profile id, or 'all' for the whole business)
and a month, stored as the first-of-month date. Assigning a target for a
scope and month that already has one overwrites it.
"""
import logging
from dataclasses import asdict, dataclass
from datetime import date, datetime
from typing import Iterable, List, Optional

from feedportal.activity import log_activity
from feedportal.config import CRITICAL_PROGRESS
from feedportal.errors import ValidationError
from feedportal.orders import OrderSummary, aggregate_orders, month_window
from feedportal.profiles import get_team_members
from feedportal.store import table
from feedportal.utils import now, to_number

logger = logging.getLogger(__name__)

TARGETS_TABLE = 'targets'

ALL_SCOPE = 'all'

TEAM_FILTERS = ('all', 'active', 'critical')


@dataclass
class Progress:
    revenue_progress: float = 0.0
    order_progress: float = 0.0
    overall_progress: float = 0.0
    achieved_revenue: float = 0.0
    achieved_orders: int = 0
    revenue_target: float = 0.0
    order_target: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


def month_key(value) -> str:
    """Normalise a month ('2024-03', '2024-03-17', date, datetime) to 'YYYY-MM-01'."""
    if isinstance(value, (date, datetime)):
        return f"{value.year:04d}-{value.month:02d}-01"
    text = (value or '').strip()
    parts = text[:10].split('-')
    if len(parts) < 2:
        raise ValidationError(f"Invalid month: {value!r}", field='target_month')
    try:
        year, month = int(parts[0]), int(parts[1])
    except ValueError:
        raise ValidationError(f"Invalid month: {value!r}", field='target_month')
    if not 1 <= month <= 12 or year < 1:
        raise ValidationError(f"Invalid month: {value!r}", field='target_month')
    return f"{year:04d}-{month:02d}-01"


def month_reference(key: str) -> datetime:
    key = month_key(key)
    return datetime(int(key[:4]), int(key[5:7]), 1)


def _ratio(achieved, target) -> float:
    target = to_number(target)
    if target <= 0:
        return 0.0
    return max(min(to_number(achieved) / target, 1.0), 0.0)


def compute_progress(target: Optional[dict], summary: OrderSummary) -> Progress:
    """
    Achieved-vs-target ratios for one scope and month.

    Each ratio is achieved / target clamped to [0, 1]. A zero or missing
    target gives 0 for that metric. Overall progress is the mean of both.
    """
    target = target or {}
    revenue_target = to_number(target.get('revenue_target'))
    order_target = int(to_number(target.get('order_target')))

    revenue_progress = _ratio(summary.total_price, revenue_target)
    order_progress = _ratio(summary.total, order_target)

    return Progress(
        revenue_progress=revenue_progress,
        order_progress=order_progress,
        overall_progress=(revenue_progress + order_progress) / 2,
        achieved_revenue=summary.total_price,
        achieved_orders=summary.total,
        revenue_target=revenue_target,
        order_target=order_target,
    )


def rank_by_progress(items: Iterable, key=None) -> list:
    """Sort highest overall progress first; equal entries keep their order."""
    if key is None:
        def key(item):
            progress = item['progress'] if isinstance(item, dict) else item
            return progress.overall_progress
    return sorted(items, key=key, reverse=True)


# ── Storage ──────────────────────────────────────────────────────────

def _validate_amount(value, field_name, integer=False):
    try:
        amount = int(value) if integer else float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number", field=field_name)
    if amount < 0:
        raise ValidationError(f"{field_name} cannot be negative", field=field_name)
    return amount


def upsert_target(employee_id: str, target_month, revenue_target, order_target,
                  assigned_by: Optional[str] = None, remarks: Optional[str] = None,
                  district: Optional[str] = None) -> dict:
    """Create or overwrite the target for (employee_id, month)."""
    if not employee_id:
        raise ValidationError("Select an employee", field='employee_id')
    record = {
        'employee_id': employee_id,
        'target_month': month_key(target_month),
        'revenue_target': _validate_amount(revenue_target, 'revenue_target'),
        'order_target': _validate_amount(order_target, 'order_target', integer=True),
        'district': district,
        'remarks': (remarks or '').strip() or None,
        'assigned_by': assigned_by,
        'assigned_at': now(),
    }
    stored = table(TARGETS_TABLE).upsert(record, on_conflict='employee_id,target_month')[0]
    logger.info(f"Target for {employee_id} in {record['target_month']} set by {assigned_by}")
    log_activity(
        'target_assigned',
        f"Target set for {record['target_month'][:7]}: revenue {record['revenue_target']:.0f}, "
        f"orders {record['order_target']}",
        actor_id=assigned_by,
    )
    return stored


def get_target(employee_id: str, target_month) -> Optional[dict]:
    return (
        table(TARGETS_TABLE).select('*')
        .eq('employee_id', employee_id)
        .eq('target_month', month_key(target_month))
        .maybe_single()
    )


def list_targets(target_month=None, assigned_by: Optional[str] = None) -> List[dict]:
    query = table(TARGETS_TABLE).select('*')
    if target_month:
        query = query.eq('target_month', month_key(target_month))
    if assigned_by:
        query = query.eq('assigned_by', assigned_by)
    return query.order('target_month', ascending=False).execute().data


# ── Progress over stored data ────────────────────────────────────────

def progress_for(employee_id: str, target_month=None, district: Optional[str] = None) -> Progress:
    """
    Progress of one scope in a month.

    With a district, achievement counts every order in that district (the
    manager view); otherwise the scope's own orders, or all orders for 'all'.
    """
    key = month_key(target_month or now())
    window = month_window(month_reference(key))
    if district:
        summary = aggregate_orders(district=district, window=window)
    elif employee_id == ALL_SCOPE:
        summary = aggregate_orders(window=window)
    else:
        summary = aggregate_orders(employee_id=employee_id, window=window)
    return compute_progress(get_target(employee_id, key), summary)


def filter_team(members: List[dict], team_filter: str = 'all') -> List[dict]:
    if team_filter not in TEAM_FILTERS:
        raise ValidationError(f"Unknown team filter: {team_filter!r}", field='filter')
    if team_filter == 'active':
        return [m for m in members if m['progress'].achieved_revenue > 0]
    if team_filter == 'critical':
        return [m for m in members if m['progress'].overall_progress < CRITICAL_PROGRESS]
    return list(members)


def team_performance(district: str, target_month=None, team_filter: str = 'all') -> dict:
    """Per-member progress for a district team, ranked, with team totals."""
    key = month_key(target_month or now())
    members = []
    for profile in get_team_members(district):
        members.append({
            'profile': profile,
            'progress': progress_for(profile['id'], key),
        })
    ranked = rank_by_progress(members)

    count = len(ranked)
    totals = {
        'members': count,
        'achieved_revenue': sum(m['progress'].achieved_revenue for m in ranked),
        'achieved_orders': sum(m['progress'].achieved_orders for m in ranked),
        'average_progress': (
            sum(m['progress'].overall_progress for m in ranked) / count if count else 0.0
        ),
    }
    return {
        'month': key,
        'members': filter_team(ranked, team_filter),
        'totals': totals,
    }
