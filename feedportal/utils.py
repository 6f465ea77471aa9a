"""
Formatting and date helpers shared by services and templates.
"""
from datetime import date, datetime
from typing import Optional, Union


def now() -> datetime:
    """Current local time, truncated to seconds."""
    return datetime.now().replace(microsecond=0)


def parse_timestamp(value) -> Optional[datetime]:
    """Accept ISO strings (SQLite) or datetime objects (PostgreSQL)."""
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    text = str(value).replace('Z', '+00:00')
    try:
        return datetime.fromisoformat(text).replace(tzinfo=None)
    except ValueError:
        return None


def to_number(value) -> float:
    """Coerce a numeric field to float; missing, null or garbage is zero."""
    if value is None or value == '':
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _group_indian(digits: str) -> str:
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups) + "," + tail


def format_currency(amount: Union[int, float, None]) -> str:
    """Rupee amount with Indian digit grouping and no decimals."""
    value = round(to_number(amount))
    sign = "-" if value < 0 else ""
    return f"{sign}₹{_group_indian(str(abs(int(value))))}"


def calculate_percentage(value, total) -> int:
    if not total:
        return 0
    return round(to_number(value) / to_number(total) * 100)


def time_ago(value, reference: Optional[datetime] = None) -> str:
    ts = parse_timestamp(value)
    if ts is None:
        return ''
    reference = reference or now()
    minutes = max(int((reference - ts).total_seconds() // 60), 0)
    hours = minutes // 60
    days = hours // 24
    if minutes < 60:
        return f"{minutes} mins ago"
    if hours < 24:
        return f"{hours} hours ago"
    return f"{days} days ago"
