"""
Shared Jinja2 templates configuration with custom filters.
All route modules should import templates from here.
"""
import json
from datetime import date, datetime
from pathlib import Path

from fastapi.templating import Jinja2Templates

from feedportal.utils import calculate_percentage, format_currency, time_ago

BASE_DIR = Path(__file__).resolve().parent
templates = Jinja2Templates(directory=BASE_DIR / "templates")


# Dates come back as strings from SQLite and datetime objects from PostgreSQL
def format_date(value, format_str='%d %b %Y'):
    """Format a datetime object or ISO string as a date."""
    if value is None or value == '':
        return '-'
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value[:19])
        except ValueError:
            return value[:10]
    if isinstance(value, (datetime, date)):
        return value.strftime(format_str)
    return str(value)[:10]


def format_datetime(value, format_str='%d %b %Y %H:%M'):
    """Format a datetime object or ISO string with time."""
    if value is None or value == '':
        return '-'
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value[:19])
        except ValueError:
            return value[:19]
    if isinstance(value, datetime):
        return value.strftime(format_str)
    return str(value)[:19]


def format_percent(ratio):
    """0.27 -> '27%'."""
    return f"{calculate_percentage(ratio or 0, 1)}%"


def status_label(value):
    """ready_for_dispatch -> 'Ready For Dispatch'."""
    if not value:
        return '-'
    return str(value).replace('_', ' ').title()


def json_serial(obj):
    """JSON serializer for objects not serializable by default json code."""
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    raise TypeError(f"Type {type(obj)} not serializable")


def safe_tojson(value):
    """Safely convert value to JSON, handling datetime objects."""
    return json.dumps(value, default=json_serial)


# Register custom filters
templates.env.filters['format_date'] = format_date
templates.env.filters['format_datetime'] = format_datetime
templates.env.filters['format_currency'] = format_currency
templates.env.filters['format_percent'] = format_percent
templates.env.filters['status_label'] = status_label
templates.env.filters['time_ago'] = time_ago
templates.env.filters['safe_tojson'] = safe_tojson
