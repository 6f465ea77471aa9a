"""
Application configuration settings.
"""
import os
from pathlib import Path

# Base directory
BASE_DIR = Path(__file__).resolve().parent.parent

# Load .env file if it exists (for local development)
env_file = BASE_DIR / ".env"
if env_file.exists():
    with open(env_file) as f:
        for line in f:
            line = line.strip()
            if line and not line.startswith('#') and '=' in line:
                key, value = line.split('=', 1)
                os.environ.setdefault(key.strip(), value.strip())

# Database - Support both SQLite (local) and PostgreSQL (production)
DATABASE_URL = os.getenv("DATABASE_URL", "")
DATABASE_PATH = BASE_DIR / "feedportal.db"

# Determine if using PostgreSQL
USE_POSTGRES = DATABASE_URL.startswith("postgres")

# Hosted Postgres URLs often use postgres:// but psycopg2 needs postgresql://
if DATABASE_URL.startswith("postgres://"):
    DATABASE_URL = DATABASE_URL.replace("postgres://", "postgresql://", 1)

# Security
SECRET_KEY = os.getenv("SECRET_KEY", "change-me-feedportal-secret")
SESSION_COOKIE_NAME = "feed_session"
SESSION_MAX_AGE = 60 * 60 * 24  # 24 hours in seconds
MIN_PASSWORD_LENGTH = 6

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Production dashboard refresh interval
DASHBOARD_POLL_SECONDS = int(os.getenv("DASHBOARD_POLL_SECONDS", "30"))

# Order lifecycle statuses (lowercase, matched case-insensitively)
ORDER_STATUSES = [
    "pending",
    "packing",
    "ready_for_dispatch",
    "dispatched",
    "delivered",
    "completed",
    "cancelled",
]

# Feed catalogue: weight and price are per bag
FEED_CATEGORIES = {
    "Milk Power": {"weight": 20, "unit": "kg", "price": 350},
    "Dugdh Sarita": {"weight": 25, "unit": "kg", "price": 450},
    "Dugdh Raj": {"weight": 30, "unit": "kg", "price": 600},
    "Diamond Balanced Animal Feed": {"weight": 10, "unit": "kg", "price": 800},
    "Milk Power Plus": {"weight": 5, "unit": "kg", "price": 1200},
    "Santulit Pashu Aahar": {"weight": 5, "unit": "kg", "price": 1200},
    "Jeevan Dhara": {"weight": 5, "unit": "kg", "price": 1200},
    "Dairy Special": {"weight": 5, "unit": "kg", "price": 1200},
}

BAG_OPTIONS = [1, 2, 3, 4, 5, 10, 15, 20, 25, 30, 40, 50]

# Inventory
DEFAULT_REORDER_LEVEL = 10  # bags

# Team performance
CRITICAL_PROGRESS = 0.3
PREMIUM_CUSTOMER_VALUE = 100000

# Page size for order listings
DEFAULT_PAGE_SIZE = 20
