"""
Unit tests for feedportal/config.py -- configuration constants and environment loading.
"""
import os
import sys
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))
os.environ.setdefault("DATABASE_URL", "")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

from feedportal.config import (
    BAG_OPTIONS,
    CRITICAL_PROGRESS,
    DATABASE_PATH,
    DEFAULT_REORDER_LEVEL,
    FEED_CATEGORIES,
    MIN_PASSWORD_LENGTH,
    ORDER_STATUSES,
    SECRET_KEY,
    SESSION_COOKIE_NAME,
    SESSION_MAX_AGE,
    USE_POSTGRES,
)

pytestmark = pytest.mark.unit


class TestOrderStatuses:
    def test_seven_statuses(self):
        assert len(ORDER_STATUSES) == 7

    def test_lowercase(self):
        assert all(s == s.lower() for s in ORDER_STATUSES)

    def test_lifecycle_ends(self):
        assert ORDER_STATUSES[0] == "pending"
        assert "completed" in ORDER_STATUSES
        assert "cancelled" in ORDER_STATUSES


class TestFeedCatalogue:
    def test_has_products(self):
        assert "Milk Power" in FEED_CATEGORIES
        assert "Dugdh Raj" in FEED_CATEGORIES

    def test_every_entry_has_weight_and_price(self):
        for name, info in FEED_CATEGORIES.items():
            assert info["weight"] > 0, name
            assert info["price"] > 0, name
            assert info["unit"] == "kg", name

    def test_bag_options_positive(self):
        assert all(b > 0 for b in BAG_OPTIONS)


class TestSessionConfig:
    def test_cookie_name(self):
        assert SESSION_COOKIE_NAME == "feed_session"

    def test_max_age_is_one_day(self):
        assert SESSION_MAX_AGE == 86400

    def test_secret_key_set(self):
        assert SECRET_KEY

    def test_min_password_length(self):
        assert MIN_PASSWORD_LENGTH == 6


class TestThresholds:
    def test_reorder_level(self):
        assert DEFAULT_REORDER_LEVEL == 10

    def test_critical_progress(self):
        assert CRITICAL_PROGRESS == 0.3


class TestDatabaseConfig:
    def test_sqlite_in_tests(self):
        assert USE_POSTGRES is False

    def test_database_path_is_sqlite_file(self):
        assert str(DATABASE_PATH).endswith(".db")
