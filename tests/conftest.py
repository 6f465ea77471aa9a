"""
Root conftest.py -- shared fixtures for all test levels.
"""
import os
import sys
import pytest

# Ensure feedportal is importable
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

# Force SQLite for testing (never hit production PostgreSQL)
os.environ["DATABASE_URL"] = ""
os.environ["SECRET_KEY"] = "test-secret-key-for-testing-only"


@pytest.fixture
def sqlite_db(tmp_path, monkeypatch):
    """A fresh SQLite database file with the full schema, per test."""
    import feedportal.database as database_mod

    db_path = tmp_path / "feedportal_test.db"
    monkeypatch.setattr(database_mod, "DATABASE_PATH", db_path)
    database_mod.init_database()
    return db_path
