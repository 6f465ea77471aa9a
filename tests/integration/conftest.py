"""
Integration test conftest -- test database setup, FastAPI TestClient and
helpers that register and sign in a user for each role.
"""
import os
import sys
import uuid
import pytest
from pathlib import Path

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

# Force SQLite for integration tests
os.environ["DATABASE_URL"] = ""
os.environ["SECRET_KEY"] = "integration-test-secret-key"

from starlette.testclient import TestClient

TEST_PASSWORD = "testpass123"


@pytest.fixture(scope="session")
def test_db():
    """Initialize a fresh SQLite test database."""
    import feedportal.database as database_mod

    # Use a temp file for test DB
    test_db_path = Path(__file__).resolve().parent.parent.parent / "test_feedportal.db"
    database_mod.DATABASE_PATH = test_db_path

    # Remove old test DB if exists
    if test_db_path.exists():
        test_db_path.unlink()

    # Initialize fresh DB
    database_mod.init_database()

    yield test_db_path

    # Cleanup
    if test_db_path.exists():
        test_db_path.unlink()


@pytest.fixture(scope="session")
def client(test_db):
    """Create a TestClient for the FastAPI app."""
    from feedportal.main import app
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c


@pytest.fixture(autouse=True)
def clear_cookies(request):
    """Start every test signed out; tests pass cookies explicitly."""
    if "client" in request.fixturenames:
        request.getfixturevalue("client").cookies.clear()
    yield


@pytest.fixture
def create_user(test_db):
    """Helper to create an account plus profile with a unique email."""
    from feedportal.auth import create_account
    from feedportal.profiles import create_profile

    def _create(role="Employee", district="Kolhapur", full_name=None, with_profile=True):
        email = f"{role.lower().replace(' ', '.')}.{uuid.uuid4().hex[:8]}@feedportal.test"
        account = create_account(email, TEST_PASSWORD, full_name or role)
        profile = None
        if with_profile:
            profile = create_profile(email, full_name or role, role, user_id=account["id"], district=district)
        return {"email": email, "account": account, "profile": profile}

    return _create


@pytest.fixture
def login_as(client, create_user):
    """Create a user for a role, sign in and return (cookies, profile)."""

    def _login(role="Employee", district="Kolhapur", full_name=None):
        user = create_user(role=role, district=district, full_name=full_name)
        response = client.post(
            "/login",
            data={"email": user["email"], "password": TEST_PASSWORD},
            follow_redirects=False,
        )
        assert response.status_code == 302, response.text
        cookies = dict(response.cookies.items())
        client.cookies.clear()
        return cookies, user["profile"]

    return _login
