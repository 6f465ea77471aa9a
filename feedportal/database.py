"""
Database connection and schema management.
Supports both SQLite (local development) and PostgreSQL (hosted deployment).
"""
import logging
import sqlite3
from contextlib import contextmanager

from feedportal.config import DATABASE_PATH, DATABASE_URL, USE_POSTGRES

# PostgreSQL support
if USE_POSTGRES:
    import psycopg2
    from psycopg2.extras import RealDictCursor

logger = logging.getLogger(__name__)


class DictRow:
    """Wrapper to make psycopg2 results behave like sqlite3.Row"""
    def __init__(self, data):
        self._data = data
        self._keys = list(data.keys()) if data else []

    def __getitem__(self, key):
        if isinstance(key, int):
            return self._data[self._keys[key]]
        return self._data[key]

    def __iter__(self):
        return iter(self._data.values())

    def keys(self):
        return self._keys


def get_db_connection():
    """Create a database connection with row factory."""
    if USE_POSTGRES:
        return psycopg2.connect(DATABASE_URL)
    conn = sqlite3.connect(str(DATABASE_PATH))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


class PostgresCursorWrapper:
    """Wrapper to make PostgreSQL cursor behave like SQLite cursor"""
    def __init__(self, cursor):
        self._cursor = cursor

    def execute(self, query, params=None):
        # Convert SQLite ? placeholders to PostgreSQL %s
        query = query.replace('?', '%s')
        if query.strip().upper().startswith('PRAGMA'):
            return self
        if params:
            self._cursor.execute(query, params)
        else:
            self._cursor.execute(query)
        return self

    def fetchone(self):
        row = self._cursor.fetchone()
        return DictRow(row) if row else None

    def fetchall(self):
        rows = self._cursor.fetchall()
        return [DictRow(row) for row in rows]

    @property
    def rowcount(self):
        return self._cursor.rowcount


class PostgresConnection:
    """Connection facade exposing the sqlite3 connection methods we use."""
    def __init__(self, conn):
        self._conn = conn
        self._cursor = PostgresCursorWrapper(conn.cursor(cursor_factory=RealDictCursor))

    def cursor(self):
        return self._cursor

    def execute(self, *args, **kwargs):
        return self._cursor.execute(*args, **kwargs)

    def commit(self):
        return self._conn.commit()

    def rollback(self):
        return self._conn.rollback()


@contextmanager
def get_db():
    """Context manager for database connections."""
    conn = get_db_connection()
    try:
        if USE_POSTGRES:
            yield PostgresConnection(conn)
        else:
            yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


SCHEMA = [
    # Auth provider user records
    """
    CREATE TABLE IF NOT EXISTS accounts (
        id TEXT PRIMARY KEY,
        email TEXT UNIQUE NOT NULL,
        password_hash TEXT NOT NULL,
        full_name TEXT,
        created_at TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS sessions (
        id TEXT PRIMARY KEY,
        session_id TEXT UNIQUE NOT NULL,
        user_id TEXT NOT NULL,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        expires_at TIMESTAMP NOT NULL,
        FOREIGN KEY (user_id) REFERENCES accounts(id) ON DELETE CASCADE
    )
    """,
    # Role-tagged employee profiles
    """
    CREATE TABLE IF NOT EXISTS profiles (
        id TEXT PRIMARY KEY,
        user_id TEXT UNIQUE,
        email TEXT UNIQUE NOT NULL,
        full_name TEXT,
        role TEXT NOT NULL,
        district TEXT,
        branch TEXT,
        taluka TEXT,
        phone TEXT,
        status TEXT DEFAULT 'Active',
        joining_date TEXT,
        created_at TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS orders (
        id TEXT PRIMARY KEY,
        employee_id TEXT,
        customer_name TEXT NOT NULL,
        customer_mobile TEXT,
        customer_address TEXT,
        feed_category TEXT,
        bags INTEGER DEFAULT 0,
        weight_per_bag DOUBLE PRECISION,
        weight_unit TEXT DEFAULT 'kg',
        total_weight DOUBLE PRECISION DEFAULT 0,
        price_per_bag DOUBLE PRECISION,
        total_price DOUBLE PRECISION DEFAULT 0,
        status TEXT DEFAULT 'pending',
        district TEXT,
        taluka TEXT,
        branch TEXT,
        remarks TEXT,
        created_at TIMESTAMP,
        updated_at TIMESTAMP
    )
    """,
    # Monthly targets; employee_id is a profile id or 'all'
    """
    CREATE TABLE IF NOT EXISTS targets (
        id TEXT PRIMARY KEY,
        employee_id TEXT NOT NULL,
        target_month TEXT NOT NULL,
        revenue_target DOUBLE PRECISION DEFAULT 0,
        order_target INTEGER DEFAULT 0,
        district TEXT,
        remarks TEXT,
        assigned_by TEXT,
        assigned_at TIMESTAMP,
        UNIQUE (employee_id, target_month)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS production_products (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        category TEXT,
        bags INTEGER DEFAULT 0,
        min_bags_stock INTEGER,
        weight_per_bag DOUBLE PRECISION,
        price_per_bag DOUBLE PRECISION,
        is_active INTEGER DEFAULT 1,
        created_at TIMESTAMP,
        updated_at TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS raw_material_usage (
        id TEXT PRIMARY KEY,
        material_name TEXT NOT NULL,
        quantity DOUBLE PRECISION DEFAULT 0,
        total_cost DOUBLE PRECISION DEFAULT 0,
        usage_date TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS activity_log (
        id TEXT PRIMARY KEY,
        activity_type TEXT NOT NULL,
        description TEXT,
        actor_id TEXT,
        created_at TIMESTAMP
    )
    """,
]

INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_orders_district ON orders (district)",
    "CREATE INDEX IF NOT EXISTS idx_orders_employee ON orders (employee_id)",
    "CREATE INDEX IF NOT EXISTS idx_orders_created ON orders (created_at)",
    "CREATE INDEX IF NOT EXISTS idx_profiles_district ON profiles (district)",
]


def init_database():
    """Initialize the database with all required tables."""
    with get_db() as conn:
        cursor = conn.cursor()
        for statement in SCHEMA:
            cursor.execute(statement)
        for statement in INDEXES:
            cursor.execute(statement)
    logger.info(f"Database initialised ({'PostgreSQL' if USE_POSTGRES else 'SQLite'})")


def reset_database():
    """Drop the SQLite file and reinitialize (for development only)."""
    if not USE_POSTGRES and DATABASE_PATH.exists():
        DATABASE_PATH.unlink()
    init_database()
