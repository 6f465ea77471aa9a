"""
Table-oriented query interface over the application database.

Mirrors the hosted-backend style of access used by every service module:

    table("orders").select("*", count=True).eq("district", "Pune") \\
        .gte("created_at", start).order("created_at", ascending=False) \\
        .page(1, 20).execute()

plus insert, filtered update and upsert-with-conflict-key. Rows come back
as plain dicts. Any driver failure is raised as StoreError.
"""
import logging
import re
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from feedportal import database
from feedportal.errors import StoreError

logger = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r'^[a-z_][a-z0-9_]*$')


def _check_identifier(name: str) -> str:
    if not isinstance(name, str) or not _IDENTIFIER.match(name):
        raise StoreError(f"Invalid identifier: {name!r}")
    return name


def _adapt(value):
    """Convert Python values into something both drivers accept."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, datetime):
        return value.isoformat(timespec='seconds')
    if isinstance(value, date):
        return value.isoformat()
    return value


def new_id() -> str:
    return str(uuid.uuid4())


@dataclass
class QueryResult:
    data: List[Dict[str, Any]] = field(default_factory=list)
    count: Optional[int] = None


class Query:
    """A single-table query. Filters are ANDed together."""

    def __init__(self, name: str):
        self.name = _check_identifier(name)
        self._columns = "*"
        self._count = False
        self._head = False
        self._filters = []
        self._params = []
        self._order = []
        self._limit = None
        self._offset = None

    # ── select shape ────────────────────────────────────────────────

    def select(self, columns: str = "*", count: bool = False, head: bool = False):
        if columns != "*":
            parts = [c.strip() for c in columns.split(',') if c.strip()]
            columns = ", ".join(_check_identifier(c) for c in parts)
        self._columns = columns
        self._count = count
        self._head = head
        return self

    # ── filters ─────────────────────────────────────────────────────

    def _where(self, column, op, value):
        self._filters.append(f"{_check_identifier(column)} {op} ?")
        self._params.append(_adapt(value))
        return self

    def eq(self, column, value):
        if value is None:
            return self.is_null(column)
        return self._where(column, "=", value)

    def neq(self, column, value):
        return self._where(column, "<>", value)

    def gt(self, column, value):
        return self._where(column, ">", value)

    def gte(self, column, value):
        return self._where(column, ">=", value)

    def lt(self, column, value):
        return self._where(column, "<", value)

    def lte(self, column, value):
        return self._where(column, "<=", value)

    def ilike(self, column, pattern):
        self._filters.append(f"LOWER({_check_identifier(column)}) LIKE LOWER(?)")
        self._params.append(pattern)
        return self

    def in_(self, column, values):
        values = list(values)
        if not values:
            self._filters.append("1 = 0")
            return self
        placeholders = ", ".join("?" for _ in values)
        self._filters.append(f"{_check_identifier(column)} IN ({placeholders})")
        self._params.extend(_adapt(v) for v in values)
        return self

    def is_null(self, column):
        self._filters.append(f"{_check_identifier(column)} IS NULL")
        return self

    # ── ordering and pagination ─────────────────────────────────────

    def order(self, column, ascending: bool = True):
        self._order.append(f"{_check_identifier(column)} {'ASC' if ascending else 'DESC'}")
        return self

    def limit(self, n: int):
        self._limit = int(n)
        return self

    def range(self, start: int, end: int):
        """Inclusive row range, zero-based."""
        self._offset = max(int(start), 0)
        self._limit = max(int(end) - self._offset + 1, 0)
        return self

    def page(self, page: int, page_size: int):
        """One-based page of page_size rows."""
        page = max(int(page), 1)
        start = (page - 1) * page_size
        return self.range(start, start + page_size - 1)

    # ── execution ───────────────────────────────────────────────────

    def _where_sql(self):
        if not self._filters:
            return ""
        return " WHERE " + " AND ".join(self._filters)

    def _run(self, sql, params, fetch=True):
        try:
            with database.get_db() as conn:
                cursor = conn.cursor()
                cursor.execute(sql, tuple(params))
                if fetch:
                    return [dict(row) for row in cursor.fetchall()]
                return cursor.rowcount
        except StoreError:
            raise
        except Exception as e:
            logger.error(f"Query on {self.name} failed: {e}")
            raise StoreError(f"Query on {self.name} failed: {e}", table=self.name) from e

    def execute(self) -> QueryResult:
        result = QueryResult()
        where = self._where_sql()

        if self._count:
            rows = self._run(f"SELECT COUNT(*) AS cnt FROM {self.name}{where}", self._params)
            result.count = int(rows[0]['cnt']) if rows else 0

        if self._head:
            return result

        sql = f"SELECT {self._columns} FROM {self.name}{where}"
        if self._order:
            sql += " ORDER BY " + ", ".join(self._order)
        if self._limit is not None:
            sql += f" LIMIT {self._limit}"
            if self._offset:
                sql += f" OFFSET {self._offset}"
        result.data = self._run(sql, self._params)
        return result

    def maybe_single(self) -> Optional[Dict[str, Any]]:
        """Return the only matching row, None when there is none."""
        self._limit = 2
        rows = self.execute().data
        if len(rows) > 1:
            raise StoreError(f"Expected at most one row from {self.name}", table=self.name)
        return rows[0] if rows else None

    def single(self) -> Dict[str, Any]:
        row = self.maybe_single()
        if row is None:
            raise StoreError(f"Expected one row from {self.name}, found none", table=self.name)
        return row

    # ── writes ──────────────────────────────────────────────────────

    def insert(self, rows) -> List[Dict[str, Any]]:
        """Insert one row or a list of rows and return them as stored."""
        rows = [rows] if isinstance(rows, dict) else list(rows)
        ids = []
        for row in rows:
            row = dict(row)
            row.setdefault('id', new_id())
            ids.append(row['id'])
            columns = [_check_identifier(c) for c in row]
            placeholders = ", ".join("?" for _ in columns)
            self._run(
                f"INSERT INTO {self.name} ({', '.join(columns)}) VALUES ({placeholders})",
                [_adapt(v) for v in row.values()],
                fetch=False,
            )
        if not ids:
            return []
        return table(self.name).in_('id', ids).execute().data

    def update(self, values: Dict[str, Any]) -> int:
        """Apply values to every row matching the filters; returns rows touched."""
        if not self._filters:
            raise StoreError(f"Refusing unfiltered update on {self.name}", table=self.name)
        if not values:
            return 0
        assignments = ", ".join(f"{_check_identifier(c)} = ?" for c in values)
        params = [_adapt(v) for v in values.values()] + self._params
        return self._run(
            f"UPDATE {self.name} SET {assignments}{self._where_sql()}",
            params,
            fetch=False,
        )

    def delete(self) -> int:
        """Delete every row matching the filters; returns rows removed."""
        if not self._filters:
            raise StoreError(f"Refusing unfiltered delete on {self.name}", table=self.name)
        return self._run(f"DELETE FROM {self.name}{self._where_sql()}", self._params, fetch=False)

    def upsert(self, rows, on_conflict: str) -> List[Dict[str, Any]]:
        """Insert rows, overwriting the existing row that shares the conflict key."""
        keys = [_check_identifier(k.strip()) for k in on_conflict.split(',') if k.strip()]
        if not keys:
            raise StoreError("upsert needs at least one conflict column", table=self.name)
        rows = [rows] if isinstance(rows, dict) else list(rows)
        stored = []
        for row in rows:
            row = dict(row)
            missing = [k for k in keys if row.get(k) is None]
            if missing:
                raise StoreError(f"upsert row lacks conflict column(s) {missing}", table=self.name)
            row.setdefault('id', new_id())
            columns = [_check_identifier(c) for c in row]
            updates = [c for c in columns if c not in keys and c != 'id']
            placeholders = ", ".join("?" for _ in columns)
            sql = (
                f"INSERT INTO {self.name} ({', '.join(columns)}) VALUES ({placeholders}) "
                f"ON CONFLICT ({', '.join(keys)}) "
            )
            if updates:
                sql += "DO UPDATE SET " + ", ".join(f"{c} = excluded.{c}" for c in updates)
            else:
                sql += "DO NOTHING"
            self._run(sql, [_adapt(v) for v in row.values()], fetch=False)

            lookup = table(self.name)
            for k in keys:
                lookup = lookup.eq(k, row[k])
            stored.extend(lookup.execute().data)
        return stored


def table(name: str) -> Query:
    """Start a query against a table."""
    return Query(name)
