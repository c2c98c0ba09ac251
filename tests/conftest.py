"""
Pytest configuration and shared fixtures.
"""

from contextlib import contextmanager
from typing import Any, Dict, List, Optional

import pytest
from pymongo.errors import ServerSelectionTimeoutError

from app.db.datastore import DatastoreError, DatastoreErrorKind


def fk_error(message: str = "insert or update violates foreign key constraint") -> DatastoreError:
    return DatastoreError(DatastoreErrorKind.FOREIGN_KEY_VIOLATION, message)


def unique_error(message: str = "duplicate key value violates unique constraint") -> DatastoreError:
    return DatastoreError(DatastoreErrorKind.UNIQUE_VIOLATION, message)


class FakeDatastore:
    """
    In-memory datastore.

    `failures` maps a table name to a list of errors raised by the next
    inserts into that table, in order. Once the list is empty inserts
    succeed and get an incrementing id.
    """

    ID_COLUMNS = {
        "users": "user_id",
        "profiles": "profile_id",
        "students": "student_id",
        "mentors": "mentor_id",
        "employers": "employer_id",
    }

    def __init__(self, failures: Optional[Dict[str, List[Exception]]] = None):
        self.failures = {table: list(errors) for table, errors in (failures or {}).items()}
        self.rows: Dict[str, List[dict]] = {}
        self.calls: List[tuple] = []
        self.deletes: List[tuple] = []
        self._next_ids: Dict[str, int] = {}

    def insert(self, table: str, fields: Dict[str, Any]) -> dict:
        self.calls.append((table, dict(fields)))
        pending = self.failures.get(table)
        if pending:
            raise pending.pop(0)

        rows = self.rows.setdefault(table, [])
        row = dict(fields)
        self._next_ids[table] = self._next_ids.get(table, 0) + 1
        row[self.ID_COLUMNS.get(table, "id")] = self._next_ids[table]
        rows.append(row)
        return row

    def find_one(self, table: str, filters: Dict[str, Any]) -> Optional[dict]:
        for row in self.rows.get(table, []):
            if all(row.get(k) == v for k, v in filters.items()):
                return row
        return None

    def delete(self, table: str, filters: Dict[str, Any]) -> int:
        self.deletes.append((table, dict(filters)))
        if table not in self.rows:
            return 0
        rows = self.rows[table]
        self.rows[table] = [r for r in rows if not all(r.get(k) == v for k, v in filters.items())]
        return len(rows) - len(self.rows[table])

    def inserts_into(self, table: str) -> int:
        return sum(1 for t, _ in self.calls if t == table)


class RecordingSleep:
    """Awaitable sleep replacement that records requested delays."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class FakeInsertResult:
    def __init__(self, inserted_id):
        self.inserted_id = inserted_id


class FakeCursor:
    def __init__(self, docs):
        self.docs = docs
        self.sort_args = None
        self.limit_value = None

    def sort(self, key, direction):
        self.sort_args = (key, direction)
        self.docs = sorted(self.docs, key=lambda d: d[key], reverse=direction == -1)
        return self

    def limit(self, n):
        self.limit_value = n
        self.docs = self.docs[:n]
        return self

    def __iter__(self):
        return iter(self.docs)


class FakeCollection:
    """In-memory stand-in for a pymongo Collection."""

    def __init__(self, fail=False):
        self.docs = []
        self.fail = fail

    def insert_one(self, doc):
        if self.fail:
            raise ServerSelectionTimeoutError("localhost:27017: connection refused")
        doc["_id"] = f"oid{len(self.docs) + 1}"
        self.docs.append(doc)
        return FakeInsertResult(doc["_id"])

    def find(self, query):
        return FakeCursor([d for d in self.docs if all(d.get(k) == v for k, v in query.items())])


class FakeSQLResult:
    def __init__(self, rows=None, rowcount=None):
        self.rows = list(rows or [])
        self.rowcount = len(self.rows) if rowcount is None else rowcount

    def fetchone(self):
        return self.rows[0] if self.rows else None

    def fetchall(self):
        return list(self.rows)


class FakeSQLSession:
    """
    Stand-in for get_db_session().

    Every statement is recorded with its whitespace collapsed. `respond(sql,
    params)` may return a FakeSQLResult; anything else becomes an empty one.
    """

    def __init__(self, respond=None):
        self.respond = respond or (lambda sql, params: None)
        self.executed: List[tuple] = []

    @contextmanager
    def __call__(self):
        yield self

    def execute(self, statement, params=None):
        sql = " ".join(str(statement).split())
        params = params or {}
        self.executed.append((sql, params))
        return self.respond(sql, params) or FakeSQLResult()

    def statements(self, prefix: str) -> List[tuple]:
        return [(sql, params) for sql, params in self.executed if sql.startswith(prefix)]


@pytest.fixture
def datastore() -> FakeDatastore:
    return FakeDatastore()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()
