"""
Datastore collaborator - single-row inserts, lookups and deletes with typed errors.

Route handlers receive a datastore through the get_datastore() dependency
instead of reaching the engine directly, so signup (and anything else built
on the record creator) can run against a fake store in tests.

Errors from the driver are classified by SQLSTATE:
- 23503 foreign_key_violation -> DatastoreErrorKind.FOREIGN_KEY_VIOLATION
- 23505 unique_violation      -> DatastoreErrorKind.UNIQUE_VIOLATION
- anything else               -> DatastoreErrorKind.OTHER
"""

import re
from enum import Enum
from typing import Any, Dict, Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.db.postgres import get_db_session


class DatastoreErrorKind(str, Enum):
    FOREIGN_KEY_VIOLATION = "foreign_key_violation"
    UNIQUE_VIOLATION = "unique_violation"
    OTHER = "other"


SQLSTATE_KINDS = {
    "23503": DatastoreErrorKind.FOREIGN_KEY_VIOLATION,
    "23505": DatastoreErrorKind.UNIQUE_VIOLATION,
}

# Tables reachable through the datastore. Everything else goes through
# explicit SQL in the route modules.
ALLOWED_TABLES = {
    "users", "profiles", "students", "mentors", "employers",
    "skills", "student_skills", "mentor_expertise",
    "projects", "project_skills", "project_applicants",
    "jobs", "job_skills", "job_applications",
    "mentorship_sessions", "employer_sessions",
}

_IDENTIFIER = re.compile(r"^[a-z_][a-z0-9_]*$")


class DatastoreError(Exception):
    """A datastore operation failed. `kind` says whether retrying can help."""

    def __init__(self, kind: DatastoreErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message


def classify_error(exc: Exception) -> DatastoreErrorKind:
    """Map a SQLAlchemy/driver exception to a DatastoreErrorKind."""
    orig = getattr(exc, "orig", exc)
    # psycopg2 exposes pgcode, psycopg 3 exposes sqlstate
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    return SQLSTATE_KINDS.get(code, DatastoreErrorKind.OTHER)


def _check_table(table: str) -> str:
    if table not in ALLOWED_TABLES:
        raise ValueError(f"Unknown table: {table}")
    return table


def _check_columns(fields: Dict[str, Any]) -> list:
    columns = list(fields)
    for column in columns:
        if not _IDENTIFIER.match(column):
            raise ValueError(f"Invalid column name: {column}")
    return columns


class SQLDatastore:
    """Datastore backed by the PostgreSQL session factory."""

    def __init__(self, session_factory=get_db_session):
        self.session_factory = session_factory

    def insert(self, table: str, fields: Dict[str, Any]) -> dict:
        """
        Insert one row and return it as a dict.

        Raises:
            DatastoreError: classified by SQLSTATE
            ValueError: unknown table or malformed column name
        """
        table = _check_table(table)
        columns = _check_columns(fields)
        if not columns:
            raise ValueError("Cannot insert a row with no fields")

        sql = (
            f"INSERT INTO {table} ({', '.join(columns)}) "
            f"VALUES ({', '.join(':' + c for c in columns)}) RETURNING *"
        )
        try:
            with self.session_factory() as db:
                result = db.execute(text(sql), fields)
                row = result.mappings().fetchone()
                return dict(row)
        except SQLAlchemyError as e:
            raise DatastoreError(classify_error(e), str(getattr(e, "orig", e))) from e

    def find_one(self, table: str, filters: Dict[str, Any]) -> Optional[dict]:
        """Return the first row matching all equality filters, or None."""
        table = _check_table(table)
        columns = _check_columns(filters)

        sql = f"SELECT * FROM {table}"
        if columns:
            sql += " WHERE " + " AND ".join(f"{c} = :{c}" for c in columns)
        sql += " LIMIT 1"
        try:
            with self.session_factory() as db:
                row = db.execute(text(sql), filters).mappings().fetchone()
                return dict(row) if row else None
        except SQLAlchemyError as e:
            raise DatastoreError(classify_error(e), str(getattr(e, "orig", e))) from e


    def delete(self, table: str, filters: Dict[str, Any]) -> int:
        """Delete rows matching all equality filters. Returns the row count."""
        table = _check_table(table)
        columns = _check_columns(filters)
        if not columns:
            raise ValueError("Refusing to delete without filters")

        sql = f"DELETE FROM {table} WHERE " + " AND ".join(f"{c} = :{c}" for c in columns)
        try:
            with self.session_factory() as db:
                return db.execute(text(sql), filters).rowcount
        except SQLAlchemyError as e:
            raise DatastoreError(classify_error(e), str(getattr(e, "orig", e))) from e


_datastore: Optional[SQLDatastore] = None


def get_datastore() -> SQLDatastore:
    """FastAPI dependency - shared SQL datastore (override in tests)."""
    global _datastore
    if _datastore is None:
        _datastore = SQLDatastore()
    return _datastore
