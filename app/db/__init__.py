"""
Database module - PostgreSQL, MongoDB and the datastore collaborator.
"""
from app.db.postgres import get_db_session, test_postgres_connection
from app.db.mongodb import get_mongo_db, test_mongo_connection
from app.db.datastore import (
    DatastoreError, DatastoreErrorKind, SQLDatastore, get_datastore
)

__all__ = [
    "get_db_session",
    "test_postgres_connection",
    "get_mongo_db",
    "test_mongo_connection",
    "DatastoreError",
    "DatastoreErrorKind",
    "SQLDatastore",
    "get_datastore",
]
