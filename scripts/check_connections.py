#!/usr/bin/env python3
"""
Connection Check Script

Run this to verify both database connections and the signup tables.
Usage: python scripts/check_connections.py
"""
import sys
sys.path.insert(0, '.')

from app.core.config import get_settings
from app.db.datastore import ALLOWED_TABLES
from app.db.mongodb import test_mongo_connection
from app.db.postgres import execute_raw_sql, test_postgres_connection


def main():
    settings = get_settings()
    print("=" * 50)
    print("SKILLBRIDGE MARKETPLACE - CONNECTION CHECK")
    print("=" * 50)

    # PostgreSQL
    print("\n[1] Checking PostgreSQL...")
    print(f"    URL: postgresql://{settings.postgres_user}:****@{settings.postgres_host}:{settings.postgres_port}/{settings.postgres_db}")
    postgres_ok = test_postgres_connection()
    if postgres_ok:
        print("    ✅ PostgreSQL: CONNECTED")
    else:
        print("    ❌ PostgreSQL: FAILED")

    # Schema (only when connected)
    print("\n[2] Checking schema...")
    if postgres_ok:
        rows = execute_raw_sql(
            "SELECT table_name FROM information_schema.tables WHERE table_schema = 'public'"
        )
        missing = sorted(ALLOWED_TABLES - {r["table_name"] for r in rows})
        if missing:
            print(f"    ❌ Missing tables: {', '.join(missing)}")
            print("       Run: psql -f sql/schema.sql")
        else:
            print(f"    ✅ All {len(ALLOWED_TABLES)} tables present")
    else:
        print("    ⚠️  Skipped (PostgreSQL not reachable)")

    # MongoDB
    print("\n[3] Checking MongoDB...")
    print(f"    URI: {settings.mongodb_uri}")
    print(f"    Database: {settings.mongodb_db}")
    if test_mongo_connection():
        print("    ✅ MongoDB: CONNECTED")
    else:
        print("    ❌ MongoDB: FAILED")

    print(f"\n    Signup retry: {settings.profile_max_attempts} attempts, base delay {settings.profile_base_delay}s")

    print("\n" + "=" * 50)
    print("Connection check complete!")
    print("=" * 50)


if __name__ == "__main__":
    main()
