#!/usr/bin/env python3
"""Create the content pipeline tables on the configured database.

Usage:
    # Uses DATABASE_URL_STAGING by default (or DATABASE_URL)
    python scripts/init_db.py

    # Point at a specific database
    python scripts/init_db.py --database-url sqlite:///lattice.db

Exit codes:
    0  - tables created (or already present)
    2  - no database URL / connection error
"""
from __future__ import annotations

import argparse
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "lattice"))

from sqlalchemy import inspect, text  # noqa: E402

from db.postgres_db import get_database_url, init_engine  # noqa: E402
from db.schema import create_schema, metadata  # noqa: E402


def main():
    parser = argparse.ArgumentParser(description="Create content pipeline tables")
    parser.add_argument("--database-url", help="Override database URL (default: from environment)")
    args = parser.parse_args()

    try:
        db_url = args.database_url or get_database_url()
    except ValueError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(2)

    try:
        engine = init_engine(db_url)
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception as e:
        print(f"ERROR: Could not connect to database: {e}", file=sys.stderr)
        sys.exit(2)

    existing = set(inspect(engine).get_table_names())
    create_schema(engine)
    for table_name in metadata.tables:
        state = "exists" if table_name in existing else "created"
        print(f"  {table_name}: {state}")
    sys.exit(0)


if __name__ == "__main__":
    main()
