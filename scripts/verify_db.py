"""Print row counts and id sequence values for the configured database.

Usage:
    uv run python scripts/verify_db.py
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure src/ is importable
sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from todo_api.config import get_settings  # noqa: E402
from todo_api.db.postgres import PostgresDB  # noqa: E402

TABLES = ("users", "categories", "todos")


def main() -> None:
    settings = get_settings()
    db = PostgresDB()
    print(f"Verifying database '{settings.database_name}'...\n")

    counts = {}
    for table in TABLES:
        counts[table] = db.fetch_one(f"SELECT COUNT(*) AS count FROM {table}")["count"]
        print(f"  {table.capitalize():<11} {counts[table]}")

    print("\nSequence values:")
    for table in TABLES:
        row = db.fetch_one(f"SELECT last_value FROM {table}_id_seq")
        print(f"  {table}_id_seq: {row['last_value']}")

    total = sum(counts.values())
    if total == 0:
        print("\nDatabase is empty.")
    else:
        print(f"\nDatabase contains {total} records.")
        print("Run 'uv run python scripts/seed_db.py --reset' to start over with demo data.")


if __name__ == "__main__":
    main()
