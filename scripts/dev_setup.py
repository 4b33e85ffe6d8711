"""Developer environment setup for the Todo API.

Creates the application database if needed and runs migrations. Connection
settings come from the ``DB_*`` environment variables (or ``.env``).

Usage:
    uv run python scripts/dev_setup.py                    # create database + migrate
    uv run python scripts/dev_setup.py --test             # target the test database
    uv run python scripts/dev_setup.py --skip-migrations  # skip alembic
    uv run python scripts/dev_setup.py --seed             # also load demo data
"""

from __future__ import annotations

import argparse
import os
import subprocess
import sys
from pathlib import Path

# Ensure src/ is importable
sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

import psycopg  # noqa: E402

from todo_api.config import get_settings  # noqa: E402
from todo_api.db.setup import ensure_database  # noqa: E402

PROJECT_ROOT = Path(__file__).resolve().parents[1]


def _run(script: list[str], failure_hint: str) -> None:
    result = subprocess.run([sys.executable, *script], cwd=PROJECT_ROOT, env=os.environ.copy())
    if result.returncode != 0:
        print(f"\n{failure_hint}")
        sys.exit(1)


def main() -> None:
    parser = argparse.ArgumentParser(description="Set up local dev environment")
    parser.add_argument("--test", action="store_true", help="Set up the test database instead")
    parser.add_argument(
        "--skip-migrations", action="store_true", help="Skip running alembic migrations"
    )
    parser.add_argument("--seed", action="store_true", help="Load demo data after migrating")
    args = parser.parse_args()

    if args.test:
        os.environ["ENVIRONMENT"] = "test"
        get_settings.cache_clear()

    settings = get_settings()
    database = settings.database_name
    db_settings = settings.database

    # Step 1: Create application database
    print(f"Creating database '{database}' on {db_settings.host}:{db_settings.port}...")
    try:
        created = ensure_database(db_settings, database)
    except psycopg.OperationalError as e:
        print(f"  Could not connect to PostgreSQL: {e}")
        print("\nCheck DB_HOST, DB_PORT, DB_USER and DB_PASSWORD.")
        sys.exit(1)
    print(f"  Created database '{database}'" if created else f"  Database '{database}' already exists")

    # Step 2: Run migrations
    if args.skip_migrations:
        print("\nSkipping migrations (--skip-migrations)")
    else:
        print("\nRunning migrations...")
        _run(
            ["-m", "alembic", "upgrade", "head"],
            "Migrations failed. You can retry with:\n  uv run alembic upgrade head",
        )

    # Step 3: Demo data
    if args.seed:
        print("\nSeeding demo data...")
        _run(["scripts/seed_db.py"], "Seeding failed.")

    # Summary
    print("\n" + "=" * 60)
    print("Setup complete!")
    print("=" * 60)
    print(f"  Environment: {settings.environment}")
    print(f"  Database:    {database}")
    print()
    print("Start the API:")
    print("  uv run uvicorn app:app --reload --host 0.0.0.0 --port 8000")
    print()
    print("Open http://localhost:8000/api-docs")


if __name__ == "__main__":
    main()
