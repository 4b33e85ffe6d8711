"""Alembic environment configuration.

The database URL is built from the application's ``DB_*`` settings, so
migrations and the API always agree on the target. The database is created
first when it does not exist yet.
"""

from __future__ import annotations

import sys
from pathlib import Path

from alembic import context
from sqlalchemy import engine_from_config, pool

# Ensure src/ is importable
sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from todo_api.config import get_settings  # noqa: E402
from todo_api.db.schemas import Base  # noqa: E402
from todo_api.db.setup import ensure_database  # noqa: E402

config = context.config
target_metadata = Base.metadata


def _database_url() -> str:
    settings = get_settings()
    return settings.database.sqlalchemy_url(settings.database_name)


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode, emitting SQL to stdout."""
    context.configure(
        url=_database_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode against the configured database."""
    settings = get_settings()
    ensure_database(settings.database, settings.database_name)

    cfg = config.get_section(config.config_ini_section, {})
    cfg["sqlalchemy.url"] = _database_url()

    connectable = engine_from_config(
        cfg,
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
