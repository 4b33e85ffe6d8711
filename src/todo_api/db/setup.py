"""Database bootstrap shared by migrations and the setup scripts."""

from __future__ import annotations

import psycopg
import structlog
from psycopg import sql

from todo_api.config import DatabaseSettings

logger = structlog.get_logger()

MAINTENANCE_DATABASE = "postgres"


def ensure_database(settings: DatabaseSettings, database: str) -> bool:
    """Create ``database`` if it does not exist. Returns True when created."""
    conn = psycopg.connect(**settings.conninfo_kwargs(MAINTENANCE_DATABASE), autocommit=True)
    try:
        conn.execute(sql.SQL("CREATE DATABASE {}").format(sql.Identifier(database)))
        logger.info("database_created", database=database)
        return True
    except psycopg.errors.DuplicateDatabase:
        logger.info("database_exists", database=database)
        return False
    finally:
        conn.close()
