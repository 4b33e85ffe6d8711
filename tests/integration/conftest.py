from datetime import datetime

import psycopg
import pytest
from sqlalchemy import create_engine

from todo_api.config import get_settings
from todo_api.core.security import hash_password
from todo_api.db.postgres import ConnectionFactory, PostgresDB
from todo_api.db.schemas import Base
from todo_api.db.setup import ensure_database
from todo_api.db.stats import StatsRepository


@pytest.fixture(scope="session")
def database_url():
    """URL of the test database, created on first use.

    Tests in this package need a reachable PostgreSQL server (``DB_*``
    settings, ``DB_TEST_NAME`` database) and are skipped without one.
    """
    settings = get_settings()
    try:
        ensure_database(settings.database, settings.database_name)
    except psycopg.OperationalError as e:
        pytest.skip(f"PostgreSQL test database is not available: {e}")
    return settings.database.sqlalchemy_url(settings.database_name)


@pytest.fixture
def setup_database(database_url):
    """Fresh tables for every test, dropped afterwards."""
    engine = create_engine(database_url)
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    yield
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def pg(setup_database):
    return PostgresDB(ConnectionFactory())


@pytest.fixture
def repo(pg):
    return StatsRepository(pg)


@pytest.fixture
def make_user(pg):
    def create(username: str = "alice") -> int:
        user = pg.create_user(
            username=username,
            email=f"{username}@example.com",
            password_hash=hash_password("password123"),
        )
        return user["id"]

    return create


@pytest.fixture
def add_todo(pg):
    """Insert a todo, then backdate its timestamps and completion state."""

    def create(
        user_id: int,
        title: str = "Task",
        *,
        completed: bool = False,
        category_id: int | None = None,
        priority: str = "medium",
        due_date: datetime | None = None,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ) -> int:
        todo = pg.create_todo(
            user_id=user_id,
            title=title,
            priority=priority,
            due_date=due_date,
            category_id=category_id,
        )
        pg.fetch_one(
            """
            UPDATE todos
            SET completed = %(completed)s,
                created_at = COALESCE(%(created_at)s::timestamp, created_at),
                updated_at = COALESCE(%(updated_at)s::timestamp, updated_at)
            WHERE id = %(id)s
            RETURNING id
            """,
            {
                "id": todo["id"],
                "completed": completed,
                "created_at": created_at,
                "updated_at": updated_at,
            },
        )
        return todo["id"]

    return create
