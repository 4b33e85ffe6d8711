import os
import random
import sys
from datetime import datetime
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

sys.path.append(str(Path(__file__).parents[1] / "src"))

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("JWT_SECRET", "test-secret")

from todo_api.api.deps import get_stats_repository  # noqa: E402
from todo_api.api.main import app  # noqa: E402
from todo_api.core.security import create_access_token  # noqa: E402
from todo_api.core.simulation import SimulationService  # noqa: E402
from todo_api.db.postgres import PostgresDB, get_db  # noqa: E402
from todo_api.db.stats import StatsRepository  # noqa: E402

CREATED_AT = datetime(2026, 10, 1, 9, 30)

USER_ROW = {
    "id": 1,
    "username": "alice",
    "email": "alice@example.com",
    "first_name": "Alice",
    "last_name": "Johnson",
    "created_at": CREATED_AT,
    "updated_at": CREATED_AT,
}


def _todo_row(**overrides) -> dict:
    row = {
        "id": 10,
        "title": "Buy groceries",
        "description": "milk, bread, eggs",
        "completed": False,
        "priority": "medium",
        "due_date": None,
        "user_id": 1,
        "category_id": None,
        "created_at": CREATED_AT,
        "updated_at": CREATED_AT,
        "is_overdue": False,
        "username": "alice",
        "first_name": "Alice",
        "last_name": "Johnson",
        "category_name": None,
        "category_color": None,
    }
    row.update(overrides)
    return row


def _category_row(**overrides) -> dict:
    row = {
        "id": 5,
        "name": "Work",
        "description": "Work-related tasks",
        "color": "#007bff",
        "user_id": 1,
        "created_at": CREATED_AT,
        "updated_at": CREATED_AT,
    }
    row.update(overrides)
    return row


@pytest.fixture
def db():
    """Repository double; the signed-in user always exists unless a test says otherwise."""
    fake = MagicMock(spec=PostgresDB)
    fake.get_user.return_value = dict(USER_ROW)
    return fake


@pytest.fixture
def stats_repo():
    return MagicMock(spec=StatsRepository)


@pytest.fixture
def simulation():
    return SimulationService(rng=random.Random(1234))


@pytest.fixture
def client(db, stats_repo, simulation):
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_stats_repository] = lambda: stats_repo
    app.state.simulation = simulation
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {create_access_token(USER_ROW['id'])}"}


@pytest.fixture
def user_row():
    return dict(USER_ROW)


@pytest.fixture
def make_todo():
    return _todo_row


@pytest.fixture
def make_category():
    return _category_row
