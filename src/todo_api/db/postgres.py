"""PostgreSQL database client for the Todo API."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Generator

import psycopg
import structlog
from psycopg.rows import dict_row

from todo_api.config import get_settings

logger = structlog.get_logger()

USER_COLUMNS = "id, username, email, first_name, last_name, created_at, updated_at"

CATEGORY_COLUMNS = "c.id, c.name, c.description, c.color, c.user_id, c.created_at, c.updated_at"

TODO_SELECT = """
    SELECT t.id, t.title, t.description, t.completed, t.priority, t.due_date,
           t.user_id, t.category_id, t.created_at, t.updated_at,
           (t.due_date IS NOT NULL
            AND t.due_date < CURRENT_TIMESTAMP
            AND NOT t.completed) AS is_overdue,
           u.username, u.first_name, u.last_name,
           c.name AS category_name, c.color AS category_color
    FROM todos t
    LEFT JOIN users u ON t.user_id = u.id
    LEFT JOIN categories c ON t.category_id = c.id
"""

TODO_SORT_FIELDS = ("created_at", "updated_at", "title", "due_date", "priority")

USER_UPDATE_FIELDS = ("username", "email", "first_name", "last_name", "password")
CATEGORY_UPDATE_FIELDS = ("name", "description", "color")
TODO_UPDATE_FIELDS = ("title", "description", "priority", "due_date", "category_id", "completed")


def build_update(fields: Mapping[str, Any], allowed: Sequence[str]) -> tuple[str, dict]:
    """Build a ``SET`` clause from the present fields of a patch.

    Only columns listed in ``allowed`` are written; ``updated_at`` is always
    refreshed. Raises ``ValueError`` when the patch has nothing to write.
    """
    present = [column for column in allowed if column in fields]
    if not present:
        raise ValueError("No fields to update")

    assignments = [f"{column} = %({column})s" for column in present]
    assignments.append("updated_at = CURRENT_TIMESTAMP")
    return ", ".join(assignments), {column: fields[column] for column in present}


@dataclass
class TodoFilters:
    user_id: int | None = None
    category_id: int | None = None
    completed: bool | None = None
    priority: str | None = None
    due_date_from: datetime | None = None
    due_date_to: datetime | None = None
    search: str | None = None

    def where(self) -> tuple[str, dict]:
        conditions = []
        params: dict = {}

        if self.user_id is not None:
            conditions.append("t.user_id = %(user_id)s")
            params["user_id"] = self.user_id
        if self.category_id is not None:
            conditions.append("t.category_id = %(category_id)s")
            params["category_id"] = self.category_id
        if self.completed is not None:
            conditions.append("t.completed = %(completed)s")
            params["completed"] = self.completed
        if self.priority is not None:
            conditions.append("t.priority = %(priority)s")
            params["priority"] = self.priority
        if self.due_date_from is not None:
            conditions.append("t.due_date >= %(due_date_from)s")
            params["due_date_from"] = self.due_date_from
        if self.due_date_to is not None:
            conditions.append("t.due_date <= %(due_date_to)s")
            params["due_date_to"] = self.due_date_to
        if self.search:
            conditions.append("(t.title ILIKE %(search)s OR t.description ILIKE %(search)s)")
            params["search"] = f"%{self.search}%"

        where_clause = ""
        if conditions:
            where_clause = "WHERE " + " AND ".join(conditions)
        return where_clause, params


class ConnectionFactory:
    """Creates psycopg connections from the configured database settings."""

    def __init__(self):
        settings = get_settings()
        self._database = settings.database_name
        self._conninfo = settings.database.conninfo_kwargs(self._database)

        logger.info(
            "connection_factory_initialized",
            host=self._conninfo["host"],
            port=self._conninfo["port"],
            database=self._database,
            user=self._conninfo["user"],
        )

    def get_connection(self) -> psycopg.Connection:
        return psycopg.connect(**self._conninfo, row_factory=dict_row)


_factory: ConnectionFactory | None = None


def get_factory() -> ConnectionFactory:
    global _factory
    if _factory is None:
        _factory = ConnectionFactory()
    return _factory


class PostgresDB:
    """PostgreSQL database client using psycopg."""

    def __init__(self, factory: ConnectionFactory | None = None):
        self._factory = factory or get_factory()

    @contextmanager
    def session(self) -> Generator[psycopg.Connection, None, None]:
        conn = self._factory.get_connection()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def fetch_all(self, query: str, params: Mapping | Sequence = ()) -> list[dict]:
        with self.session() as conn:
            with conn.cursor() as cur:
                cur.execute(query, params)
                return cur.fetchall()

    def fetch_one(self, query: str, params: Mapping | Sequence = ()) -> dict | None:
        with self.session() as conn:
            with conn.cursor() as cur:
                cur.execute(query, params)
                return cur.fetchone()

    def health_check(self) -> bool:
        try:
            self.fetch_one("SELECT 1 AS ok")
            return True
        except Exception as e:
            logger.error("database_health_check_failed", error=str(e))
            return False

    # --- Users ---

    def create_user(
        self,
        username: str,
        email: str,
        password_hash: str,
        first_name: str | None = None,
        last_name: str | None = None,
    ) -> dict:
        return self.fetch_one(
            f"""
            INSERT INTO users (username, email, password, first_name, last_name)
            VALUES (%s, %s, %s, %s, %s)
            RETURNING {USER_COLUMNS}
            """,
            (username, email, password_hash, first_name, last_name),
        )

    def get_user(self, user_id: int) -> dict | None:
        return self.fetch_one(f"SELECT {USER_COLUMNS} FROM users WHERE id = %s", (user_id,))

    def get_user_credentials(self, login: str) -> dict | None:
        """Look a user up by username or email, including the password hash."""
        return self.fetch_one(
            f"""
            SELECT {USER_COLUMNS}, password
            FROM users
            WHERE username = %(login)s OR email = %(login)s
            ORDER BY username = %(login)s DESC
            LIMIT 1
            """,
            {"login": login},
        )

    def user_conflict_exists(
        self,
        username: str | None,
        email: str | None,
        exclude_id: int | None = None,
    ) -> bool:
        row = self.fetch_one(
            """
            SELECT id FROM users
            WHERE (username = %(username)s OR email = %(email)s)
              AND (%(exclude_id)s::integer IS NULL OR id <> %(exclude_id)s::integer)
            LIMIT 1
            """,
            {"username": username, "email": email, "exclude_id": exclude_id},
        )
        return row is not None

    def list_users(self, limit: int = 50, offset: int = 0) -> tuple[list[dict], int]:
        rows = self.fetch_all(
            f"""
            SELECT {USER_COLUMNS}
            FROM users
            ORDER BY created_at DESC
            LIMIT %s OFFSET %s
            """,
            (limit, offset),
        )
        total = self.fetch_one("SELECT COUNT(*) AS count FROM users")["count"]
        return rows, total

    def get_user_todo_stats(self, user_id: int) -> dict:
        return self.fetch_one(
            """
            SELECT
                COUNT(*) AS total_todos,
                COUNT(*) FILTER (WHERE completed) AS completed_todos,
                COUNT(*) FILTER (WHERE NOT completed) AS pending_todos
            FROM todos WHERE user_id = %s
            """,
            (user_id,),
        )

    def update_user(self, user_id: int, fields: Mapping[str, Any]) -> dict | None:
        set_clause, params = build_update(fields, USER_UPDATE_FIELDS)
        params["id"] = user_id
        return self.fetch_one(
            f"""
            UPDATE users
            SET {set_clause}
            WHERE id = %(id)s
            RETURNING {USER_COLUMNS}
            """,
            params,
        )

    def delete_user(self, user_id: int) -> str | None:
        row = self.fetch_one("DELETE FROM users WHERE id = %s RETURNING username", (user_id,))
        if row is None:
            return None
        return row["username"]

    # --- Categories ---

    def list_categories(
        self, user_id: int | None = None, limit: int = 50, offset: int = 0
    ) -> tuple[list[dict], int]:
        where_clause = ""
        params: dict = {"limit": limit, "offset": offset}
        if user_id is not None:
            where_clause = "WHERE c.user_id = %(user_id)s"
            params["user_id"] = user_id

        rows = self.fetch_all(
            f"""
            SELECT {CATEGORY_COLUMNS}, COUNT(t.id) AS todo_count
            FROM categories c
            LEFT JOIN todos t ON c.id = t.category_id
            {where_clause}
            GROUP BY c.id
            ORDER BY c.created_at DESC, c.id DESC
            LIMIT %(limit)s OFFSET %(offset)s
            """,
            params,
        )
        total = self.fetch_one(
            f"SELECT COUNT(*) AS count FROM categories c {where_clause}", params
        )["count"]
        return rows, total

    def get_category(self, category_id: int) -> dict | None:
        return self.fetch_one(
            f"""
            SELECT {CATEGORY_COLUMNS},
                   COUNT(t.id) AS todo_count,
                   COUNT(t.id) FILTER (WHERE t.completed) AS completed_todos,
                   COUNT(t.id) FILTER (WHERE NOT t.completed) AS pending_todos
            FROM categories c
            LEFT JOIN todos t ON c.id = t.category_id
            WHERE c.id = %s
            GROUP BY c.id
            """,
            (category_id,),
        )

    def category_owned_by(self, category_id: int, user_id: int) -> bool:
        row = self.fetch_one(
            "SELECT id FROM categories WHERE id = %s AND user_id = %s",
            (category_id, user_id),
        )
        return row is not None

    def category_name_taken(
        self, user_id: int, name: str, exclude_id: int | None = None
    ) -> bool:
        row = self.fetch_one(
            """
            SELECT id FROM categories
            WHERE user_id = %(user_id)s AND name = %(name)s
              AND (%(exclude_id)s::integer IS NULL OR id <> %(exclude_id)s::integer)
            LIMIT 1
            """,
            {"user_id": user_id, "name": name, "exclude_id": exclude_id},
        )
        return row is not None

    def create_category(
        self,
        user_id: int,
        name: str,
        description: str | None = None,
        color: str = "#007bff",
    ) -> dict:
        return self.fetch_one(
            """
            INSERT INTO categories (name, description, color, user_id)
            VALUES (%s, %s, %s, %s)
            RETURNING id, name, description, color, user_id, created_at, updated_at
            """,
            (name, description, color, user_id),
        )

    def update_category(self, category_id: int, fields: Mapping[str, Any]) -> dict | None:
        set_clause, params = build_update(fields, CATEGORY_UPDATE_FIELDS)
        params["id"] = category_id
        return self.fetch_one(
            f"""
            UPDATE categories
            SET {set_clause}
            WHERE id = %(id)s
            RETURNING id, name, description, color, user_id, created_at, updated_at
            """,
            params,
        )

    def delete_category(self, category_id: int) -> tuple[dict, int] | None:
        """Delete a category; referencing todos keep existing with a null category."""
        with self.session() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    "SELECT COUNT(*) AS count FROM todos WHERE category_id = %s",
                    (category_id,),
                )
                affected = cur.fetchone()["count"]
                cur.execute(
                    """
                    DELETE FROM categories WHERE id = %s
                    RETURNING id, name, description, color, user_id, created_at, updated_at
                    """,
                    (category_id,),
                )
                row = cur.fetchone()

        if row is None:
            return None
        return row, affected

    # --- Todos ---

    def list_todos(
        self,
        filters: TodoFilters,
        limit: int = 50,
        offset: int = 0,
        sort_by: str = "created_at",
        sort_order: str = "DESC",
    ) -> tuple[list[dict], int]:
        where_clause, params = filters.where()

        sort_field = sort_by if sort_by in TODO_SORT_FIELDS else "created_at"
        sort_direction = "ASC" if sort_order.upper() == "ASC" else "DESC"

        rows = self.fetch_all(
            f"""
            {TODO_SELECT}
            {where_clause}
            ORDER BY t.{sort_field} {sort_direction}, t.id {sort_direction}
            LIMIT %(limit)s OFFSET %(offset)s
            """,
            {**params, "limit": limit, "offset": offset},
        )
        total = self.fetch_one(
            f"SELECT COUNT(*) AS count FROM todos t {where_clause}", params
        )["count"]
        return rows, total

    def get_todo(self, todo_id: int) -> dict | None:
        return self.fetch_one(f"{TODO_SELECT} WHERE t.id = %s", (todo_id,))

    def get_todo_owner(self, todo_id: int) -> int | None:
        row = self.fetch_one("SELECT user_id FROM todos WHERE id = %s", (todo_id,))
        if row is None:
            return None
        return row["user_id"]

    def create_todo(
        self,
        user_id: int,
        title: str,
        description: str | None = None,
        priority: str = "medium",
        due_date: datetime | None = None,
        category_id: int | None = None,
    ) -> dict:
        row = self.fetch_one(
            """
            INSERT INTO todos (title, description, priority, due_date, user_id, category_id)
            VALUES (%s, %s, %s, %s, %s, %s)
            RETURNING id
            """,
            (title, description, priority, due_date, user_id, category_id),
        )
        return self.get_todo(row["id"])

    def update_todo(self, todo_id: int, fields: Mapping[str, Any]) -> dict | None:
        set_clause, params = build_update(fields, TODO_UPDATE_FIELDS)
        params["id"] = todo_id
        row = self.fetch_one(
            f"UPDATE todos SET {set_clause} WHERE id = %(id)s RETURNING id",
            params,
        )
        if row is None:
            return None
        return self.get_todo(row["id"])

    def delete_todo(self, todo_id: int) -> dict | None:
        return self.fetch_one(
            """
            DELETE FROM todos WHERE id = %s
            RETURNING id, title, description, completed, priority, due_date,
                      user_id, category_id, created_at, updated_at
            """,
            (todo_id,),
        )

    def set_todo_completed(self, todo_id: int, user_id: int, completed: bool) -> dict | None:
        row = self.fetch_one(
            """
            UPDATE todos
            SET completed = %s, updated_at = CURRENT_TIMESTAMP
            WHERE id = %s AND user_id = %s
            RETURNING id
            """,
            (completed, todo_id, user_id),
        )
        if row is None:
            return None
        return self.get_todo(row["id"])


_db: PostgresDB | None = None


def get_db() -> PostgresDB:
    global _db
    if _db is None:
        _db = PostgresDB()
    return _db
