"""Aggregate queries behind the ``/api/stats`` endpoints.

Every method returns plain rows; shaping and derived metrics live in
``todo_api.core.stats``. Each query runs in its own session, so "now" is
evaluated per query.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime

from todo_api.core.models import Granularity
from todo_api.db.postgres import PostgresDB


@dataclass
class TodoStatsFilters:
    user_id: int | None = None
    category_id: int | None = None
    date_from: datetime | None = None
    date_to: datetime | None = None

    def conditions(self) -> tuple[list[str], dict]:
        conditions = []
        params: dict = {}
        if self.user_id is not None:
            conditions.append("t.user_id = %(user_id)s")
            params["user_id"] = self.user_id
        if self.category_id is not None:
            conditions.append("t.category_id = %(category_id)s")
            params["category_id"] = self.category_id
        if self.date_from is not None:
            conditions.append("t.created_at >= %(date_from)s")
            params["date_from"] = self.date_from
        if self.date_to is not None:
            conditions.append("t.created_at <= %(date_to)s")
            params["date_to"] = self.date_to
        return conditions, params


def _where(conditions: list[str]) -> str:
    if not conditions:
        return ""
    return "WHERE " + " AND ".join(conditions)


def _join_filter(conditions: list[str]) -> str:
    if not conditions:
        return ""
    return "AND " + " AND ".join(conditions)


class StatsRepository:
    def __init__(self, db: PostgresDB):
        self._db = db

    # --- Overview ---

    def overview_counts(self, user_id: int) -> dict:
        return self._db.fetch_one(
            """
            SELECT
                (SELECT COUNT(*) FROM users) AS total_users,
                COUNT(DISTINCT category_id) AS total_categories,
                COUNT(*) AS total_todos,
                COUNT(*) FILTER (WHERE completed) AS completed_todos,
                COUNT(*) FILTER (WHERE NOT completed) AS pending_todos,
                COUNT(*) FILTER (
                    WHERE due_date < CURRENT_TIMESTAMP AND NOT completed
                ) AS overdue_todos
            FROM todos
            WHERE user_id = %(user_id)s
            """,
            {"user_id": user_id},
        )

    def priority_counts(self, user_id: int) -> list[dict]:
        return self._db.fetch_all(
            """
            SELECT
                priority,
                COUNT(*) AS count,
                COUNT(*) FILTER (WHERE completed) AS completed,
                COUNT(*) FILTER (WHERE NOT completed) AS pending
            FROM todos
            WHERE user_id = %s
            GROUP BY priority
            """,
            (user_id,),
        )

    def created_per_day(self, user_id: int, days: int = 7) -> list[dict]:
        return self._db.fetch_all(
            """
            SELECT DATE(created_at) AS date, COUNT(*) AS todos_created
            FROM todos
            WHERE created_at >= CURRENT_DATE - make_interval(days => %(days)s)
              AND user_id = %(user_id)s
            GROUP BY DATE(created_at)
            ORDER BY date DESC
            """,
            {"user_id": user_id, "days": days},
        )

    def completed_per_day(self, user_id: int, days: int = 7) -> list[dict]:
        return self._db.fetch_all(
            """
            SELECT DATE(updated_at) AS date, COUNT(*) AS todos_completed
            FROM todos
            WHERE completed
              AND updated_at >= CURRENT_DATE - make_interval(days => %(days)s)
              AND user_id = %(user_id)s
            GROUP BY DATE(updated_at)
            ORDER BY date DESC
            """,
            {"user_id": user_id, "days": days},
        )

    def category_totals(self, user_id: int) -> list[dict]:
        """Todo totals for each of the user's categories plus the uncategorized bucket."""
        return self._db.fetch_all(
            """
            SELECT c.name AS category_name, COUNT(t.id) AS total_todos
            FROM (
                SELECT id, name FROM categories WHERE user_id = %(user_id)s
                UNION ALL
                SELECT NULL::integer AS id, 'Uncategorized' AS name
            ) c
            LEFT JOIN todos t
                ON t.user_id = %(user_id)s
               AND t.category_id IS NOT DISTINCT FROM c.id
            GROUP BY c.id, c.name
            ORDER BY total_todos DESC, c.name
            """,
            {"user_id": user_id},
        )

    # --- Detailed todo statistics ---

    def todo_basic_stats(self, filters: TodoStatsFilters) -> dict:
        conditions, params = filters.conditions()
        return self._db.fetch_one(
            f"""
            SELECT
                COUNT(*) AS total,
                COUNT(*) FILTER (WHERE t.completed) AS completed,
                COUNT(*) FILTER (WHERE NOT t.completed) AS pending,
                COUNT(*) FILTER (
                    WHERE t.due_date < CURRENT_TIMESTAMP AND NOT t.completed
                ) AS overdue,
                COUNT(*) FILTER (WHERE t.priority = 'high') AS high_priority,
                COUNT(*) FILTER (WHERE t.priority = 'medium') AS medium_priority,
                COUNT(*) FILTER (WHERE t.priority = 'low') AS low_priority,
                AVG(EXTRACT(EPOCH FROM (t.updated_at - t.created_at)) / 3600)
                    FILTER (WHERE t.completed) AS avg_completion_time_hours
            FROM todos t
            {_where(conditions)}
            """,
            params,
        )

    def todo_category_stats(self, filters: TodoStatsFilters) -> list[dict]:
        conditions, params = filters.conditions()
        return self._db.fetch_all(
            f"""
            SELECT
                c.id AS category_id,
                c.name AS category_name,
                c.color AS category_color,
                COUNT(t.id) AS total_todos,
                COUNT(t.id) FILTER (WHERE t.completed) AS completed_todos,
                COUNT(t.id) FILTER (WHERE NOT t.completed) AS pending_todos
            FROM categories c
            JOIN todos t ON c.id = t.category_id {_join_filter(conditions)}
            GROUP BY c.id, c.name, c.color
            ORDER BY total_todos DESC, c.name
            """,
            params,
        )

    def todo_monthly_trends(self, filters: TodoStatsFilters, months: int = 6) -> list[dict]:
        conditions, params = filters.conditions()
        conditions.append("t.created_at >= CURRENT_DATE - make_interval(months => %(months)s)")
        return self._db.fetch_all(
            f"""
            SELECT
                DATE_TRUNC('month', t.created_at) AS month,
                COUNT(*) AS created,
                COUNT(*) FILTER (WHERE t.completed) AS completed
            FROM todos t
            {_where(conditions)}
            GROUP BY 1
            ORDER BY month DESC
            """,
            {**params, "months": months},
        )

    def top_users(self, filters: TodoStatsFilters, limit: int = 10) -> list[dict]:
        conditions, params = filters.conditions()
        return self._db.fetch_all(
            f"""
            SELECT
                u.id,
                u.username,
                u.first_name,
                u.last_name,
                COUNT(t.id) AS total_todos,
                COUNT(t.id) FILTER (WHERE t.completed) AS completed_todos,
                ROUND(
                    COUNT(t.id) FILTER (WHERE t.completed)::numeric
                    / NULLIF(COUNT(t.id), 0) * 100, 2
                ) AS completion_rate
            FROM users u
            JOIN todos t ON u.id = t.user_id {_join_filter(conditions)}
            GROUP BY u.id, u.username, u.first_name, u.last_name
            ORDER BY total_todos DESC, u.id
            LIMIT %(limit)s
            """,
            {**params, "limit": limit},
        )

    # --- Users ---

    def user_summary(self) -> dict:
        return self._db.fetch_one(
            """
            SELECT
                COUNT(*) AS total_users,
                COUNT(*) FILTER (
                    WHERE created_at >= CURRENT_DATE - INTERVAL '30 days'
                ) AS new_users_last_30_days,
                COUNT(*) FILTER (
                    WHERE created_at >= CURRENT_DATE - INTERVAL '7 days'
                ) AS new_users_last_7_days
            FROM users
            """
        )

    def user_activity(self) -> list[dict]:
        return self._db.fetch_all(
            """
            SELECT
                u.id,
                u.username,
                u.first_name,
                u.last_name,
                u.created_at AS joined_date,
                COUNT(t.id) AS total_todos,
                COUNT(t.id) FILTER (WHERE t.completed) AS completed_todos,
                COUNT(t.id) FILTER (WHERE NOT t.completed) AS pending_todos,
                COUNT(t.id) FILTER (
                    WHERE t.created_at >= CURRENT_DATE - INTERVAL '7 days'
                ) AS todos_last_7_days,
                ROUND(
                    COUNT(t.id) FILTER (WHERE t.completed)::numeric
                    / NULLIF(COUNT(t.id), 0) * 100, 2
                ) AS completion_rate,
                MAX(t.created_at) AS last_todo_created
            FROM users u
            LEFT JOIN todos t ON u.id = t.user_id
            GROUP BY u.id, u.username, u.first_name, u.last_name, u.created_at
            ORDER BY total_todos DESC, u.id
            """
        )

    def registration_trends(self, months: int = 6) -> list[dict]:
        return self._db.fetch_all(
            """
            SELECT DATE_TRUNC('month', created_at) AS month, COUNT(*) AS new_users
            FROM users
            WHERE created_at >= CURRENT_DATE - make_interval(months => %(months)s)
            GROUP BY 1
            ORDER BY month DESC
            """,
            {"months": months},
        )

    def most_active_users(self, days: int = 30, limit: int = 10) -> list[dict]:
        return self._db.fetch_all(
            """
            SELECT
                u.id,
                u.username,
                u.first_name,
                u.last_name,
                COUNT(t.id) AS todos_last_30_days,
                COUNT(t.id) FILTER (WHERE t.completed) AS completed_last_30_days
            FROM users u
            JOIN todos t ON u.id = t.user_id
            WHERE t.created_at >= CURRENT_DATE - make_interval(days => %(days)s)
            GROUP BY u.id, u.username, u.first_name, u.last_name
            ORDER BY todos_last_30_days DESC, u.id
            LIMIT %(limit)s
            """,
            {"days": days, "limit": limit},
        )

    # --- Categories ---

    def category_usage(self, user_id: int) -> list[dict]:
        return self._db.fetch_all(
            """
            SELECT
                c.id,
                c.name,
                c.color,
                c.created_at,
                COUNT(t.id) AS total_todos,
                COUNT(t.id) FILTER (WHERE t.completed) AS completed_todos,
                COUNT(t.id) FILTER (WHERE NOT t.completed) AS pending_todos,
                COUNT(t.id) FILTER (
                    WHERE t.created_at >= CURRENT_DATE - INTERVAL '30 days'
                ) AS todos_last_30_days,
                COUNT(DISTINCT t.user_id) AS unique_users
            FROM categories c
            LEFT JOIN todos t ON c.id = t.category_id AND t.user_id = %(user_id)s
            WHERE c.user_id = %(user_id)s
            GROUP BY c.id, c.name, c.color, c.created_at
            ORDER BY total_todos DESC, c.name
            """,
            {"user_id": user_id},
        )

    def uncategorized_counts(self, user_id: int) -> dict:
        return self._db.fetch_one(
            """
            SELECT
                COUNT(*) AS total,
                COUNT(*) FILTER (WHERE completed) AS completed,
                COUNT(*) FILTER (
                    WHERE created_at >= CURRENT_DATE - INTERVAL '30 days'
                ) AS last_30_days
            FROM todos
            WHERE category_id IS NULL AND user_id = %s
            """,
            (user_id,),
        )

    def category_trends(self, user_id: int, months: int = 6) -> list[dict]:
        return self._db.fetch_all(
            """
            SELECT
                c.name AS category_name,
                DATE_TRUNC('month', t.created_at) AS month,
                COUNT(t.id) AS todos_created
            FROM categories c
            JOIN todos t ON c.id = t.category_id
            WHERE t.created_at >= CURRENT_DATE - make_interval(months => %(months)s)
              AND t.user_id = %(user_id)s
            GROUP BY c.id, c.name, 2
            ORDER BY month DESC, todos_created DESC
            """,
            {"user_id": user_id, "months": months},
        )

    # --- Trends ---

    def trends(self, user_id: int, days: int, granularity: Granularity) -> list[dict]:
        limit = -(-days // 7) if granularity is Granularity.WEEKLY else days
        return self._db.fetch_all(
            """
            SELECT
                DATE_TRUNC(%(unit)s, created_at) AS date,
                COUNT(*) AS created_count,
                COUNT(*) FILTER (WHERE completed) AS completed_count
            FROM todos
            WHERE created_at >= CURRENT_DATE - make_interval(days => %(days)s)
              AND user_id = %(user_id)s
            GROUP BY 1
            ORDER BY 1 DESC
            LIMIT %(limit)s
            """,
            {
                "unit": granularity.date_trunc_unit,
                "days": days,
                "user_id": user_id,
                "limit": limit,
            },
        )

    # --- Productivity ---

    def avg_completion_hours(self, user_id: int) -> float | None:
        row = self._db.fetch_one(
            """
            SELECT AVG(EXTRACT(EPOCH FROM (updated_at - created_at)) / 3600)
                AS avg_completion_time_hours
            FROM todos
            WHERE completed AND user_id = %s
            """,
            (user_id,),
        )
        value = row["avg_completion_time_hours"]
        return float(value) if value is not None else None

    def daily_productivity(self, user_id: int, days: int = 30) -> list[dict]:
        return self._db.fetch_all(
            """
            SELECT
                DATE(created_at) AS date,
                COUNT(*) AS todos_created,
                COUNT(*) FILTER (WHERE completed) AS todos_completed,
                ROUND(
                    COUNT(*) FILTER (WHERE completed)::numeric
                    / NULLIF(COUNT(*), 0) * 100, 2
                ) AS daily_completion_rate
            FROM todos
            WHERE created_at >= CURRENT_DATE - make_interval(days => %(days)s)
              AND user_id = %(user_id)s
            GROUP BY DATE(created_at)
            ORDER BY date DESC
            """,
            {"user_id": user_id, "days": days},
        )

    def productivity_counts(self, user_id: int) -> dict:
        return self._db.fetch_one(
            """
            SELECT
                COUNT(*) AS total_todos,
                COUNT(*) FILTER (WHERE completed) AS completed_todos,
                COUNT(*) FILTER (
                    WHERE due_date < CURRENT_TIMESTAMP AND NOT completed
                ) AS overdue_todos
            FROM todos
            WHERE user_id = %s
            """,
            (user_id,),
        )

    def category_completion(self, user_id: int, min_todos: int = 2) -> list[dict]:
        return self._db.fetch_all(
            """
            SELECT
                c.name AS category_name,
                COUNT(t.id) AS total_todos,
                COUNT(t.id) FILTER (WHERE t.completed) AS completed_todos
            FROM categories c
            JOIN todos t ON c.id = t.category_id
            WHERE t.user_id = %(user_id)s
            GROUP BY c.id, c.name
            HAVING COUNT(t.id) >= %(min_todos)s
            """,
            {"user_id": user_id, "min_todos": min_todos},
        )

    def completion_dates(self, user_id: int, within_days: int | None = None) -> list[date]:
        """Distinct calendar dates on which the user completed at least one todo."""
        window = ""
        params: dict = {"user_id": user_id}
        if within_days is not None:
            window = "AND updated_at >= CURRENT_DATE - make_interval(days => %(days)s)"
            params["days"] = within_days

        rows = self._db.fetch_all(
            f"""
            SELECT DISTINCT DATE(updated_at) AS completion_date
            FROM todos
            WHERE completed AND user_id = %(user_id)s {window}
            ORDER BY completion_date
            """,
            params,
        )
        return [row["completion_date"] for row in rows]
