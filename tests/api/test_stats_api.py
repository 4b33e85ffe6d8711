"""API tests for the statistics endpoints."""

from datetime import date, datetime, timedelta

import psycopg
import pytest

from todo_api.core.models import Granularity
from todo_api.core.stats import STREAK_WINDOW_DAYS


@pytest.fixture
def overview_repo(stats_repo):
    stats_repo.overview_counts.return_value = {
        "total_users": 3,
        "total_categories": 1,
        "total_todos": 4,
        "completed_todos": 1,
        "pending_todos": 3,
        "overdue_todos": 1,
    }
    stats_repo.priority_counts.return_value = [
        {"priority": "low", "count": 4, "completed": 1, "pending": 3}
    ]
    stats_repo.category_totals.return_value = [
        {"category_name": "Work", "total_todos": 3},
        {"category_name": "Uncategorized", "total_todos": 1},
    ]
    stats_repo.created_per_day.return_value = [{"date": date(2026, 10, 17), "todos_created": 4}]
    stats_repo.completed_per_day.return_value = []
    return stats_repo


class TestOverview:
    def test_overview(self, client, overview_repo, auth_headers):
        response = client.get("/api/stats/overview", headers=auth_headers)

        assert response.status_code == 200
        stats = response.json()["stats"]
        assert stats["completion_rate"] == 0.25
        assert stats["overdue_todos"] == 1
        assert [b["priority"] for b in stats["todos_by_priority"]] == ["high", "medium", "low"]
        assert stats["priority_breakdown"] == {"high": 0, "medium": 0, "low": 4}
        assert stats["category_breakdown"][1]["category_name"] == "Uncategorized"
        assert stats["recent_activity"] == [{"date": "2026-10-17", "todos_created": 4}]
        overview_repo.overview_counts.assert_called_once_with(1)

    def test_priority_buckets_add_up(self, client, overview_repo, auth_headers):
        stats = client.get("/api/stats/overview", headers=auth_headers).json()["stats"]

        assert sum(b["count"] for b in stats["todos_by_priority"]) == stats["total_todos"]
        assert stats["completed_todos"] + stats["pending_todos"] == stats["total_todos"]

    def test_no_todos(self, client, overview_repo, auth_headers):
        overview_repo.overview_counts.return_value = dict.fromkeys(
            overview_repo.overview_counts.return_value, 0
        )
        overview_repo.priority_counts.return_value = []

        stats = client.get("/api/stats/overview", headers=auth_headers).json()["stats"]

        assert stats["completion_rate"] == 0
        assert all(b["count"] == 0 for b in stats["todos_by_priority"])

    def test_requires_token(self, client):
        response = client.get("/api/stats/overview")

        assert response.status_code == 401

    def test_query_failure(self, client, stats_repo, auth_headers):
        stats_repo.overview_counts.side_effect = psycopg.OperationalError("connection lost")

        response = client.get("/api/stats/overview", headers=auth_headers)

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to fetch overview statistics"}


class TestTodoStats:
    @pytest.fixture(autouse=True)
    def _rows(self, stats_repo):
        stats_repo.todo_basic_stats.return_value = {
            "total": 4,
            "completed": 1,
            "pending": 3,
            "overdue": 0,
            "high_priority": 1,
            "medium_priority": 2,
            "low_priority": 1,
            "avg_completion_time_hours": None,
        }
        stats_repo.todo_category_stats.return_value = []
        stats_repo.todo_monthly_trends.return_value = [
            {"month": datetime(2026, 10, 1), "created": 4, "completed": 1}
        ]
        stats_repo.top_users.return_value = [
            {
                "id": 1,
                "username": "alice",
                "total_todos": 4,
                "completed_todos": 1,
                "completion_rate": 25.0,
            }
        ]

    def test_across_users(self, client, stats_repo):
        response = client.get("/api/stats/todos")

        assert response.status_code == 200
        body = response.json()
        assert body["basic_stats"]["total"] == 4
        assert body["monthly_trends"][0]["completion_rate"] == 25.0
        assert body["top_users"][0]["username"] == "alice"

    def test_single_user_skips_ranking(self, client, stats_repo):
        response = client.get("/api/stats/todos?user_id=1&category_id=5")

        body = response.json()
        assert body["top_users"] == []
        assert body["filters"]["user_id"] == 1
        assert body["filters"]["category_id"] == 5
        stats_repo.top_users.assert_not_called()
        filters = stats_repo.todo_basic_stats.call_args.args[0]
        assert (filters.user_id, filters.category_id) == (1, 5)


class TestUserStats:
    def test_user_stats(self, client, stats_repo):
        stats_repo.user_summary.return_value = {
            "total_users": 2,
            "new_users_last_30_days": 2,
            "new_users_last_7_days": 1,
        }
        stats_repo.user_activity.return_value = []
        stats_repo.registration_trends.return_value = [
            {"month": datetime(2026, 10, 1), "new_users": 2}
        ]
        stats_repo.most_active_users.return_value = []

        response = client.get("/api/stats/users")

        assert response.status_code == 200
        assert response.json()["summary"]["total_users"] == 2
        assert response.json()["registration_trends"][0]["new_users"] == 2


class TestCategoryStats:
    def _usage(self, **overrides):
        row = {
            "id": 5,
            "name": "Work",
            "color": "#007bff",
            "created_at": datetime(2026, 9, 1),
            "total_todos": 4,
            "completed_todos": 1,
            "pending_todos": 3,
            "todos_last_30_days": 2,
            "unique_users": 1,
        }
        row.update(overrides)
        return row

    def test_uncategorized_bucket_is_appended(self, client, stats_repo, auth_headers):
        stats_repo.category_usage.return_value = [self._usage()]
        stats_repo.uncategorized_counts.return_value = {
            "total": 2,
            "completed": 2,
            "last_30_days": 1,
        }
        stats_repo.category_trends.return_value = []

        response = client.get("/api/stats/categories", headers=auth_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["uncategorized_todos"] == 2
        work, uncategorized = body["categories"]
        assert work["completion_rate"] == 0.25
        assert uncategorized["id"] is None
        assert uncategorized["name"] == "Uncategorized"
        assert uncategorized["completion_rate"] == 1

    def test_no_uncategorized_bucket_when_empty(self, client, stats_repo, auth_headers):
        stats_repo.category_usage.return_value = [self._usage(total_todos=0, completed_todos=0)]
        stats_repo.uncategorized_counts.return_value = {"total": 0, "completed": 0, "last_30_days": 0}
        stats_repo.category_trends.return_value = []

        body = client.get("/api/stats/categories", headers=auth_headers).json()

        assert len(body["categories"]) == 1
        assert body["categories"][0]["completion_rate"] == 0

    def test_category_rate_is_fraction_of_rounded_percentage(self, client, stats_repo, auth_headers):
        stats_repo.category_usage.return_value = [self._usage(total_todos=3, completed_todos=1)]
        stats_repo.uncategorized_counts.return_value = {"total": 8, "completed": 1, "last_30_days": 0}
        stats_repo.category_trends.return_value = []

        work, uncategorized = client.get("/api/stats/categories", headers=auth_headers).json()[
            "categories"
        ]

        assert work["completion_rate"] == 0.3333
        assert uncategorized["completion_rate"] == 0.13


class TestTrends:
    def test_weekly(self, client, stats_repo, auth_headers):
        stats_repo.trends.return_value = [
            {"date": datetime(2026, 10, 12), "created_count": 3, "completed_count": 1}
        ]

        response = client.get("/api/stats/trends?period=30d&granularity=weekly", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["period"] == "30d"
        assert response.json()["granularity"] == "weekly"
        stats_repo.trends.assert_called_once_with(1, 30, Granularity.WEEKLY)

    def test_defaults(self, client, stats_repo, auth_headers):
        stats_repo.trends.return_value = []

        client.get("/api/stats/trends", headers=auth_headers)

        stats_repo.trends.assert_called_once_with(1, 7, Granularity.DAILY)

    def test_invalid_period(self, client, stats_repo, auth_headers):
        response = client.get("/api/stats/trends?period=1y", headers=auth_headers)

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid period. Must be one of: 7d, 30d, 90d"}
        stats_repo.trends.assert_not_called()

    def test_invalid_granularity(self, client, auth_headers):
        response = client.get("/api/stats/trends?granularity=hourly", headers=auth_headers)

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid granularity. Must be one of: daily, weekly"}


class TestProductivity:
    def _setup(self, stats_repo, recent, everything):
        stats_repo.avg_completion_hours.return_value = 12.5
        stats_repo.daily_productivity.return_value = [
            {
                "date": date(2026, 10, 17),
                "todos_created": 2,
                "todos_completed": 1,
                "daily_completion_rate": 50.0,
            }
        ]
        stats_repo.productivity_counts.return_value = {
            "total_todos": 4,
            "completed_todos": 1,
            "overdue_todos": 0,
        }
        stats_repo.category_completion.return_value = [
            {"category_name": "Work", "total_todos": 2, "completed_todos": 1},
            {"category_name": "Home", "total_todos": 3, "completed_todos": 3},
        ]
        stats_repo.completion_dates.side_effect = (
            lambda user_id, within_days=None: recent if within_days else everything
        )

    def test_productivity(self, client, stats_repo, auth_headers):
        today = date(2026, 10, 18)
        recent = [today - timedelta(days=n) for n in (5, 4, 3, 0)]
        older = [today - timedelta(days=n) for n in (60, 59, 58, 57, 56)]
        self._setup(stats_repo, recent, older + recent)

        response = client.get("/api/stats/productivity", headers=auth_headers)

        assert response.status_code == 200
        productivity = response.json()["productivity"]
        assert productivity["avg_completion_time_hours"] == 12.5
        assert productivity["productivity_score"] == 48
        assert productivity["completion_rate"] == 25
        assert productivity["overdue_rate"] == 0
        assert productivity["best_category"] == "Home"
        assert productivity["current_streak_days"] == 1
        assert productivity["longest_streak_days"] == 5
        stats_repo.completion_dates.assert_any_call(1, within_days=STREAK_WINDOW_DAYS)

    def test_no_completions(self, client, stats_repo, auth_headers):
        self._setup(stats_repo, [], [])
        stats_repo.avg_completion_hours.return_value = None
        stats_repo.productivity_counts.return_value = {
            "total_todos": 0,
            "completed_todos": 0,
            "overdue_todos": 0,
        }
        stats_repo.category_completion.return_value = []

        productivity = client.get("/api/stats/productivity", headers=auth_headers).json()[
            "productivity"
        ]

        assert productivity["avg_completion_time_hours"] == 0
        assert productivity["productivity_score"] == 30
        assert productivity["best_category"] is None
        assert productivity["current_streak_days"] == 0
        assert productivity["longest_streak_days"] == 0

    def test_query_failure(self, client, stats_repo, auth_headers):
        stats_repo.avg_completion_hours.side_effect = psycopg.OperationalError("boom")

        response = client.get("/api/stats/productivity", headers=auth_headers)

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to fetch productivity metrics"}
