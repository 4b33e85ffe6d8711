"""Unit tests for the SQL building helpers."""

from datetime import datetime

import pytest

from todo_api.db.postgres import TODO_UPDATE_FIELDS, TodoFilters, build_update
from todo_api.db.stats import TodoStatsFilters


class TestBuildUpdate:
    def test_only_present_fields_are_written(self):
        clause, params = build_update({"title": "New", "completed": True}, TODO_UPDATE_FIELDS)

        assert clause == (
            "title = %(title)s, completed = %(completed)s, updated_at = CURRENT_TIMESTAMP"
        )
        assert params == {"title": "New", "completed": True}

    def test_explicit_null_is_kept(self):
        clause, params = build_update({"category_id": None}, TODO_UPDATE_FIELDS)

        assert "category_id = %(category_id)s" in clause
        assert params == {"category_id": None}

    def test_unknown_columns_are_ignored(self):
        _, params = build_update({"title": "x", "user_id": 2}, TODO_UPDATE_FIELDS)

        assert params == {"title": "x"}

    def test_empty_patch_raises(self):
        with pytest.raises(ValueError, match="No fields to update"):
            build_update({}, TODO_UPDATE_FIELDS)


class TestTodoFilters:
    def test_no_filters(self):
        assert TodoFilters().where() == ("", {})

    def test_filters_are_combined_with_and(self):
        where, params = TodoFilters(user_id=1, completed=False, priority="high").where()

        assert where == (
            "WHERE t.user_id = %(user_id)s AND t.completed = %(completed)s"
            " AND t.priority = %(priority)s"
        )
        assert params == {"user_id": 1, "completed": False, "priority": "high"}

    def test_search_matches_title_or_description(self):
        where, params = TodoFilters(search="milk").where()

        assert "t.title ILIKE %(search)s OR t.description ILIKE %(search)s" in where
        assert params["search"] == "%milk%"

    def test_due_date_range(self):
        start = datetime(2026, 10, 1)
        end = datetime(2026, 10, 31)

        where, params = TodoFilters(due_date_from=start, due_date_to=end).where()

        assert "t.due_date >= %(due_date_from)s" in where
        assert "t.due_date <= %(due_date_to)s" in where
        assert params == {"due_date_from": start, "due_date_to": end}


class TestTodoStatsFilters:
    def test_conditions_use_creation_date(self):
        conditions, params = TodoStatsFilters(
            category_id=3, date_from=datetime(2026, 1, 1)
        ).conditions()

        assert conditions == ["t.category_id = %(category_id)s", "t.created_at >= %(date_from)s"]
        assert params == {"category_id": 3, "date_from": datetime(2026, 1, 1)}
