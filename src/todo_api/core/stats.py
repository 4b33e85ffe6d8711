"""Derived metrics for the statistics endpoints.

The database does the counting; everything here works on the already
aggregated rows: zero-guarded rates, fixed priority ordering, the
productivity score, best-category selection and completion streaks.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping, Sequence
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal

from todo_api.core.models import PRIORITY_ORDER

UNCATEGORIZED_NAME = "Uncategorized"
UNCATEGORIZED_COLOR = "#6B7280"

COMPLETION_WEIGHT = 70
ON_TIME_WEIGHT = 30
BEST_CATEGORY_MIN_TODOS = 2
# Current streaks only look at recent completions.
STREAK_WINDOW_DAYS = 30


def _ratio(part: int, total: int, scale: int, digits: int) -> Decimal:
    """Exact ``part / total * scale`` rounded half up, as SQL ``ROUND`` does."""
    value = Decimal(part) * scale / Decimal(total)
    return value.quantize(Decimal(1).scaleb(-digits), rounding=ROUND_HALF_UP)


def completion_rate(completed: int, total: int, digits: int = 2) -> float:
    """Fraction of completed todos, 0 when there are none."""
    if not total:
        return 0
    return float(_ratio(completed, total, 1, digits))


def percentage(part: int, total: int, digits: int = 2) -> float | None:
    """Percentage rounded to ``digits``; None when ``total`` is zero."""
    if not total:
        return None
    return float(_ratio(part, total, 100, digits))


def category_completion_rate(completed: int, total: int) -> float:
    """Fraction derived from the two-decimal percentage, e.g. 1 of 3 gives 0.3333."""
    if not total:
        return 0
    return float(_ratio(completed, total, 100, 2).scaleb(-2))


def js_round(value: float) -> int:
    """Round half up, matching how clients compute the same score."""
    return math.floor(value + 0.5)


def priority_buckets(rows: Iterable[Mapping]) -> list[dict]:
    """Return high/medium/low buckets in that order, zero-filled."""
    by_priority = {str(row["priority"]): row for row in rows}
    buckets = []
    for priority in PRIORITY_ORDER:
        row = by_priority.get(priority.value, {})
        buckets.append(
            {
                "priority": priority.value,
                "count": int(row.get("count", 0)),
                "completed": int(row.get("completed", 0)),
                "pending": int(row.get("pending", 0)),
            }
        )
    return buckets


def priority_breakdown(buckets: Iterable[Mapping]) -> dict[str, int]:
    return {bucket["priority"]: bucket["count"] for bucket in buckets}


def productivity_score(total: int, completed: int, overdue: int) -> int:
    """70% completion rate plus 30% on-time rate, as an integer in [0, 100]."""
    completion = completed / total if total else 0
    overdue_rate = overdue / total if total else 0
    score = js_round(completion * COMPLETION_WEIGHT + (1 - overdue_rate) * ON_TIME_WEIGHT)
    return max(0, min(100, score))


def best_category(
    rows: Iterable[Mapping], min_todos: int = BEST_CATEGORY_MIN_TODOS
) -> str | None:
    """Name of the category with the highest completion rate.

    Only categories with at least ``min_todos`` todos qualify; ties go to the
    category with more todos.
    """
    best: tuple[float, int] | None = None
    best_name = None
    for row in rows:
        total = int(row["total_todos"])
        if total < min_todos:
            continue
        key = (int(row["completed_todos"]) / total, total)
        if best is None or key > best:
            best = key
            best_name = row["category_name"]
    return best_name


def _streak_runs(dates: Iterable[date]) -> list[list[date]]:
    """Split completion dates into maximal runs of consecutive days."""
    runs: list[list[date]] = []
    for day in sorted(set(dates)):
        if runs and day - runs[-1][-1] == timedelta(days=1):
            runs[-1].append(day)
        else:
            runs.append([day])
    return runs


def longest_streak(dates: Iterable[date]) -> int:
    runs = _streak_runs(dates)
    return max((len(run) for run in runs), default=0)


def current_streak(dates: Iterable[date]) -> int:
    """Length of the run that contains the most recent completion date."""
    runs = _streak_runs(dates)
    if not runs:
        return 0
    return len(runs[-1])


def uncategorized_bucket(total: int, completed: int, last_30_days: int) -> dict:
    return {
        "id": None,
        "name": UNCATEGORIZED_NAME,
        "color": UNCATEGORIZED_COLOR,
        "created_at": None,
        "total_todos": total,
        "completed_todos": completed,
        "pending_todos": total - completed,
        "todos_last_30_days": last_30_days,
        "completion_rate": completion_rate(completed, total),
        "unique_users": 1,
    }


def with_completion_rate(rows: Sequence[Mapping], completed_key: str, total_key: str) -> list[dict]:
    """Copy rows adding a zero-guarded ``completion_rate`` percentage."""
    return [
        {**row, "completion_rate": percentage(int(row[completed_key]), int(row[total_key]))}
        for row in rows
    ]
