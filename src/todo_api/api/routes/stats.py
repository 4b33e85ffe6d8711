"""Statistics endpoints: overview, breakdowns, trends and productivity."""

from contextlib import contextmanager
from datetime import datetime, timezone

import psycopg
import structlog
from fastapi import APIRouter, Depends, HTTPException, status

from todo_api.api.deps import CurrentUser, get_current_user, get_optional_user, get_stats_repository
from todo_api.api.schemas import (
    CategoryStatsResponse,
    CategoryUsage,
    OverviewResponse,
    OverviewStats,
    Productivity,
    ProductivityResponse,
    TodoStatsFiltersOut,
    TodoStatsResponse,
    TrendsResponse,
    UserStatsResponse,
)
from todo_api.core import stats
from todo_api.core.models import Granularity, TrendPeriod
from todo_api.db.stats import StatsRepository, TodoStatsFilters

logger = structlog.get_logger()

router = APIRouter(prefix="/api/stats", tags=["Statistics"])

OVERVIEW_COUNTS = (
    "total_users",
    "total_categories",
    "total_todos",
    "completed_todos",
    "pending_todos",
    "overdue_todos",
)


def _now() -> datetime:
    return datetime.now(timezone.utc)


@contextmanager
def _query_failure(message: str, **context):
    """Turn a failed aggregate query into a 500 with ``message``."""
    try:
        yield
    except psycopg.Error as e:
        logger.error("stats_query_failed", report=message, error=str(e), **context)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=message
        ) from e


@router.get("/overview", response_model=OverviewResponse)
async def overview(
    current_user: CurrentUser = Depends(get_current_user),
    repo: StatsRepository = Depends(get_stats_repository),
) -> OverviewResponse:
    user_id = current_user.id
    with _query_failure("Failed to fetch overview statistics", user_id=user_id):
        counts = repo.overview_counts(user_id)
        buckets = stats.priority_buckets(repo.priority_counts(user_id))
        category_breakdown = repo.category_totals(user_id)
        recent_activity = repo.created_per_day(user_id)
        completions = repo.completed_per_day(user_id)

    totals = {key: int(counts[key]) for key in OVERVIEW_COUNTS}
    return OverviewResponse(
        stats=OverviewStats(
            **totals,
            completion_rate=stats.completion_rate(totals["completed_todos"], totals["total_todos"]),
            todos_by_priority=buckets,
            priority_breakdown=stats.priority_breakdown(buckets),
            category_breakdown=category_breakdown,
            recent_activity=recent_activity,
            completion_rates=completions,
        ),
        generated_at=_now(),
    )


@router.get("/todos", response_model=TodoStatsResponse)
async def todo_stats(
    user_id: int | None = None,
    category_id: int | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    _: CurrentUser | None = Depends(get_optional_user),
    repo: StatsRepository = Depends(get_stats_repository),
) -> TodoStatsResponse:
    filters = TodoStatsFilters(
        user_id=user_id, category_id=category_id, date_from=date_from, date_to=date_to
    )
    with _query_failure("Failed to fetch todo statistics"):
        basic_stats = repo.todo_basic_stats(filters)
        by_category = repo.todo_category_stats(filters)
        monthly = repo.todo_monthly_trends(filters)
        # Ranking users only makes sense across owners.
        top_users = repo.top_users(filters) if user_id is None else []

    return TodoStatsResponse(
        basic_stats=basic_stats,
        by_category=by_category,
        monthly_trends=stats.with_completion_rate(monthly, "completed", "created"),
        top_users=top_users,
        filters=TodoStatsFiltersOut(
            user_id=user_id, category_id=category_id, date_from=date_from, date_to=date_to
        ),
        generated_at=_now(),
    )


@router.get("/users", response_model=UserStatsResponse)
async def user_stats(
    _: CurrentUser | None = Depends(get_optional_user),
    repo: StatsRepository = Depends(get_stats_repository),
) -> UserStatsResponse:
    with _query_failure("Failed to fetch user statistics"):
        summary = repo.user_summary()
        activity = repo.user_activity()
        registrations = repo.registration_trends()
        most_active = repo.most_active_users()

    return UserStatsResponse(
        summary=summary,
        user_activity=activity,
        registration_trends=registrations,
        most_active_users=most_active,
        generated_at=_now(),
    )


@router.get("/categories", response_model=CategoryStatsResponse)
async def category_stats(
    current_user: CurrentUser = Depends(get_current_user),
    repo: StatsRepository = Depends(get_stats_repository),
) -> CategoryStatsResponse:
    """Per-category usage for the caller, plus an Uncategorized bucket when needed.

    ``completion_rate`` is a 0-1 fraction rather than a percentage: categories
    report their two-decimal percentage divided by 100 (1 of 3 gives 0.3333), and
    the Uncategorized bucket reports the fraction rounded to two decimals.
    """
    user_id = current_user.id
    with _query_failure("Failed to fetch category statistics", user_id=user_id):
        usage = repo.category_usage(user_id)
        uncategorized = repo.uncategorized_counts(user_id)
        trends = repo.category_trends(user_id)

    categories = [
        CategoryUsage(
            **row,
            completion_rate=stats.category_completion_rate(
                int(row["completed_todos"]), int(row["total_todos"])
            ),
        )
        for row in usage
    ]
    uncategorized_total = int(uncategorized["total"])
    if uncategorized_total > 0:
        categories.append(
            CategoryUsage(
                **stats.uncategorized_bucket(
                    uncategorized_total,
                    int(uncategorized["completed"]),
                    int(uncategorized["last_30_days"]),
                )
            )
        )

    return CategoryStatsResponse(
        categories=categories,
        uncategorized_todos=uncategorized_total,
        category_trends=trends,
        generated_at=_now(),
    )


@router.get("/trends", response_model=TrendsResponse)
async def trends(
    period: str = "7d",
    granularity: str = "daily",
    current_user: CurrentUser = Depends(get_current_user),
    repo: StatsRepository = Depends(get_stats_repository),
) -> TrendsResponse:
    try:
        trend_period = TrendPeriod(period)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid period. Must be one of: 7d, 30d, 90d",
        )
    try:
        trend_granularity = Granularity(granularity)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid granularity. Must be one of: daily, weekly",
        )

    with _query_failure("Failed to fetch trends data", user_id=current_user.id):
        rows = repo.trends(current_user.id, trend_period.days, trend_granularity)

    return TrendsResponse(
        trends=rows,
        period=trend_period.value,
        granularity=trend_granularity.value,
        generated_at=_now(),
    )


@router.get("/productivity", response_model=ProductivityResponse)
async def productivity(
    current_user: CurrentUser = Depends(get_current_user),
    repo: StatsRepository = Depends(get_stats_repository),
) -> ProductivityResponse:
    user_id = current_user.id
    with _query_failure("Failed to fetch productivity metrics", user_id=user_id):
        avg_hours = repo.avg_completion_hours(user_id)
        daily = repo.daily_productivity(user_id)
        counts = repo.productivity_counts(user_id)
        category_rows = repo.category_completion(user_id, stats.BEST_CATEGORY_MIN_TODOS)
        recent_dates = repo.completion_dates(user_id, within_days=stats.STREAK_WINDOW_DAYS)
        all_dates = repo.completion_dates(user_id)

    total = int(counts["total_todos"])
    completed = int(counts["completed_todos"])
    overdue = int(counts["overdue_todos"])
    completion = completed / total if total else 0
    overdue_rate = overdue / total if total else 0

    return ProductivityResponse(
        productivity=Productivity(
            avg_completion_time_hours=avg_hours or 0,
            productivity_score=stats.productivity_score(total, completed, overdue),
            completion_rate=stats.js_round(completion * 100),
            overdue_rate=stats.js_round(overdue_rate * 100),
            best_category=stats.best_category(category_rows),
            current_streak_days=stats.current_streak(recent_dates),
            longest_streak_days=stats.longest_streak(all_dates),
            daily_productivity=daily,
        ),
        generated_at=_now(),
    )
