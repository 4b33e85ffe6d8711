"""Pydantic request/response schemas for the Todo API."""

import re
from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from todo_api.core.models import Priority

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
COLOR_PATTERN = r"^#[0-9A-Fa-f]{6}$"
PRIORITY_ERROR = "Priority must be one of: low, medium, high"


def check_email(value: str | None) -> str | None:
    if value is not None and not EMAIL_PATTERN.match(value):
        raise ValueError("Invalid email format")
    return value


def check_priority(value: Any) -> Any:
    if value is None or isinstance(value, Priority):
        return value
    try:
        return Priority(value)
    except ValueError:
        raise ValueError(PRIORITY_ERROR) from None


# --- Requests ---


class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=255)
    email: str = Field(..., max_length=255)
    password: str = Field(..., min_length=6, max_length=128)
    first_name: str | None = Field(default=None, max_length=255)
    last_name: str | None = Field(default=None, max_length=255)

    @field_validator("email")
    @classmethod
    def validate_email(cls, value):
        return check_email(value)


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1, description="Username or email")
    password: str = Field(..., min_length=1)


class UpdateUserRequest(BaseModel):
    username: str | None = Field(default=None, min_length=3, max_length=255)
    email: str | None = Field(default=None, max_length=255)
    first_name: str | None = Field(default=None, max_length=255)
    last_name: str | None = Field(default=None, max_length=255)
    password: str | None = Field(default=None, min_length=6, max_length=128)

    @field_validator("email")
    @classmethod
    def validate_email(cls, value):
        return check_email(value)


class CreateCategoryRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    color: str = Field(default="#007bff", pattern=COLOR_PATTERN)


class UpdateCategoryRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    color: str | None = Field(default=None, pattern=COLOR_PATTERN)

    @field_validator("name", "color")
    @classmethod
    def not_null(cls, value):
        if value is None:
            raise ValueError("Field cannot be null")
        return value


class CreateTodoRequest(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    priority: Priority = Field(default=Priority.MEDIUM, validate_default=True)
    due_date: datetime | None = None
    category_id: int | None = None

    @field_validator("priority", mode="before")
    @classmethod
    def validate_priority(cls, value):
        return check_priority(value)


class UpdateTodoRequest(BaseModel):
    """Partial update; only the fields present in the body are written."""

    model_config = ConfigDict(use_enum_values=True)

    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    priority: Priority | None = None
    due_date: datetime | None = None
    category_id: int | None = None
    completed: bool | None = None

    @field_validator("priority", mode="before")
    @classmethod
    def validate_priority(cls, value):
        return check_priority(value)

    @field_validator("title", "priority", "completed")
    @classmethod
    def not_null(cls, value):
        if value is None:
            raise ValueError("Field cannot be null")
        return value


class SimulationConfigRequest(BaseModel):
    model_config = ConfigDict(extra="allow")

    authFailureRate: float | None = None
    networkDelayMs: int | None = None
    networkFailureRate: float | None = None
    validationStrictness: str | None = None


class ShortTokenRequest(BaseModel):
    expiresInSeconds: int = 30


class BurstRequest(BaseModel):
    requestCount: int = 5


# --- Entities ---


class UserResponse(BaseModel):
    id: int
    username: str
    email: str
    first_name: str | None = None
    last_name: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class UserTodoStats(BaseModel):
    total_todos: int
    completed_todos: int
    pending_todos: int


class UserDetailResponse(UserResponse):
    todo_stats: UserTodoStats


class CategoryResponse(BaseModel):
    id: int
    name: str
    description: str | None = None
    color: str
    user_id: int
    created_at: datetime | None = None
    updated_at: datetime | None = None
    todo_count: int | None = None
    completed_todos: int | None = None
    pending_todos: int | None = None


class TodoResponse(BaseModel):
    id: int
    title: str
    description: str | None = None
    completed: bool
    priority: Priority
    due_date: datetime | None = None
    user_id: int
    category_id: int | None = None
    created_at: datetime
    updated_at: datetime
    is_overdue: bool | None = None
    username: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    category_name: str | None = None
    category_color: str | None = None


class Pagination(BaseModel):
    total: int
    limit: int
    offset: int
    has_more: bool

    @classmethod
    def of(cls, total: int, limit: int, offset: int) -> "Pagination":
        return cls(total=total, limit=limit, offset=offset, has_more=offset + limit < total)


# --- Envelopes ---


class MessageResponse(BaseModel):
    message: str


class AuthResponse(BaseModel):
    message: str
    token: str
    user: UserResponse


class UserEnvelope(BaseModel):
    user: UserResponse


class UserDetailEnvelope(BaseModel):
    user: UserDetailResponse


class UserUpdatedResponse(BaseModel):
    message: str
    user: UserResponse


class UserDeletedResponse(BaseModel):
    message: str
    deleted_user: str


class UserListResponse(BaseModel):
    users: list[UserResponse]
    pagination: Pagination


class CategoryEnvelope(BaseModel):
    category: CategoryResponse


class CategoryChangedResponse(BaseModel):
    message: str
    category: CategoryResponse


class CategoryDeletedResponse(BaseModel):
    message: str
    deleted_category: CategoryResponse
    affected_todos: int


class CategoryListResponse(BaseModel):
    categories: list[CategoryResponse]
    pagination: Pagination


class TodoEnvelope(BaseModel):
    todo: TodoResponse


class TodoChangedResponse(BaseModel):
    message: str
    todo: TodoResponse


class TodoDeletedResponse(BaseModel):
    message: str
    deleted_todo: TodoResponse


class TodoListResponse(BaseModel):
    todos: list[TodoResponse]
    pagination: Pagination
    filters: dict[str, Any] | None = None


# --- Statistics ---


class PriorityBucket(BaseModel):
    priority: Priority
    count: int
    completed: int
    pending: int


class CategoryTotal(BaseModel):
    category_name: str
    total_todos: int


class DailyCreated(BaseModel):
    date: date
    todos_created: int


class DailyCompleted(BaseModel):
    date: date
    todos_completed: int


class OverviewStats(BaseModel):
    total_users: int
    total_categories: int
    total_todos: int
    completed_todos: int
    pending_todos: int
    overdue_todos: int
    completion_rate: float
    todos_by_priority: list[PriorityBucket]
    priority_breakdown: dict[str, int]
    category_breakdown: list[CategoryTotal]
    recent_activity: list[DailyCreated]
    completion_rates: list[DailyCompleted]


class OverviewResponse(BaseModel):
    stats: OverviewStats
    generated_at: datetime


class TodoBasicStats(BaseModel):
    total: int
    completed: int
    pending: int
    overdue: int
    high_priority: int
    medium_priority: int
    low_priority: int
    avg_completion_time_hours: float | None = None


class TodoCategoryStats(BaseModel):
    category_id: int
    category_name: str
    category_color: str
    total_todos: int
    completed_todos: int
    pending_todos: int


class MonthlyTrend(BaseModel):
    month: datetime
    created: int
    completed: int
    completion_rate: float | None = None


class TopUser(BaseModel):
    id: int
    username: str
    first_name: str | None = None
    last_name: str | None = None
    total_todos: int
    completed_todos: int
    completion_rate: float | None = None


class TodoStatsFiltersOut(BaseModel):
    user_id: int | None = None
    category_id: int | None = None
    date_from: datetime | None = None
    date_to: datetime | None = None


class TodoStatsResponse(BaseModel):
    basic_stats: TodoBasicStats
    by_category: list[TodoCategoryStats]
    monthly_trends: list[MonthlyTrend]
    top_users: list[TopUser]
    filters: TodoStatsFiltersOut
    generated_at: datetime


class UserSummary(BaseModel):
    total_users: int
    new_users_last_30_days: int
    new_users_last_7_days: int


class UserActivity(BaseModel):
    id: int
    username: str
    first_name: str | None = None
    last_name: str | None = None
    joined_date: datetime | None = None
    total_todos: int
    completed_todos: int
    pending_todos: int
    todos_last_7_days: int
    completion_rate: float | None = None
    last_todo_created: datetime | None = None


class RegistrationTrend(BaseModel):
    month: datetime
    new_users: int


class ActiveUser(BaseModel):
    id: int
    username: str
    first_name: str | None = None
    last_name: str | None = None
    todos_last_30_days: int
    completed_last_30_days: int


class UserStatsResponse(BaseModel):
    summary: UserSummary
    user_activity: list[UserActivity]
    registration_trends: list[RegistrationTrend]
    most_active_users: list[ActiveUser]
    generated_at: datetime


class CategoryUsage(BaseModel):
    id: int | None
    name: str
    color: str
    created_at: datetime | None = None
    total_todos: int
    completed_todos: int
    pending_todos: int
    todos_last_30_days: int
    completion_rate: float
    unique_users: int


class CategoryTrend(BaseModel):
    category_name: str
    month: datetime
    todos_created: int


class CategoryStatsResponse(BaseModel):
    categories: list[CategoryUsage]
    uncategorized_todos: int
    category_trends: list[CategoryTrend]
    generated_at: datetime


class TrendPoint(BaseModel):
    date: datetime
    created_count: int
    completed_count: int


class TrendsResponse(BaseModel):
    trends: list[TrendPoint]
    period: str
    granularity: str
    generated_at: datetime


class DailyProductivity(BaseModel):
    date: date
    todos_created: int
    todos_completed: int
    daily_completion_rate: float | None = None


class Productivity(BaseModel):
    avg_completion_time_hours: float
    productivity_score: int = Field(..., ge=0, le=100)
    completion_rate: int
    overdue_rate: int
    best_category: str | None = None
    current_streak_days: int
    longest_streak_days: int
    daily_productivity: list[DailyProductivity]


class ProductivityResponse(BaseModel):
    productivity: Productivity
    generated_at: datetime


# --- Service ---


class HealthResponse(BaseModel):
    status: str
    timestamp: datetime
    uptime: float
    environment: str
    version: str
    database: str
