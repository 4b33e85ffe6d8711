"""User listing, profile maintenance and per-user todo lists."""

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, status

from todo_api.api.deps import CurrentUser, get_current_user, get_optional_user
from todo_api.api.schemas import (
    Pagination,
    TodoListResponse,
    TodoResponse,
    UpdateUserRequest,
    UserDeletedResponse,
    UserDetailEnvelope,
    UserDetailResponse,
    UserListResponse,
    UserResponse,
    UserTodoStats,
    UserUpdatedResponse,
)
from todo_api.core.models import Priority
from todo_api.core.security import hash_password
from todo_api.db.postgres import PostgresDB, TodoFilters, get_db

logger = structlog.get_logger()

router = APIRouter(prefix="/api/users", tags=["Users"])

# Columns that cannot be cleared; a null in the patch means "leave as is".
REQUIRED_USER_FIELDS = ("username", "email", "password")


@router.get("", response_model=UserListResponse)
async def list_users(
    limit: int = Query(50, ge=1),
    offset: int = Query(0, ge=0),
    _: CurrentUser | None = Depends(get_optional_user),
    db: PostgresDB = Depends(get_db),
) -> UserListResponse:
    rows, total = db.list_users(limit=limit, offset=offset)
    return UserListResponse(
        users=[UserResponse(**row) for row in rows],
        pagination=Pagination.of(total, limit, offset),
    )


@router.get("/{user_id}", response_model=UserDetailEnvelope)
async def get_user(
    user_id: int,
    _: CurrentUser | None = Depends(get_optional_user),
    db: PostgresDB = Depends(get_db),
) -> UserDetailEnvelope:
    user = db.get_user(user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    todo_stats = UserTodoStats(**db.get_user_todo_stats(user_id))
    return UserDetailEnvelope(user=UserDetailResponse(**user, todo_stats=todo_stats))


@router.put("/{user_id}", response_model=UserUpdatedResponse)
async def update_user(
    user_id: int,
    body: UpdateUserRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: PostgresDB = Depends(get_db),
) -> UserUpdatedResponse:
    if user_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only update your own profile",
        )

    fields = body.model_dump(exclude_unset=True)
    for name in REQUIRED_USER_FIELDS:
        if fields.get(name) is None:
            fields.pop(name, None)

    if ("username" in fields or "email" in fields) and db.user_conflict_exists(
        fields.get("username"), fields.get("email"), exclude_id=user_id
    ):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Username or email already exists",
        )

    if "password" in fields:
        fields["password"] = hash_password(fields["password"])

    try:
        user = db.update_user(user_id, fields)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    logger.info("user_updated", user_id=user_id, fields=sorted(fields))
    return UserUpdatedResponse(message="User updated successfully", user=UserResponse(**user))


@router.delete("/{user_id}", response_model=UserDeletedResponse)
async def delete_user(
    user_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    db: PostgresDB = Depends(get_db),
) -> UserDeletedResponse:
    if user_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only delete your own account",
        )

    username = db.delete_user(user_id)
    if username is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    logger.info("user_deleted", user_id=user_id)
    return UserDeletedResponse(message="User deleted successfully", deleted_user=username)


@router.get("/{user_id}/todos", response_model=TodoListResponse)
async def list_user_todos(
    user_id: int,
    completed: bool | None = None,
    priority: Priority | None = None,
    category_id: int | None = None,
    limit: int = Query(50, ge=1),
    offset: int = Query(0, ge=0),
    _: CurrentUser | None = Depends(get_optional_user),
    db: PostgresDB = Depends(get_db),
) -> TodoListResponse:
    filters = TodoFilters(
        user_id=user_id,
        completed=completed,
        priority=priority.value if priority else None,
        category_id=category_id,
    )
    rows, total = db.list_todos(filters, limit=limit, offset=offset)
    return TodoListResponse(
        todos=[TodoResponse(**row) for row in rows],
        pagination=Pagination.of(total, limit, offset),
    )
