"""Todo CRUD, filtering and completion toggles."""

from datetime import datetime

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, status

from todo_api.api.deps import CurrentUser, get_current_user, get_optional_user
from todo_api.api.schemas import (
    CreateTodoRequest,
    Pagination,
    TodoChangedResponse,
    TodoDeletedResponse,
    TodoEnvelope,
    TodoListResponse,
    TodoResponse,
    UpdateTodoRequest,
)
from todo_api.core.models import Priority
from todo_api.db.postgres import PostgresDB, TodoFilters, get_db

logger = structlog.get_logger()

router = APIRouter(prefix="/api/todos", tags=["Todos"])


def _check_owner(db: PostgresDB, todo_id: int, user: CurrentUser, action: str) -> None:
    owner_id = db.get_todo_owner(todo_id)
    if owner_id is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Todo not found")
    if owner_id != user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"You can only {action} your own todos",
        )


def _check_category(db: PostgresDB, category_id: int | None, user: CurrentUser) -> None:
    if category_id is not None and not db.category_owned_by(category_id, user.id):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Category not found")


@router.get("", response_model=TodoListResponse)
async def list_todos(
    user_id: int | None = None,
    category_id: int | None = None,
    completed: bool | None = None,
    priority: Priority | None = None,
    due_date_from: datetime | None = None,
    due_date_to: datetime | None = None,
    search: str | None = None,
    limit: int = Query(50, ge=1),
    offset: int = Query(0, ge=0),
    sort_by: str = "created_at",
    sort_order: str = "DESC",
    current_user: CurrentUser | None = Depends(get_optional_user),
    db: PostgresDB = Depends(get_db),
) -> TodoListResponse:
    # Signed-in callers see their own todos unless they ask for someone else's.
    if user_id is None and current_user is not None:
        user_id = current_user.id

    filters = TodoFilters(
        user_id=user_id,
        category_id=category_id,
        completed=completed,
        priority=priority.value if priority else None,
        due_date_from=due_date_from,
        due_date_to=due_date_to,
        search=search,
    )
    rows, total = db.list_todos(
        filters, limit=limit, offset=offset, sort_by=sort_by, sort_order=sort_order
    )
    return TodoListResponse(
        todos=[TodoResponse(**row) for row in rows],
        pagination=Pagination.of(total, limit, offset),
        filters={
            "user_id": user_id,
            "category_id": category_id,
            "completed": completed,
            "priority": filters.priority,
            "due_date_from": due_date_from,
            "due_date_to": due_date_to,
            "search": search,
        },
    )


@router.post("", response_model=TodoChangedResponse, status_code=status.HTTP_201_CREATED)
async def create_todo(
    body: CreateTodoRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: PostgresDB = Depends(get_db),
) -> TodoChangedResponse:
    _check_category(db, body.category_id, current_user)

    todo = db.create_todo(
        user_id=current_user.id,
        title=body.title,
        description=body.description,
        priority=body.priority,
        due_date=body.due_date,
        category_id=body.category_id,
    )
    logger.info("todo_created", todo_id=todo["id"], user_id=current_user.id)
    return TodoChangedResponse(message="Todo created successfully", todo=TodoResponse(**todo))


@router.get("/{todo_id}", response_model=TodoEnvelope)
async def get_todo(
    todo_id: int,
    _: CurrentUser | None = Depends(get_optional_user),
    db: PostgresDB = Depends(get_db),
) -> TodoEnvelope:
    todo = db.get_todo(todo_id)
    if todo is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Todo not found")
    return TodoEnvelope(todo=TodoResponse(**todo))


@router.put("/{todo_id}", response_model=TodoChangedResponse)
async def update_todo(
    todo_id: int,
    body: UpdateTodoRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: PostgresDB = Depends(get_db),
) -> TodoChangedResponse:
    _check_owner(db, todo_id, current_user, "update")

    fields = body.model_dump(exclude_unset=True)
    _check_category(db, fields.get("category_id"), current_user)

    try:
        todo = db.update_todo(todo_id, fields)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if todo is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Todo not found")

    logger.info("todo_updated", todo_id=todo_id, fields=sorted(fields))
    return TodoChangedResponse(message="Todo updated successfully", todo=TodoResponse(**todo))


@router.delete("/{todo_id}", response_model=TodoDeletedResponse)
async def delete_todo(
    todo_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    db: PostgresDB = Depends(get_db),
) -> TodoDeletedResponse:
    _check_owner(db, todo_id, current_user, "delete")

    todo = db.delete_todo(todo_id)
    if todo is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Todo not found")

    logger.info("todo_deleted", todo_id=todo_id, user_id=current_user.id)
    return TodoDeletedResponse(message="Todo deleted successfully", deleted_todo=TodoResponse(**todo))


async def _set_completed(
    db: PostgresDB, todo_id: int, user: CurrentUser, completed: bool, message: str
) -> TodoChangedResponse:
    todo = db.set_todo_completed(todo_id, user.id, completed)
    if todo is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Todo not found or you do not have permission to update it",
        )
    logger.info("todo_completion_changed", todo_id=todo_id, completed=completed)
    return TodoChangedResponse(message=message, todo=TodoResponse(**todo))


@router.patch("/{todo_id}/complete", response_model=TodoChangedResponse)
async def complete_todo(
    todo_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    db: PostgresDB = Depends(get_db),
) -> TodoChangedResponse:
    return await _set_completed(db, todo_id, current_user, True, "Todo marked as complete")


@router.patch("/{todo_id}/incomplete", response_model=TodoChangedResponse)
async def incomplete_todo(
    todo_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    db: PostgresDB = Depends(get_db),
) -> TodoChangedResponse:
    return await _set_completed(db, todo_id, current_user, False, "Todo marked as incomplete")
