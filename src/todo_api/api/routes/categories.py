"""Category CRUD. Categories belong to the user who created them."""

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, status

from todo_api.api.deps import CurrentUser, get_current_user, get_optional_user
from todo_api.api.schemas import (
    CategoryChangedResponse,
    CategoryDeletedResponse,
    CategoryEnvelope,
    CategoryListResponse,
    CategoryResponse,
    CreateCategoryRequest,
    Pagination,
    TodoListResponse,
    TodoResponse,
    UpdateCategoryRequest,
)
from todo_api.core.models import Priority
from todo_api.db.postgres import PostgresDB, TodoFilters, get_db

logger = structlog.get_logger()

router = APIRouter(prefix="/api/categories", tags=["Categories"])


def _owned_category(db: PostgresDB, category_id: int, user: CurrentUser, action: str) -> dict:
    category = db.get_category(category_id)
    if category is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")
    if category["user_id"] != user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"You can only {action} your own categories",
        )
    return category


@router.get("", response_model=CategoryListResponse)
async def list_categories(
    limit: int = Query(50, ge=1),
    offset: int = Query(0, ge=0),
    current_user: CurrentUser | None = Depends(get_optional_user),
    db: PostgresDB = Depends(get_db),
) -> CategoryListResponse:
    owner_id = current_user.id if current_user else None
    rows, total = db.list_categories(user_id=owner_id, limit=limit, offset=offset)
    return CategoryListResponse(
        categories=[CategoryResponse(**row) for row in rows],
        pagination=Pagination.of(total, limit, offset),
    )


@router.post("", response_model=CategoryChangedResponse, status_code=status.HTTP_201_CREATED)
async def create_category(
    body: CreateCategoryRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: PostgresDB = Depends(get_db),
) -> CategoryChangedResponse:
    if db.category_name_taken(current_user.id, body.name):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Category with this name already exists",
        )

    category = db.create_category(
        user_id=current_user.id,
        name=body.name,
        description=body.description,
        color=body.color,
    )
    logger.info("category_created", category_id=category["id"], user_id=current_user.id)
    return CategoryChangedResponse(
        message="Category created successfully",
        category=CategoryResponse(**category),
    )


@router.get("/{category_id}", response_model=CategoryEnvelope)
async def get_category(
    category_id: int,
    _: CurrentUser | None = Depends(get_optional_user),
    db: PostgresDB = Depends(get_db),
) -> CategoryEnvelope:
    category = db.get_category(category_id)
    if category is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")
    return CategoryEnvelope(category=CategoryResponse(**category))


@router.put("/{category_id}", response_model=CategoryChangedResponse)
async def update_category(
    category_id: int,
    body: UpdateCategoryRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: PostgresDB = Depends(get_db),
) -> CategoryChangedResponse:
    _owned_category(db, category_id, current_user, "update")

    fields = body.model_dump(exclude_unset=True)
    if "name" in fields and db.category_name_taken(
        current_user.id, fields["name"], exclude_id=category_id
    ):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Category with this name already exists",
        )

    try:
        category = db.update_category(category_id, fields)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if category is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")

    logger.info("category_updated", category_id=category_id, fields=sorted(fields))
    return CategoryChangedResponse(
        message="Category updated successfully",
        category=CategoryResponse(**category),
    )


@router.delete("/{category_id}", response_model=CategoryDeletedResponse)
async def delete_category(
    category_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    db: PostgresDB = Depends(get_db),
) -> CategoryDeletedResponse:
    _owned_category(db, category_id, current_user, "delete")

    result = db.delete_category(category_id)
    if result is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")
    category, affected = result

    logger.info("category_deleted", category_id=category_id, affected_todos=affected)
    return CategoryDeletedResponse(
        message="Category deleted successfully",
        deleted_category=CategoryResponse(**category),
        affected_todos=affected,
    )


@router.get("/{category_id}/todos", response_model=TodoListResponse)
async def list_category_todos(
    category_id: int,
    completed: bool | None = None,
    priority: Priority | None = None,
    user_id: int | None = None,
    limit: int = Query(50, ge=1),
    offset: int = Query(0, ge=0),
    _: CurrentUser | None = Depends(get_optional_user),
    db: PostgresDB = Depends(get_db),
) -> TodoListResponse:
    if db.get_category(category_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")

    filters = TodoFilters(
        category_id=category_id,
        completed=completed,
        priority=priority.value if priority else None,
        user_id=user_id,
    )
    rows, total = db.list_todos(filters, limit=limit, offset=offset)
    return TodoListResponse(
        todos=[TodoResponse(**row) for row in rows],
        pagination=Pagination.of(total, limit, offset),
    )
