"""users, categories and todos

Revision ID: 3f2a9c1d7b44
Revises:
Create Date: 2026-10-18 09:30:12.418203

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '3f2a9c1d7b44'
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("username", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password", sa.String(255), nullable=False),
        sa.Column("first_name", sa.String(255), nullable=True),
        sa.Column("last_name", sa.String(255), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("username"),
        sa.UniqueConstraint("email"),
    )

    op.create_table(
        "categories",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column(
            "color",
            sa.String(7),
            nullable=False,
            server_default=sa.text("'#007bff'"),
        ),
        sa.Column("user_id", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("user_id", "name", name="uq_categories_user_name"),
    )
    op.create_index("idx_categories_user_id", "categories", ["user_id"])

    op.create_table(
        "todos",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("completed", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column(
            "priority",
            sa.String(10),
            nullable=False,
            server_default=sa.text("'medium'"),
        ),
        sa.Column("due_date", sa.DateTime(), nullable=True),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("category_id", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["category_id"], ["categories.id"], ondelete="SET NULL"),
        sa.CheckConstraint("priority IN ('low', 'medium', 'high')", name="ck_todos_priority"),
    )
    op.create_index("idx_todos_user_id", "todos", ["user_id"])
    op.create_index("idx_todos_category_id", "todos", ["category_id"])
    op.create_index("idx_todos_completed", "todos", ["completed"])
    op.create_index("idx_todos_priority", "todos", ["priority"])


def downgrade() -> None:
    op.drop_index("idx_todos_priority", table_name="todos")
    op.drop_index("idx_todos_completed", table_name="todos")
    op.drop_index("idx_todos_category_id", table_name="todos")
    op.drop_index("idx_todos_user_id", table_name="todos")
    op.drop_table("todos")
    op.drop_index("idx_categories_user_id", table_name="categories")
    op.drop_table("categories")
    op.drop_table("users")
