"""Initial migration

Revision ID: 001
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
import sqlmodel

from alembic import op

revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # 1. Projects table
    op.create_table(
        "projects",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sqlmodel.sql.sqltypes.AutoString(length=200), nullable=False),
        sa.Column(
            "status",
            sqlmodel.sql.sqltypes.AutoString(length=20),
            nullable=False,
            server_default="planning",
        ),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint(
            "status IN ('planning', 'in_progress', 'complete')", name="ck_projects_status"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_projects_name", "projects", ["name"], unique=False)
    op.create_index("ix_projects_status", "projects", ["status"], unique=False)
    op.create_index("ix_projects_created_at", "projects", ["created_at"], unique=False)

    # 2. Subprojects table (artifacts are set together with the mode change)
    op.create_table(
        "subprojects",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("project_id", sa.Uuid(), nullable=False),
        sa.Column("name", sqlmodel.sql.sqltypes.AutoString(length=200), nullable=False),
        sa.Column(
            "mode",
            sqlmodel.sql.sqltypes.AutoString(length=20),
            nullable=False,
            server_default="planned",
        ),
        sa.Column("prd_markdown", sa.Text(), nullable=True),
        sa.Column("tasks_markdown", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("mode IN ('planned', 'build', 'complete')", name="ck_subprojects_mode"),
        sa.CheckConstraint(
            "(mode = 'planned' AND prd_markdown IS NULL AND tasks_markdown IS NULL)"
            " OR (mode <> 'planned' AND prd_markdown IS NOT NULL AND tasks_markdown IS NOT NULL)",
            name="ck_subprojects_artifacts",
        ),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_subprojects_project_id", "subprojects", ["project_id"], unique=False)
    op.create_index("ix_subprojects_created_at", "subprojects", ["created_at"], unique=False)

    # 3. Notes table (append-only timeline)
    op.create_table(
        "notes",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("subproject_id", sa.Uuid(), nullable=False),
        sa.Column("type", sqlmodel.sql.sqltypes.AutoString(length=10), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("type IN ('text', 'image')", name="ck_notes_type"),
        sa.ForeignKeyConstraint(["subproject_id"], ["subprojects.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_notes_subproject_order", "notes", ["subproject_id", "created_at", "id"], unique=False
    )

    # 4. Task status table (one row per subproject and task id)
    op.create_table(
        "task_status",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("subproject_id", sa.Uuid(), nullable=False),
        sa.Column("task_id", sqlmodel.sql.sqltypes.AutoString(length=100), nullable=False),
        sa.Column(
            "status",
            sqlmodel.sql.sqltypes.AutoString(length=20),
            nullable=False,
            server_default="todo",
        ),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint(
            "status IN ('todo', 'in_progress', 'done')", name="ck_task_status_status"
        ),
        sa.ForeignKeyConstraint(["subproject_id"], ["subprojects.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("subproject_id", "task_id", name="uq_task_status_subproject_task"),
    )

    # 5. Task comments table
    op.create_table(
        "task_comments",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("subproject_id", sa.Uuid(), nullable=False),
        sa.Column("task_id", sqlmodel.sql.sqltypes.AutoString(length=100), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["subproject_id"], ["subprojects.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_task_comments_subproject_task",
        "task_comments",
        ["subproject_id", "task_id"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_task_comments_subproject_task", table_name="task_comments")
    op.drop_table("task_comments")
    op.drop_table("task_status")
    op.drop_index("ix_notes_subproject_order", table_name="notes")
    op.drop_table("notes")
    op.drop_index("ix_subprojects_created_at", table_name="subprojects")
    op.drop_index("ix_subprojects_project_id", table_name="subprojects")
    op.drop_table("subprojects")
    op.drop_index("ix_projects_created_at", table_name="projects")
    op.drop_index("ix_projects_status", table_name="projects")
    op.drop_index("ix_projects_name", table_name="projects")
    op.drop_table("projects")
