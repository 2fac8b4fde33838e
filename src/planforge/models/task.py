"""Task tracking models - statuses and comments keyed by parsed task id."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, Index, Text, UniqueConstraint
from sqlmodel import Field, SQLModel

from src.planforge.models.base import utc_now
from src.planforge.models.enums import TaskState, check_in


class TaskStatus(SQLModel, table=True):
    """Status of one parsed task. Absent rows mean the task is still todo."""

    __tablename__ = "task_status"
    __table_args__ = (
        UniqueConstraint("subproject_id", "task_id", name="uq_task_status_subproject_task"),
        CheckConstraint(check_in("status", TaskState), name="ck_task_status_status"),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    subproject_id: UUID = Field(foreign_key="subprojects.id", ondelete="CASCADE")
    task_id: str = Field(max_length=100)
    status: str = Field(default=TaskState.TODO.value, max_length=20)
    updated_at: datetime = Field(default_factory=utc_now)

    @property
    def status_enum(self) -> TaskState:
        return TaskState(self.status)


class TaskComment(SQLModel, table=True):
    """Freeform comment on a parsed task."""

    __tablename__ = "task_comments"
    __table_args__ = (Index("ix_task_comments_subproject_task", "subproject_id", "task_id"),)

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    subproject_id: UUID = Field(foreign_key="subprojects.id", ondelete="CASCADE")
    task_id: str = Field(max_length=100)
    content: str = Field(sa_type=Text)
    created_at: datetime = Field(default_factory=utc_now)
