"""Task schemas for API request/response."""

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from src.planforge.models import TaskState

if TYPE_CHECKING:
    from src.planforge.services import TaskSummary, TaskView


class TaskStatusUpdate(BaseModel):
    status: TaskState


class TaskCommentCreate(BaseModel):
    content: str = Field(min_length=1, max_length=10_000)

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Comment cannot be empty or whitespace only")
        return v


class TaskCommentRead(BaseModel):
    id: UUID
    task_id: str
    content: str
    created_at: datetime

    model_config = {"from_attributes": True}


class TaskStatusRead(BaseModel):
    task_id: str
    status: TaskState
    updated_at: datetime

    model_config = {"from_attributes": True}


class TaskRead(BaseModel):
    """A parsed task with its tracked status and comments."""

    id: str
    title: str
    description: str | None
    subtasks: list[str]
    acceptance_criteria: list[str]
    status: TaskState
    comments: list[TaskCommentRead]

    @classmethod
    def from_view(cls, view: "TaskView") -> "TaskRead":
        return cls(
            id=view.task.markdown_id,
            title=view.task.title,
            description=view.task.description,
            subtasks=view.task.subtasks,
            acceptance_criteria=view.task.acceptance_criteria,
            status=view.status,
            comments=[TaskCommentRead.model_validate(c) for c in view.comments],
        )


class TaskSummaryRead(BaseModel):
    todo: int
    in_progress: int
    done: int
    total: int
    completion_percent: int

    @classmethod
    def from_summary(cls, summary: "TaskSummary") -> "TaskSummaryRead":
        return cls(
            todo=summary.counts.todo,
            in_progress=summary.counts.in_progress,
            done=summary.counts.done,
            total=summary.counts.total,
            completion_percent=summary.completion_percent,
        )
