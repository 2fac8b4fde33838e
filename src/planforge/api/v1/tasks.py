"""Task tracking endpoints for subprojects in build mode."""

from uuid import UUID

from fastapi import APIRouter, status

from src.planforge.api.dependencies import Tasks
from src.planforge.schemas import (
    TaskCommentCreate,
    TaskCommentRead,
    TaskRead,
    TaskStatusRead,
    TaskStatusUpdate,
    TaskSummaryRead,
)

router = APIRouter(prefix="/subprojects/{subproject_id}/tasks", tags=["tasks"])


@router.get(
    "",
    response_model=list[TaskRead],
    summary="List tasks",
    description="Tasks parsed from the subproject's task markdown, with status and comments.",
)
async def list_tasks(subproject_id: UUID, tasks: Tasks) -> list[TaskRead]:
    return [TaskRead.from_view(view) for view in await tasks.list_tasks(subproject_id)]


@router.get("/summary", response_model=TaskSummaryRead, summary="Task counts and completion")
async def task_summary(subproject_id: UUID, tasks: Tasks) -> TaskSummaryRead:
    return TaskSummaryRead.from_summary(await tasks.summary(subproject_id))


@router.put(
    "/{task_id}/status",
    response_model=TaskStatusRead,
    summary="Set task status",
    responses={
        404: {"description": "Subproject or task not found"},
        409: {"description": "Subproject is not in build mode"},
    },
)
async def set_task_status(
    subproject_id: UUID, task_id: str, request: TaskStatusUpdate, tasks: Tasks
) -> TaskStatusRead:
    row = await tasks.set_task_status(subproject_id, task_id, request.status)
    return TaskStatusRead.model_validate(row)


@router.post(
    "/{task_id}/comments",
    response_model=TaskCommentRead,
    status_code=status.HTTP_201_CREATED,
    summary="Comment on a task",
    responses={404: {"description": "Subproject or task not found"}},
)
async def add_comment(
    subproject_id: UUID, task_id: str, request: TaskCommentCreate, tasks: Tasks
) -> TaskCommentRead:
    comment = await tasks.add_comment(subproject_id, task_id, request.content)
    return TaskCommentRead.model_validate(comment)
