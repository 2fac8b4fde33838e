"""Repositories for task statuses and task comments."""

from uuid import UUID

from sqlmodel import select

from src.planforge.models import TaskComment, TaskStatus
from src.planforge.repositories.base import BaseRepository


class TaskStatusRepository(BaseRepository[TaskStatus]):
    """Repository for TaskStatus entity."""

    model = TaskStatus

    async def get_by_task(self, subproject_id: UUID, task_id: str) -> TaskStatus | None:
        result = await self.session.execute(
            select(TaskStatus).where(
                TaskStatus.subproject_id == subproject_id,
                TaskStatus.task_id == task_id,
            )
        )
        return result.scalar_one_or_none()

    async def list_by_subproject(self, subproject_id: UUID) -> list[TaskStatus]:
        result = await self.session.execute(
            select(TaskStatus)
            .where(TaskStatus.subproject_id == subproject_id)
            .order_by(TaskStatus.task_id)
        )
        return list(result.scalars().all())


class TaskCommentRepository(BaseRepository[TaskComment]):
    """Repository for TaskComment entity."""

    model = TaskComment

    async def list_by_subproject(
        self, subproject_id: UUID, task_id: str | None = None
    ) -> list[TaskComment]:
        """List comments oldest first, optionally for a single task."""
        query = select(TaskComment).where(TaskComment.subproject_id == subproject_id)
        if task_id is not None:
            query = query.where(TaskComment.task_id == task_id)
        query = query.order_by(TaskComment.created_at.asc(), TaskComment.id.asc())  # type: ignore[attr-defined]
        result = await self.session.execute(query)
        return list(result.scalars().all())
