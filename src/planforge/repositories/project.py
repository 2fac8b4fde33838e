"""Repository for Project entity."""

from uuid import UUID

from sqlalchemy import delete, update
from sqlmodel import select

from src.planforge.models import Project, ProjectStatus
from src.planforge.models.base import utc_now
from src.planforge.repositories.base import BaseRepository


class ProjectRepository(BaseRepository[Project]):
    """Repository for Project entity."""

    model = Project

    async def list_all(
        self,
        cursor: str | None = None,
        limit: int = 100,
        status: ProjectStatus | None = None,
    ) -> tuple[list[Project], str | None, bool]:
        """List projects with cursor-based pagination, newest first.

        Args:
            cursor: Optional cursor for pagination
            limit: Maximum number of results
            status: Only return projects in this status when given

        Returns:
            Tuple of (items, next_cursor, has_more)
        """
        query = select(Project)
        if status is not None:
            query = query.where(Project.status == status.value)
        return await self.paginate(query, cursor, limit, Project.created_at)

    async def list_newest(self, status: ProjectStatus | None = None) -> list[Project]:
        """Every project, newest first, without pagination."""
        query = select(Project).order_by(Project.created_at.desc())  # type: ignore[attr-defined]
        if status is not None:
            query = query.where(Project.status == status.value)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def set_status(self, project_id: UUID, status: ProjectStatus) -> int:
        """Write the status column; returns the number of rows touched."""
        result = await self.session.execute(
            update(Project)
            .where(Project.id == project_id)  # type: ignore[arg-type]
            .values(status=status.value, updated_at=utc_now())
        )
        return result.rowcount

    async def delete_by_id(self, project_id: UUID) -> int:
        """Delete the project row; descendants go with it via ON DELETE CASCADE."""
        result = await self.session.execute(
            delete(Project).where(Project.id == project_id)  # type: ignore[arg-type]
        )
        return result.rowcount
