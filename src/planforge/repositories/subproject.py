"""Repository for Subproject entity."""

from uuid import UUID

from sqlalchemy import update
from sqlmodel import select

from src.planforge.models import Subproject, SubprojectMode
from src.planforge.models.base import utc_now
from src.planforge.repositories.base import BaseRepository


class SubprojectRepository(BaseRepository[Subproject]):
    """Repository for Subproject entity."""

    model = Subproject

    async def list_by_project(self, project_id: UUID) -> list[Subproject]:
        """List a project's subprojects, newest first."""
        result = await self.session.execute(
            select(Subproject)
            .where(Subproject.project_id == project_id)
            .order_by(Subproject.created_at.desc(), Subproject.id.desc())  # type: ignore[attr-defined]
        )
        return list(result.scalars().all())

    async def set_mode(self, subproject_id: UUID, mode: SubprojectMode) -> int:
        result = await self.session.execute(
            update(Subproject)
            .where(Subproject.id == subproject_id)  # type: ignore[arg-type]
            .values(mode=mode.value, updated_at=utc_now())
        )
        return result.rowcount

    async def set_artifacts(
        self,
        subproject_id: UUID,
        prd_markdown: str,
        tasks_markdown: str,
        mode: SubprojectMode,
    ) -> int:
        """Write PRD, tasks and mode in one statement, only while still planned.

        Returns:
            Rows updated: 1 on success, 0 if the subproject is missing or has
            already left the planned mode.
        """
        result = await self.session.execute(
            update(Subproject)
            .where(
                Subproject.id == subproject_id,  # type: ignore[arg-type]
                Subproject.mode == SubprojectMode.PLANNED.value,  # type: ignore[arg-type]
            )
            .values(
                prd_markdown=prd_markdown,
                tasks_markdown=tasks_markdown,
                mode=mode.value,
                updated_at=utc_now(),
            )
        )
        return result.rowcount
