"""Subproject mode transitions and project status rollup."""

from uuid import UUID

from src.planforge.core.exceptions import InvalidTransitionError
from src.planforge.core.logging import get_logger
from src.planforge.models import ProjectStatus, Subproject, SubprojectMode, TaskState
from src.planforge.pipeline.status import project_status, subproject_mode
from src.planforge.services.store_gateway import StoreGateway

logger = get_logger(__name__)


class LifecycleController:
    """Validates mode transitions and keeps Project.status in step with its subprojects.

    planned -> build belongs to the plan-to-build pipeline alone; the only
    transition accepted here is build -> complete.
    """

    def __init__(self, store: StoreGateway):
        self.store = store

    async def transition(self, subproject_id: UUID, target: SubprojectMode) -> Subproject:
        """
        Move a subproject to a new mode.

        Raises:
            NotFoundError: If the subproject does not exist
            InvalidTransitionError: For planned -> build, for build -> complete
                with no task statuses or any status not done, and for every
                other pair of modes
        """
        subproject = await self.store.get_subproject(subproject_id)
        current = subproject.mode_enum

        if current is SubprojectMode.PLANNED and target is SubprojectMode.BUILD:
            raise InvalidTransitionError(
                "A subproject enters build mode only through the plan-to-build pipeline"
            )
        if current is not SubprojectMode.BUILD or target is not SubprojectMode.COMPLETE:
            raise InvalidTransitionError(
                f"Transition {current.value} -> {target.value} is not allowed"
            )

        statuses = await self.store.list_task_statuses(subproject_id)
        if not statuses:
            raise InvalidTransitionError("No task has a recorded status yet")
        pending = [s.task_id for s in statuses if s.status != TaskState.DONE.value]
        if pending:
            raise InvalidTransitionError(f"Tasks not done: {', '.join(pending)}")

        updated = await self.store.set_subproject_mode(subproject_id, SubprojectMode.COMPLETE)
        logger.info(
            "Subproject transitioned",
            subproject_id=str(subproject_id),
            from_mode=current.value,
            to_mode=target.value,
        )
        await self.recompute_project_status(updated.project_id)
        return updated

    async def recompute_project_status(self, project_id: UUID) -> ProjectStatus:
        """Derive the project status from all its subprojects and store it if it changed."""
        project = await self.store.get_project(project_id)
        subprojects = await self.store.list_subprojects(project_id)
        status = project_status(subprojects)
        if project.status != status.value:
            await self.store.set_project_status(project_id, status)
            logger.info(
                "Project status updated",
                project_id=str(project_id),
                from_status=project.status,
                to_status=status.value,
            )
        return status

    async def on_task_status_changed(self, subproject_id: UUID) -> SubprojectMode:
        """Recompute the rollup after a task status write.

        Returns the mode the task statuses imply; completion itself still
        goes through transition().
        """
        subproject = await self.store.get_subproject(subproject_id)
        statuses = await self.store.list_task_statuses(subproject_id)
        await self.recompute_project_status(subproject.project_id)
        return subproject_mode(statuses)
