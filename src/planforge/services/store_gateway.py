"""Store gateway - the single typed boundary to the persistence engine.

Every public operation opens its own session and commits its own write, so
each write is individually atomic. Engine errors never leave this module
raw: they are translated into TransientError (safe to retry) or
PermanentError (schema, constraint or logic problems).
"""

import contextlib
from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import asynccontextmanager
from uuid import UUID

from sqlalchemy.exc import (
    DBAPIError,
    DisconnectionError,
    IntegrityError,
    InterfaceError,
    OperationalError,
    SQLAlchemyError,
)
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.planforge.core.events import ChangeFeed, ChangeKind, SubprojectChange
from src.planforge.core.exceptions import (
    ConflictError,
    NotFoundError,
    PermanentError,
    PlanForgeError,
    TransientError,
)
from src.planforge.core.logging import get_logger
from src.planforge.models import (
    Note,
    NoteType,
    Project,
    ProjectStatus,
    Subproject,
    SubprojectMode,
    TaskComment,
    TaskState,
    TaskStatus,
)
from src.planforge.models.base import utc_now
from src.planforge.repositories import (
    NoteRepository,
    ProjectRepository,
    SubprojectRepository,
    TaskCommentRepository,
    TaskStatusRepository,
)

logger = get_logger(__name__)

_TRANSIENT_ERRORS = (
    OperationalError,
    InterfaceError,
    DisconnectionError,
    PoolTimeoutError,
    ConnectionError,
    TimeoutError,
)


def translate_error(exc: BaseException) -> PlanForgeError:
    """Classify an engine-level error into the core error taxonomy."""
    if isinstance(exc, DBAPIError) and exc.connection_invalidated:
        return TransientError(f"Database connection lost: {exc.orig}")
    if isinstance(exc, _TRANSIENT_ERRORS):
        return TransientError(f"Database temporarily unavailable: {exc}")
    if isinstance(exc, IntegrityError):
        return PermanentError(f"Constraint violated: {exc.orig}")
    return PermanentError(f"Database error: {exc}")


class StoreGateway:
    """Typed facade over the repositories plus the subproject change feed."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        change_feed: ChangeFeed | None = None,
    ):
        self._session_factory = session_factory
        self.change_feed = change_feed or ChangeFeed()

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        return self._session_factory

    @asynccontextmanager
    async def _session(self) -> AsyncGenerator[AsyncSession]:
        async with self._session_factory() as session:
            try:
                yield session
            except PlanForgeError:
                await self._rollback(session)
                raise
            except (SQLAlchemyError, OSError) as e:
                await self._rollback(session)
                error = translate_error(e)
                logger.warning("Store operation failed", kind=error.kind.value, error=str(e))
                raise error from e

    @staticmethod
    async def _rollback(session: AsyncSession) -> None:
        # The connection may already be gone; the original error is what matters.
        with contextlib.suppress(SQLAlchemyError, OSError):
            await session.rollback()

    def _publish(self, kind: ChangeKind, subproject: Subproject) -> None:
        self.change_feed.publish(
            SubprojectChange(
                kind=kind,
                project_id=subproject.project_id,
                subproject_id=subproject.id,
                mode=subproject.mode,
            )
        )

    # --- Projects ---

    async def create_project(self, name: str) -> Project:
        async with self._session() as session:
            project = Project(name=name)
            ProjectRepository(session).add(project)
            await session.commit()
            logger.info("Project created", project_id=str(project.id))
            return project

    async def get_project(self, project_id: UUID) -> Project:
        async with self._session() as session:
            project = await ProjectRepository(session).get_by_id(project_id)
            if project is None:
                raise NotFoundError("Project", project_id)
            return project

    async def list_projects(self, status: ProjectStatus | None = None) -> list[Project]:
        """List projects newest first, optionally only those in one status."""
        async with self._session() as session:
            return await ProjectRepository(session).list_newest(status)

    async def page_projects(
        self,
        cursor: str | None,
        limit: int,
        status: ProjectStatus | None = None,
    ) -> tuple[list[Project], str | None, bool]:
        async with self._session() as session:
            return await ProjectRepository(session).list_all(cursor, limit, status)

    async def update_project(self, project_id: UUID, *, name: str) -> Project:
        async with self._session() as session:
            project = await ProjectRepository(session).get_by_id(project_id)
            if project is None:
                raise NotFoundError("Project", project_id)
            project.name = name
            project.updated_at = utc_now()
            await session.commit()
            return project

    async def delete_project(self, project_id: UUID) -> None:
        """Delete a project; the database cascades to every descendant row."""
        async with self._session() as session:
            deleted = await ProjectRepository(session).delete_by_id(project_id)
            if not deleted:
                raise NotFoundError("Project", project_id)
            await session.commit()
        logger.info("Project deleted", project_id=str(project_id))
        self.change_feed.publish(
            SubprojectChange(kind=ChangeKind.DELETED, project_id=project_id, subproject_id=None)
        )

    async def set_project_status(self, project_id: UUID, status: ProjectStatus) -> None:
        async with self._session() as session:
            updated = await ProjectRepository(session).set_status(project_id, status)
            if not updated:
                raise NotFoundError("Project", project_id)
            await session.commit()

    # --- Subprojects ---

    async def create_subproject(self, project_id: UUID, name: str) -> Subproject:
        async with self._session() as session:
            if await ProjectRepository(session).get_by_id(project_id) is None:
                raise NotFoundError("Project", project_id)
            subproject = Subproject(project_id=project_id, name=name)
            SubprojectRepository(session).add(subproject)
            await session.commit()
        logger.info(
            "Subproject created",
            project_id=str(project_id),
            subproject_id=str(subproject.id),
        )
        self._publish(ChangeKind.CREATED, subproject)
        return subproject

    async def get_subproject(self, subproject_id: UUID) -> Subproject:
        async with self._session() as session:
            subproject = await SubprojectRepository(session).get_by_id(subproject_id)
            if subproject is None:
                raise NotFoundError("Subproject", subproject_id)
            return subproject

    async def list_subprojects(self, project_id: UUID) -> list[Subproject]:
        """List a project's subprojects, newest first."""
        async with self._session() as session:
            return await SubprojectRepository(session).list_by_project(project_id)

    async def rename_subproject(self, subproject_id: UUID, name: str) -> Subproject:
        async with self._session() as session:
            subproject = await SubprojectRepository(session).get_by_id(subproject_id)
            if subproject is None:
                raise NotFoundError("Subproject", subproject_id)
            subproject.name = name
            subproject.updated_at = utc_now()
            await session.commit()
        self._publish(ChangeKind.UPDATED, subproject)
        return subproject

    async def set_subproject_mode(self, subproject_id: UUID, mode: SubprojectMode) -> Subproject:
        """Write the mode column. Transition rules live in the lifecycle service."""
        async with self._session() as session:
            repo = SubprojectRepository(session)
            if not await repo.set_mode(subproject_id, mode):
                raise NotFoundError("Subproject", subproject_id)
            await session.commit()
            subproject = await repo.get_by_id(subproject_id)
        if subproject is None:
            raise NotFoundError("Subproject", subproject_id)
        self._publish(ChangeKind.UPDATED, subproject)
        return subproject

    async def set_artifacts(
        self,
        subproject_id: UUID,
        prd_markdown: str,
        tasks_markdown: str,
        new_mode: SubprojectMode = SubprojectMode.BUILD,
    ) -> Subproject:
        """Atomically store both artifacts and the new mode.

        The update only matches a subproject that is still planned, so a
        concurrent writer that got there first turns this call into a
        ConflictError instead of an overwrite.

        Raises:
            PermanentError: If either artifact is empty or new_mode is planned.
            NotFoundError: If the subproject does not exist.
            ConflictError: If the subproject is no longer planned.
        """
        if not prd_markdown.strip() or not tasks_markdown.strip():
            raise PermanentError("PRD and tasks markdown must both be non-empty")
        if new_mode is SubprojectMode.PLANNED:
            raise PermanentError("Artifacts can only be stored with a build or complete mode")

        async with self._session() as session:
            repo = SubprojectRepository(session)
            updated = await repo.set_artifacts(
                subproject_id, prd_markdown, tasks_markdown, new_mode
            )
            if not updated:
                current = await repo.get_by_id(subproject_id)
                if current is None:
                    raise NotFoundError("Subproject", subproject_id)
                raise ConflictError(
                    f"Subproject {subproject_id} is in mode '{current.mode}', expected 'planned'"
                )
            await session.commit()
            subproject = await repo.get_by_id(subproject_id)
        if subproject is None:
            raise NotFoundError("Subproject", subproject_id)
        logger.info(
            "Subproject artifacts stored", subproject_id=str(subproject_id), mode=new_mode.value
        )
        self._publish(ChangeKind.UPDATED, subproject)
        return subproject

    def watch_subprojects(self, project_id: UUID) -> AsyncIterator[SubprojectChange]:
        """Subscribe to committed subproject changes of one project."""
        return self.change_feed.watch(project_id)

    # --- Notes ---

    async def create_note(self, subproject_id: UUID, type: NoteType, content: str) -> Note:
        async with self._session() as session:
            if await SubprojectRepository(session).get_by_id(subproject_id) is None:
                raise NotFoundError("Subproject", subproject_id)
            note = Note(subproject_id=subproject_id, type=type.value, content=content)
            NoteRepository(session).add(note)
            await session.commit()
            return note

    async def list_notes(self, subproject_id: UUID, ascending: bool = True) -> list[Note]:
        """List notes in a single query, so the result is one consistent snapshot."""
        async with self._session() as session:
            return await NoteRepository(session).list_by_subproject(subproject_id, ascending)

    # --- Task statuses ---

    async def upsert_task_status(
        self, subproject_id: UUID, task_id: str, status: TaskState
    ) -> TaskStatus:
        """Insert or update the status row for (subproject_id, task_id).

        A unique-constraint violation on insert means another writer created
        the row first; the write is retried once, which then takes the update
        path.
        """
        row = await self._upsert_task_status_once(subproject_id, task_id, status, retrying=False)
        if row is None:
            logger.info(
                "Concurrent task status insert, retrying",
                subproject_id=str(subproject_id),
                task_id=task_id,
            )
            row = await self._upsert_task_status_once(subproject_id, task_id, status, retrying=True)
        if row is None:
            raise PermanentError(f"Task status for {task_id} could not be written")
        return row

    async def _upsert_task_status_once(
        self, subproject_id: UUID, task_id: str, status: TaskState, retrying: bool
    ) -> TaskStatus | None:
        """One upsert attempt; None means the insert lost a race and may be retried."""
        async with self._session() as session:
            repo = TaskStatusRepository(session)
            row = await repo.get_by_task(subproject_id, task_id)
            if row is None:
                row = TaskStatus(subproject_id=subproject_id, task_id=task_id, status=status.value)
                repo.add(row)
            else:
                row.status = status.value
                row.updated_at = utc_now()
            try:
                await session.commit()
            except IntegrityError:
                if retrying:
                    raise
                await self._rollback(session)
                return None
            return row

    async def list_task_statuses(self, subproject_id: UUID) -> list[TaskStatus]:
        async with self._session() as session:
            return await TaskStatusRepository(session).list_by_subproject(subproject_id)

    # --- Task comments ---

    async def create_task_comment(
        self, subproject_id: UUID, task_id: str, content: str
    ) -> TaskComment:
        async with self._session() as session:
            comment = TaskComment(subproject_id=subproject_id, task_id=task_id, content=content)
            TaskCommentRepository(session).add(comment)
            await session.commit()
            return comment

    async def list_task_comments(
        self, subproject_id: UUID, task_id: str | None = None
    ) -> list[TaskComment]:
        async with self._session() as session:
            return await TaskCommentRepository(session).list_by_subproject(subproject_id, task_id)
