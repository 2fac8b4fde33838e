"""Task views over a subproject's task markdown plus stored statuses and comments."""

from dataclasses import dataclass, field
from uuid import UUID

from src.planforge.core.exceptions import InvalidStateError, NotFoundError
from src.planforge.core.logging import get_logger
from src.planforge.models import SubprojectMode, TaskComment, TaskState, TaskStatus
from src.planforge.pipeline.status import TaskCounts, completion_percent, task_counts
from src.planforge.pipeline.task_parser import ParsedTask, parse_task_markdown
from src.planforge.services.lifecycle_service import LifecycleController
from src.planforge.services.store_gateway import StoreGateway

logger = get_logger(__name__)


@dataclass(frozen=True)
class TaskView:
    task: ParsedTask
    status: TaskState = TaskState.TODO
    comments: list[TaskComment] = field(default_factory=list)


@dataclass(frozen=True)
class TaskSummary:
    counts: TaskCounts
    completion_percent: int


class TaskService:
    """Task tracking for subprojects in build mode."""

    def __init__(self, store: StoreGateway, lifecycle: LifecycleController):
        self.store = store
        self.lifecycle = lifecycle

    async def list_tasks(self, subproject_id: UUID) -> list[TaskView]:
        """Parsed tasks in document order; tasks without a stored status are todo."""
        subproject = await self.store.get_subproject(subproject_id)
        tasks = parse_task_markdown(subproject.tasks_markdown)
        statuses = {s.task_id: s for s in await self.store.list_task_statuses(subproject_id)}
        comments: dict[str, list[TaskComment]] = {}
        for comment in await self.store.list_task_comments(subproject_id):
            comments.setdefault(comment.task_id, []).append(comment)

        return [
            TaskView(
                task=task,
                status=statuses[task.markdown_id].status_enum
                if task.markdown_id in statuses
                else TaskState.TODO,
                comments=comments.get(task.markdown_id, []),
            )
            for task in tasks
        ]

    async def set_task_status(
        self, subproject_id: UUID, task_id: str, status: TaskState
    ) -> TaskStatus:
        """
        Record a task's status.

        Raises:
            NotFoundError: If the subproject or the task does not exist
            InvalidStateError: If the subproject is not in build mode
        """
        subproject = await self.store.get_subproject(subproject_id)
        if subproject.mode_enum is not SubprojectMode.BUILD:
            raise InvalidStateError(
                f"Task statuses can only change in build mode, subproject is '{subproject.mode}'"
            )
        self._require_task(subproject.tasks_markdown, subproject_id, task_id)

        row = await self.store.upsert_task_status(subproject_id, task_id, status)
        logger.info(
            "Task status set",
            subproject_id=str(subproject_id),
            task_id=task_id,
            status=status.value,
        )
        await self.lifecycle.on_task_status_changed(subproject_id)
        return row

    async def add_comment(self, subproject_id: UUID, task_id: str, content: str) -> TaskComment:
        subproject = await self.store.get_subproject(subproject_id)
        self._require_task(subproject.tasks_markdown, subproject_id, task_id)
        return await self.store.create_task_comment(subproject_id, task_id, content)

    async def summary(self, subproject_id: UUID) -> TaskSummary:
        """Counts and completion over the parsed tasks, todo where no status is stored."""
        views = await self.list_tasks(subproject_id)
        states = [view.status for view in views]
        return TaskSummary(
            counts=task_counts(states), completion_percent=completion_percent(states)
        )

    @staticmethod
    def _require_task(tasks_markdown: str | None, subproject_id: UUID, task_id: str) -> None:
        if task_id not in {task.markdown_id for task in parse_task_markdown(tasks_markdown)}:
            raise NotFoundError("Task", f"{subproject_id}/{task_id}")
