"""Status rollups: task statuses to subproject mode, subproject modes to project status."""

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from src.planforge.models import ProjectStatus, Subproject, SubprojectMode, TaskState, TaskStatus


@dataclass(frozen=True)
class TaskCounts:
    todo: int = 0
    in_progress: int = 0
    done: int = 0

    @property
    def total(self) -> int:
        return self.todo + self.in_progress + self.done


def _states(statuses: Iterable[TaskStatus | TaskState | str]) -> list[TaskState]:
    return [
        TaskState(item.status if isinstance(item, TaskStatus) else item) for item in statuses
    ]


def _modes(subprojects: Iterable[Subproject | SubprojectMode | str]) -> list[SubprojectMode]:
    return [
        SubprojectMode(item.mode if isinstance(item, Subproject) else item) for item in subprojects
    ]


def subproject_mode(statuses: Iterable[TaskStatus | TaskState | str]) -> SubprojectMode:
    """Mode implied by a build subproject's task statuses.

    No recorded statuses still means build: the subproject has its PRD and
    tasks but no work has been tracked yet.
    """
    states = _states(statuses)
    if states and all(state is TaskState.DONE for state in states):
        return SubprojectMode.COMPLETE
    return SubprojectMode.BUILD


def project_status(subprojects: Iterable[Subproject | SubprojectMode | str]) -> ProjectStatus:
    """Project status from its subprojects' modes.

    - no subprojects, or all planned: planning
    - all complete: complete
    - anything else (any build, or a planned/complete mix): in_progress
    """
    modes = _modes(subprojects)
    if not modes or all(mode is SubprojectMode.PLANNED for mode in modes):
        return ProjectStatus.PLANNING
    if all(mode is SubprojectMode.COMPLETE for mode in modes):
        return ProjectStatus.COMPLETE
    return ProjectStatus.IN_PROGRESS


def task_counts(statuses: Iterable[TaskStatus | TaskState | str]) -> TaskCounts:
    states = _states(statuses)
    return TaskCounts(
        todo=states.count(TaskState.TODO),
        in_progress=states.count(TaskState.IN_PROGRESS),
        done=states.count(TaskState.DONE),
    )


def completion_percent(statuses: Iterable[TaskStatus | TaskState | str]) -> int:
    """Share of done tasks as a whole percentage, rounded half up; 0 with no tasks."""
    counts = task_counts(statuses)
    if counts.total == 0:
        return 0
    ratio = Decimal(100 * counts.done) / Decimal(counts.total)
    return int(ratio.quantize(Decimal(1), rounding=ROUND_HALF_UP))
