"""Progress events and the channel the orchestrator reports them on."""

import inspect
from collections.abc import Awaitable, Callable
from enum import Enum

from pydantic import BaseModel


class PipelineState(str, Enum):
    """States of one plan-to-build run."""

    IDLE = "idle"
    AGGREGATING = "aggregating"
    GENERATING_PRD = "generating_prd"
    GENERATING_TASKS = "generating_tasks"
    PERSISTING = "persisting"
    DONE = "done"
    FAILED = "failed"


WORK_STEPS: tuple[PipelineState, ...] = (
    PipelineState.AGGREGATING,
    PipelineState.GENERATING_PRD,
    PipelineState.GENERATING_TASKS,
    PipelineState.PERSISTING,
)

STEP_MESSAGES: dict[PipelineState, str] = {
    PipelineState.AGGREGATING: "Aggregating notes",
    PipelineState.GENERATING_PRD: "Generating PRD",
    PipelineState.GENERATING_TASKS: "Generating tasks",
    PipelineState.PERSISTING: "Saving PRD and tasks",
    PipelineState.DONE: "Subproject is ready to build",
}


class ProgressEvent(BaseModel):
    """Step-level progress, serialised as-is for the UI.

    index is 0-based over the work steps; a done event has index == total and
    a failed event carries the index of the step that failed.
    """

    step: PipelineState
    index: int
    total: int = len(WORK_STEPS)
    message: str | None = None
    error_kind: str | None = None

    @classmethod
    def for_step(cls, step: PipelineState, message: str | None = None) -> "ProgressEvent":
        index = WORK_STEPS.index(step) if step in WORK_STEPS else len(WORK_STEPS)
        return cls(step=step, index=index, message=message or STEP_MESSAGES.get(step))

    @classmethod
    def failed(cls, at: PipelineState, error_kind: str, message: str) -> "ProgressEvent":
        index = WORK_STEPS.index(at) if at in WORK_STEPS else 0
        return cls(step=PipelineState.FAILED, index=index, message=message, error_kind=error_kind)


ProgressListener = Callable[[ProgressEvent], Awaitable[None] | None]


class ProgressChannel:
    """Observer for pipeline progress that the caller can close.

    Closing the channel is how a caller cancels: the orchestrator checks
    `closed` before each step and fails the run with Cancelled. Events are
    recorded in `events` and delivered to the listener while the channel is
    open.
    """

    def __init__(self, listener: ProgressListener | None = None) -> None:
        self._listener = listener
        self._closed = False
        self.events: list[ProgressEvent] = []

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def last_step(self) -> PipelineState:
        return self.events[-1].step if self.events else PipelineState.IDLE

    def close(self) -> None:
        self._closed = True

    async def emit(self, event: ProgressEvent) -> None:
        self.events.append(event)
        if self._closed or self._listener is None:
            return
        result = self._listener(event)
        if inspect.isawaitable(result):
            await result
