"""
Plan-to-Build pipeline.

Turns a planned subproject's notes into a PRD and task list, then flips the
subproject into build mode.

Steps:
1. Aggregate notes - read-only, fails with EmptyInput when there are none
2. Generate PRD - external call, retried inside the generator client
3. Generate tasks - external call, same policy
4. Persist - one conditional write of both artifacts plus the new mode
5. Roll up the project status - best effort, artifacts are already committed

Nothing is written before step 4, so a failure at any earlier point leaves the
subproject exactly as it was and the run can simply be started again.
"""

import asyncio
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass, field
from uuid import UUID, uuid4

from src.planforge.core.config import Settings, get_settings
from src.planforge.core.exceptions import (
    AlreadyRunningError,
    EmptyInputError,
    EmptyOutputError,
    InvalidStateError,
    PermanentError,
    PipelineCancelledError,
    PipelineTimeoutError,
    PlanForgeError,
)
from src.planforge.core.logging import bind_pipeline_context, clear_pipeline_context, get_logger
from src.planforge.models import Subproject, SubprojectMode
from src.planforge.pipeline.aggregator import aggregate_notes
from src.planforge.pipeline.generator import Generator
from src.planforge.pipeline.locks import PipelineLocks
from src.planforge.pipeline.progress import PipelineState, ProgressChannel, ProgressEvent
from src.planforge.services.lifecycle_service import LifecycleController
from src.planforge.services.store_gateway import StoreGateway

logger = get_logger(__name__)


@dataclass
class _PipelineRun:
    """Mutable state of one run: current step, deadline and progress channel."""

    subproject_id: UUID
    channel: ProgressChannel
    deadline_at: float | None
    clock: Callable[[], float]
    state: PipelineState = PipelineState.IDLE
    run_id: str = field(default_factory=lambda: uuid4().hex[:12])

    def checkpoint(self) -> None:
        """Fail the run if the caller went away or the deadline passed."""
        if self.channel.closed:
            raise PipelineCancelledError("Progress channel closed by caller")
        if self.deadline_at is not None and self.clock() >= self.deadline_at:
            raise PipelineTimeoutError("Pipeline deadline exceeded")

    async def enter(self, state: PipelineState) -> None:
        self.checkpoint()
        self.state = state
        logger.info("Pipeline step started", step=state.value)
        await self.channel.emit(ProgressEvent.for_step(state))


class PlanToBuildOrchestrator:
    """Runs the plan-to-build pipeline for one subproject at a time.

    Every failure leaves lets_build_it as a PlanForgeError, after a failed
    progress event naming its kind.
    """

    def __init__(
        self,
        store: StoreGateway,
        generator: Generator,
        lifecycle: LifecycleController,
        *,
        locks: PipelineLocks | None = None,
        timezone: str = "UTC",
        default_deadline: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.store = store
        self.generator = generator
        self.lifecycle = lifecycle
        self.locks = locks or PipelineLocks()
        self.timezone = timezone
        self.default_deadline = default_deadline
        self._clock = clock
        self._background: set[asyncio.Task[None]] = set()

    @classmethod
    def from_settings(
        cls,
        store: StoreGateway,
        generator: Generator,
        lifecycle: LifecycleController,
        settings: Settings | None = None,
        **kwargs,
    ) -> "PlanToBuildOrchestrator":
        settings = settings or get_settings()
        return cls(
            store,
            generator,
            lifecycle,
            timezone=settings.aggregation_timezone,
            default_deadline=settings.pipeline_deadline_seconds,
            **kwargs,
        )

    async def lets_build_it(
        self,
        subproject_id: UUID,
        progress: ProgressChannel | None = None,
        deadline: float | None = None,
    ) -> Subproject:
        """
        Run the pipeline and return the subproject in build mode.

        Args:
            subproject_id: Subproject to build; must be planned
            progress: Channel receiving step events; closing it cancels the run
            deadline: Seconds allowed for the whole run (default from settings)

        Raises:
            AlreadyRunningError: Another run for this subproject is in flight
            NotFoundError / InvalidStateError: Guard failures
            EmptyInputError, EmptyOutputError, GeneratorUnavailableError,
            PipelineTimeoutError, PipelineCancelledError, TransientError,
            PermanentError: Step failures, artifacts untouched
        """
        budget = deadline if deadline is not None else self.default_deadline
        run = _PipelineRun(
            subproject_id=subproject_id,
            channel=progress or ProgressChannel(),
            deadline_at=self._clock() + budget if budget is not None else None,
            clock=self._clock,
        )
        bind_pipeline_context(subproject_id, run.run_id)
        try:
            if not self.locks.try_acquire(subproject_id):
                error = AlreadyRunningError(
                    f"A plan-to-build run is already in progress for subproject {subproject_id}"
                )
                await self._fail(run, error)
                raise error
            try:
                return await self._execute(run)
            except PlanForgeError as e:
                await self._fail(run, e)
                raise
            except Exception as e:
                logger.exception("Unexpected pipeline failure", step=run.state.value)
                error = PermanentError(f"Unexpected failure while {run.state.value}: {e}")
                await self._fail(run, error)
                raise error from e
            finally:
                self.locks.release(subproject_id)
        finally:
            clear_pipeline_context()

    async def stream(
        self, subproject_id: UUID, deadline: float | None = None
    ) -> AsyncIterator[ProgressEvent]:
        """
        Run the pipeline in a background task and yield its progress events.

        The iterator ends after the done or failed event. Closing it early
        closes the channel, so the run stops at its next checkpoint with
        Cancelled and writes nothing.
        """
        queue: asyncio.Queue[ProgressEvent | None] = asyncio.Queue()
        channel = ProgressChannel(queue.put_nowait)

        async def run() -> None:
            try:
                await self.lets_build_it(subproject_id, progress=channel, deadline=deadline)
            except PlanForgeError as e:
                # Already delivered to the consumer as the failed event
                logger.debug("Streamed pipeline ended with failure", kind=e.kind.value)
            finally:
                queue.put_nowait(None)

        task = asyncio.create_task(run())
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        try:
            while (event := await queue.get()) is not None:
                yield event
        finally:
            channel.close()

    async def wait_idle(self) -> None:
        """Wait for streamed runs whose consumers already went away."""
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)

    async def _execute(self, run: _PipelineRun) -> Subproject:
        subproject = await self.store.get_subproject(run.subproject_id)
        if subproject.mode_enum is not SubprojectMode.PLANNED:
            raise InvalidStateError(
                f"Subproject {run.subproject_id} is in mode '{subproject.mode}', expected 'planned'"
            )

        # Step 1: one snapshot of the notes; a note added later waits for the next run
        await run.enter(PipelineState.AGGREGATING)
        notes = await self.store.list_notes(run.subproject_id, ascending=True)
        if not notes:
            raise EmptyInputError("Subproject has no notes to build from")
        aggregated = aggregate_notes(notes, self.timezone)
        logger.info("Notes aggregated", note_count=len(notes), document_chars=len(aggregated))

        # Step 2
        await run.enter(PipelineState.GENERATING_PRD)
        prd_markdown = await self._generate(run, "PRD", self.generator.synthesize_prd, aggregated)

        # Step 3
        await run.enter(PipelineState.GENERATING_TASKS)
        tasks_markdown = await self._generate(
            run, "tasks", self.generator.synthesize_tasks, prd_markdown
        )

        # Step 4: the only write; conditional on the subproject still being planned
        await run.enter(PipelineState.PERSISTING)
        built = await self.store.set_artifacts(
            run.subproject_id, prd_markdown, tasks_markdown, SubprojectMode.BUILD
        )

        # Step 5: committed from here on, so a rollup failure cannot fail the run
        run.state = PipelineState.DONE
        await self._rollup(built.project_id)
        await run.channel.emit(ProgressEvent.for_step(PipelineState.DONE))
        logger.info("Pipeline complete", project_id=str(built.project_id))
        return built

    async def _generate(
        self,
        run: _PipelineRun,
        label: str,
        call: Callable[[str], Awaitable[str]],
        document: str,
    ) -> str:
        try:
            output = await call(document)
        except PlanForgeError:
            raise
        except Exception as e:
            raise PermanentError(f"{label} generation failed: {e}") from e
        run.checkpoint()
        if not output or not output.strip():
            raise EmptyOutputError(f"Generator returned empty {label} markdown")
        return output

    async def _rollup(self, project_id: UUID) -> None:
        try:
            await self.lifecycle.recompute_project_status(project_id)
        except PlanForgeError as e:
            logger.warning("Project status rollup failed", project_id=str(project_id), error=str(e))

    async def _fail(self, run: _PipelineRun, error: PlanForgeError) -> None:
        failed_at = run.state
        run.state = PipelineState.FAILED
        logger.warning(
            "Pipeline failed",
            step=failed_at.value,
            kind=error.kind.value,
            error=error.message,
        )
        await run.channel.emit(ProgressEvent.failed(failed_at, error.kind.value, error.message))
