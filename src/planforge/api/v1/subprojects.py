"""Subproject endpoints: read, rename, transition and the plan-to-build run."""

from collections.abc import AsyncIterator
from contextlib import aclosing
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query
from fastapi.responses import StreamingResponse

from src.planforge.api.dependencies import Lifecycle, Orchestrator, Store
from src.planforge.core.exceptions import AlreadyRunningError, InvalidStateError
from src.planforge.models import SubprojectMode
from src.planforge.schemas import (
    NoteCreate,
    NoteRead,
    SubprojectRead,
    SubprojectRename,
    SubprojectTransition,
)

router = APIRouter(prefix="/subprojects", tags=["subprojects"])

NDJSON_MEDIA_TYPE = "application/x-ndjson"


@router.get(
    "/{subproject_id}",
    response_model=SubprojectRead,
    summary="Get subproject",
    responses={404: {"description": "Subproject not found"}},
)
async def get_subproject(subproject_id: UUID, store: Store) -> SubprojectRead:
    return SubprojectRead.model_validate(await store.get_subproject(subproject_id))


@router.patch(
    "/{subproject_id}",
    response_model=SubprojectRead,
    summary="Rename subproject",
    responses={404: {"description": "Subproject not found"}},
)
async def rename_subproject(
    subproject_id: UUID, request: SubprojectRename, store: Store
) -> SubprojectRead:
    return SubprojectRead.model_validate(await store.rename_subproject(subproject_id, request.name))


@router.post(
    "/{subproject_id}/transition",
    response_model=SubprojectRead,
    summary="Change subproject mode",
    description="Only build -> complete is accepted, once every tracked task is done.",
    responses={
        404: {"description": "Subproject not found"},
        409: {"description": "Transition not allowed"},
    },
)
async def transition_subproject(
    subproject_id: UUID, request: SubprojectTransition, lifecycle: Lifecycle
) -> SubprojectRead:
    return SubprojectRead.model_validate(await lifecycle.transition(subproject_id, request.target))


@router.post(
    "/{subproject_id}/build",
    response_model=SubprojectRead,
    summary="Run plan-to-build",
    description="Generate the PRD and tasks from the notes and switch the subproject to build.",
    responses={
        404: {"description": "Subproject not found"},
        409: {"description": "Not planned, or a run is already in progress"},
        422: {"description": "No notes, or the generator returned nothing"},
        503: {"description": "Generator unavailable"},
    },
)
async def build_subproject(
    subproject_id: UUID,
    orchestrator: Orchestrator,
    deadline: Annotated[float | None, Query(gt=0, description="Deadline in seconds")] = None,
) -> SubprojectRead:
    subproject = await orchestrator.lets_build_it(subproject_id, deadline=deadline)
    return SubprojectRead.model_validate(subproject)


@router.post(
    "/{subproject_id}/build/stream",
    summary="Run plan-to-build with streamed progress",
    description=(
        "Same as /build but responds with newline-delimited JSON progress events. "
        "Disconnecting cancels the run before its next step."
    ),
    response_class=StreamingResponse,
    responses={200: {"content": {NDJSON_MEDIA_TYPE: {}}}},
)
async def stream_build(
    subproject_id: UUID,
    orchestrator: Orchestrator,
    store: Store,
    deadline: Annotated[float | None, Query(gt=0, description="Deadline in seconds")] = None,
) -> StreamingResponse:
    # Fail fast with a proper status code; the pipeline repeats these checks under its lock
    subproject = await store.get_subproject(subproject_id)
    if subproject.mode_enum is not SubprojectMode.PLANNED:
        raise InvalidStateError(
            f"Subproject {subproject_id} is in mode '{subproject.mode}', expected 'planned'"
        )
    if orchestrator.locks.is_running(subproject_id):
        raise AlreadyRunningError(
            f"A plan-to-build run is already in progress for subproject {subproject_id}"
        )

    async def events() -> AsyncIterator[str]:
        async with aclosing(orchestrator.stream(subproject_id, deadline=deadline)) as progress:
            async for event in progress:
                yield event.model_dump_json() + "\n"

    return StreamingResponse(events(), media_type=NDJSON_MEDIA_TYPE)


@router.get(
    "/{subproject_id}/notes",
    response_model=list[NoteRead],
    summary="List notes",
    description="Notes in timeline order; pass order=desc for newest first.",
)
async def list_notes(
    subproject_id: UUID,
    store: Store,
    order: Annotated[str, Query(pattern="^(asc|desc)$")] = "asc",
) -> list[NoteRead]:
    await store.get_subproject(subproject_id)
    notes = await store.list_notes(subproject_id, ascending=order == "asc")
    return [NoteRead.model_validate(n) for n in notes]


@router.post(
    "/{subproject_id}/notes",
    response_model=NoteRead,
    status_code=201,
    summary="Add note",
    responses={404: {"description": "Subproject not found"}},
)
async def create_note(subproject_id: UUID, request: NoteCreate, store: Store) -> NoteRead:
    note = await store.create_note(subproject_id, request.type, request.content)
    return NoteRead.model_validate(note)
