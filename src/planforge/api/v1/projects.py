"""Project endpoints.

Project status is read-only here: it is recomputed from the subprojects'
modes whenever one of them changes.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query, status

from src.planforge.api.dependencies import Store
from src.planforge.models import ProjectStatus
from src.planforge.schemas import (
    PaginatedResponse,
    ProjectCreate,
    ProjectRead,
    ProjectUpdate,
    SubprojectCreate,
    SubprojectRead,
)

router = APIRouter(prefix="/projects", tags=["projects"])


@router.get(
    "",
    response_model=PaginatedResponse[ProjectRead],
    summary="List projects",
    description="List projects newest first with cursor-based pagination.",
)
async def list_projects(
    store: Store,
    cursor: Annotated[str | None, Query(description="Cursor for pagination")] = None,
    limit: Annotated[int, Query(ge=1, le=100, description="Max items to return")] = 50,
    status_filter: Annotated[
        ProjectStatus | None, Query(alias="status", description="Only projects in this status")
    ] = None,
) -> PaginatedResponse[ProjectRead]:
    projects, next_cursor, has_more = await store.page_projects(cursor, limit, status_filter)
    return PaginatedResponse(
        items=[ProjectRead.model_validate(p) for p in projects],
        next_cursor=next_cursor,
        has_more=has_more,
    )


@router.post(
    "",
    response_model=ProjectRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create project",
    responses={201: {"description": "Project created in planning status"}},
)
async def create_project(request: ProjectCreate, store: Store) -> ProjectRead:
    project = await store.create_project(request.name)
    return ProjectRead.model_validate(project)


@router.get(
    "/{project_id}",
    response_model=ProjectRead,
    summary="Get project",
    responses={404: {"description": "Project not found"}},
)
async def get_project(project_id: UUID, store: Store) -> ProjectRead:
    return ProjectRead.model_validate(await store.get_project(project_id))


@router.patch(
    "/{project_id}",
    response_model=ProjectRead,
    summary="Rename project",
    responses={404: {"description": "Project not found"}},
)
async def update_project(project_id: UUID, request: ProjectUpdate, store: Store) -> ProjectRead:
    project = await store.update_project(project_id, name=request.name)
    return ProjectRead.model_validate(project)


@router.delete(
    "/{project_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete project",
    description="Delete a project together with its subprojects, notes and task data.",
    responses={404: {"description": "Project not found"}},
)
async def delete_project(project_id: UUID, store: Store) -> None:
    await store.delete_project(project_id)


@router.get(
    "/{project_id}/subprojects",
    response_model=list[SubprojectRead],
    summary="List subprojects",
    description="List a project's subprojects, newest first.",
)
async def list_subprojects(project_id: UUID, store: Store) -> list[SubprojectRead]:
    await store.get_project(project_id)
    return [SubprojectRead.model_validate(s) for s in await store.list_subprojects(project_id)]


@router.post(
    "/{project_id}/subprojects",
    response_model=SubprojectRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create subproject",
    responses={
        201: {"description": "Subproject created in planned mode"},
        404: {"description": "Project not found"},
    },
)
async def create_subproject(
    project_id: UUID, request: SubprojectCreate, store: Store
) -> SubprojectRead:
    subproject = await store.create_subproject(project_id, request.name)
    return SubprojectRead.model_validate(subproject)
