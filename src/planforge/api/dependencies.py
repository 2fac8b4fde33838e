"""FastAPI dependency injection definitions.

Long-lived collaborators are built once in the application lifespan and kept
on app.state; these dependencies hand them to the routers.
"""

from typing import Annotated

from fastapi import Depends, Request

from src.planforge.pipeline.orchestrator import PlanToBuildOrchestrator
from src.planforge.services import LifecycleController, StoreGateway, TaskService


def get_store(request: Request) -> StoreGateway:
    """Get the store gateway."""
    return request.app.state.store


def get_lifecycle(request: Request) -> LifecycleController:
    """Get the lifecycle controller."""
    return request.app.state.lifecycle


def get_orchestrator(request: Request) -> PlanToBuildOrchestrator:
    """Get the plan-to-build orchestrator."""
    return request.app.state.orchestrator


Store = Annotated[StoreGateway, Depends(get_store)]
Lifecycle = Annotated[LifecycleController, Depends(get_lifecycle)]
Orchestrator = Annotated[PlanToBuildOrchestrator, Depends(get_orchestrator)]


def get_task_service(store: Store, lifecycle: Lifecycle) -> TaskService:
    """Get task service."""
    return TaskService(store, lifecycle)


Tasks = Annotated[TaskService, Depends(get_task_service)]
