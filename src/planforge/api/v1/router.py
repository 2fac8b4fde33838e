from fastapi import APIRouter

from src.planforge.api.v1 import projects, subprojects, tasks

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(projects.router)
api_router.include_router(subprojects.router)
api_router.include_router(tasks.router)
