import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from asgi_correlation_id import CorrelationIdMiddleware, correlation_id
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine
from starlette.middleware.base import RequestResponseEndpoint

from src.planforge.api.v1.router import api_router
from src.planforge.core.config import Settings, get_settings
from src.planforge.core.db import (
    create_all,
    create_session_factory,
    dispose_engine,
    get_engine,
    run_migrations_async,
)
from src.planforge.core.exceptions import setup_exception_handlers
from src.planforge.core.logging import (
    bind_request_context,
    clear_request_context,
    get_logger,
    setup_logging,
)
from src.planforge.pipeline.generator import Generator, GeneratorClient
from src.planforge.pipeline.orchestrator import PlanToBuildOrchestrator
from src.planforge.services import LifecycleController, StoreGateway

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Application lifespan - startup and shutdown."""
    settings: Settings = app.state.settings
    setup_logging(settings.debug)
    logger.info(f"Starting {settings.app_name}")

    engine: AsyncEngine = app.state.engine or get_engine()
    if settings.database_migrate_on_startup:
        logger.info("Running database migrations...")
        await run_migrations_async(database_url=settings.database_url)
    elif settings.database_create_all:
        await create_all(engine)

    store = StoreGateway(create_session_factory(engine))
    generator: Generator = app.state.generator or GeneratorClient.from_settings(settings)
    lifecycle = LifecycleController(store)
    orchestrator = PlanToBuildOrchestrator.from_settings(store, generator, lifecycle, settings)

    app.state.session_factory = store.session_factory
    app.state.store = store
    app.state.lifecycle = lifecycle
    app.state.orchestrator = orchestrator

    yield

    # Streamed runs whose client disconnected may still be waiting on the generator
    logger.info("Shutdown initiated, waiting for background pipeline runs...")
    try:
        await asyncio.wait_for(orchestrator.wait_idle(), timeout=settings.shutdown_grace_period)
    except TimeoutError:
        logger.warning(f"Shutdown timeout after {settings.shutdown_grace_period}s")

    logger.info("Closing connections...")
    if app.state.generator is None and isinstance(generator, GeneratorClient):
        await generator.aclose()
    if app.state.engine is None:
        await dispose_engine()
    logger.info("Shutdown complete")


OPENAPI_TAGS = [
    {"name": "projects", "description": "Projects and their derived status"},
    {"name": "subprojects", "description": "Notes, plan-to-build and mode transitions"},
    {"name": "tasks", "description": "Task tracking for subprojects in build"},
]


def create_app(
    settings: Settings | None = None,
    *,
    engine: AsyncEngine | None = None,
    generator: Generator | None = None,
) -> FastAPI:
    """Build the application.

    Args:
        settings: Settings override (defaults to get_settings())
        engine: Engine to use instead of one built from DATABASE_URL; the
            caller keeps ownership
        generator: Generator to use instead of the HTTP client
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Turn planning notes into a PRD and a tracked task list",
        version="0.1.0",
        openapi_tags=OPENAPI_TAGS,
        openapi_url="/openapi.json" if settings.enable_openapi else None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.engine = engine
    app.state.generator = generator

    setup_exception_handlers(app)

    # Add correlation ID middleware first (outermost middleware)
    app.add_middleware(CorrelationIdMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
        allow_headers=["Content-Type", "X-Request-ID"],
    )

    @app.middleware("http")
    async def logging_context_middleware(
        request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        """Bind request_id to log context for all requests."""
        clear_request_context()
        bind_request_context(correlation_id.get())
        try:
            return await call_next(request)
        finally:
            clear_request_context()

    app.include_router(api_router)

    @app.get("/health")
    async def health() -> JSONResponse:
        """Health check with a database round trip."""
        health_status: dict[str, Any] = {
            "status": "healthy",
            "database": "unknown",
            "running_pipelines": app.state.orchestrator.locks.running_count,
        }
        try:
            async with app.state.session_factory() as session:
                await session.execute(text("SELECT 1"))
            health_status["database"] = "healthy"
        except Exception as e:
            health_status["database"] = f"unhealthy: {str(e)}"
            health_status["status"] = "unhealthy"

        status_code = 200 if health_status["status"] == "healthy" else 503
        return JSONResponse(content=health_status, status_code=status_code)

    return app


app = create_app()
