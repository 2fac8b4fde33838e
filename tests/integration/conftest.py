"""Integration test fixtures for database and HTTP client operations.

Every test gets its own in-memory SQLite database with the full schema and
foreign keys switched on, so cascades behave as they do in production.
Uses polyfactory for type-safe test data generation.
"""

from collections.abc import AsyncGenerator
from datetime import timedelta

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from src.planforge.core.config import Settings
from src.planforge.core.db import build_engine, create_all, create_session_factory
from src.planforge.main import create_app
from src.planforge.models import Note, Project, Subproject
from src.planforge.pipeline.orchestrator import PlanToBuildOrchestrator
from src.planforge.services import LifecycleController, StoreGateway, TaskService
from tests.factories import NoteFactory, ProjectFactory, SubprojectFactory
from tests.fakes import ScriptedGenerator


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine]:
    """Fresh in-memory database with every table created."""
    # StaticPool keeps the single in-memory connection alive across sessions
    test_engine = build_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await create_all(test_engine)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return create_session_factory(engine)


@pytest.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession]:
    """Session for arranging rows and asserting on them directly.

    Tests must call `await session.commit()` to persist what they add.
    """
    async with session_factory() as session:
        yield session


@pytest.fixture
def store(session_factory: async_sessionmaker[AsyncSession]) -> StoreGateway:
    return StoreGateway(session_factory)


@pytest.fixture
def lifecycle(store: StoreGateway) -> LifecycleController:
    return LifecycleController(store)


@pytest.fixture
def task_service(store: StoreGateway, lifecycle: LifecycleController) -> TaskService:
    return TaskService(store, lifecycle)


@pytest.fixture
def generator() -> ScriptedGenerator:
    return ScriptedGenerator()


@pytest.fixture
def orchestrator(
    store: StoreGateway, generator: ScriptedGenerator, lifecycle: LifecycleController
) -> PlanToBuildOrchestrator:
    return PlanToBuildOrchestrator(store, generator, lifecycle)


@pytest.fixture
async def project(db_session: AsyncSession) -> Project:
    project = ProjectFactory.build(name="P1")
    db_session.add(project)
    await db_session.commit()
    return project


@pytest.fixture
async def subproject(db_session: AsyncSession, project: Project) -> Subproject:
    """Planned subproject "S1" of project "P1"."""
    subproject = SubprojectFactory.build(project_id=project.id, name="S1")
    db_session.add(subproject)
    await db_session.commit()
    return subproject


@pytest.fixture
async def build_subproject(db_session: AsyncSession, project: Project) -> Subproject:
    """Subproject already in build with tasks task-1 and task-2."""
    subproject = SubprojectFactory.in_build(project_id=project.id, name="S1")
    db_session.add(subproject)
    await db_session.commit()
    return subproject


@pytest.fixture
async def notes(db_session: AsyncSession, subproject: Subproject) -> list[Note]:
    """Two text notes on S1, one second apart."""
    first = NoteFactory.build(subproject_id=subproject.id, content="spec v1")
    first.created_at = first.created_at.replace(microsecond=0)
    second = NoteFactory.build(
        subproject_id=subproject.id,
        content="must support CSV",
        created_at=first.created_at + timedelta(seconds=1),
    )
    db_session.add_all([first, second])
    await db_session.commit()
    return [first, second]


@pytest.fixture
def test_settings() -> Settings:
    return Settings(app_env="testing", database_url="sqlite+aiosqlite:///:memory:")


@pytest.fixture
async def client(
    engine: AsyncEngine,
    generator: ScriptedGenerator,
    test_settings: Settings,
    monkeypatch: pytest.MonkeyPatch,
) -> AsyncGenerator[AsyncClient]:
    """HTTP client bound to an app that shares the test engine and generator.

    ASGITransport does not run the lifespan, so it is entered here.
    """
    # Keep structlog configurable for log-capturing tests
    monkeypatch.setattr("src.planforge.main.setup_logging", lambda debug=False: None)
    app = create_app(test_settings, engine=engine, generator=generator)
    async with app.router.lifespan_context(app):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac
