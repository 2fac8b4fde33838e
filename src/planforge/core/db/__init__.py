"""Database utilities - engine, session, migrations."""

from src.planforge.core.db.engine import build_engine, dispose_engine, get_engine
from src.planforge.core.db.migrations import run_migrations_async, run_migrations_sync
from src.planforge.core.db.session import create_all, create_session_factory, get_session

__all__ = [
    # Engine
    "build_engine",
    "dispose_engine",
    "get_engine",
    # Session
    "create_all",
    "create_session_factory",
    "get_session",
    # Migrations
    "run_migrations_async",
    "run_migrations_sync",
]
