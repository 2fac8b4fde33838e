"""Alembic runner for application startup and the migration tests."""

import asyncio
from pathlib import Path

from alembic import command
from alembic.config import Config

SCRIPT_LOCATION = Path(__file__).resolve().parents[3] / "alembic"


def alembic_config(database_url: str | None = None) -> Config:
    """Config for the bundled migration scripts, independent of the working directory.

    Args:
        database_url: Target database; DATABASE_URL from settings when omitted.
    """
    config = Config()
    config.set_main_option("script_location", str(SCRIPT_LOCATION))
    if database_url is not None:
        # ConfigParser interpolation treats '%' specially
        config.set_main_option("sqlalchemy.url", database_url.replace("%", "%%"))
    return config


def run_migrations_sync(revision: str = "head", database_url: str | None = None) -> None:
    """Upgrade the database to `revision`."""
    command.upgrade(alembic_config(database_url), revision)


async def run_migrations_async(revision: str = "head", database_url: str | None = None) -> None:
    """Run migrations from async context.

    env.py drives its own event loop through asyncio.run, so the upgrade runs
    in a worker thread.
    """
    await asyncio.to_thread(run_migrations_sync, revision, database_url)
