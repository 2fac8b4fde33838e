"""Test helper functions for common data creation patterns."""

from datetime import timedelta
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.planforge.models import Note, TaskState
from tests.factories import NoteFactory, TaskStatusFactory, utc_now


async def count_rows(session: AsyncSession, model: type) -> int:
    """Count every row of a table, bypassing the gateway."""
    result = await session.execute(select(func.count()).select_from(model))
    return result.scalar_one()


async def add_notes(session: AsyncSession, subproject_id: UUID, *contents: str) -> list[Note]:
    """Add text notes one second apart, in the given order."""
    start = utc_now().replace(microsecond=0)
    notes = [
        NoteFactory.build(
            subproject_id=subproject_id,
            content=content,
            created_at=start + timedelta(seconds=offset),
        )
        for offset, content in enumerate(contents)
    ]
    session.add_all(notes)
    await session.commit()
    return notes


async def set_statuses(session: AsyncSession, subproject_id: UUID, **statuses: TaskState) -> None:
    """Store task statuses directly; keyword names use '_' for '-' (task_1 -> task-1)."""
    session.add_all(
        TaskStatusFactory.build(
            subproject_id=subproject_id,
            task_id=name.replace("_", "-"),
            status=state.value,
        )
        for name, state in statuses.items()
    )
    await session.commit()
