"""Repository for Note entity."""

from uuid import UUID

from sqlmodel import select

from src.planforge.models import Note
from src.planforge.repositories.base import BaseRepository


class NoteRepository(BaseRepository[Note]):
    """Repository for Note entity."""

    model = Note

    async def list_by_subproject(self, subproject_id: UUID, ascending: bool = True) -> list[Note]:
        """List notes in (created_at, id) order.

        Ascending order feeds aggregation; descending order is for display.
        """
        query = select(Note).where(Note.subproject_id == subproject_id)
        if ascending:
            query = query.order_by(Note.created_at.asc(), Note.id.asc())  # type: ignore[attr-defined]
        else:
            query = query.order_by(Note.created_at.desc(), Note.id.desc())  # type: ignore[attr-defined]
        result = await self.session.execute(query)
        return list(result.scalars().all())
