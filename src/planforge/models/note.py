"""Note model - append-only planning fragments."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, Index, Text
from sqlmodel import Field, SQLModel

from src.planforge.models.base import utc_now
from src.planforge.models.enums import NoteType, check_in


class Note(SQLModel, table=True):
    """Text or image note attached to a subproject.

    For image notes, content is a resolvable URL.
    """

    __tablename__ = "notes"
    __table_args__ = (
        CheckConstraint(check_in("type", NoteType), name="ck_notes_type"),
        Index("ix_notes_subproject_order", "subproject_id", "created_at", "id"),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    subproject_id: UUID = Field(foreign_key="subprojects.id", ondelete="CASCADE")
    type: str = Field(max_length=10)
    content: str = Field(sa_type=Text)
    created_at: datetime = Field(default_factory=utc_now)

    @property
    def type_enum(self) -> NoteType:
        return NoteType(self.type)
