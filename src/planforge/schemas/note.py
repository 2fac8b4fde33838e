"""Note schemas for API request/response."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from src.planforge.models import NoteType


class NoteCreate(BaseModel):
    """Schema for appending a note; image notes carry a URL as content."""

    type: NoteType = NoteType.TEXT
    content: str = Field(min_length=1, max_length=100_000)

    @model_validator(mode="after")
    def validate_content(self) -> "NoteCreate":
        content = self.content.strip()
        if not content:
            raise ValueError("Note content cannot be empty or whitespace only")
        if self.type is NoteType.IMAGE and not content.startswith(("http://", "https://")):
            raise ValueError("Image note content must be an http(s) URL")
        return self


class NoteRead(BaseModel):
    id: UUID
    subproject_id: UUID
    type: NoteType
    content: str
    created_at: datetime

    model_config = {"from_attributes": True}
