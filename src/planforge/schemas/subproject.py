"""Subproject schemas for API request/response."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from src.planforge.models import SubprojectMode
from src.planforge.schemas.project import _strip_name


class SubprojectCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _strip_name(v)  # type: ignore[return-value]


class SubprojectRename(SubprojectCreate):
    pass


class SubprojectTransition(BaseModel):
    """Requested target mode; only build -> complete is accepted."""

    target: SubprojectMode


class SubprojectRead(BaseModel):
    """Schema for reading a subproject, artifacts included."""

    id: UUID
    project_id: UUID
    name: str
    mode: SubprojectMode
    prd_markdown: str | None
    tasks_markdown: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
