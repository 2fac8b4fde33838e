"""Project schemas for API request/response."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from src.planforge.models import ProjectStatus


def _strip_name(v: str | None) -> str | None:
    if v is not None:
        v = v.strip()
        if not v:
            raise ValueError("Name cannot be empty or whitespace only")
    return v


class ProjectCreate(BaseModel):
    """Schema for creating a project."""

    name: str = Field(min_length=1, max_length=200)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _strip_name(v)  # type: ignore[return-value]


class ProjectUpdate(BaseModel):
    """Schema for renaming a project. Status is derived and cannot be set."""

    name: str = Field(min_length=1, max_length=200)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _strip_name(v)  # type: ignore[return-value]


class ProjectRead(BaseModel):
    """Schema for reading a project."""

    id: UUID
    name: str
    status: ProjectStatus
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
