"""Project model - root of the ownership tree."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint
from sqlmodel import Field, SQLModel

from src.planforge.models.base import utc_now
from src.planforge.models.enums import ProjectStatus, check_in


class Project(SQLModel, table=True):
    """Project entity.

    Status is never edited by hand; it is recomputed from the subprojects'
    modes after every subproject mode change.
    """

    __tablename__ = "projects"
    __table_args__ = (
        CheckConstraint(check_in("status", ProjectStatus), name="ck_projects_status"),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str = Field(max_length=200, index=True)
    status: str = Field(default=ProjectStatus.PLANNING.value, max_length=20, index=True)
    created_at: datetime = Field(default_factory=utc_now, index=True)
    updated_at: datetime = Field(default_factory=utc_now)

    @property
    def status_enum(self) -> ProjectStatus:
        """Get status as ProjectStatus enum."""
        return ProjectStatus(self.status)
