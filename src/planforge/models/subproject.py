"""Subproject model - the unit of planning and building."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, Text
from sqlmodel import Field, SQLModel

from src.planforge.models.base import utc_now
from src.planforge.models.enums import SubprojectMode, check_in


class Subproject(SQLModel, table=True):
    """Subproject entity owned by a Project.

    prd_markdown and tasks_markdown are both null while planned and both
    set once the subproject enters build.
    """

    __tablename__ = "subprojects"
    __table_args__ = (
        CheckConstraint(check_in("mode", SubprojectMode), name="ck_subprojects_mode"),
        CheckConstraint(
            "(mode = 'planned' AND prd_markdown IS NULL AND tasks_markdown IS NULL)"
            " OR (mode <> 'planned' AND prd_markdown IS NOT NULL AND tasks_markdown IS NOT NULL)",
            name="ck_subprojects_artifacts",
        ),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    project_id: UUID = Field(foreign_key="projects.id", ondelete="CASCADE", index=True)
    name: str = Field(max_length=200)
    mode: str = Field(default=SubprojectMode.PLANNED.value, max_length=20)
    prd_markdown: str | None = Field(default=None, sa_type=Text)
    tasks_markdown: str | None = Field(default=None, sa_type=Text)
    created_at: datetime = Field(default_factory=utc_now, index=True)
    updated_at: datetime = Field(default_factory=utc_now)

    @property
    def mode_enum(self) -> SubprojectMode:
        """Get mode as SubprojectMode enum."""
        return SubprojectMode(self.mode)
