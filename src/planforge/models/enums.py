"""Shared enums for models."""

from enum import Enum


class ProjectStatus(str, Enum):
    """Project status, derived from its subprojects' modes."""

    PLANNING = "planning"
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"


class SubprojectMode(str, Enum):
    """Subproject lifecycle mode (planned -> build -> complete)."""

    PLANNED = "planned"
    BUILD = "build"
    COMPLETE = "complete"


class NoteType(str, Enum):
    """Kind of note content: markdown text or an image URL."""

    TEXT = "text"
    IMAGE = "image"


class TaskState(str, Enum):
    """Tracked state of one parsed task."""

    TODO = "todo"
    IN_PROGRESS = "in_progress"
    DONE = "done"


def check_in(column: str, enum: type[Enum]) -> str:
    """Render a CHECK constraint body restricting a column to an enum's values."""
    values = ", ".join(f"'{member.value}'" for member in enum)
    return f"{column} IN ({values})"
