"""Model exports - Lobby Pattern.

Import from here: `from src.planforge.models import Project, Subproject`
"""

# Enums
from src.planforge.models.enums import NoteType, ProjectStatus, SubprojectMode, TaskState

# Tables
from src.planforge.models.note import Note
from src.planforge.models.project import Project
from src.planforge.models.subproject import Subproject
from src.planforge.models.task import TaskComment, TaskStatus

__all__ = [
    # Enums
    "NoteType",
    "ProjectStatus",
    "SubprojectMode",
    "TaskState",
    # Tables
    "Note",
    "Project",
    "Subproject",
    "TaskComment",
    "TaskStatus",
]
