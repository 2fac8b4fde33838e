"""Repository layer - data access abstraction."""

from src.planforge.repositories.base import BaseRepository
from src.planforge.repositories.note import NoteRepository
from src.planforge.repositories.project import ProjectRepository
from src.planforge.repositories.subproject import SubprojectRepository
from src.planforge.repositories.task import TaskCommentRepository, TaskStatusRepository

__all__ = [
    "BaseRepository",
    "NoteRepository",
    "ProjectRepository",
    "SubprojectRepository",
    "TaskCommentRepository",
    "TaskStatusRepository",
]
