from src.planforge.schemas.note import NoteCreate, NoteRead
from src.planforge.schemas.pagination import PaginatedResponse
from src.planforge.schemas.project import ProjectCreate, ProjectRead, ProjectUpdate
from src.planforge.schemas.subproject import (
    SubprojectCreate,
    SubprojectRead,
    SubprojectRename,
    SubprojectTransition,
)
from src.planforge.schemas.task import (
    TaskCommentCreate,
    TaskCommentRead,
    TaskRead,
    TaskStatusRead,
    TaskStatusUpdate,
    TaskSummaryRead,
)

__all__ = [
    # Note
    "NoteCreate",
    "NoteRead",
    # Pagination
    "PaginatedResponse",
    # Project
    "ProjectCreate",
    "ProjectRead",
    "ProjectUpdate",
    # Subproject
    "SubprojectCreate",
    "SubprojectRead",
    "SubprojectRename",
    "SubprojectTransition",
    # Task
    "TaskCommentCreate",
    "TaskCommentRead",
    "TaskRead",
    "TaskStatusRead",
    "TaskStatusUpdate",
    "TaskSummaryRead",
]
