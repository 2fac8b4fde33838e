"""Test factories for generating test data.

Re-exports all factories for convenient imports:
    from tests.factories import ProjectFactory, SubprojectFactory, ...
"""

from tests.factories.base import BaseFactory, generate_uuid, utc_now
from tests.factories.project import (
    SAMPLE_PRD,
    SAMPLE_TASKS,
    NoteFactory,
    ProjectFactory,
    SubprojectFactory,
)
from tests.factories.task import TaskCommentFactory, TaskStatusFactory

__all__ = [
    # Base
    "BaseFactory",
    "generate_uuid",
    "utc_now",
    # Project
    "NoteFactory",
    "ProjectFactory",
    "SubprojectFactory",
    "SAMPLE_PRD",
    "SAMPLE_TASKS",
    # Task
    "TaskCommentFactory",
    "TaskStatusFactory",
]
