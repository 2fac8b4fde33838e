"""In-process change feed for subproject rows, keyed by project id."""

import asyncio
from collections import defaultdict
from collections.abc import AsyncIterator
from dataclasses import dataclass
from enum import Enum
from uuid import UUID

from src.planforge.core.logging import get_logger

logger = get_logger(__name__)


class ChangeKind(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"


@dataclass(frozen=True)
class SubprojectChange:
    """One committed change to a subproject row."""

    kind: ChangeKind
    project_id: UUID
    subproject_id: UUID | None
    mode: str | None = None


class ChangeFeed:
    """Dispatch table from project id to subscriber queues.

    Events are published after the originating write commits, so each
    subscriber sees them in commit order for a given project. A deleted
    project publishes a DELETED event with no subproject id and ends every
    subscription for it.
    """

    def __init__(self) -> None:
        self._subscribers: defaultdict[UUID, set[asyncio.Queue[SubprojectChange | None]]] = (
            defaultdict(set)
        )

    def subscriber_count(self, project_id: UUID) -> int:
        return len(self._subscribers.get(project_id, ()))

    def publish(self, change: SubprojectChange) -> None:
        queues = self._subscribers.get(change.project_id)
        if not queues:
            return
        for queue in queues:
            queue.put_nowait(change)
        if change.kind is ChangeKind.DELETED and change.subproject_id is None:
            for queue in queues:
                queue.put_nowait(None)

    async def watch(self, project_id: UUID) -> AsyncIterator[SubprojectChange]:
        """Yield changes for one project until it is deleted or the consumer stops."""
        queue: asyncio.Queue[SubprojectChange | None] = asyncio.Queue()
        self._subscribers[project_id].add(queue)
        logger.debug("Subprojects watch started", project_id=str(project_id))
        try:
            while True:
                change = await queue.get()
                if change is None:
                    return
                yield change
        finally:
            subscribers = self._subscribers.get(project_id)
            if subscribers is not None:
                subscribers.discard(queue)
                if not subscribers:
                    del self._subscribers[project_id]
            logger.debug("Subprojects watch stopped", project_id=str(project_id))
