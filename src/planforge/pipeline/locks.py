"""Per-subproject pipeline locks (process-local)."""

from uuid import UUID


class PipelineLocks:
    """Tracks which subprojects have a plan-to-build run in flight.

    Acquire and release never await, so on a single event loop the
    check-and-set cannot interleave with another coroutine. A second run for
    the same subproject is refused rather than queued.

    Only valid for a single-process deployment; several workers would need
    the lock to live in the database instead.
    """

    def __init__(self) -> None:
        self._in_flight: dict[UUID, bool] = {}

    def is_running(self, subproject_id: UUID) -> bool:
        return self._in_flight.get(subproject_id, False)

    @property
    def running_count(self) -> int:
        return len(self._in_flight)

    def try_acquire(self, subproject_id: UUID) -> bool:
        if self._in_flight.get(subproject_id):
            return False
        self._in_flight[subproject_id] = True
        return True

    def release(self, subproject_id: UUID) -> None:
        self._in_flight.pop(subproject_id, None)
