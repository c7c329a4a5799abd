"""In-process background runner for analysis jobs."""

import concurrent.futures
import threading
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any

from db.repository import utc_now
from models.website_context import ContextStatus, WebsiteContext
from utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_MAX_RETAINED = 1000


class TaskStatus(str, Enum):
    QUEUED = "queued"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (TaskStatus.SUCCEEDED, TaskStatus.FAILED)


_CONTEXT_TO_TASK = {
    ContextStatus.PROCESSING: TaskStatus.RUNNING,
    ContextStatus.COMPLETED: TaskStatus.SUCCEEDED,
    ContextStatus.FAILED: TaskStatus.FAILED,
}


@dataclass(frozen=True)
class TaskState:
    task_id: str
    status: TaskStatus
    submitted_at: datetime
    started_at: datetime | None = None
    finished_at: datetime | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "task_id": self.task_id,
            "status": self.status.value,
            "submitted_at": self.submitted_at.isoformat(),
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "error": self.error,
        }

    @classmethod
    def from_context(cls, context: WebsiteContext) -> "TaskState":
        """Approximate state for a context whose task record is no longer held."""
        status = _CONTEXT_TO_TASK[context.status]
        return cls(
            task_id=context.id,
            status=status,
            submitted_at=context.created_at,
            started_at=context.created_at,
            finished_at=(context.completed_at or context.updated_at) if status.is_terminal else None,
            error=context.error_message,
        )


class AnalysisTaskRunner:
    """
    Bounded thread pool that records each task's lifecycle.

    Exceptions raised by a task are caught at this boundary, logged and stored
    on the task state; they never propagate to the submitter. With
    ``synchronous=True`` tasks run inline in ``submit`` (used by tests).

    At most ``max_retained`` states are kept; beyond that the oldest finished
    ones are dropped. Queued and running states are never dropped.
    """

    def __init__(self, max_workers: int = 4, synchronous: bool = False, max_retained: int = DEFAULT_MAX_RETAINED):
        if max_retained < 1:
            raise ValueError("max_retained must be at least 1")
        self.synchronous = synchronous
        self.max_retained = max_retained
        self._executor = (
            None
            if synchronous
            else concurrent.futures.ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="analysis")
        )
        self._states: OrderedDict[str, TaskState] = OrderedDict()
        self._lock = threading.Lock()

    def _set(self, task_id: str, **changes) -> None:
        with self._lock:
            self._states[task_id] = replace(self._states[task_id], **changes)
            if self._states[task_id].status.is_terminal:
                self._evict()

    def _evict(self) -> None:
        # Caller holds the lock
        excess = len(self._states) - self.max_retained
        if excess <= 0:
            return
        finished = [task_id for task_id, state in self._states.items() if state.status.is_terminal]
        for task_id in finished[:excess]:
            del self._states[task_id]

    def _run(self, task_id: str, fn: Callable[..., Any], args: tuple) -> None:
        self._set(task_id, status=TaskStatus.RUNNING, started_at=utc_now())
        try:
            fn(*args)
        except Exception as exc:
            logger.error(
                "Background task failed",
                extra={"extra_fields": {"task_id": task_id, "error": str(exc), "error_type": type(exc).__name__}},
                exc_info=True,
            )
            self._set(task_id, status=TaskStatus.FAILED, finished_at=utc_now(), error=str(exc))
            return
        self._set(task_id, status=TaskStatus.SUCCEEDED, finished_at=utc_now())

    def submit(self, task_id: str, fn: Callable[..., Any], *args) -> TaskState:
        """
        Raises:
            RuntimeError: the runner has been shut down
        """
        with self._lock:
            self._states.pop(task_id, None)
            self._states[task_id] = TaskState(task_id=task_id, status=TaskStatus.QUEUED, submitted_at=utc_now())

        if self._executor is None:
            self._run(task_id, fn, args)
        else:
            try:
                self._executor.submit(self._run, task_id, fn, args)
            except RuntimeError as exc:
                self._set(task_id, status=TaskStatus.FAILED, finished_at=utc_now(), error=str(exc))
                raise
        return self.get(task_id)

    def get(self, task_id: str) -> TaskState | None:
        with self._lock:
            return self._states.get(task_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._states)

    def shutdown(self, wait: bool = True) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=wait)
