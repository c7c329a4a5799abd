"""Background analysis task state."""

import asyncio

from fastapi import APIRouter, Depends

from analysis.context_store import ContextStore
from analysis.tasks import AnalysisTaskRunner, TaskState
from models.errors import NotFoundError
from server.dependencies import get_context_store, get_task_runner
from server.schemas.responses import TaskStateDTO

router = APIRouter(prefix="/tasks", tags=["Tasks"])


@router.get("/{task_id}", response_model=TaskStateDTO)
async def get_task(
    task_id: str,
    runner: AnalysisTaskRunner = Depends(get_task_runner),
    store: ContextStore = Depends(get_context_store),
):
    """
    Lifecycle of the background task for one context id.

    Once the runner has dropped a finished task, the state is derived from
    the context record.
    """
    state = runner.get(task_id)
    if state is None:
        context = await asyncio.to_thread(store.get, task_id)
        if context is None:
            raise NotFoundError("Task not found")
        state = TaskState.from_context(context)
    return TaskStateDTO.from_state(state)
