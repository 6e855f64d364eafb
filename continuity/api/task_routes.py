"""Background task status route.

  GET /tasks/{task_id}

Clients receive the id in the ``X-Task-ID`` header of
``POST /comics/{comic_id}/insights``.  ``status`` is the Celery state
(PENDING, STARTED, SUCCESS, FAILURE, RETRY); the generated insights
themselves are read back from the comic, not from the task.
"""

import logging
from typing import Optional

from celery.result import AsyncResult
from fastapi import APIRouter

from continuity.api.schemas import TaskStatusResponse
from continuity.infrastructure.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.get("/{task_id}", response_model=TaskStatusResponse)
async def get_task_status(task_id: str) -> TaskStatusResponse:
    task = AsyncResult(task_id, app=celery_app)
    state = task.state
    logger.debug("Task %s state: %s", task_id, state)

    error: Optional[str] = str(task.result) if state == "FAILURE" else None
    return TaskStatusResponse(task_id=task_id, status=state, error=error)
