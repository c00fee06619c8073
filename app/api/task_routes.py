"""Task status API route.

  GET /tasks/{task_id}

``status`` mirrors Celery's task states: PENDING, STARTED, SUCCESS,
FAILURE and RETRY.
"""

import logging

from celery.result import AsyncResult
from fastapi import APIRouter

from app.api.schemas import TaskStatusResponse
from app.infrastructure.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.get("/{task_id}", response_model=TaskStatusResponse)
async def get_task_status(task_id: str) -> TaskStatusResponse:
    """Get the state of a background task, e.g. an interaction purge."""
    result = AsyncResult(task_id, app=celery_app)

    error: str | None = None
    value = None
    if result.state == "FAILURE":
        error = str(result.result)
    elif result.state == "SUCCESS":
        # Purge tasks return the number of deleted interactions
        value = result.result

    logger.debug("Task %s state: %s", task_id, result.state)
    return TaskStatusResponse(task_id=task_id, status=result.state, result=value, error=error)
