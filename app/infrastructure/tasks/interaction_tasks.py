"""Celery task wrappers for interaction-log maintenance.

Each task is a thin synchronous wrapper around the async coroutine defined in
``app.services.background_tasks``.
"""

import asyncio
import logging

from app.infrastructure.tasks.celery_app import celery_app
from app.services.background_tasks import purge_old_interactions_task

logger = logging.getLogger(__name__)


@celery_app.task(bind=True, name="interactions.purge_old", max_retries=3)
def purge_old_interactions(self, days_to_keep: int) -> int:
    """Celery task: delete interactions older than ``days_to_keep`` days."""
    try:
        return asyncio.run(purge_old_interactions_task(days_to_keep))
    except Exception as exc:
        logger.warning(
            "purge_old_interactions failed (attempt %d/%d): %s",
            self.request.retries + 1,
            self.max_retries + 1,
            exc,
        )
        raise self.retry(exc=exc, countdown=60)
