"""Async implementations of background maintenance work.

Each coroutine opens its own DB session (independent of any request
lifecycle). The Celery wrappers in ``app.infrastructure.tasks.interaction_tasks``
call them with ``asyncio.run()``.
"""

import logging

from app.infrastructure.database.connection import worker_session_maker
from app.infrastructure.database.repository import UserInteractionRepository
from app.services.interaction_service import InteractionService

logger = logging.getLogger(__name__)


async def purge_old_interactions_task(days_to_keep: int) -> int:
    """Delete interaction log entries older than ``days_to_keep`` days."""
    logger.info("BG-TASK: purging interactions older than %d days", days_to_keep)
    try:
        async with worker_session_maker() as session:
            service = InteractionService(UserInteractionRepository(session))
            deleted = await service.purge_older_than(days_to_keep)
        logger.info("BG-TASK: purged %d interactions", deleted)
        return deleted
    except Exception as exc:
        logger.error("BG-TASK: interaction purge failed: %s", exc, exc_info=True)
        raise
