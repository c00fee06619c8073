"""Celery application, with broker and result backend both on Redis.

Workers run as a separate process from the API server, so maintenance work
such as purging the interaction log never blocks request handlers.
"""

from celery import Celery

from app.core.config import settings

celery_app = Celery(
    "culturalvault",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["app.infrastructure.tasks.interaction_tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,        # report STARTED once a worker picks a task up
    result_expires=86400,           # keep results for 24 h
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    task_reject_on_worker_lost=True,
)
