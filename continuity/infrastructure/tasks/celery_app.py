"""Celery application for comic insight generation.

Redis is both broker and result backend, so ``GET /tasks/{task_id}`` can
report PENDING, STARTED, RETRY, SUCCESS or FAILURE for a queued insight job.
"""

from celery import Celery

from continuity.core.config import settings

celery_app = Celery(
    "continuity",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["continuity.infrastructure.tasks.llm_tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    result_expires=6 * 60 * 60,
    # An insight job is one LLM call plus one UPDATE.
    task_soft_time_limit=int(settings.llm_timeout) + 30,
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    broker_connection_retry_on_startup=True,
)
