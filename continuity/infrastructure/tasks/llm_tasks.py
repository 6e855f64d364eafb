"""Celery task wrappers for LLM background work.

Each task is a thin synchronous wrapper around the async coroutine defined in
``continuity.services.background_tasks``.

Retry policy (per task):
  - max_retries=3   up to 3 additional attempts on failure
  - countdown=60    wait 60 s before each retry
"""

import asyncio
import logging

from continuity.domain.exceptions import ComicNotFoundError
from continuity.infrastructure.tasks.celery_app import celery_app
from continuity.services.background_tasks import generate_comic_insights_task

logger = logging.getLogger(__name__)


@celery_app.task(bind=True, name="llm.generate_comic_insights", max_retries=3)
def generate_comic_insights(self, comic_id: str) -> None:
    """Celery task: analyse a comic and store its insights."""
    try:
        asyncio.run(generate_comic_insights_task(comic_id))
    except ComicNotFoundError:
        # Missing comics are not retried.
        raise
    except Exception as exc:
        logger.warning(
            "generate_comic_insights failed (attempt %d/%d): %s",
            self.request.retries + 1,
            self.max_retries + 1,
            exc,
        )
        raise self.retry(exc=exc, countdown=60)
