"""Async implementations of LLM background work.

These coroutines contain the actual business logic executed by Celery workers.
Each function is fully self-contained:
  - opens its own DB session on the worker engine (no request lifecycle)
  - instantiates the LLM service from config (no FastAPI DI required)

The Celery task wrappers in ``continuity.infrastructure.tasks.llm_tasks``
call these with ``asyncio.run()``.
"""

import logging

from continuity.core.dependencies import get_llm_service
from continuity.infrastructure.database.connection import worker_session_maker
from continuity.infrastructure.database.repository import CollectionRepository
from continuity.services.comic_insights import ComicInsightService

logger = logging.getLogger(__name__)


async def generate_comic_insights_task(comic_id: str) -> None:
    """Generate and store AI insights for one catalogue comic."""
    logger.info("BG-TASK: generating insights for comic %s", comic_id)
    try:
        async with worker_session_maker() as session:
            service = ComicInsightService(get_llm_service(), CollectionRepository(session))
            insights = await service.generate_insights(comic_id)
        if insights is None:
            logger.warning("BG-TASK: no usable insights for comic %s", comic_id)
    except Exception as exc:
        logger.error("BG-TASK: insights failed for comic %s: %s", comic_id, exc, exc_info=True)
        raise
