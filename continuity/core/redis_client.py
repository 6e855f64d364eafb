"""Async Redis client factory.

Used for:
- Archivist conversation storage (``conversation_backend = "redis"``)
"""

import redis.asyncio as aioredis

from continuity.core.config import settings


def create_redis_client(url: str = "") -> aioredis.Redis:
    """Return a Redis client that decodes responses to ``str``."""
    return aioredis.from_url(url or settings.redis_url, decode_responses=True)
