"""Redis key-value storage implementation.

Conversations survive restarts and are shared between API workers when
``CONVERSATION_BACKEND=redis``.
"""
import logging
from typing import Optional

import redis.asyncio as aioredis

from continuity.domain.repositories import IKeyValueStore

logger = logging.getLogger(__name__)


class RedisKeyValueStore(IKeyValueStore):
    """Plain string values under an optional key prefix.

    The client must be created with ``decode_responses=True``.
    """

    def __init__(self, client: aioredis.Redis, prefix: str = ""):
        self._client = client
        self.prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    async def get(self, key: str) -> Optional[str]:
        return await self._client.get(self._key(key))

    async def set(self, key: str, value: str) -> None:
        await self._client.set(self._key(key), value)
        logger.debug(f"Stored {key} in Redis ({len(value)} chars)")

    async def delete(self, key: str) -> None:
        await self._client.delete(self._key(key))

    async def close(self) -> None:
        await self._client.aclose()
