"""In-process key-value storage implementation."""
import logging
from typing import Optional

from continuity.domain.repositories import IKeyValueStore

logger = logging.getLogger(__name__)


class InMemoryKeyValueStore(IKeyValueStore):
    """Dict-backed store; contents are lost when the process exits."""

    def __init__(self):
        self._data: dict[str, str] = {}

    async def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value
        logger.debug(f"Stored {key} ({len(value)} chars)")

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)
