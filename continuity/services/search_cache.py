"""Time-bounded in-memory cache of metadata-search results.

Keyed by the lowercased search query. Entries leave only through TTL expiry
(checked lazily on lookup) or :meth:`ResultCache.clear`; there is no size
bound and nothing survives a process restart.

One instance is created by the application lifespan and injected wherever it
is needed, so tests get isolation simply by constructing their own.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

from continuity.domain.entities import ComicRecord

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 60 * 60


@dataclass(frozen=True)
class CacheEntry:
    results: tuple[ComicRecord, ...]
    stored_at: float


class ResultCache:

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    def get(self, key: str) -> Optional[list[ComicRecord]]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.stored_at > self.ttl_seconds:
            self._entries.pop(key, None)
            logger.debug("Search cache entry expired: %r", key)
            return None
        return list(entry.results)

    def set(self, key: str, results: list[ComicRecord]) -> None:
        self._entries[key] = CacheEntry(results=tuple(results), stored_at=self._clock())

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries
