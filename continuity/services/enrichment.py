"""Recommendation enrichment: resolve AI suggestions to displayable comics.

Pipeline per recommendation:

  1. Build a search query (title + first writer) and its lowercase cache key.
  2. Serve results from the :class:`ResultCache` when fresh.
  3. Otherwise call the metadata search provider.  A provider failure skips
     matching and returns a synthesized record (confidence 0.3); failures are
     never cached.
  4. Cache the raw results, then pick the best candidate at the threshold.
  5. Match found        -> provider record, source "external", confidence 0.9.
  6. Nothing acceptable -> synthesized record, source "synthesized", confidence 0.5.
"""

import asyncio
import logging
from datetime import datetime
from uuid import uuid4

from continuity.domain.entities import ComicRecord, EnrichmentResult, Recommendation
from continuity.domain.repositories import IComicSearchService
from continuity.domain.services import IEnrichmentService
from continuity.services.comic_matcher import (
    DEFAULT_MATCH_THRESHOLD,
    build_search_query,
    find_best_match,
)
from continuity.services.search_cache import ResultCache

logger = logging.getLogger(__name__)

MATCH_CONFIDENCE = 0.9
NO_MATCH_CONFIDENCE = 0.5
SEARCH_FAILED_CONFIDENCE = 0.3

AI_ID_PREFIX = "ai-"


def create_basic_comic(recommendation: Recommendation) -> ComicRecord:
    """Synthesize a minimal record from the recommendation's own fields."""
    attribution = f"Recommended by The Archivist: {recommendation.title}"
    if recommendation.writer:
        attribution += f" by {recommendation.writer}"
    return ComicRecord(
        id=f"{AI_ID_PREFIX}{uuid4().hex}",
        title=recommendation.title,
        writer=recommendation.writer or "Unknown",
        artist=recommendation.artist or "Unknown",
        publisher=recommendation.publisher or "",
        year=recommendation.year or datetime.utcnow().year,
        description=attribution,
        cover_url="",
        read_states=set(),
        series=recommendation.series,
    )


class EnrichmentService(IEnrichmentService):
    """Resolves recommendations through cached search + fuzzy matching.

    Constructor args:
        search_service:  metadata search provider.
        cache:           shared :class:`ResultCache` owned by the composition root.
        threshold:       minimum match score to accept a candidate (default 70).
        batch_size:      recommendations searched concurrently per group (default 3).
        batch_delay:     pause between groups in seconds (default 0.3).
        max_retries:     extra search attempts on provider failure (default 0).
        retry_backoff:   base delay for exponential backoff between attempts.
    """

    def __init__(
        self,
        search_service: IComicSearchService,
        cache: ResultCache,
        threshold: int = DEFAULT_MATCH_THRESHOLD,
        batch_size: int = 3,
        batch_delay: float = 0.3,
        max_retries: int = 0,
        retry_backoff: float = 0.5,
    ):
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.search_service = search_service
        self.cache = cache
        self.threshold = threshold
        self.batch_size = batch_size
        self.batch_delay = batch_delay
        self.max_retries = max_retries
        self.retry_backoff = retry_backoff

    async def search(self, query: str) -> list[ComicRecord]:
        """Return cached results for ``query`` or search and cache them."""
        cache_key = query.lower()
        cached = self.cache.get(cache_key)
        if cached is not None:
            logger.debug("Search cache hit for %r", query)
            return cached

        logger.info("Searching comics metadata for %r", query)
        results = await self._search_with_retry(query)
        self.cache.set(cache_key, results)
        return results

    async def _search_with_retry(self, query: str) -> list[ComicRecord]:
        attempt = 0
        while True:
            try:
                return await self.search_service.search(query)
            except Exception as exc:
                if attempt >= self.max_retries:
                    raise
                delay = self.retry_backoff * (2 ** attempt)
                attempt += 1
                logger.warning(
                    "Search for %r failed (%s); retry %d/%d in %.2fs",
                    query, exc, attempt, self.max_retries, delay,
                )
                await asyncio.sleep(delay)

    async def enrich(self, recommendation: Recommendation) -> EnrichmentResult:
        query = build_search_query(recommendation)
        try:
            results = await self.search(query)
        except Exception as exc:
            logger.warning("Comic search failed for %r: %s", query, exc)
            return EnrichmentResult(
                record=create_basic_comic(recommendation),
                source="synthesized",
                confidence=SEARCH_FAILED_CONFIDENCE,
            )

        best = find_best_match(results, recommendation, self.threshold)
        if best is not None:
            logger.info("Matched %r to %r (%s)", recommendation.title, best.title, best.id)
            return EnrichmentResult(record=best, source="external", confidence=MATCH_CONFIDENCE)

        logger.info(
            "No match for %r among %d results; using AI data",
            recommendation.title, len(results),
        )
        return EnrichmentResult(
            record=create_basic_comic(recommendation),
            source="synthesized",
            confidence=NO_MATCH_CONFIDENCE,
        )

    async def enrich_batch(
        self, recommendations: list[Recommendation]
    ) -> list[EnrichmentResult]:
        results: list[EnrichmentResult] = []
        for start in range(0, len(recommendations), self.batch_size):
            group = recommendations[start:start + self.batch_size]
            results.extend(await asyncio.gather(*(self.enrich(rec) for rec in group)))
            if start + self.batch_size < len(recommendations):
                await asyncio.sleep(self.batch_delay)
        return results
