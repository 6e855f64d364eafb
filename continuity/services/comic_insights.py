"""AI insights for a single comic (summary, significance, key events).

The model answers with a JSON object (see ``COMIC_INSIGHT_PROMPT``).  Parsing
is permissive: unknown significance falls back to ``minor``, empty lists are
dropped, and a reply that is not a JSON object yields ``None``.
"""

import json
import logging
import re
import time
from typing import Any, Optional

from continuity.domain.entities import ComicInsights, ComicRecord
from continuity.domain.exceptions import ComicNotFoundError
from continuity.domain.repositories import ICollectionRepository, ILLMService
from continuity.infrastructure.llm.prompts import COMIC_INSIGHT_PROMPT

logger = logging.getLogger(__name__)

SIGNIFICANCE_LEVELS = ("major", "minor", "filler")
DEFAULT_SIGNIFICANCE = "minor"
FIRST_APPEARANCE_KINDS = ("characters", "items", "teams")

INSIGHT_TEMPERATURE = 0.3
INSIGHT_MAX_OUTPUT_TOKENS = 1024

_CODE_FENCE_RE = re.compile(r"```(?:json)?\n?")


def _clean_list(value: Any) -> Optional[list[str]]:
    if not isinstance(value, list):
        return None
    items = [str(item) for item in value if item]
    return items or None


def calculate_confidence(data: dict[str, Any]) -> float:
    """Completeness score: 0.25 per substantial text field plus list bonuses."""
    score = 0.0
    for key in ("storySummary", "spoilerFreeSummary", "significanceNotes"):
        value = data.get(key)
        if isinstance(value, str) and len(value) > 10:
            score += 0.25
    key_events = data.get("keyEvents")
    if isinstance(key_events, list) and key_events:
        score += 0.15
    first = data.get("firstAppearances")
    if isinstance(first, dict) and isinstance(first.get("characters"), list) and first["characters"]:
        score += 0.1
    return round(min(score, 1.0), 2)


def parse_insights(response: str) -> Optional[ComicInsights]:
    """Parse a model reply into :class:`ComicInsights`, or None if unusable."""
    cleaned = _CODE_FENCE_RE.sub("", response).strip()
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        logger.warning("Failed to parse insight response: %s", exc)
        return None
    if not isinstance(data, dict):
        logger.warning("Insight response is not a JSON object")
        return None

    first_appearances = None
    raw_first = data.get("firstAppearances")
    if isinstance(raw_first, dict):
        cleaned_first = {
            kind: items
            for kind in FIRST_APPEARANCE_KINDS
            if (items := _clean_list(raw_first.get(kind)))
        }
        first_appearances = cleaned_first or None

    significance = data.get("significance")
    return ComicInsights(
        story_summary=data.get("storySummary") or None,
        spoiler_free_summary=data.get("spoilerFreeSummary") or None,
        significance=significance if significance in SIGNIFICANCE_LEVELS else DEFAULT_SIGNIFICANCE,
        significance_notes=data.get("significanceNotes") or None,
        key_events=_clean_list(data.get("keyEvents")),
        first_appearances=first_appearances,
        must_read=bool(data.get("mustRead")),
        can_skip=bool(data.get("canSkip")),
        enriched_at=int(time.time() * 1000),
        confidence=calculate_confidence(data),
    )


def build_insight_prompt(comic: ComicRecord) -> str:
    credits = ", ".join(name for name in (comic.writer, comic.artist) if name)
    return COMIC_INSIGHT_PROMPT.render_flat(
        title=comic.title,
        credits=credits,
        publisher=comic.publisher or "unknown publisher",
        year=comic.year or "unknown year",
    )


class ComicInsightService:
    """Generates and stores :class:`ComicInsights` for catalogue comics."""

    def __init__(self, llm_service: ILLMService, collection_repository: ICollectionRepository):
        self.llm_service = llm_service
        self.collection_repository = collection_repository

    async def generate_insights(self, comic_id: str) -> Optional[ComicInsights]:
        """Analyse ``comic_id`` and persist the result.

        Returns None when the provider is not configured or the reply is
        unusable.  Provider errors propagate so the worker can retry.
        """
        comic = await self.collection_repository.get_comic(comic_id)
        if comic is None:
            raise ComicNotFoundError(comic_id)
        if not self.llm_service.is_configured:
            logger.warning("Insights unavailable for %s: no LLM credentials", comic_id)
            return None

        text = await self.llm_service.complete(
            build_insight_prompt(comic),
            temperature=INSIGHT_TEMPERATURE,
            max_output_tokens=INSIGHT_MAX_OUTPUT_TOKENS,
        )
        if not text:
            logger.warning("Empty insight response for %s", comic_id)
            return None

        insights = parse_insights(text)
        if insights is None:
            return None

        await self.collection_repository.update_insights(comic_id, insights)
        logger.info(
            "Stored insights for %s (significance=%s, confidence=%.2f)",
            comic_id, insights.significance, insights.confidence,
        )
        return insights
