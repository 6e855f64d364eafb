"""Splits an Archivist reply into display prose and structured recommendations.

The model is asked to end recommendation replies with::

    RECOMMENDATIONS:
    {"comics": [{"title": "...", "writer": "...", ...}]}

The block is validated with pydantic into a tagged result
(:class:`ParsedRecommendations` or :class:`RecommendationParseError`).  A
failed block never hides the prose: the message is returned intact with no
recommendations.
"""

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from continuity.domain.entities import ParsedArchivistResponse, Recommendation

logger = logging.getLogger(__name__)

RECOMMENDATIONS_MARKER = "RECOMMENDATIONS:"

# Greedy: from the first "{" to the last "}".
_JSON_OBJECT_RE = re.compile(r"\{.*\}", re.DOTALL)


class RecommendationEntry(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    title: str = ""
    series: Optional[str] = None
    writer: Optional[str] = None
    artist: Optional[str] = None
    publisher: Optional[str] = None
    year: Optional[int] = None
    cover_url: Optional[str] = Field(default=None, alias="coverUrl")
    comic_vine_id: Optional[str] = Field(default=None, alias="comicVineId")

    @field_validator("title", mode="before")
    @classmethod
    def _title_or_empty(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("series", "writer", "artist", "publisher", "cover_url", "comic_vine_id", mode="before")
    @classmethod
    def _optional_text(cls, value: Any) -> Optional[str]:
        if value is None or value == "":
            return None
        return str(value)

    @field_validator("year", mode="before")
    @classmethod
    def _coerce_year(cls, value: Any) -> Optional[int]:
        if value is None or value == "":
            return None
        try:
            return int(float(value))
        except (TypeError, ValueError, OverflowError):
            return None

    def to_recommendation(self) -> Recommendation:
        return Recommendation(
            title=self.title,
            series=self.series,
            writer=self.writer,
            artist=self.artist,
            publisher=self.publisher,
            year=self.year,
            cover_url=self.cover_url,
            comic_vine_id=self.comic_vine_id,
        )


class RecommendationBlock(BaseModel):
    comics: list[RecommendationEntry]


@dataclass
class ParsedRecommendations:
    recommendations: list[Recommendation]


@dataclass
class RecommendationParseError:
    reason: str


RecommendationParseResult = Union[ParsedRecommendations, RecommendationParseError]


def parse_recommendation_block(text: str) -> RecommendationParseResult:
    """Validate the JSON block that follows the marker."""
    match = _JSON_OBJECT_RE.search(text)
    if match is None:
        return RecommendationParseError(reason="no JSON object after marker")
    try:
        payload = json.loads(match.group(0))
    except json.JSONDecodeError as exc:
        return RecommendationParseError(reason=f"invalid JSON: {exc}")
    try:
        block = RecommendationBlock.model_validate(payload)
    except ValidationError as exc:
        return RecommendationParseError(reason=f"unexpected shape: {exc.error_count()} error(s)")
    return ParsedRecommendations(
        recommendations=[entry.to_recommendation() for entry in block.comics]
    )


def parse_archivist_response(response: str) -> ParsedArchivistResponse:
    """Return the display message and any recommendations in ``response``."""
    if RECOMMENDATIONS_MARKER not in response:
        return ParsedArchivistResponse(message=response.strip(), recommendations=[])

    parts = response.split(RECOMMENDATIONS_MARKER)
    message = parts[0].strip()

    result = parse_recommendation_block(parts[1])
    if isinstance(result, RecommendationParseError):
        logger.warning("Failed to parse recommendations: %s", result.reason)
        return ParsedArchivistResponse(message=message, recommendations=[])

    logger.debug("Parsed %d recommendations", len(result.recommendations))
    return ParsedArchivistResponse(message=message, recommendations=result.recommendations)
