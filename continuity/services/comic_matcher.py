"""Fuzzy matching of metadata-search results against Archivist recommendations.

AI recommendations carry free-text title/writer/publisher/year strings and no
stable identifiers, so each search candidate is scored 0-100:

  title      up to 50  normalized Levenshtein similarity of normalized titles
  writer     up to 30  any shared name token = 30, otherwise similarity * 15
  publisher  10 or 0   case-insensitive containment either way
  year       10/7/4/0  exact / within 1 / within 3 / further

A field missing on either side contributes nothing and the remaining weights
are *not* renormalized, so title similarity alone can never reach 70.
"""

import logging
import re
from typing import Optional

from rapidfuzz.distance import Levenshtein

from continuity.domain.entities import ComicRecord, MatchCandidate, Recommendation

logger = logging.getLogger(__name__)

DEFAULT_MATCH_THRESHOLD = 70

TITLE_WEIGHT = 50
WRITER_MATCH_POINTS = 30
WRITER_PARTIAL_WEIGHT = 15
PUBLISHER_MATCH_POINTS = 10

# (max year difference, points), checked in order
YEAR_PROXIMITY_POINTS = ((0, 10), (1, 7), (3, 4))

_PUNCTUATION_RE = re.compile(r"[^\w\s]|_")
_WHITESPACE_RE = re.compile(r"\s+")
_CREATOR_SPLIT_RE = re.compile(r"[,&]")


def string_similarity(a: str, b: str) -> float:
    """Case-insensitive ``1 - distance / len(longer)``; two empty strings are identical."""
    a, b = a.lower(), b.lower()
    longer = max(len(a), len(b))
    if longer == 0:
        return 1.0
    return (longer - Levenshtein.distance(a, b)) / longer


def normalize_title(title: str) -> str:
    """Lowercase, drop punctuation, collapse whitespace."""
    title = _PUNCTUATION_RE.sub("", title.lower())
    return _WHITESPACE_RE.sub(" ", title).strip()


def _split_creators(value: str) -> list[str]:
    # Empty tokens are dropped: "" is a substring of every name.
    parts = (part.strip() for part in _CREATOR_SPLIT_RE.split(value.lower()))
    return [part for part in parts if part]


def _writer_points(candidate_writer: str, recommended_writer: str) -> float:
    candidate_parts = _split_creators(candidate_writer)
    recommended_parts = _split_creators(recommended_writer)
    shared = any(
        cw in rw or rw in cw for rw in recommended_parts for cw in candidate_parts
    )
    if shared:
        return WRITER_MATCH_POINTS
    return string_similarity(candidate_writer, recommended_writer) * WRITER_PARTIAL_WEIGHT


def _year_points(candidate_year: int, recommended_year: int) -> int:
    diff = abs(candidate_year - recommended_year)
    for max_diff, points in YEAR_PROXIMITY_POINTS:
        if diff <= max_diff:
            return points
    return 0


def score_match(candidate: ComicRecord, recommendation: Recommendation) -> int:
    """Weighted 0-100 score of one search candidate against one recommendation."""
    score = (
        string_similarity(
            normalize_title(candidate.title or ""), normalize_title(recommendation.title)
        )
        * TITLE_WEIGHT
    )

    if recommendation.writer and candidate.writer:
        score += _writer_points(candidate.writer, recommendation.writer)

    if recommendation.publisher and candidate.publisher:
        candidate_pub = candidate.publisher.lower()
        recommended_pub = recommendation.publisher.lower()
        if candidate_pub in recommended_pub or recommended_pub in candidate_pub:
            score += PUBLISHER_MATCH_POINTS

    if recommendation.year and candidate.year:
        score += _year_points(candidate.year, recommendation.year)

    return round(score)


def find_best_match(
    candidates: list[ComicRecord],
    recommendation: Recommendation,
    threshold: int = DEFAULT_MATCH_THRESHOLD,
) -> Optional[ComicRecord]:
    """Return the top-scoring candidate if it clears ``threshold``, else None.

    Ties keep the provider's result order (``sorted`` is stable).
    """
    if not candidates:
        return None

    scored = sorted(
        (MatchCandidate(record=c, score=score_match(c, recommendation)) for c in candidates),
        key=lambda mc: mc.score,
        reverse=True,
    )
    logger.debug(
        "Comic matching scores for %r: %s",
        recommendation.title,
        [(mc.record.title, mc.score) for mc in scored[:3]],
    )

    best = scored[0]
    return best.record if best.score >= threshold else None


def build_search_query(recommendation: Recommendation) -> str:
    """Title plus the first comma-separated writer, space-joined."""
    parts = [recommendation.title]
    if recommendation.writer:
        parts.append(recommendation.writer.split(",")[0].strip())
    return " ".join(parts)
