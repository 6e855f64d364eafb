"""Reading context builder.

Summarizes a user's collection into the compact profile injected into the
Archivist prompt.  The context is a pure function of the collection snapshot
passed in: nothing is cached or persisted between calls.

Heuristics:
  - recent reads       records tagged ``read``, newest ``date_read`` first;
                       undated records follow in collection order (cap 20)
  - currently reading  records tagged ``want`` (cap 5)
  - top-rated series   titles of records rated 4 or higher, no dedupe (cap 5)
"""

from collections import Counter
from datetime import date
from typing import Iterable

from continuity.domain.entities import (
    ComicRecord,
    CreatorCount,
    ReadingContext,
    ReadingStats,
    ReadState,
)

RECENT_READS_LIMIT = 20
FAVORITE_CREATORS_LIMIT = 10
CURRENTLY_READING_LIMIT = 5
TOP_RATED_LIMIT = 5
TOP_RATED_MIN_RATING = 4
FAVORITE_PUBLISHERS_LIMIT = 5
MOST_READ_CREATORS_LIMIT = 10


def _creator_names(*fields: str) -> list[str]:
    names: list[str] = []
    for value in fields:
        if value:
            names.extend(name.strip() for name in value.split(",") if name.strip())
    return names


def _top(counter: Counter, limit: int) -> list[tuple[str, int]]:
    # Counter.most_common keeps first-seen order among equal counts.
    return counter.most_common(limit)


def calculate_reading_streak(read_days: Iterable[date]) -> int:
    """Length of the run of consecutive calendar days ending at the latest day."""
    days = sorted(set(read_days), reverse=True)
    if not days:
        return 0
    streak = 1
    for newer, older in zip(days, days[1:]):
        if (newer - older).days != 1:
            break
        streak += 1
    return streak


class ReadingContextBuilder:
    """Builds a :class:`ReadingContext` from one collection snapshot."""

    def __init__(self, comics: list[ComicRecord]):
        self.comics = list(comics)
        self._read = [c for c in self.comics if c.has_state(ReadState.READ)]

    def build_context(self) -> ReadingContext:
        return ReadingContext(
            recent_reads=self.get_recent_reads(),
            favorite_creators=self.get_favorite_creators(),
            currently_reading=self.get_currently_reading(),
            top_rated_series=self.get_top_rated_series(),
            collection_size=len(self.comics),
            reading_stats=self.get_reading_stats(),
        )

    def get_recent_reads(self) -> list[ComicRecord]:
        dated = sorted(
            (c for c in self._read if c.date_read is not None),
            key=lambda c: c.date_read,
            reverse=True,
        )
        undated = [c for c in self._read if c.date_read is None]
        return (dated + undated)[:RECENT_READS_LIMIT]

    def get_favorite_creators(self) -> list[str]:
        counts = Counter(
            name for c in self.comics for name in _creator_names(c.writer, c.artist)
        )
        return [name for name, _ in _top(counts, FAVORITE_CREATORS_LIMIT)]

    def get_currently_reading(self) -> list[ComicRecord]:
        return [c for c in self.comics if c.has_state(ReadState.WANT)][:CURRENTLY_READING_LIMIT]

    def get_top_rated_series(self) -> list[str]:
        return [
            c.title
            for c in self.comics
            if c.rating and c.rating >= TOP_RATED_MIN_RATING
        ][:TOP_RATED_LIMIT]

    def get_reading_stats(self) -> ReadingStats:
        ratings = [c.rating for c in self.comics if c.rating]
        average = sum(ratings) / len(ratings) if ratings else 0.0

        publishers = Counter(c.publisher for c in self.comics if c.publisher)
        creators = Counter(
            name for c in self._read for name in _creator_names(c.writer, c.artist)
        )

        return ReadingStats(
            total_issues_read=len(self._read),
            average_rating=round(average, 1),
            favorite_publishers=[p for p, _ in _top(publishers, FAVORITE_PUBLISHERS_LIMIT)],
            favorite_genres=[],
            reading_streak=calculate_reading_streak(
                c.date_read.date() for c in self._read if c.date_read is not None
            ),
            most_read_creators=[
                CreatorCount(name=name, count=count)
                for name, count in _top(creators, MOST_READ_CREATORS_LIMIT)
            ],
        )

    def generate_context_summary(self) -> str:
        """One-paragraph natural-language summary of the context."""
        context = self.build_context()
        stats = context.reading_stats

        parts: list[str] = []
        if stats.total_issues_read > 0:
            parts.append(f"You've read {stats.total_issues_read} issues")
        if stats.average_rating > 0:
            parts.append(f"with an average rating of {stats.average_rating} stars")
        if context.favorite_creators:
            parts.append(
                "Your favorite creators include " + ", ".join(context.favorite_creators[:3])
            )
        return ". ".join(parts) + "."


def build_reading_context(comics: list[ComicRecord]) -> ReadingContext:
    return ReadingContextBuilder(comics).build_context()


def get_context_summary(comics: list[ComicRecord]) -> str:
    return ReadingContextBuilder(comics).generate_context_summary()
