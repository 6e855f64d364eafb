# tests/test_context_builder.py

"""Tests for the reading context built from a collection"""

# Standard library imports
from datetime import date
from datetime import datetime

# Third party imports
import pytest

# Local imports
from continuity.domain.entities import ComicRecord
from continuity.domain.entities import CreatorCount
from continuity.domain.entities import ReadState
from continuity.services.context_builder import ReadingContextBuilder
from continuity.services.context_builder import build_reading_context
from continuity.services.context_builder import calculate_reading_streak
from continuity.services.context_builder import get_context_summary


def comic(comic_id, *states, **fields):
    fields.setdefault("year", 2012)
    fields.setdefault("title", comic_id)
    return ComicRecord(id=comic_id, read_states=set(states), **fields)


class TestReadingStreak:
    """Consecutive calendar-day streaks"""

    def test_no_reads(self):
        """No read days means no streak"""
        assert calculate_reading_streak([]) == 0

    def test_single_day(self):
        """One isolated day is a streak of one"""
        assert calculate_reading_streak([date(2024, 5, 1)]) == 1

    def test_three_consecutive_days(self):
        """Three consecutive days give three"""
        days = [date(2024, 5, 1), date(2024, 5, 2), date(2024, 5, 3)]
        assert calculate_reading_streak(days) == 3

    def test_gap_counts_latest_run_only(self):
        """A gap stops the count at the most recent run"""
        days = [date(2024, 5, 1), date(2024, 5, 2), date(2024, 5, 4), date(2024, 5, 5)]
        assert calculate_reading_streak(days) == 2

    def test_duplicate_days_collapse(self):
        """Several reads on one day count once"""
        days = [date(2024, 5, 1), date(2024, 5, 1), date(2024, 5, 2)]
        assert calculate_reading_streak(days) == 2

    def test_streak_from_timestamps(self):
        """Read timestamps collapse to calendar days"""
        comics = [
            comic("a", ReadState.READ, date_read=datetime(2024, 5, 1, 23, 59)),
            comic("b", ReadState.READ, date_read=datetime(2024, 5, 2, 0, 1)),
            comic("c", ReadState.READ, date_read=datetime(2024, 5, 2, 12, 0)),
            comic("d", ReadState.READ, date_read=datetime(2024, 5, 3, 8, 0)),
        ]
        assert build_reading_context(comics).reading_stats.reading_streak == 3


class TestRecentReads:
    """Recent reads selection and ordering"""

    def test_only_read_records(self):
        """Records not tagged read are excluded"""
        comics = [comic("a", ReadState.READ), comic("b", ReadState.WANT), comic("c", ReadState.OWNED)]
        assert [c.id for c in build_reading_context(comics).recent_reads] == ["a"]

    def test_newest_first_undated_last(self):
        """Dated reads sort newest first and undated follow in order"""
        comics = [
            comic("undated-1", ReadState.READ),
            comic("old", ReadState.READ, date_read=datetime(2024, 1, 1)),
            comic("undated-2", ReadState.READ),
            comic("new", ReadState.READ, date_read=datetime(2024, 6, 1)),
        ]
        ids = [c.id for c in build_reading_context(comics).recent_reads]
        assert ids == ["new", "old", "undated-1", "undated-2"]

    def test_encounter_order_without_dates(self):
        """Without timestamps collection order is kept"""
        comics = [comic(str(i), ReadState.READ) for i in range(5)]
        assert [c.id for c in build_reading_context(comics).recent_reads] == ["0", "1", "2", "3", "4"]

    def test_capped_at_twenty(self):
        """At most twenty recent reads"""
        comics = [comic(str(i), ReadState.READ) for i in range(30)]
        assert len(build_reading_context(comics).recent_reads) == 20


class TestCreatorsAndSeries:
    """Favorite creators, currently reading and top rated"""

    def test_favorite_creators_by_frequency(self):
        """Writer and artist tokens are counted across the whole collection"""
        comics = [
            comic("a", ReadState.READ, writer="Brian K. Vaughan", artist="Fiona Staples"),
            comic("b", ReadState.WANT, writer="Brian K. Vaughan", artist="Pia Guerra"),
            comic("c", writer="Alan Moore, Brian K. Vaughan", artist="Fiona Staples"),
        ]
        creators = build_reading_context(comics).favorite_creators
        assert creators[:2] == ["Brian K. Vaughan", "Fiona Staples"]
        assert set(creators) == {"Brian K. Vaughan", "Fiona Staples", "Pia Guerra", "Alan Moore"}

    def test_favorite_creators_capped(self):
        """At most ten favorite creators"""
        comics = [comic(str(i), writer=f"Writer {i}", artist=f"Artist {i}") for i in range(8)]
        assert len(build_reading_context(comics).favorite_creators) == 10

    def test_currently_reading_is_want(self):
        """Currently reading holds want-tagged records, capped at five"""
        comics = [comic(str(i), ReadState.WANT) for i in range(7)] + [comic("r", ReadState.READ)]
        current = build_reading_context(comics).currently_reading
        assert [c.id for c in current] == ["0", "1", "2", "3", "4"]

    def test_top_rated_titles(self):
        """Titles rated four or more, no dedupe, capped at five"""
        comics = [
            comic("a", title="Saga #1", rating=5),
            comic("b", title="Saga #1", rating=4),
            comic("c", title="Low", rating=3.5),
            comic("d", title="Unrated"),
        ]
        assert build_reading_context(comics).top_rated_series == ["Saga #1", "Saga #1"]


class TestReadingStats:
    """Aggregate statistics"""

    def test_stats(self):
        """Totals, averages, publishers and most-read creators"""
        comics = [
            comic("a", ReadState.READ, writer="Brian K. Vaughan", publisher="Image", rating=5),
            comic("b", ReadState.READ, writer="Brian K. Vaughan", publisher="Image", rating=4),
            comic("c", ReadState.WANT, writer="Alan Moore", publisher="DC", rating=4),
        ]
        stats = build_reading_context(comics).reading_stats
        assert stats.total_issues_read == 2
        assert stats.average_rating == pytest.approx(4.3)
        assert stats.favorite_publishers == ["Image", "DC"]
        assert stats.most_read_creators[0] == CreatorCount(name="Brian K. Vaughan", count=2)
        assert "Alan Moore" not in [c.name for c in stats.most_read_creators]

    def test_empty_collection(self):
        """An empty collection gives zeroed stats"""
        context = build_reading_context([])
        assert context.collection_size == 0
        assert context.reading_stats.total_issues_read == 0
        assert context.reading_stats.average_rating == 0.0
        assert context.reading_stats.reading_streak == 0

    def test_fresh_per_call(self):
        """The builder reflects only the snapshot it was given"""
        first = build_reading_context([comic("a", ReadState.READ)])
        second = build_reading_context([])
        assert first.collection_size == 1
        assert second.collection_size == 0


class TestContextSummary:
    """Natural-language summary"""

    def test_full_summary(self):
        """Reads, rating and creators are all mentioned"""
        comics = [
            comic("a", ReadState.READ, writer="Brian K. Vaughan", artist="Fiona Staples", rating=5),
            comic("b", ReadState.READ, writer="Alan Moore", artist="Dave Gibbons", rating=4),
        ]
        summary = get_context_summary(comics)
        assert summary == (
            "You've read 2 issues. with an average rating of 4.5 stars. "
            "Your favorite creators include Brian K. Vaughan, Fiona Staples, Alan Moore."
        )

    def test_empty_summary(self):
        """An empty collection still ends with a period"""
        assert ReadingContextBuilder([]).generate_context_summary() == "."
