"""Domain entities for Continuity."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Literal, Optional


class ReadState(str, Enum):
    READ = "read"
    OWNED = "owned"
    WANT = "want"
    REREAD = "reread"


@dataclass
class ComicInsights:
    """AI-generated analysis of a single comic (see ComicInsightService)."""

    story_summary: Optional[str] = None
    spoiler_free_summary: Optional[str] = None
    significance: str = "minor"  # major | minor | filler
    significance_notes: Optional[str] = None
    key_events: Optional[list[str]] = None
    first_appearances: Optional[dict[str, list[str]]] = None  # characters / items / teams
    must_read: bool = False
    can_skip: bool = False
    enriched_at: Optional[int] = None  # epoch milliseconds
    confidence: float = 0.0


@dataclass
class ComicRecord:
    """A single comic issue or volume.

    ``id`` is provider-prefixed: ``cv-`` for metadata-search results,
    ``ai-`` for records synthesized from an AI recommendation.
    ``read_states`` is a set, so a tag can never be held twice.
    """

    id: str
    title: str
    writer: str = "Unknown"
    artist: str = "Unknown"
    publisher: str = ""
    year: int = field(default_factory=lambda: datetime.utcnow().year)
    description: str = ""
    cover_url: str = ""
    read_states: set[ReadState] = field(default_factory=set)
    series: Optional[str] = None
    volume: Optional[str] = None
    rating: Optional[float] = None
    review: Optional[str] = None
    is_favorite: bool = False
    date_read: Optional[datetime] = None
    insights: Optional[ComicInsights] = None

    def has_state(self, state: ReadState) -> bool:
        return state in self.read_states


@dataclass
class Recommendation:
    """Unresolved AI suggestion, discarded once enrichment resolves it."""

    title: str
    series: Optional[str] = None
    writer: Optional[str] = None
    artist: Optional[str] = None
    publisher: Optional[str] = None
    year: Optional[int] = None
    cover_url: Optional[str] = None
    comic_vine_id: Optional[str] = None


@dataclass
class MatchCandidate:
    record: ComicRecord
    score: int


EnrichmentSource = Literal["external", "synthesized"]


@dataclass
class EnrichmentResult:
    record: ComicRecord
    source: EnrichmentSource
    confidence: float


@dataclass
class CreatorCount:
    name: str
    count: int


@dataclass
class ReadingStats:
    total_issues_read: int = 0
    average_rating: float = 0.0
    favorite_publishers: list[str] = field(default_factory=list)
    favorite_genres: list[str] = field(default_factory=list)  # no genre data source yet
    reading_streak: int = 0
    most_read_creators: list[CreatorCount] = field(default_factory=list)


@dataclass
class ReadingContext:
    """Snapshot of a user's collection, rebuilt in full on every request."""

    recent_reads: list[ComicRecord] = field(default_factory=list)
    favorite_creators: list[str] = field(default_factory=list)
    currently_reading: list[ComicRecord] = field(default_factory=list)
    top_rated_series: list[str] = field(default_factory=list)
    collection_size: int = 0
    reading_stats: ReadingStats = field(default_factory=ReadingStats)


@dataclass
class LibrarianMessage:
    id: str
    role: Literal["user", "assistant"]
    content: str
    timestamp: int  # epoch milliseconds
    context: Optional[ReadingContext] = None


@dataclass
class Conversation:
    id: str
    messages: list[LibrarianMessage] = field(default_factory=list)
    created_at: int = 0
    updated_at: int = 0
    title: Optional[str] = None


@dataclass
class ParsedArchivistResponse:
    message: str
    recommendations: list[Recommendation] = field(default_factory=list)


@dataclass
class ArchivistReply:
    """One completed conversational turn with resolved recommendations."""

    conversation_id: str
    message: str
    recommendations: list[EnrichmentResult] = field(default_factory=list)
