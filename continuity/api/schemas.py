"""Pydantic schemas for API requests and responses."""

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from continuity.domain.entities import ComicRecord, ReadState, Recommendation


# ---------------------------------------------------------------------------
# Comics
# ---------------------------------------------------------------------------
class ComicInsightsResponse(BaseModel):
    story_summary: Optional[str] = None
    spoiler_free_summary: Optional[str] = None
    significance: str = "minor"
    significance_notes: Optional[str] = None
    key_events: Optional[list[str]] = None
    first_appearances: Optional[dict[str, list[str]]] = None
    must_read: bool = False
    can_skip: bool = False
    enriched_at: Optional[int] = None
    confidence: float = 0.0

    model_config = ConfigDict(from_attributes=True)


class ComicResponse(BaseModel):
    id: str
    title: str
    writer: str
    artist: str
    publisher: str
    year: int
    description: str
    cover_url: str
    read_states: list[ReadState] = []
    series: Optional[str] = None
    volume: Optional[str] = None
    rating: Optional[float] = None
    review: Optional[str] = None
    is_favorite: bool = False
    date_read: Optional[datetime] = None
    insights: Optional[ComicInsightsResponse] = None

    model_config = ConfigDict(from_attributes=True)

    @field_validator("read_states", mode="before")
    @classmethod
    def _ordered_states(cls, value: Any) -> Any:
        if isinstance(value, (set, frozenset)):
            return sorted(value, key=lambda s: ReadState(s).value)
        return value


class ComicInput(BaseModel):
    """A comic as received from search or enrichment results."""

    id: str = Field(..., min_length=1, max_length=64)
    title: str = Field(..., min_length=1, max_length=255)
    writer: str = "Unknown"
    artist: str = "Unknown"
    publisher: str = ""
    year: Optional[int] = None
    description: str = ""
    cover_url: str = ""
    series: Optional[str] = None
    volume: Optional[str] = None

    def to_entity(self) -> ComicRecord:
        data = self.model_dump(exclude_none=True)
        return ComicRecord(**data)


class AddToCollectionRequest(BaseModel):
    comic: ComicInput
    state: ReadState


class RatingRequest(BaseModel):
    rating: float = Field(..., ge=0.5, le=5.0)


class CoverUpdateRequest(BaseModel):
    cover_url: str = Field(..., min_length=1)


# ---------------------------------------------------------------------------
# Recommendations & enrichment
# ---------------------------------------------------------------------------
class RecommendationSchema(BaseModel):
    title: str = ""
    series: Optional[str] = None
    writer: Optional[str] = None
    artist: Optional[str] = None
    publisher: Optional[str] = None
    year: Optional[int] = None
    cover_url: Optional[str] = None
    comic_vine_id: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

    def to_entity(self) -> Recommendation:
        return Recommendation(**self.model_dump())


class EnrichRequest(BaseModel):
    recommendations: list[RecommendationSchema] = Field(..., max_length=20)


class EnrichmentResultResponse(BaseModel):
    record: ComicResponse
    source: Literal["external", "synthesized"]
    confidence: float

    model_config = ConfigDict(from_attributes=True)


class ParseRequest(BaseModel):
    response: str


class ParsedResponse(BaseModel):
    message: str
    recommendations: list[RecommendationSchema] = []

    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------------------------------
# Reading context
# ---------------------------------------------------------------------------
class CreatorCountResponse(BaseModel):
    name: str
    count: int

    model_config = ConfigDict(from_attributes=True)


class ReadingStatsResponse(BaseModel):
    total_issues_read: int = 0
    average_rating: float = 0.0
    favorite_publishers: list[str] = []
    favorite_genres: list[str] = []
    reading_streak: int = 0
    most_read_creators: list[CreatorCountResponse] = []

    model_config = ConfigDict(from_attributes=True)


class ReadingContextResponse(BaseModel):
    recent_reads: list[ComicResponse] = []
    favorite_creators: list[str] = []
    currently_reading: list[ComicResponse] = []
    top_rated_series: list[str] = []
    collection_size: int = 0
    reading_stats: ReadingStatsResponse

    model_config = ConfigDict(from_attributes=True)


class ContextResponse(BaseModel):
    context: ReadingContextResponse
    summary: str


# ---------------------------------------------------------------------------
# Archivist
# ---------------------------------------------------------------------------
class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=4000)
    conversation_id: Optional[str] = None

    @field_validator("message")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("message must not be blank")
        return value


class ArchivistReplyResponse(BaseModel):
    conversation_id: str
    message: str
    recommendations: list[EnrichmentResultResponse] = []

    model_config = ConfigDict(from_attributes=True)


class SuggestionsRequest(BaseModel):
    query: Optional[str] = Field(None, max_length=1000)


class ArchivistTextResponse(BaseModel):
    message: str


# ---------------------------------------------------------------------------
# Conversations
# ---------------------------------------------------------------------------
class LibrarianMessageResponse(BaseModel):
    id: str
    role: Literal["user", "assistant"]
    content: str
    timestamp: int
    context: Optional[ReadingContextResponse] = None

    model_config = ConfigDict(from_attributes=True)


class ConversationResponse(BaseModel):
    id: str
    messages: list[LibrarianMessageResponse] = []
    created_at: int
    updated_at: int
    title: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class ActiveConversationResponse(BaseModel):
    conversation_id: Optional[str] = None


class ImportResponse(BaseModel):
    imported: int


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------
class TaskAcceptedResponse(BaseModel):
    task_id: str


class TaskStatusResponse(BaseModel):
    """Status of a background Celery task.

    Possible ``status`` values: PENDING, STARTED, SUCCESS, FAILURE, RETRY.
    """

    task_id: str
    status: str = Field(..., description="PENDING | STARTED | SUCCESS | FAILURE | RETRY")
    result: Optional[str] = Field(None, description="Task return value (SUCCESS only)")
    error: Optional[str] = Field(None, description="Error message (FAILURE only)")
