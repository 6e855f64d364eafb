"""Domain-level application service interfaces (ports).

These abstract classes define the contracts that the API layer depends on.
Concrete implementations live in ``continuity/services/`` and are wired
together by the composition root in ``continuity/core/dependencies.py``.

Route handlers import from ``continuity.domain`` only, so every service can be
replaced with a test double via FastAPI's ``app.dependency_overrides``.
"""

from abc import ABC, abstractmethod
from typing import Optional

from continuity.domain.entities import (
    ArchivistReply,
    ComicRecord,
    Conversation,
    EnrichmentResult,
    LibrarianMessage,
    ReadingContext,
    ReadState,
    Recommendation,
)


class IEnrichmentService(ABC):

    @abstractmethod
    async def enrich(self, recommendation: Recommendation) -> EnrichmentResult:
        """Resolve one recommendation to a displayable comic.

        Never raises for provider trouble: a failed search yields a
        synthesized record with confidence 0.3, a search without an
        acceptable candidate yields one with confidence 0.5.
        """
        pass

    @abstractmethod
    async def enrich_batch(
        self, recommendations: list[Recommendation]
    ) -> list[EnrichmentResult]:
        """Rate-limited enrichment; results keep the input order."""
        pass

    @abstractmethod
    async def search(self, query: str) -> list[ComicRecord]:
        """Cached metadata search (raises on provider failure)."""
        pass


class IArchivistService(ABC):

    @abstractmethod
    async def chat(
        self,
        user_message: str,
        context: ReadingContext,
        history: Optional[list[LibrarianMessage]] = None,
    ) -> str:
        pass

    @abstractmethod
    async def get_recommendations(
        self, context: ReadingContext, query: Optional[str] = None
    ) -> str:
        pass

    @abstractmethod
    async def get_stats_summary(self, context: ReadingContext) -> str:
        pass

    @abstractmethod
    async def converse(
        self,
        user_id: str,
        collection: list[ComicRecord],
        message: str,
        conversation_id: Optional[str] = None,
    ) -> ArchivistReply:
        pass


class IConversationService(ABC):

    @abstractmethod
    async def get_all_conversations(self, user_id: str) -> list[Conversation]:
        pass

    @abstractmethod
    async def get_conversation(
        self, user_id: str, conversation_id: str
    ) -> Optional[Conversation]:
        pass

    @abstractmethod
    async def save_conversation(self, user_id: str, conversation: Conversation) -> None:
        pass

    @abstractmethod
    async def delete_conversation(self, user_id: str, conversation_id: str) -> None:
        pass

    @abstractmethod
    async def add_message(
        self, user_id: str, conversation_id: str, message: LibrarianMessage
    ) -> None:
        pass

    @abstractmethod
    async def create_conversation(self, user_id: str) -> Conversation:
        pass

    @abstractmethod
    async def get_or_create_active_conversation(self, user_id: str) -> Conversation:
        pass

    @abstractmethod
    async def set_active_conversation(self, user_id: str, conversation_id: str) -> None:
        pass

    @abstractmethod
    async def get_active_conversation_id(self, user_id: str) -> Optional[str]:
        pass

    @abstractmethod
    async def clear_active_conversation(self, user_id: str) -> None:
        pass

    @abstractmethod
    async def clear_all_conversations(self, user_id: str) -> None:
        pass

    @abstractmethod
    async def export_conversations(self, user_id: str) -> str:
        pass

    @abstractmethod
    async def import_conversations(self, user_id: str, payload: str) -> int:
        pass


class ICollectionService(ABC):

    @abstractmethod
    async def list_collection(self, user_id: str) -> list[ComicRecord]:
        pass

    @abstractmethod
    async def add_to_collection(
        self, user_id: str, record: ComicRecord, state: ReadState
    ) -> ComicRecord:
        pass

    @abstractmethod
    async def toggle_read_state(
        self, user_id: str, comic_id: str, state: ReadState
    ) -> ComicRecord:
        pass

    @abstractmethod
    async def set_rating(self, user_id: str, comic_id: str, rating: float) -> ComicRecord:
        pass

    @abstractmethod
    async def update_cover_url(self, comic_id: str, cover_url: str) -> ComicRecord:
        pass

    @abstractmethod
    async def generate_cover(self, comic_id: str) -> Optional[ComicRecord]:
        pass
