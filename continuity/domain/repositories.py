"""Repository and provider interfaces (ports) for dependency inversion."""

from abc import ABC, abstractmethod
from typing import Optional

from continuity.domain.entities import ComicInsights, ComicRecord


class ICollectionRepository(ABC):

    @abstractmethod
    async def list_user_comics(self, user_id: str) -> list[ComicRecord]:
        """Return the user's comics with their tags, rating and read date."""
        pass

    @abstractmethod
    async def get_comic(self, comic_id: str) -> Optional[ComicRecord]:
        pass

    @abstractmethod
    async def upsert_comic(self, comic: ComicRecord) -> ComicRecord:
        pass

    @abstractmethod
    async def get_user_comic(self, user_id: str, comic_id: str) -> Optional[ComicRecord]:
        pass

    @abstractmethod
    async def save_user_comic(self, user_id: str, comic: ComicRecord) -> ComicRecord:
        """Persist the user-owned fields (read states, rating, review, date read)."""
        pass

    @abstractmethod
    async def update_cover_url(self, comic_id: str, cover_url: str) -> Optional[ComicRecord]:
        pass

    @abstractmethod
    async def update_insights(
        self, comic_id: str, insights: ComicInsights
    ) -> Optional[ComicRecord]:
        pass


class IComicSearchService(ABC):

    @abstractmethod
    async def search(self, query: str) -> list[ComicRecord]:
        """Full-text issue search.

        Raises :class:`~continuity.domain.exceptions.SearchProviderError` on
        any provider failure; an empty list means "searched, nothing found".
        """
        pass


class ILLMService(ABC):

    @property
    @abstractmethod
    def is_configured(self) -> bool:
        """False when the provider is selected but has no credentials."""
        pass

    @abstractmethod
    async def complete(
        self,
        prompt: str,
        *,
        temperature: float = 0.9,
        max_output_tokens: int = 1024,
    ) -> str:
        """Return the completion text; raises ``LLMServiceError`` on failure."""
        pass

    @abstractmethod
    async def generate_image(self, prompt: str) -> Optional[str]:
        """Return a ``data:`` URL for the generated image, or None."""
        pass


class IKeyValueStore(ABC):

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        pass

