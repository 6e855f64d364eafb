# tests/conftest.py

"""Pytest configuration, in-memory fakes and shared fixtures"""

# Standard library imports
from copy import deepcopy
from typing import Optional

# Third party imports
import pytest

# Local imports
from continuity.domain.entities import ComicInsights
from continuity.domain.entities import ComicRecord
from continuity.domain.exceptions import LLMServiceError
from continuity.domain.exceptions import SearchProviderError
from continuity.domain.repositories import ICollectionRepository
from continuity.domain.repositories import IComicSearchService
from continuity.domain.repositories import ILLMService
from continuity.infrastructure.storage.memory import InMemoryKeyValueStore
from continuity.services.search_cache import ResultCache


class FakeSearchService(IComicSearchService):
    """Search provider returning canned results and recording queries"""

    def __init__(self, results=None, error: Optional[Exception] = None, failures: int = 0):
        self.results = list(results or [])
        self.error = error
        self.failures = failures
        self.queries: list[str] = []

    async def search(self, query: str) -> list[ComicRecord]:
        self.queries.append(query)
        if self.error is not None:
            raise self.error
        if self.failures > 0:
            self.failures -= 1
            raise SearchProviderError("temporary failure")
        return list(self.results)


class FakeLLMService(ILLMService):
    """Completion provider with a fixed reply and prompt recording"""

    def __init__(
        self,
        reply: str = "",
        error: Optional[Exception] = None,
        configured: bool = True,
        image: Optional[str] = None,
    ):
        self.reply = reply
        self.error = error
        self.configured = configured
        self.image = image
        self.prompts: list[str] = []
        self.calls: list[dict] = []

    @property
    def is_configured(self) -> bool:
        return self.configured

    async def complete(self, prompt, *, temperature=0.9, max_output_tokens=1024) -> str:
        self.prompts.append(prompt)
        self.calls.append({"temperature": temperature, "max_output_tokens": max_output_tokens})
        if self.error is not None:
            raise self.error
        return self.reply

    async def generate_image(self, prompt: str) -> Optional[str]:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.image


class InMemoryCollectionRepository(ICollectionRepository):
    """Dict-backed stand-in for the SQLAlchemy collection repository"""

    def __init__(self):
        self.comics: dict[str, ComicRecord] = {}
        self.user_comics: dict[tuple[str, str], ComicRecord] = {}

    @staticmethod
    def _catalogue_view(comic: ComicRecord) -> ComicRecord:
        view = deepcopy(comic)
        view.read_states = set()
        view.rating = None
        view.review = None
        view.is_favorite = False
        view.date_read = None
        return view

    def _merge(self, user_row: ComicRecord) -> ComicRecord:
        merged = deepcopy(self.comics[user_row.id])
        merged.read_states = set(user_row.read_states)
        merged.rating = user_row.rating
        merged.review = user_row.review
        merged.is_favorite = user_row.is_favorite
        merged.date_read = user_row.date_read
        return merged

    async def list_user_comics(self, user_id: str) -> list[ComicRecord]:
        return [self._merge(row) for (uid, _), row in self.user_comics.items() if uid == user_id]

    async def get_comic(self, comic_id: str) -> Optional[ComicRecord]:
        comic = self.comics.get(comic_id)
        return deepcopy(comic) if comic else None

    async def upsert_comic(self, comic: ComicRecord) -> ComicRecord:
        existing = self.comics.get(comic.id)
        stored = self._catalogue_view(comic)
        if existing is not None:
            if not stored.cover_url:
                stored.cover_url = existing.cover_url
            if stored.insights is None:
                stored.insights = existing.insights
        self.comics[comic.id] = stored
        return deepcopy(stored)

    async def get_user_comic(self, user_id: str, comic_id: str) -> Optional[ComicRecord]:
        row = self.user_comics.get((user_id, comic_id))
        return self._merge(row) if row else None

    async def save_user_comic(self, user_id: str, comic: ComicRecord) -> ComicRecord:
        self.user_comics[(user_id, comic.id)] = deepcopy(comic)
        return self._merge(self.user_comics[(user_id, comic.id)])

    async def update_cover_url(self, comic_id: str, cover_url: str) -> Optional[ComicRecord]:
        if comic_id not in self.comics:
            return None
        self.comics[comic_id].cover_url = cover_url
        return deepcopy(self.comics[comic_id])

    async def update_insights(self, comic_id: str, insights: ComicInsights) -> Optional[ComicRecord]:
        if comic_id not in self.comics:
            return None
        self.comics[comic_id].insights = insights
        return deepcopy(self.comics[comic_id])


def make_comic(comic_id: str = "cv-1", title: str = "Saga #1", **fields) -> ComicRecord:
    """ComicRecord with a fixed year so scoring tests are deterministic"""
    fields.setdefault("year", 2012)
    return ComicRecord(id=comic_id, title=title, **fields)


@pytest.fixture
def comic_factory():
    return make_comic


@pytest.fixture
def fake_search():
    return FakeSearchService


@pytest.fixture
def fake_llm():
    return FakeLLMService


@pytest.fixture
def collection_repo():
    return InMemoryCollectionRepository()


@pytest.fixture
def result_cache():
    return ResultCache()


@pytest.fixture
def kv_store():
    return InMemoryKeyValueStore()


@pytest.fixture
def llm_error():
    return LLMServiceError("provider down")
