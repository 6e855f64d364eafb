"""Dependency injection container.

Long-lived components (the search ResultCache and the conversation key-value
store) are created by the application lifespan and kept on ``app.state``;
everything else is built per request from configuration.
"""

from typing import Annotated, Optional

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from continuity.core.config import settings
from continuity.domain.repositories import (
    ICollectionRepository,
    IComicSearchService,
    IKeyValueStore,
    ILLMService,
)
from continuity.domain.services import (
    IArchivistService,
    ICollectionService,
    IConversationService,
    IEnrichmentService,
)
from continuity.infrastructure.database.connection import get_db
from continuity.infrastructure.database.repository import CollectionRepository
from continuity.infrastructure.llm.services import (
    GeminiLLMService,
    MockLLMService,
    OpenAILLMService,
)
from continuity.infrastructure.search.comicvine import ComicVineSearchService
from continuity.services.archivist_service import ArchivistService
from continuity.services.collection_service import CollectionService
from continuity.services.conversation_service import ConversationService
from continuity.services.enrichment import EnrichmentService
from continuity.services.search_cache import ResultCache


# ---------------------------------------------------------------------------
# Infrastructure providers
# ---------------------------------------------------------------------------
def get_llm_service() -> ILLMService:
    """Return the configured LLM provider."""
    if settings.llm_provider == "mock":
        return MockLLMService()
    elif settings.llm_provider == "gemini":
        return GeminiLLMService(
            api_key=settings.llm_api_key,
            model=settings.llm_model,
            image_model=settings.llm_image_model,
            base_url=settings.llm_base_url,
            timeout=settings.llm_timeout,
        )
    elif settings.llm_provider == "openai":
        return OpenAILLMService(
            api_key=settings.llm_api_key,
            model=settings.llm_model,
            image_model=settings.llm_image_model,
        )
    raise ValueError(f"Unknown LLM provider: {settings.llm_provider}")


def get_comic_search_service() -> IComicSearchService:
    return ComicVineSearchService(
        api_key=settings.comicvine_api_key,
        base_url=settings.comicvine_base_url,
        limit=settings.comicvine_result_limit,
        timeout=settings.comicvine_timeout,
    )


def get_result_cache(request: Request) -> ResultCache:
    return request.app.state.result_cache


def get_key_value_store(request: Request) -> IKeyValueStore:
    return request.app.state.kv_store


# ---------------------------------------------------------------------------
# Repository providers
# ---------------------------------------------------------------------------
async def get_collection_repository(
    session: AsyncSession = Depends(get_db),
) -> ICollectionRepository:
    return CollectionRepository(session)


# ---------------------------------------------------------------------------
# Service providers
# ---------------------------------------------------------------------------
async def get_enrichment_service(
    search: IComicSearchService = Depends(get_comic_search_service),
    cache: ResultCache = Depends(get_result_cache),
) -> IEnrichmentService:
    return EnrichmentService(
        search_service=search,
        cache=cache,
        threshold=settings.match_threshold,
        batch_size=settings.enrichment_batch_size,
        batch_delay=settings.enrichment_batch_delay_seconds,
        max_retries=settings.search_max_retries,
        retry_backoff=settings.search_retry_backoff_seconds,
    )


async def get_conversation_service(
    store: IKeyValueStore = Depends(get_key_value_store),
) -> IConversationService:
    return ConversationService(store)


async def get_collection_service(
    repo: ICollectionRepository = Depends(get_collection_repository),
    llm: ILLMService = Depends(get_llm_service),
) -> ICollectionService:
    return CollectionService(collection_repository=repo, llm_service=llm)


async def get_archivist_service(
    llm: ILLMService = Depends(get_llm_service),
    enrichment: IEnrichmentService = Depends(get_enrichment_service),
    conversations: IConversationService = Depends(get_conversation_service),
) -> IArchivistService:
    return ArchivistService(
        llm_service=llm,
        enrichment_service=enrichment,
        conversation_service=conversations,
    )


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------
async def get_current_user_id(
    x_user_id: Annotated[Optional[str], Header()] = None,
) -> str:
    """Caller identity as asserted by the upstream identity provider."""
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-ID header",
        )
    return x_user_id.strip()
