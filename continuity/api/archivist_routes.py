"""Archivist API routes (chat, reading context, suggestions, enrichment)."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from continuity.api.schemas import (
    ArchivistReplyResponse,
    ArchivistTextResponse,
    ChatRequest,
    ContextResponse,
    EnrichmentResultResponse,
    EnrichRequest,
    ParsedResponse,
    ParseRequest,
    ReadingContextResponse,
    SuggestionsRequest,
)
from continuity.core.dependencies import (
    get_archivist_service,
    get_collection_service,
    get_current_user_id,
    get_enrichment_service,
)
from continuity.domain.services import (
    IArchivistService,
    ICollectionService,
    IEnrichmentService,
)
from continuity.services.context_builder import ReadingContextBuilder, build_reading_context
from continuity.services.response_parser import parse_archivist_response

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/archivist", tags=["archivist"])


@router.post("/chat", response_model=ArchivistReplyResponse)
async def chat_with_archivist(
    body: ChatRequest,
    user_id: Annotated[str, Depends(get_current_user_id)],
    collection_service: Annotated[ICollectionService, Depends(get_collection_service)],
    archivist: Annotated[IArchivistService, Depends(get_archivist_service)],
) -> ArchivistReplyResponse:
    """Send one message to The Archivist.

    The reply's ``RECOMMENDATIONS:`` block is parsed and every suggestion is
    resolved against the metadata provider before the response is returned.
    Without ``conversation_id`` the user's active conversation is continued.
    """
    collection = await collection_service.list_collection(user_id)
    reply = await archivist.converse(user_id, collection, body.message, body.conversation_id)
    return ArchivistReplyResponse.model_validate(reply)


@router.get("/context", response_model=ContextResponse)
async def get_reading_context(
    user_id: Annotated[str, Depends(get_current_user_id)],
    collection_service: Annotated[ICollectionService, Depends(get_collection_service)],
) -> ContextResponse:
    """The reading profile the Archivist sees, plus a one-line summary."""
    builder = ReadingContextBuilder(await collection_service.list_collection(user_id))
    return ContextResponse(
        context=ReadingContextResponse.model_validate(builder.build_context()),
        summary=builder.generate_context_summary(),
    )


@router.post("/suggestions", response_model=ArchivistTextResponse)
async def get_suggestions(
    body: SuggestionsRequest,
    user_id: Annotated[str, Depends(get_current_user_id)],
    collection_service: Annotated[ICollectionService, Depends(get_collection_service)],
    archivist: Annotated[IArchivistService, Depends(get_archivist_service)],
) -> ArchivistTextResponse:
    context = build_reading_context(await collection_service.list_collection(user_id))
    message = await archivist.get_recommendations(context, body.query)
    return ArchivistTextResponse(message=message)


@router.get("/stats-summary", response_model=ArchivistTextResponse)
async def get_stats_summary(
    user_id: Annotated[str, Depends(get_current_user_id)],
    collection_service: Annotated[ICollectionService, Depends(get_collection_service)],
    archivist: Annotated[IArchivistService, Depends(get_archivist_service)],
) -> ArchivistTextResponse:
    context = build_reading_context(await collection_service.list_collection(user_id))
    return ArchivistTextResponse(message=await archivist.get_stats_summary(context))


@router.post("/enrich", response_model=list[EnrichmentResultResponse])
async def enrich_recommendations(
    body: EnrichRequest,
    user_id: Annotated[str, Depends(get_current_user_id)],
    enrichment: Annotated[IEnrichmentService, Depends(get_enrichment_service)],
) -> list[EnrichmentResultResponse]:
    """Resolve recommendations to displayable comics (input order kept)."""
    results = await enrichment.enrich_batch([rec.to_entity() for rec in body.recommendations])
    logger.info("Enriched %d recommendations for %s", len(results), user_id)
    return [EnrichmentResultResponse.model_validate(result) for result in results]


@router.post("/parse", response_model=ParsedResponse)
async def parse_response(body: ParseRequest) -> ParsedResponse:
    """Split raw Archivist text into prose and structured recommendations."""
    return ParsedResponse.model_validate(parse_archivist_response(body.response))
