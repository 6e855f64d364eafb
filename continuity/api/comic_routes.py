"""Comic catalogue routes (search, covers, AI insights)."""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from continuity.api.schemas import ComicResponse, CoverUpdateRequest, TaskAcceptedResponse
from continuity.core.dependencies import (
    get_collection_repository,
    get_collection_service,
    get_current_user_id,
    get_enrichment_service,
)
from continuity.domain.exceptions import ComicNotFoundError, SearchProviderError
from continuity.domain.repositories import ICollectionRepository
from continuity.domain.services import ICollectionService, IEnrichmentService
from continuity.infrastructure.tasks.llm_tasks import generate_comic_insights

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/comics", tags=["comics"])


@router.get("/search", response_model=list[ComicResponse])
async def search_comics(
    user_id: Annotated[str, Depends(get_current_user_id)],
    enrichment: Annotated[IEnrichmentService, Depends(get_enrichment_service)],
    q: Annotated[str, Query(min_length=1, max_length=200)],
) -> list[ComicResponse]:
    """Issue search through the shared result cache."""
    try:
        results = await enrichment.search(q)
    except SearchProviderError as e:
        logger.warning("Search for %r failed: %s", q, e)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Comic search is temporarily unavailable",
        )
    return [ComicResponse.model_validate(c) for c in results]


@router.put("/{comic_id}/cover", response_model=ComicResponse)
async def update_cover(
    comic_id: str,
    body: CoverUpdateRequest,
    user_id: Annotated[str, Depends(get_current_user_id)],
    collection_service: Annotated[ICollectionService, Depends(get_collection_service)],
) -> ComicResponse:
    try:
        comic = await collection_service.update_cover_url(comic_id, body.cover_url)
    except ComicNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return ComicResponse.model_validate(comic)


@router.post("/{comic_id}/cover/generate", response_model=Optional[ComicResponse])
async def generate_cover(
    comic_id: str,
    user_id: Annotated[str, Depends(get_current_user_id)],
    collection_service: Annotated[ICollectionService, Depends(get_collection_service)],
) -> Optional[ComicResponse]:
    """Generate AI cover art; ``null`` when the image provider produced nothing."""
    try:
        comic = await collection_service.generate_cover(comic_id)
    except ComicNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return ComicResponse.model_validate(comic) if comic else None


@router.post(
    "/{comic_id}/insights",
    response_model=TaskAcceptedResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def request_insights(
    comic_id: str,
    response: Response,
    user_id: Annotated[str, Depends(get_current_user_id)],
    repo: Annotated[ICollectionRepository, Depends(get_collection_repository)],
) -> TaskAcceptedResponse:
    """Queue AI insight generation; poll ``GET /tasks/{task_id}`` for status."""
    if await repo.get_comic(comic_id) is None:
        raise HTTPException(status_code=404, detail=str(ComicNotFoundError(comic_id)))

    task = generate_comic_insights.delay(comic_id)
    response.headers["X-Task-ID"] = task.id
    logger.info("Insight task %s queued for comic %s", task.id, comic_id)
    return TaskAcceptedResponse(task_id=task.id)
