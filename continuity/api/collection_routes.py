"""Collection API routes (the user's tagged and rated comics)."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from continuity.api.schemas import AddToCollectionRequest, ComicResponse, RatingRequest
from continuity.core.dependencies import get_collection_service, get_current_user_id
from continuity.domain.entities import ReadState
from continuity.domain.exceptions import ComicNotFoundError
from continuity.domain.services import ICollectionService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/collection", tags=["collection"])


@router.get("/", response_model=list[ComicResponse])
async def list_collection(
    user_id: Annotated[str, Depends(get_current_user_id)],
    collection_service: Annotated[ICollectionService, Depends(get_collection_service)],
) -> list[ComicResponse]:
    comics = await collection_service.list_collection(user_id)
    return [ComicResponse.model_validate(c) for c in comics]


@router.post("/", response_model=ComicResponse, status_code=status.HTTP_201_CREATED)
async def add_to_collection(
    body: AddToCollectionRequest,
    user_id: Annotated[str, Depends(get_current_user_id)],
    collection_service: Annotated[ICollectionService, Depends(get_collection_service)],
) -> ComicResponse:
    """Add a search or enrichment result to the collection under ``state``.

    Posting a comic that already carries ``state`` leaves its tags unchanged.
    """
    comic = await collection_service.add_to_collection(
        user_id, body.comic.to_entity(), body.state
    )
    return ComicResponse.model_validate(comic)


@router.put("/{comic_id}/read-states/{state}", response_model=ComicResponse)
async def toggle_read_state(
    comic_id: str,
    state: ReadState,
    user_id: Annotated[str, Depends(get_current_user_id)],
    collection_service: Annotated[ICollectionService, Depends(get_collection_service)],
) -> ComicResponse:
    """Add ``state`` if the comic lacks it, remove it otherwise."""
    try:
        comic = await collection_service.toggle_read_state(user_id, comic_id, state)
    except ComicNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return ComicResponse.model_validate(comic)


@router.put("/{comic_id}/rating", response_model=ComicResponse)
async def set_rating(
    comic_id: str,
    body: RatingRequest,
    user_id: Annotated[str, Depends(get_current_user_id)],
    collection_service: Annotated[ICollectionService, Depends(get_collection_service)],
) -> ComicResponse:
    try:
        comic = await collection_service.set_rating(user_id, comic_id, body.rating)
    except ComicNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return ComicResponse.model_validate(comic)
