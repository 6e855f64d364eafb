"""Collection service: the user's tagged, rated comics."""

import logging
from datetime import datetime
from typing import Optional

from continuity.domain.entities import ComicRecord, ReadState
from continuity.domain.exceptions import ComicNotFoundError, LLMServiceError
from continuity.domain.repositories import ICollectionRepository, ILLMService
from continuity.domain.services import ICollectionService
from continuity.infrastructure.llm.prompts import COVER_ART_PROMPT

logger = logging.getLogger(__name__)

MIN_RATING = 0.5
MAX_RATING = 5.0


class CollectionService(ICollectionService):
    """Collection mutations on top of :class:`ICollectionRepository`."""

    def __init__(self, collection_repository: ICollectionRepository, llm_service: ILLMService):
        self.collection_repository = collection_repository
        self.llm_service = llm_service

    async def list_collection(self, user_id: str) -> list[ComicRecord]:
        return await self.collection_repository.list_user_comics(user_id)

    async def add_to_collection(
        self, user_id: str, record: ComicRecord, state: ReadState
    ) -> ComicRecord:
        """Store ``record`` in the catalogue and tag it for the user.

        Adding a tag the comic already carries is a no-op for the tag set.
        """
        await self.collection_repository.upsert_comic(record)
        owned = await self.collection_repository.get_user_comic(user_id, record.id)
        if owned is None:
            owned = await self.collection_repository.get_comic(record.id)
            owned.read_states = set()

        owned.read_states.add(state)
        if state == ReadState.READ:
            owned.date_read = datetime.utcnow()

        saved = await self.collection_repository.save_user_comic(user_id, owned)
        logger.info("User %s tagged %s as %s", user_id, record.id, state.value)
        return saved

    async def toggle_read_state(
        self, user_id: str, comic_id: str, state: ReadState
    ) -> ComicRecord:
        owned = await self.collection_repository.get_user_comic(user_id, comic_id)
        if owned is None:
            owned = await self.collection_repository.get_comic(comic_id)
            if owned is None:
                raise ComicNotFoundError(comic_id)
            owned.read_states = set()

        if state in owned.read_states:
            owned.read_states.discard(state)
        else:
            owned.read_states.add(state)
            if state == ReadState.READ:
                owned.date_read = datetime.utcnow()

        return await self.collection_repository.save_user_comic(user_id, owned)

    async def set_rating(self, user_id: str, comic_id: str, rating: float) -> ComicRecord:
        if not MIN_RATING <= rating <= MAX_RATING:
            raise ValueError(f"Rating must be between {MIN_RATING} and {MAX_RATING}")
        owned = await self.collection_repository.get_user_comic(user_id, comic_id)
        if owned is None:
            raise ComicNotFoundError(comic_id)
        owned.rating = rating
        return await self.collection_repository.save_user_comic(user_id, owned)

    async def update_cover_url(self, comic_id: str, cover_url: str) -> ComicRecord:
        updated = await self.collection_repository.update_cover_url(comic_id, cover_url)
        if updated is None:
            raise ComicNotFoundError(comic_id)
        return updated

    async def generate_cover(self, comic_id: str) -> Optional[ComicRecord]:
        """Generate AI cover art and store it; None when no image was produced."""
        comic = await self.collection_repository.get_comic(comic_id)
        if comic is None:
            raise ComicNotFoundError(comic_id)

        prompt = COVER_ART_PROMPT.render_flat(
            title=comic.title, writer=comic.writer, description=comic.description
        )
        try:
            image_url = await self.llm_service.generate_image(prompt)
        except LLMServiceError as exc:
            logger.warning("Cover generation failed for %s: %s", comic_id, exc)
            return None
        if not image_url:
            return None

        logger.info("Generated cover for %s (%d chars)", comic_id, len(image_url))
        return await self.collection_repository.update_cover_url(comic_id, image_url)
