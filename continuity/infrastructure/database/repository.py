"""Repository implementations."""

from dataclasses import asdict
from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from continuity.domain.entities import ComicInsights, ComicRecord, ReadState
from continuity.domain.repositories import ICollectionRepository
from continuity.infrastructure.database.models import ComicModel, UserComicModel


def _insights_to_json(insights: Optional[ComicInsights]) -> Optional[dict]:
    return asdict(insights) if insights else None


def _insights_from_json(data: Optional[dict]) -> Optional[ComicInsights]:
    return ComicInsights(**data) if data else None


# ---------------------------------------------------------------------------
# Collection Repository
# ---------------------------------------------------------------------------
class CollectionRepository(ICollectionRepository):
    """Shared comic catalogue (``comics``) plus per-user state (``user_comics``)."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_user_comics(self, user_id: str) -> list[ComicRecord]:
        result = await self.session.execute(
            select(UserComicModel)
            .where(UserComicModel.user_id == user_id)
            .order_by(UserComicModel.created_at)
        )
        return [self._to_entity(row.comic, row) for row in result.scalars().all()]

    async def get_comic(self, comic_id: str) -> Optional[ComicRecord]:
        db_comic = await self._get_comic_model(comic_id)
        return self._to_entity(db_comic) if db_comic else None

    async def upsert_comic(self, comic: ComicRecord) -> ComicRecord:
        db_comic = await self._get_comic_model(comic.id)
        if db_comic is None:
            db_comic = ComicModel(id=comic.id, created_at=datetime.utcnow())
            self.session.add(db_comic)
        db_comic.title = comic.title
        db_comic.writer = comic.writer
        db_comic.artist = comic.artist
        db_comic.publisher = comic.publisher
        db_comic.year = comic.year
        db_comic.description = comic.description
        db_comic.series = comic.series
        db_comic.volume = comic.volume
        # Never blank out a stored cover or analysis with an empty value
        if comic.cover_url or db_comic.cover_url is None:
            db_comic.cover_url = comic.cover_url
        if comic.insights:
            db_comic.insights = _insights_to_json(comic.insights)
        await self.session.commit()
        await self.session.refresh(db_comic)
        return self._to_entity(db_comic)

    async def get_user_comic(self, user_id: str, comic_id: str) -> Optional[ComicRecord]:
        db_row = await self._get_user_comic_model(user_id, comic_id)
        return self._to_entity(db_row.comic, db_row) if db_row else None

    async def save_user_comic(self, user_id: str, comic: ComicRecord) -> ComicRecord:
        db_row = await self._get_user_comic_model(user_id, comic.id)
        if db_row is None:
            db_row = UserComicModel(user_id=user_id, comic_id=comic.id)
            self.session.add(db_row)
        db_row.read_states = sorted(state.value for state in comic.read_states)
        db_row.rating = comic.rating
        db_row.review = comic.review
        db_row.is_favorite = comic.is_favorite
        db_row.date_read = comic.date_read
        db_row.updated_at = datetime.utcnow()
        await self.session.commit()
        await self.session.refresh(db_row)
        return self._to_entity(db_row.comic, db_row)

    async def update_cover_url(self, comic_id: str, cover_url: str) -> Optional[ComicRecord]:
        db_comic = await self._get_comic_model(comic_id)
        if db_comic is None:
            return None
        db_comic.cover_url = cover_url
        await self.session.commit()
        await self.session.refresh(db_comic)
        return self._to_entity(db_comic)

    async def update_insights(
        self, comic_id: str, insights: ComicInsights
    ) -> Optional[ComicRecord]:
        db_comic = await self._get_comic_model(comic_id)
        if db_comic is None:
            return None
        db_comic.insights = _insights_to_json(insights)
        await self.session.commit()
        await self.session.refresh(db_comic)
        return self._to_entity(db_comic)

    # -- helpers -------------------------------------------------------------

    async def _get_comic_model(self, comic_id: str) -> Optional[ComicModel]:
        result = await self.session.execute(select(ComicModel).where(ComicModel.id == comic_id))
        return result.scalar_one_or_none()

    async def _get_user_comic_model(
        self, user_id: str, comic_id: str
    ) -> Optional[UserComicModel]:
        result = await self.session.execute(
            select(UserComicModel).where(
                UserComicModel.user_id == user_id,
                UserComicModel.comic_id == comic_id,
            )
        )
        return result.scalar_one_or_none()

    @staticmethod
    def _to_entity(model: ComicModel, user_row: Optional[UserComicModel] = None) -> ComicRecord:
        record = ComicRecord(
            id=model.id,
            title=model.title,
            writer=model.writer,
            artist=model.artist,
            publisher=model.publisher or "",
            year=model.year,
            description=model.description or "",
            cover_url=model.cover_url or "",
            series=model.series,
            volume=model.volume,
            insights=_insights_from_json(model.insights),
        )
        if user_row is not None:
            record.read_states = {ReadState(s) for s in user_row.read_states or []}
            record.rating = user_row.rating
            record.review = user_row.review
            record.is_favorite = user_row.is_favorite
            record.date_read = user_row.date_read
        return record
