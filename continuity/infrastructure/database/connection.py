"""Async engines and sessions for the comic catalogue and user collections."""

from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from continuity.core.config import settings
from continuity.infrastructure.database.models import Base

engine = create_async_engine(settings.database_url, echo=False, future=True, pool_pre_ping=True)
async_session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

# Insight tasks call asyncio.run() per job; a pool would hand out
# connections bound to a loop that no longer exists.
worker_engine = create_async_engine(settings.database_url, poolclass=NullPool)
worker_session_maker = async_sessionmaker(
    worker_engine, class_=AsyncSession, expire_on_commit=False
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_maker() as session:
        yield session


async def init_db() -> None:
    """Create the ``comics`` and ``user_comics`` tables if missing."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_db() -> None:
    await engine.dispose()
