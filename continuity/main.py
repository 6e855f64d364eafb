"""Main FastAPI application."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from continuity.api.archivist_routes import router as archivist_router
from continuity.api.collection_routes import router as collection_router
from continuity.api.comic_routes import router as comic_router
from continuity.api.conversation_routes import router as conversation_router
from continuity.api.task_routes import router as task_router
from continuity.core.config import settings
from continuity.core.redis_client import create_redis_client
from continuity.infrastructure.database.connection import dispose_db, init_db
from continuity.infrastructure.storage.memory import InMemoryKeyValueStore
from continuity.infrastructure.storage.redis_store import RedisKeyValueStore
from continuity.services.search_cache import ResultCache

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info("Starting Continuity application")
    if settings.init_db_on_startup:
        await init_db()
        logger.info("Database initialized")

    app.state.result_cache = ResultCache(ttl_seconds=settings.search_cache_ttl_seconds)
    if settings.conversation_backend == "redis":
        app.state.kv_store = RedisKeyValueStore(create_redis_client())
    else:
        app.state.kv_store = InMemoryKeyValueStore()
    logger.info("Conversation storage: %s", settings.conversation_backend)

    yield

    if isinstance(app.state.kv_store, RedisKeyValueStore):
        await app.state.kv_store.close()
    await dispose_db()
    logger.info("Shutting down Continuity application")


app = FastAPI(
    title="Continuity",
    description="Comic tracking with The Archivist, an AI reading guide",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(archivist_router)
app.include_router(conversation_router)
app.include_router(collection_router)
app.include_router(comic_router)
app.include_router(task_router)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
