"""
Notegraph Backend Application

FastAPI application entrypoint with async lifespan management.
Builds the note store, embedding provider and NoteService at startup and
exposes them through ``app.state``.

Start locally:
    uvicorn notegraph.main:app --reload
"""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI

from notegraph.api.v1.graph import router as graph_router
from notegraph.api.v1.notes import router as notes_router
from notegraph.core.config import Settings, settings
from notegraph.core.database import (
    dispose_engine,
    get_session_factory,
    init_models,
    wait_for_db,
)
from notegraph.core.logging import setup_logging
from notegraph.repositories.notes import SqlNoteStore
from notegraph.services.embeddings import build_embedding_provider
from notegraph.services.note_store import InMemoryNoteStore, NoteStore
from notegraph.services.notes import NoteService

# Initialize logging before any log statements
setup_logging()
logger = logging.getLogger(__name__)


async def build_store(config: Settings) -> NoteStore:
    """
    Create the configured note store.

    The postgres backend blocks until the database answers and makes sure
    the schema exists; it raises if the database never comes up.
    """
    if config.STORE_BACKEND == "postgres":
        if not await wait_for_db():
            logger.critical("Could not connect to Postgres. Shutting down.")
            raise RuntimeError("Database connection failed")
        await init_models()
        return SqlNoteStore(get_session_factory(), dimension=config.EMBEDDING_DIMENSION)

    logger.warning("Using in-memory note store - notes are lost on restart")
    return InMemoryNoteStore()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup:
        - Builds the note store (required, blocks startup on failure)
        - Checks embedding provider reachability (optional, logs warning)

    Shutdown:
        - Closes the store and disposes the database engine
    """
    logger.info("Starting Notegraph...")
    logger.info(
        "Store: %s | Embeddings: %s (%s, dim=%d)",
        settings.STORE_BACKEND,
        settings.EMBEDDING_PROVIDER,
        settings.EMBEDDING_MODEL,
        settings.EMBEDDING_DIMENSION,
    )

    store = await build_store(settings)
    embedder = build_embedding_provider(settings)
    if not await embedder.health_check():
        logger.warning("Embedding provider not reachable - note capture will fail")

    app.state.note_service = NoteService.from_settings(store, embedder, settings)

    yield  # Application runs here

    logger.info("Shutting down Notegraph...")
    await store.close()
    await dispose_engine()


app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)

app.include_router(notes_router, prefix="/api/v1/notes", tags=["Notes"])
app.include_router(graph_router, prefix="/api/v1/graph", tags=["Graph"])


@app.get("/health")
async def health_check():
    """
    Health check endpoint for load balancers and orchestrators.

    Reports the configured backends and whether the embedding provider
    currently answers.
    """
    service: NoteService | None = getattr(app.state, "note_service", None)
    embeddings_ok = bool(service) and await service.embedder.health_check()
    return {
        "status": "ok",
        "service": "notegraph",
        "environment": os.getenv("ENVIRONMENT", "unknown"),
        "store": settings.STORE_BACKEND,
        "embeddings": "reachable" if embeddings_ok else "unreachable",
    }
