#!/usr/bin/env python3
"""
Backfill Embeddings Script

Embeds every stored note whose embedding is missing or malformed (rows
imported from elsewhere, or written before a model change). Uses the same
settings as the API: STORE_BACKEND must be "postgres" for this to be useful.

Usage:
    $ python scripts/backfill_embeddings.py
    $ python scripts/backfill_embeddings.py --batch-size 32
"""

import argparse
import asyncio
import logging
import sys

from notegraph.core.config import settings
from notegraph.core.database import dispose_engine, get_session_factory, init_models
from notegraph.core.logging import setup_logging
from notegraph.repositories.notes import SqlNoteStore
from notegraph.services.embeddings import build_embedding_provider
from notegraph.services.notes import NoteService

logger = logging.getLogger("notegraph.scripts.backfill")


async def main(batch_size: int) -> int:
    """Run the backfill once. Returns the process exit code."""
    if settings.STORE_BACKEND != "postgres":
        logger.error("STORE_BACKEND is %r; nothing persistent to backfill", settings.STORE_BACKEND)
        return 1

    await init_models()
    store = SqlNoteStore(get_session_factory(), dimension=settings.EMBEDDING_DIMENSION)
    service = NoteService.from_settings(store, build_embedding_provider(settings), settings)

    try:
        result = await service.backfill_embeddings(batch_size=batch_size)
    finally:
        await dispose_engine()

    if not result.success:
        logger.error("Backfill failed: %s", result.error.message if result.error else "?")
        return 1

    logger.info("Backfill complete: %d note(s) embedded", result.data)
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Embed notes that lack an embedding")
    parser.add_argument("--batch-size", type=int, default=16, help="Texts per embedding call")
    args = parser.parse_args()

    setup_logging()
    sys.exit(asyncio.run(main(args.batch_size)))
