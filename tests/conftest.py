"""
Pytest Configuration and Fixtures

Offline fixtures (in-memory store, scripted embedding provider) for unit
tests, plus the session-scoped readiness fixtures used by live tests.
"""

import os

from dotenv import load_dotenv

# ---------------------------------------------------------------------------
# Test environment defaults - MUST be before any notegraph imports.
#
# .env is loaded first so live tests see the same values as the running
# stack; unit tests then always get the in-memory store and mock embeddings.
# ---------------------------------------------------------------------------
load_dotenv()  # .env -> os.environ (no-op if file is missing)

_test_env = {
    "POSTGRES_USER": "notegraph",
    "POSTGRES_PASSWORD": "notegraph_password",
    "POSTGRES_HOST": "localhost",
    "POSTGRES_PORT": "5432",
    "POSTGRES_DB": "notegraph_db",
}
for _key, _value in _test_env.items():
    os.environ.setdefault(_key, _value)

os.environ["STORE_BACKEND"] = "memory"
os.environ["EMBEDDING_PROVIDER"] = "mock"

# ---------------------------------------------------------------------------
# Imports (safe now that env vars are set)
# ---------------------------------------------------------------------------
import asyncio  # noqa: E402
import math  # noqa: E402
import time  # noqa: E402
from collections.abc import Generator, Sequence  # noqa: E402
from datetime import UTC, datetime, timedelta  # noqa: E402
from typing import Any  # noqa: E402

import httpx  # noqa: E402
import pytest  # noqa: E402

from notegraph.core.errors import EmbeddingError  # noqa: E402
from notegraph.schemas.notes import Note  # noqa: E402
from notegraph.services.embeddings import (  # noqa: E402
    EmbeddingProvider,
    HashEmbeddingProvider,
)
from notegraph.services.note_store import InMemoryNoteStore  # noqa: E402
from notegraph.services.notes import NoteService  # noqa: E402

BASE_URL = "http://localhost:8000"

# ---------------------------------------------------------------------------
# Hiking / mountains / groceries scenario (3 dimensions)
#
#   hiking  . trails     = 0.9
#   hiking  . groceries  = 0.1
#   trails  . groceries  = 0.09
#   query "mountains" scores 0.707 / 0.945 / 0.071
# ---------------------------------------------------------------------------
HIKING = "I love hiking in the mountains"
TRAILS = "Mountain trails are beautiful"
GROCERIES = "I need to buy groceries"
MOUNTAINS = "mountains"

SCENARIO_VECTORS: dict[str, tuple[float, ...]] = {
    HIKING: (1.0, 0.0, 0.0),
    TRAILS: (0.9, math.sqrt(1 - 0.81), 0.0),
    GROCERIES: (0.1, 0.0, math.sqrt(1 - 0.01)),
    MOUNTAINS: (1.0, 1.0, 0.0),
}


class ScriptedEmbeddingProvider(EmbeddingProvider):
    """
    Test double returning pre-registered vectors.

    Unknown texts fall back to hashed vectors. ``fail`` makes every call
    raise EmbeddingError; ``delay`` slows every call down.
    """

    name = "scripted"

    def __init__(self, dimension: int = 3, vectors: dict[str, Sequence[float]] | None = None):
        super().__init__(dimension)
        self.vectors: dict[str, Sequence[float]] = dict(vectors or {})
        self.fail = False
        self.delay = 0.0
        self.calls: list[list[str]] = []
        self._fallback = HashEmbeddingProvider(dimension)

    async def _embed(self, texts: list[str]) -> Sequence[Any]:
        self.calls.append(texts)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise EmbeddingError("scripted provider is down")
        return [
            self.vectors.get(text) or self._fallback.vectorize(text) for text in texts
        ]


@pytest.fixture
def embedder() -> ScriptedEmbeddingProvider:
    """Scripted provider preloaded with the scenario vectors."""
    return ScriptedEmbeddingProvider(dimension=3, vectors=SCENARIO_VECTORS)


@pytest.fixture
def store() -> InMemoryNoteStore:
    return InMemoryNoteStore()


@pytest.fixture
def service(store: InMemoryNoteStore, embedder: ScriptedEmbeddingProvider) -> NoteService:
    """NoteService over the in-memory store, no retry delay."""
    return NoteService(
        store,
        embedder,
        neighbors=2,
        embedding_timeout=1.0,
        search_min_similarity=0.5,
        related_min_similarity=0.3,
        retry_delay=0,
    )


@pytest.fixture
def make_note():
    """Factory for Note snapshots; larger ``age`` means created earlier."""
    base = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)

    def _make(
        note_id: int,
        embedding: Sequence[float] | None,
        content: str | None = None,
        age: int = 0,
    ) -> Note:
        return Note(
            id=note_id,
            content=content or f"note {note_id}",
            created_at=base - timedelta(minutes=age),
            embedding=tuple(embedding) if embedding is not None else None,
        )

    return _make


# ---------------------------------------------------------------------------
# Live stack fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def wait_for_api():
    """
    Block until the API is ready or timeout expires.

    Polls /health endpoint with 1s intervals for up to 30s.
    Fails the test session if API is unreachable.
    """
    url = f"{BASE_URL}/health"
    timeout = 30
    start = time.time()

    print("\n[Test] Waiting for API...")
    while time.time() - start < timeout:
        try:
            res = httpx.get(url, timeout=1.0)
            if res.status_code == 200:
                print("API Ready")
                return
        except httpx.RequestError:
            time.sleep(1)

    pytest.fail("API unreachable. Is `uvicorn notegraph.main:app` running?")


@pytest.fixture(scope="session")
def api_client(wait_for_api) -> Generator[httpx.Client, None, None]:
    """
    Pre-configured HTTP client for live tests.

    Base URL points to /api/v1 for cleaner test assertions.
    """
    with httpx.Client(base_url=f"{BASE_URL}/api/v1", timeout=30.0) as client:
        yield client
