"""
Embedding Providers

Turn note text into fixed-dimension vectors. Backends:

    - ollama: local Ollama server, ``nomic-embed-text`` (768 dims) by default.
    - openai: OpenAI embeddings API.
    - local:  in-process sentence-transformers model (optional extra).
    - mock:   deterministic hashed bag-of-words, no network, for dev/tests.

Every backend goes through ``EmbeddingProvider.embed_batch``, which checks
the response count and parses each vector with the configured dimension.
Anything unexpected (unreachable server, HTTP error, malformed payload,
wrong dimension) raises ``EmbeddingError``.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
import math
import re
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any, ClassVar

import httpx
from openai import AsyncOpenAI, OpenAIError

from notegraph.core.config import Settings
from notegraph.core.errors import EmbeddingError, EmbeddingFormatError
from notegraph.services.embedding_codec import Vector, parse_embedding

logger = logging.getLogger(__name__)

OLLAMA_DEFAULT_MODEL = "nomic-embed-text"
OPENAI_DEFAULT_MODEL = "text-embedding-3-small"
LOCAL_DEFAULT_MODEL = "all-MiniLM-L6-v2"

_TOKEN_RE = re.compile(r"\w+")


class EmbeddingProvider(ABC):
    """
    Base class for embedding backends.

    Subclasses implement ``_embed`` (raw vectors, one per input text);
    validation and error wrapping live here.
    """

    name: ClassVar[str] = "base"

    def __init__(self, dimension: int) -> None:
        self.dimension = dimension

    async def embed(self, text: str) -> Vector:
        """Embed a single text."""
        vectors = await self.embed_batch([text])
        return vectors[0]

    async def embed_batch(self, texts: Sequence[str]) -> list[Vector]:
        """
        Embed several texts in one backend call.

        Returns:
            One vector per input text, in input order.

        Raises:
            EmbeddingError: Backend failure or malformed response.
        """
        if not texts:
            return []
        raw = await self._embed(list(texts))
        return self._validate(raw, len(texts))

    async def health_check(self) -> bool:
        """Whether the backend looks reachable. Never raises."""
        return True

    @abstractmethod
    async def _embed(self, texts: list[str]) -> Sequence[Any]:
        """Return one raw vector per text."""

    def _validate(self, raw: Any, expected: int) -> list[Vector]:
        if isinstance(raw, (str, bytes)) or not isinstance(raw, Sequence):
            raise EmbeddingError(f"{self.name} returned {type(raw).__name__}, expected a list")
        if len(raw) != expected:
            raise EmbeddingError(
                f"{self.name} returned {len(raw)} embeddings for {expected} texts"
            )
        try:
            return [parse_embedding(vector, self.dimension) for vector in raw]
        except EmbeddingFormatError as e:
            raise EmbeddingError(f"Malformed embedding from {self.name}: {e}") from e


class OllamaEmbeddingProvider(EmbeddingProvider):
    """
    Embeddings from a local Ollama server (``POST /api/embed``).

    Usage::

        provider = OllamaEmbeddingProvider("http://localhost:11434")
        vector = await provider.embed("I love hiking in the mountains")
        assert len(vector) == 768
    """

    name = "ollama"

    def __init__(
        self,
        base_url: str,
        model: str = OLLAMA_DEFAULT_MODEL,
        dimension: int = 768,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(dimension)
        self._base_url = base_url.rstrip("/")
        self._model = model
        self._timeout = timeout
        self._transport = transport

    def _client(self, timeout: float) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=timeout, transport=self._transport)

    async def _embed(self, texts: list[str]) -> Sequence[Any]:
        url = f"{self._base_url}/api/embed"
        payload = {"model": self._model, "input": texts}

        try:
            async with self._client(self._timeout) as client:
                response = await client.post(url, json=payload)
                response.raise_for_status()
                data = response.json()
        except (httpx.ConnectError, httpx.TimeoutException) as e:
            raise EmbeddingError(
                f"Ollama unreachable ({type(e).__name__}): {e}"
            ) from e
        except httpx.HTTPStatusError as e:
            raise EmbeddingError(
                f"Ollama API error {e.response.status_code}: {e.response.text}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise EmbeddingError(f"Invalid Ollama response: {e}") from e

        embeddings = data.get("embeddings") if isinstance(data, dict) else None
        if embeddings is None:
            raise EmbeddingError("Ollama response has no 'embeddings' field")

        logger.debug("Ollama embedded %d text(s) (model=%s)", len(texts), self._model)
        return embeddings

    async def health_check(self) -> bool:
        try:
            async with self._client(5.0) as client:
                response = await client.get(f"{self._base_url}/api/tags")
                return response.status_code == 200
        except httpx.HTTPError:
            return False


class OpenAIEmbeddingProvider(EmbeddingProvider):
    """OpenAI embeddings API (``text-embedding-3-small`` by default)."""

    name = "openai"

    def __init__(
        self,
        api_key: str | None,
        model: str = OPENAI_DEFAULT_MODEL,
        dimension: int = 1536,
        timeout: float = 30.0,
    ) -> None:
        super().__init__(dimension)
        self._api_key = api_key
        self._model = model
        self._timeout = timeout

    async def _embed(self, texts: list[str]) -> Sequence[Any]:
        client = AsyncOpenAI(api_key=self._api_key, timeout=self._timeout)
        inputs = [text.replace("\n", " ") for text in texts]  # OpenAI recommends single-line input

        options: dict[str, Any] = {}
        if self._model.startswith("text-embedding-3"):
            options["dimensions"] = self.dimension

        try:
            response = await client.embeddings.create(
                input=inputs, model=self._model, **options
            )
        except OpenAIError as e:
            raise EmbeddingError(f"OpenAI error: {e}") from e

        return [item.embedding for item in response.data]


class SentenceTransformerEmbeddingProvider(EmbeddingProvider):
    """
    In-process sentence-transformers model.

    The model is loaded lazily on first use and cached per model name at
    class level. Inference is CPU-bound and runs via ``asyncio.to_thread``
    to keep the event loop responsive.
    """

    name = "local"

    _models: ClassVar[dict[str, Any]] = {}

    def __init__(self, model: str = LOCAL_DEFAULT_MODEL, dimension: int = 384) -> None:
        super().__init__(dimension)
        self._model_name = model

    def _get_model(self) -> Any:
        model = self._models.get(self._model_name)
        if model is None:
            # Deferred import: sentence_transformers is an optional extra
            from sentence_transformers import SentenceTransformer

            logger.info("Loading embedding model: %s ...", self._model_name)
            model = SentenceTransformer(self._model_name)
            self._models[self._model_name] = model
            logger.info("Model loaded (dim=%d)", self.dimension)
        return model

    def _encode_sync(self, texts: list[str]) -> list[list[float]]:
        model = self._get_model()
        embeddings = model.encode(texts, normalize_embeddings=True)
        result: list[list[float]] = embeddings.tolist()
        return result

    async def _embed(self, texts: list[str]) -> Sequence[Any]:
        try:
            return await asyncio.to_thread(self._encode_sync, texts)
        except ImportError as e:
            raise EmbeddingError(
                "sentence-transformers is not installed (pip install notegraph[local])"
            ) from e
        except (OSError, RuntimeError) as e:
            raise EmbeddingError(f"Local model failure: {e}") from e

    @classmethod
    def reset(cls) -> None:
        """Release cached models from memory."""
        cls._models.clear()
        logger.info("Local embedding models released")


class HashEmbeddingProvider(EmbeddingProvider):
    """
    Deterministic offline embeddings.

    Each lowercase word token is hashed into a signed bucket and the
    result is L2-normalized. Same text, same vector; texts sharing words
    get a positive similarity. Not semantic, but enough to exercise search
    and graph building without a model.
    """

    name = "mock"

    async def _embed(self, texts: list[str]) -> Sequence[Any]:
        return [self.vectorize(text) for text in texts]

    def vectorize(self, text: str) -> list[float]:
        vector = [0.0] * self.dimension
        for token in _TOKEN_RE.findall(text.lower()):
            digest = hashlib.blake2b(token.encode("utf-8"), digest_size=8).digest()
            bucket = int.from_bytes(digest[:4], "big") % self.dimension
            vector[bucket] += 1.0 if digest[4] & 1 else -1.0

        length = math.sqrt(sum(value * value for value in vector))
        if length == 0.0:
            return vector
        return [value / length for value in vector]


def build_embedding_provider(config: Settings) -> EmbeddingProvider:
    """Instantiate the backend selected by ``EMBEDDING_PROVIDER``."""
    provider = config.EMBEDDING_PROVIDER
    dimension = config.EMBEDDING_DIMENSION

    if provider == "ollama":
        return OllamaEmbeddingProvider(
            config.OLLAMA_BASE_URL,
            model=config.EMBEDDING_MODEL,
            dimension=dimension,
            timeout=config.EMBEDDING_TIMEOUT,
        )
    if provider == "openai":
        model = config.EMBEDDING_MODEL
        if model == OLLAMA_DEFAULT_MODEL:
            model = OPENAI_DEFAULT_MODEL
        return OpenAIEmbeddingProvider(
            config.OPENAI_API_KEY,
            model=model,
            dimension=dimension,
            timeout=config.EMBEDDING_TIMEOUT,
        )
    if provider == "local":
        model = config.EMBEDDING_MODEL
        if model == OLLAMA_DEFAULT_MODEL:
            model = LOCAL_DEFAULT_MODEL
        return SentenceTransformerEmbeddingProvider(model=model, dimension=dimension)
    if provider == "mock":
        return HashEmbeddingProvider(dimension)

    raise ValueError(f"Unknown embedding provider: {provider}")
