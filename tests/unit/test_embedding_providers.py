"""
Embedding Provider Unit Tests

Backends with mocked transports/clients; no network or API keys needed.
"""

import json
from unittest.mock import AsyncMock, patch

import httpx
import pytest
from openai import APIConnectionError

from notegraph.core.config import Settings
from notegraph.core.errors import EmbeddingError
from notegraph.services.embeddings import (
    HashEmbeddingProvider,
    OllamaEmbeddingProvider,
    OpenAIEmbeddingProvider,
    SentenceTransformerEmbeddingProvider,
    build_embedding_provider,
)


def ollama(handler, dimension=3):
    return OllamaEmbeddingProvider(
        "http://ollama:11434/",
        dimension=dimension,
        transport=httpx.MockTransport(handler),
    )


# ---------------------------------------------------------------------------
# Ollama
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_ollama_embed_batch():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        count = len(seen["body"]["input"])
        return httpx.Response(200, json={"embeddings": [[0.1, 0.2, 0.3]] * count})

    vectors = await ollama(handler).embed_batch(["first", "second"])

    assert vectors == [(0.1, 0.2, 0.3), (0.1, 0.2, 0.3)]
    assert seen["url"] == "http://ollama:11434/api/embed"
    assert seen["body"] == {"model": "nomic-embed-text", "input": ["first", "second"]}


@pytest.mark.asyncio
async def test_ollama_embed_single():
    provider = ollama(lambda request: httpx.Response(200, json={"embeddings": [[1, 0, 0]]}))

    assert await provider.embed("hello") == (1.0, 0.0, 0.0)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, text="model not loaded"),
        httpx.Response(200, json={"embedding": [0.1, 0.2, 0.3]}),
        httpx.Response(200, json={"embeddings": [[0.1, 0.2]]}),  # wrong dimension
        httpx.Response(200, json={"embeddings": [[0.1, "x", 0.3]]}),
        httpx.Response(200, json={"embeddings": [[10**400, 0.1, 0.2]]}),  # overflows float
        httpx.Response(200, json={"embeddings": []}),
        httpx.Response(200, text="<html>not json</html>"),
    ],
)
async def test_ollama_bad_responses_raise_embedding_error(response):
    provider = ollama(lambda request: response)

    with pytest.raises(EmbeddingError):
        await provider.embed("hello")


@pytest.mark.asyncio
async def test_ollama_unreachable():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(EmbeddingError, match="unreachable"):
        await ollama(handler).embed("hello")


@pytest.mark.asyncio
async def test_ollama_health_check():
    up = ollama(lambda request: httpx.Response(200, json={"models": []}))
    down = ollama(lambda request: httpx.Response(503))

    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    assert await up.health_check() is True
    assert await down.health_check() is False
    assert await ollama(refuse).health_check() is False


@pytest.mark.asyncio
async def test_empty_batch_skips_backend():
    def handler(request):
        raise AssertionError("backend must not be called")

    assert await ollama(handler).embed_batch([]) == []


# ---------------------------------------------------------------------------
# OpenAI
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_openai_embed_mock():
    """
    Verify the OpenAI provider calls the embeddings API correctly.

    Uses mock to avoid real API calls and validate:
        - Model and dimensions selection
        - Newline-free input
        - Response parsing
    """
    mock_vector = [0.1] * 1536
    # Dynamically create response object matching OpenAI SDK structure
    mock_response = type(
        "Response", (), {"data": [type("Item", (), {"embedding": mock_vector})]}
    )

    with patch("notegraph.services.embeddings.AsyncOpenAI") as MockClient:
        mock_instance = MockClient.return_value
        mock_instance.embeddings.create = AsyncMock(return_value=mock_response)

        provider = OpenAIEmbeddingProvider(api_key="sk-test")
        vector = await provider.embed("Hello\nWorld")

    assert len(vector) == 1536
    assert vector[0] == 0.1
    mock_instance.embeddings.create.assert_called_once()
    _, kwargs = mock_instance.embeddings.create.call_args
    assert kwargs["model"] == "text-embedding-3-small"
    assert kwargs["input"] == ["Hello World"]
    assert kwargs["dimensions"] == 1536


@pytest.mark.asyncio
async def test_openai_error_becomes_embedding_error():
    request = httpx.Request("POST", "https://api.openai.com/v1/embeddings")

    with patch("notegraph.services.embeddings.AsyncOpenAI") as MockClient:
        MockClient.return_value.embeddings.create = AsyncMock(
            side_effect=APIConnectionError(request=request)
        )

        with pytest.raises(EmbeddingError, match="OpenAI"):
            await OpenAIEmbeddingProvider(api_key="sk-test").embed("hello")


# ---------------------------------------------------------------------------
# Local sentence-transformers
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_local_provider_uses_cached_model():
    class FakeArray:
        def __init__(self, rows):
            self.rows = rows

        def tolist(self):
            return self.rows

    class FakeModel:
        def encode(self, texts, normalize_embeddings):
            assert normalize_embeddings is True
            return FakeArray([[0.6, 0.8]] * len(texts))

    SentenceTransformerEmbeddingProvider._models["fake-model"] = FakeModel()
    try:
        provider = SentenceTransformerEmbeddingProvider(model="fake-model", dimension=2)
        assert await provider.embed_batch(["a", "b"]) == [(0.6, 0.8), (0.6, 0.8)]
    finally:
        SentenceTransformerEmbeddingProvider.reset()


# ---------------------------------------------------------------------------
# Mock (hashed bag-of-words)
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_hash_provider_is_deterministic_and_normalized():
    provider = HashEmbeddingProvider(64)

    first = await provider.embed("Hiking in the mountains")
    again = await provider.embed("Hiking in the mountains")

    assert first == again
    assert len(first) == 64
    assert sum(value * value for value in first) == pytest.approx(1.0)


@pytest.mark.asyncio
async def test_hash_provider_ignores_case_punctuation_and_order():
    provider = HashEmbeddingProvider(64)

    a = await provider.embed("Mountains, hiking!")
    b = await provider.embed("hiking mountains")

    assert a == b


def test_hash_provider_empty_text_is_zero_vector():
    assert HashEmbeddingProvider(8).vectorize("  ...  ") == [0.0] * 8


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("provider", "expected"),
    [
        ("ollama", OllamaEmbeddingProvider),
        ("openai", OpenAIEmbeddingProvider),
        ("local", SentenceTransformerEmbeddingProvider),
        ("mock", HashEmbeddingProvider),
    ],
)
def test_build_embedding_provider(provider, expected):
    config = Settings(EMBEDDING_PROVIDER=provider, EMBEDDING_DIMENSION=384)

    built = build_embedding_provider(config)

    assert isinstance(built, expected)
    assert built.dimension == 384
