"""
Tests for the embeddings adapter: client, cache, backoff and vector math.
"""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from mediadiscovery.config import EmbeddingUnavailableError

from .cache import EmbeddingCache
from .client import EmbeddingClient
from .models import EmbeddingConfig
from .retry import backoff_delay_ms
from .vectors import cosine_similarity, l2_normalize

DIM = 4


def _embedding_body(vector: list[float]) -> dict:
    return {
        "data": [{"embedding": vector, "index": 0}],
        "model": "text-embedding-3-small",
        "usage": {"prompt_tokens": 3, "total_tokens": 3},
    }


class RecordingSleep:
    """Async sleep replacement that records requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


def _make_client(
    handler,
    sleep: RecordingSleep | None = None,
    cache: EmbeddingCache | None = None,
) -> EmbeddingClient:
    config = EmbeddingConfig(api_key="test-key", dimension=DIM)
    http_client = httpx.AsyncClient(
        base_url=config.base_url,
        transport=httpx.MockTransport(handler),
    )
    return EmbeddingClient(
        config=config,
        cache=cache,
        http_client=http_client,
        sleep=sleep or RecordingSleep(),
    )


# --- Vector Math Tests ---


def test_l2_normalize_unit_length() -> None:
    """Test [3, 4] normalizes to [0.6, 0.8]."""
    assert l2_normalize([3.0, 4.0]) == pytest.approx([0.6, 0.8])


def test_l2_normalize_zero_vector_unchanged() -> None:
    """Test the zero vector is returned as-is."""
    assert l2_normalize([0.0, 0.0, 0.0]) == [0.0, 0.0, 0.0]


def test_cosine_similarity() -> None:
    """Test identical and orthogonal vectors."""
    assert cosine_similarity([1.0, 0.0], [1.0, 0.0]) == pytest.approx(1.0)
    assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)
    assert cosine_similarity([0.0, 0.0], [1.0, 0.0]) == 0.0


def test_cosine_similarity_dimension_mismatch() -> None:
    """Test vectors of different length are rejected."""
    with pytest.raises(ValueError):
        cosine_similarity([1.0, 0.0], [1.0, 0.0, 0.0])


# --- Backoff Tests ---


def test_backoff_schedule_doubles() -> None:
    """Test 100ms, 200ms, 400ms schedule."""
    assert backoff_delay_ms(1) == 100
    assert backoff_delay_ms(2) == 200
    assert backoff_delay_ms(3) == 400
    assert backoff_delay_ms(2, initial_ms=50) == 100


def test_backoff_rejects_attempt_zero() -> None:
    """Test attempts are 1-based."""
    with pytest.raises(ValueError):
        backoff_delay_ms(0)


# --- Cache Tests ---


def test_cache_put_get_returns_copy() -> None:
    """Test cached vectors cannot be mutated through a returned list."""
    cache = EmbeddingCache(dimension=2)
    cache.put("x", [0.6, 0.8])

    first = cache.get("x")
    assert first == [0.6, 0.8]
    first[0] = 99.0
    assert cache.get("x") == [0.6, 0.8]


def test_cache_key_is_case_sensitive() -> None:
    """Test keys are exact text, not case-folded."""
    cache = EmbeddingCache(dimension=2)
    cache.put("Heat", [1.0, 0.0])
    assert cache.get("heat") is None
    assert "Heat" in cache


def test_cache_rejects_wrong_dimension() -> None:
    """Test vectors of the wrong dimension are never stored."""
    cache = EmbeddingCache(dimension=3)
    with pytest.raises(ValueError):
        cache.put("x", [1.0, 0.0])
    assert len(cache) == 0


def test_cache_lru_eviction() -> None:
    """Test the least recently used entry is evicted first."""
    cache = EmbeddingCache(dimension=1, max_size=2)
    cache.put("a", [1.0])
    cache.put("b", [1.0])
    cache.get("a")
    cache.put("c", [1.0])

    assert "a" in cache
    assert "b" not in cache
    assert "c" in cache


def test_cache_ttl_expiry() -> None:
    """Test entries expire after the TTL."""
    now = [0.0]
    cache = EmbeddingCache(dimension=1, ttl_seconds=10, clock=lambda: now[0])
    cache.put("a", [1.0])

    now[0] = 5.0
    assert cache.get("a") == [1.0]
    now[0] = 20.0
    assert cache.get("a") is None
    assert cache.stats()["misses"] == 1


# --- Client Tests ---


async def test_generate_normalizes_and_sends_request() -> None:
    """Test request body, auth header and normalized output."""
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=_embedding_body([3.0, 4.0, 0.0, 0.0]))

    client = _make_client(handler)
    vector = await client.generate("Dark Thriller")

    assert vector == pytest.approx([0.6, 0.8, 0.0, 0.0])
    assert len(seen) == 1
    body = json.loads(seen[0].content)
    assert body == {
        "input": "Dark Thriller",
        "model": "text-embedding-3-small",
        "dimensions": DIM,
    }
    assert seen[0].headers["Authorization"] == "Bearer test-key"
    assert seen[0].url.path.endswith("/embeddings")


async def test_generate_is_served_from_cache() -> None:
    """Test two sequential calls issue exactly one network call."""
    calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        return httpx.Response(200, json=_embedding_body([1.0, 0.0, 0.0, 0.0]))

    client = _make_client(handler)
    first = await client.generate("x")
    second = await client.generate("x")

    assert calls == 1
    assert first == second
    assert client.cache_size() == 1


async def test_generate_retries_with_backoff_then_succeeds() -> None:
    """Test transient failures are retried with doubling delays."""
    responses = iter(
        [
            httpx.Response(500, json={"error": {"message": "boom", "type": "server_error"}}),
            httpx.Response(503, text="unavailable"),
            httpx.Response(200, json=_embedding_body([0.0, 0.0, 2.0, 0.0])),
        ]
    )
    sleep = RecordingSleep()
    client = _make_client(lambda request: next(responses), sleep=sleep)

    vector = await client.generate("heist")

    assert vector == pytest.approx([0.0, 0.0, 1.0, 0.0])
    assert sleep.delays == pytest.approx([0.1, 0.2])


async def test_generate_raises_after_max_attempts() -> None:
    """Test exhaustion surfaces EmbeddingUnavailableError and caches nothing."""
    calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        return httpx.Response(
            429, json={"error": {"message": "Rate limit", "type": "rate_limit_error"}}
        )

    sleep = RecordingSleep()
    client = _make_client(handler, sleep=sleep)

    with pytest.raises(EmbeddingUnavailableError) as exc_info:
        await client.generate("x")

    assert calls == 3
    assert len(sleep.delays) == 2
    assert "rate_limit_error" in exc_info.value.details["last_error"]
    assert client.cache_size() == 0


async def test_generate_retries_transport_errors() -> None:
    """Test connection errors count as failed attempts."""
    attempts = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal attempts
        attempts += 1
        if attempts == 1:
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(200, json=_embedding_body([1.0, 1.0, 1.0, 1.0]))

    client = _make_client(handler)
    vector = await client.generate("x")

    assert attempts == 2
    assert vector == pytest.approx([0.5, 0.5, 0.5, 0.5])


async def test_generate_rejects_wrong_dimension() -> None:
    """Test a response of the wrong dimension is treated as a failure."""
    client = _make_client(
        lambda request: httpx.Response(200, json=_embedding_body([1.0, 0.0]))
    )

    with pytest.raises(EmbeddingUnavailableError):
        await client.generate("x")
    assert client.cache_size() == 0


async def test_generate_batch_is_sequential_and_aborts_on_failure() -> None:
    """Test batch order and abort on the first failing item."""
    order: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        text = json.loads(request.content)["input"]
        order.append(text)
        if text == "bad":
            return httpx.Response(400, json={"error": {"message": "bad", "type": "invalid"}})
        return httpx.Response(200, json=_embedding_body([1.0, 0.0, 0.0, 0.0]))

    client = _make_client(handler)
    vectors = await client.generate_batch(["a", "b"])
    assert len(vectors) == 2
    assert order == ["a", "b"]

    with pytest.raises(EmbeddingUnavailableError):
        await client.generate_batch(["c", "bad", "d"])
    assert "d" not in order


async def test_cancelled_generate_does_not_write_cache() -> None:
    """Test cancellation mid-request leaves the cache untouched."""
    started = asyncio.Event()

    class SlowTransport(httpx.AsyncBaseTransport):
        async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
            started.set()
            await asyncio.sleep(10)
            return httpx.Response(200, json=_embedding_body([1.0, 0.0, 0.0, 0.0]))

    config = EmbeddingConfig(api_key="k", dimension=DIM)
    client = EmbeddingClient(
        config=config,
        http_client=httpx.AsyncClient(base_url=config.base_url, transport=SlowTransport()),
    )

    task = asyncio.create_task(client.generate("x"))
    await started.wait()
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert client.cache_size() == 0


async def test_clear_cache() -> None:
    """Test clear_cache empties the shared cache."""
    client = _make_client(
        lambda request: httpx.Response(200, json=_embedding_body([1.0, 0.0, 0.0, 0.0]))
    )
    await client.generate("a")
    await client.generate("b")
    assert client.cache_size() == 2

    client.clear_cache()
    assert client.cache_size() == 0


def test_client_rejects_mismatched_cache() -> None:
    """Test cache and client dimensions must agree."""
    with pytest.raises(ValueError):
        EmbeddingClient(
            config=EmbeddingConfig(dimension=768),
            cache=EmbeddingCache(dimension=384),
        )


def test_client_dimension_default() -> None:
    """Test the default service-wide dimension."""
    assert EmbeddingClient().dimension == 768
