"""
Embedding Client - OpenAI-compatible text embedding API.

Features:
- Read-through cache keyed by exact query text
- Bounded exponential-backoff retries (tenacity)
- Unit-length output vectors
- Sequential batch generation to respect upstream rate limits
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
)

from mediadiscovery.config import EmbeddingUnavailableError

from .cache import EmbeddingCache
from .models import EmbeddingConfig, EmbeddingRequest, EmbeddingResponse, ErrorResponse
from .retry import BackoffWait
from .vectors import l2_normalize

if TYPE_CHECKING:
    from mediadiscovery.config import Settings

logger = logging.getLogger(__name__)

__all__ = ["EmbeddingClient", "EmbeddingAPIError"]


class EmbeddingAPIError(Exception):
    """Single embedding attempt failed (non-2xx or malformed body)."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class EmbeddingClient:
    """
    Embedding API client with caching and retries.

    Example:
        >>> client = EmbeddingClient(EmbeddingConfig(api_key="sk-..."))
        >>> vector = await client.generate("slow-burn heist thriller")
        >>> len(vector)
        768
    """

    def __init__(
        self,
        config: EmbeddingConfig | None = None,
        cache: EmbeddingCache | None = None,
        http_client: httpx.AsyncClient | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """
        Initialize embedding client.

        Args:
            config: Client configuration. Uses defaults if None.
            cache: Shared cache. A private one is created if None.
            http_client: Pre-built HTTP client (mainly for tests)
            sleep: Async sleep used between retries
        """
        self.config = config or EmbeddingConfig()
        self.cache = cache or EmbeddingCache(
            dimension=self.config.dimension,
            max_size=self.config.cache_max_size,
            ttl_seconds=self.config.cache_ttl_seconds,
        )
        if self.cache.dimension != self.config.dimension:
            raise ValueError(
                f"Cache dimension {self.cache.dimension} != client dimension {self.config.dimension}"
            )

        self._client = http_client
        self._sleep = sleep

        logger.info(
            "EmbeddingClient initialized: model=%s, dimension=%d",
            self.config.model,
            self.config.dimension,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> EmbeddingClient:
        """Build a client from application settings."""
        return cls(
            EmbeddingConfig(
                base_url=settings.openai_base_url,
                api_key=settings.openai_api_key,
                model=settings.embedding_model,
                dimension=settings.embedding_dimension,
                timeout_seconds=settings.embedding_timeout_seconds,
                max_attempts=settings.embedding_max_attempts,
                initial_backoff_ms=settings.embedding_initial_backoff_ms,
                cache_max_size=settings.embedding_cache_max_size,
                cache_ttl_seconds=settings.embedding_cache_ttl_seconds,
            )
        )

    @property
    def dimension(self) -> int:
        """Embedding dimension."""
        return self.config.dimension

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.config.base_url.rstrip("/"),
                timeout=self.config.timeout_seconds,
            )
        return self._client

    async def generate(self, text: str) -> list[float]:
        """
        Generate a unit-length embedding for text.

        Args:
            text: Raw query text (also the cache key)

        Returns:
            Normalized embedding vector

        Raises:
            EmbeddingUnavailableError: All attempts failed
        """
        cached = self.cache.get(text)
        if cached is not None:
            return cached

        retrying = AsyncRetrying(
            retry=retry_if_exception_type((EmbeddingAPIError, httpx.HTTPError)),
            stop=stop_after_attempt(self.config.max_attempts),
            wait=BackoffWait(self.config.initial_backoff_ms),
            sleep=self._sleep,
            before_sleep=self._log_retry,
            reraise=True,
        )

        try:
            async for attempt in retrying:
                with attempt:
                    raw = await self._call_api(text)
        except (EmbeddingAPIError, httpx.HTTPError) as e:
            logger.error(
                "Embedding failed after %d attempts: %s", self.config.max_attempts, e
            )
            raise EmbeddingUnavailableError(
                f"Embedding failed after {self.config.max_attempts} attempts",
                {"last_error": str(e), "model": self.config.model},
            ) from e

        embedding = l2_normalize(raw)
        self.cache.put(text, embedding)
        return embedding

    async def generate_batch(self, texts: Sequence[str]) -> list[list[float]]:
        """
        Generate embeddings one text at a time.

        The first failure aborts the batch and propagates.
        """
        results = []
        for text in texts:
            results.append(await self.generate(text))
        return results

    async def _call_api(self, text: str) -> list[float]:
        """Single POST to the embeddings endpoint."""
        client = await self._get_client()
        request = EmbeddingRequest(
            input=text,
            model=self.config.model,
            dimensions=self.config.dimension,
        )

        response = await client.post(
            "/embeddings",
            headers={
                "Authorization": f"Bearer {self.config.api_key}",
                "Content-Type": "application/json",
            },
            json=request.model_dump(exclude_none=True),
        )

        if not response.is_success:
            raise EmbeddingAPIError(
                self._describe_error(response), status_code=response.status_code
            )

        try:
            body = EmbeddingResponse.model_validate(response.json())
        except (json.JSONDecodeError, ValidationError) as e:
            raise EmbeddingAPIError(f"Malformed embedding response: {e}") from e

        if not body.data:
            raise EmbeddingAPIError("Empty embedding response")

        embedding = body.data[0].embedding
        if len(embedding) != self.config.dimension:
            raise EmbeddingAPIError(
                f"Expected dimension {self.config.dimension}, got {len(embedding)}"
            )
        return embedding

    @staticmethod
    def _describe_error(response: httpx.Response) -> str:
        """Human-readable message for a non-2xx response."""
        try:
            detail = ErrorResponse.model_validate(response.json()).error
            return f"Embedding API error ({response.status_code}): {detail.type} - {detail.message}"
        except (json.JSONDecodeError, ValidationError):
            return f"Embedding API error ({response.status_code}): {response.text}"

    @staticmethod
    def _log_retry(retry_state: RetryCallState) -> None:
        """Warn before each backoff sleep."""
        error = retry_state.outcome.exception() if retry_state.outcome else None
        delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
        logger.warning(
            "Embedding attempt %d failed: %s. Retrying in %dms...",
            retry_state.attempt_number,
            error,
            int(delay * 1000),
        )

    def clear_cache(self) -> None:
        """Drop every cached embedding."""
        self.cache.clear()

    def cache_size(self) -> int:
        """Number of cached embeddings."""
        return len(self.cache)

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
