"""
Embeddings Adapter - Text embedding API client with caching and retries.

This is the ONLY place that calls the embedding API.
"""

from .cache import EmbeddingCache
from .client import EmbeddingAPIError, EmbeddingClient
from .models import EmbeddingConfig, EmbeddingRequest, EmbeddingResponse
from .retry import backoff_delay_ms
from .vectors import cosine_similarity, l2_normalize

__all__ = [
    "EmbeddingClient",
    "EmbeddingAPIError",
    "EmbeddingCache",
    "EmbeddingConfig",
    "EmbeddingRequest",
    "EmbeddingResponse",
    "backoff_delay_ms",
    "cosine_similarity",
    "l2_normalize",
]
