"""
Adapters - External service integrations.

All external API calls and storage engines are wrapped here to isolate
domains from third-party changes.
"""

from .embeddings import EmbeddingCache, EmbeddingClient
from .faiss import FAISSIndex
from .llm import ChatCompletionClient, LLMResponse
from .sqlite import ContentRepository

__all__ = [
    # Embedding API
    "EmbeddingClient",
    "EmbeddingCache",
    # Intent LLM
    "ChatCompletionClient",
    "LLMResponse",
    # Storage / indexes
    "FAISSIndex",
    "ContentRepository",
]
