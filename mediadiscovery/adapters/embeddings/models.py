"""
Embedding Models - Request/Response types for the embeddings API.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class EmbeddingConfig(BaseModel):
    """Configuration for the embedding client."""

    base_url: str = Field(default="https://api.openai.com/v1")
    api_key: str = Field(default="")
    model: str = Field(default="text-embedding-3-small")
    dimension: int = Field(default=768, ge=1)
    timeout_seconds: float = Field(default=5.0, gt=0)
    max_attempts: int = Field(default=3, ge=1)
    initial_backoff_ms: int = Field(default=100, ge=0)
    cache_max_size: int | None = Field(default=10_000, ge=1)
    cache_ttl_seconds: float | None = Field(default=None, gt=0)

    model_config = {"frozen": True}


class EmbeddingRequest(BaseModel):
    """Body of ``POST /embeddings``."""

    input: str
    model: str
    dimensions: int | None = None

    model_config = {"frozen": True}


class EmbeddingData(BaseModel):
    """Single embedding in a response."""

    embedding: list[float]
    index: int = 0


class Usage(BaseModel):
    """Token usage reported by the API."""

    prompt_tokens: int = 0
    total_tokens: int = 0


class EmbeddingResponse(BaseModel):
    """Successful embeddings response."""

    data: list[EmbeddingData]
    model: str
    usage: Usage = Field(default_factory=Usage)


class ApiError(BaseModel):
    """Error detail in a non-2xx response."""

    message: str
    type: str = "unknown"


class ErrorResponse(BaseModel):
    """Non-2xx response body."""

    error: ApiError
