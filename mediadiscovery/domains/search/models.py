"""
Search Models - Data types for search domain.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from mediadiscovery.domains.intent import ParsedIntent

from .filters import SearchFilters

MAX_QUERY_LENGTH = 500
MAX_PAGE_SIZE = 100


class SearchRequest(BaseModel):
    """
    Search request as received from the routing layer.

    Ranges are checked by ``validate_search_request`` so that violations
    surface as ``InvalidRequestError`` rather than construction errors.
    """

    query: str
    filters: SearchFilters | None = None
    page: int = 1
    page_size: int = 20
    user_id: str | None = None

    model_config = {"frozen": True}


class BackendHit(BaseModel):
    """One ranked item returned by a retrieval backend."""

    content_id: str
    score: float

    model_config = {"frozen": True}


class SearchResult(BaseModel):
    """Single fused search result with provenance."""

    content_id: str
    relevance_score: float = Field(default=0.0, ge=0.0)
    match_reasons: list[str] = Field(default_factory=list)
    vector_similarity: float | None = None
    keyword_score: float | None = None


class SearchResponse(BaseModel):
    """One page of fused results."""

    results: list[SearchResult]
    total_count: int
    page: int
    page_size: int
    query_parsed: ParsedIntent
    search_time_ms: int


class ContentSummary(BaseModel):
    """Catalog record for a piece of content."""

    id: str
    title: str
    overview: str = ""
    release_year: int | None = None
    genres: list[str] = Field(default_factory=list)
    platforms: list[str] = Field(default_factory=list)
    average_rating: float | None = None
    popularity_score: float = 0.0


class SearchConfig(BaseModel):
    """Orchestrator tuning. Non-positive weights or k are rejected."""

    rrf_k: float = Field(default=60.0, gt=0)
    vector_weight: float = Field(default=1.0, gt=0)
    keyword_weight: float = Field(default=1.0, gt=0)
    backend_timeout_seconds: float | None = Field(default=10.0, gt=0)
    allow_partial_results: bool = False

    model_config = {"frozen": True}
