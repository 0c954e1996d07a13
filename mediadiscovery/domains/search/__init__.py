"""
Search Domain - Hybrid retrieval with Reciprocal Rank Fusion.

This domain handles:
- Vector similarity search (FAISS)
- Keyword search (SQLite FTS5 / BM25)
- Filter selectivity and pre/post-filter planning
- Weighted Reciprocal Rank Fusion
- Request validation and pagination
"""

from .backends import KeywordSearch, VectorSearch
from .contracts import ContentStore, EmbeddingProvider, RetrievalBackend
from .filters import PRE_FILTER_THRESHOLD, SearchFilters
from .fusion import reciprocal_rank_fusion, rrf_contribution
from .hybrid_search import HybridSearchService, validate_search_request
from .models import (
    BackendHit,
    ContentSummary,
    SearchConfig,
    SearchRequest,
    SearchResponse,
    SearchResult,
)

__all__ = [
    # Contracts
    "RetrievalBackend",
    "EmbeddingProvider",
    "ContentStore",
    # Models
    "SearchFilters",
    "SearchRequest",
    "SearchResponse",
    "SearchResult",
    "BackendHit",
    "ContentSummary",
    "SearchConfig",
    "PRE_FILTER_THRESHOLD",
    # Implementations
    "HybridSearchService",
    "VectorSearch",
    "KeywordSearch",
    "reciprocal_rank_fusion",
    "rrf_contribution",
    "validate_search_request",
]
