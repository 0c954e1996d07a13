"""
Retrieval Backends - Vector and keyword implementations of RetrievalBackend.

Both honor the advisory ``SearchFilters.should_pre_filter()``:
- pre-filter: filters constrain the candidate set before ranking
- post-filter: an over-fetched candidate set is filtered afterwards
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .contracts import EmbeddingProvider
from .filters import SearchFilters
from .models import BackendHit

if TYPE_CHECKING:
    from mediadiscovery.adapters.faiss import FAISSIndex
    from mediadiscovery.adapters.sqlite import ContentRepository

logger = logging.getLogger(__name__)

__all__ = ["VectorSearch", "KeywordSearch"]


class VectorSearch:
    """
    Dense retrieval: embed the query, search the FAISS index.

    Example:
        >>> backend = VectorSearch(embedding_client, faiss_index)
        >>> hits = await backend.search("slow-burn space horror")
    """

    name = "vector"

    def __init__(
        self,
        embedder: EmbeddingProvider,
        index: FAISSIndex,
        limit: int = 100,
        candidate_multiplier: int = 4,
    ) -> None:
        """
        Initialize vector backend.

        Args:
            embedder: Query embedding provider
            index: FAISS index whose metadata carries filterable attributes
            limit: Maximum hits returned
            candidate_multiplier: Over-fetch factor when post-filtering
        """
        if embedder.dimension != index.dimension:
            raise ValueError(
                f"Embedding dimension {embedder.dimension} != index dimension {index.dimension}"
            )
        self._embedder = embedder
        self._index = index
        self.limit = limit
        self.candidate_multiplier = candidate_multiplier

    async def search(
        self,
        query: str,
        filters: SearchFilters | None = None,
    ) -> list[BackendHit]:
        """Return hits ranked by cosine similarity."""
        if self._index.size == 0:
            return []

        embedding = await self._embedder.generate(query)

        active = filters is not None and not filters.is_empty()
        if not active:
            k = self.limit
        elif filters.should_pre_filter():
            # Selective filters: rank the whole catalog, keep only matches
            k = self._index.size
        else:
            k = self.limit * self.candidate_multiplier

        candidates = await self._index.search(embedding, k=k)

        hits = []
        for item in candidates:
            if active and not filters.matches(item["metadata"]):
                continue
            hits.append(BackendHit(content_id=item["content_id"], score=item["score"]))
            if len(hits) >= self.limit:
                break

        logger.debug(
            "Vector search: %d candidates -> %d hits (filtered=%s)",
            len(candidates),
            len(hits),
            active,
        )
        return hits


class KeywordSearch:
    """
    Lexical retrieval over SQLite FTS5 (BM25).

    Example:
        >>> backend = KeywordSearch(content_repository)
        >>> hits = await backend.search("heist", SearchFilters(genres=["thriller"]))
    """

    name = "keyword"

    def __init__(
        self,
        repository: ContentRepository,
        limit: int = 100,
        candidate_multiplier: int = 4,
    ) -> None:
        """
        Initialize keyword backend.

        Args:
            repository: Content repository with FTS index
            limit: Maximum hits returned
            candidate_multiplier: Over-fetch factor when post-filtering
        """
        self._repository = repository
        self.limit = limit
        self.candidate_multiplier = candidate_multiplier

    async def search(
        self,
        query: str,
        filters: SearchFilters | None = None,
    ) -> list[BackendHit]:
        """Return hits ranked by BM25 relevance."""
        active = filters is not None and not filters.is_empty()

        if active and filters.should_pre_filter():
            rows = await self._repository.search_fts(query, limit=self.limit, filters=filters)
        elif active:
            rows = await self._repository.search_fts(
                query, limit=self.limit * self.candidate_multiplier
            )
            rows = [row for row in rows if filters.matches(row)][: self.limit]
        else:
            rows = await self._repository.search_fts(query, limit=self.limit)

        return [BackendHit(content_id=row["id"], score=row["score"]) for row in rows]
