"""
Hybrid Search Service - Combines vector and keyword retrieval with RRF.

Features:
- Intent parsing with deterministic fallback
- Concurrent vector + keyword retrieval with per-backend timeouts
- Weighted Reciprocal Rank Fusion (RRF)
- Pagination and provenance for every result
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING

from mediadiscovery.config import InvalidRequestError, RetrievalFailedError
from mediadiscovery.domains.intent import QueryIntentParser

from .contracts import ContentStore, RetrievalBackend
from .filters import SearchFilters
from .fusion import reciprocal_rank_fusion
from .models import (
    MAX_PAGE_SIZE,
    MAX_QUERY_LENGTH,
    BackendHit,
    ContentSummary,
    SearchConfig,
    SearchRequest,
    SearchResponse,
    SearchResult,
)

if TYPE_CHECKING:
    from mediadiscovery.config import Settings

logger = logging.getLogger(__name__)

__all__ = ["HybridSearchService", "validate_search_request"]


def validate_search_request(request: SearchRequest) -> str:
    """
    Check request bounds before any backend is touched.

    Returns:
        The trimmed query

    Raises:
        InvalidRequestError: Empty/oversized query, bad page or page size
    """
    query = request.query.strip()
    if not query:
        raise InvalidRequestError("Query must not be empty")
    if len(query) > MAX_QUERY_LENGTH:
        raise InvalidRequestError(
            f"Query exceeds {MAX_QUERY_LENGTH} characters",
            {"length": len(query)},
        )
    if not 1 <= request.page_size <= MAX_PAGE_SIZE:
        raise InvalidRequestError(
            f"page_size must be between 1 and {MAX_PAGE_SIZE}",
            {"page_size": request.page_size},
        )
    if request.page < 1:
        raise InvalidRequestError("page must be >= 1", {"page": request.page})
    return query


class HybridSearchService:
    """
    Hybrid search orchestrator.

    Example:
        >>> service = HybridSearchService(intent_parser, vector_backend, keyword_backend)
        >>> response = await service.search(SearchRequest(query="heist movies like Heat"))
    """

    def __init__(
        self,
        intent_parser: QueryIntentParser,
        vector_search: RetrievalBackend,
        keyword_search: RetrievalBackend,
        config: SearchConfig | None = None,
        content_store: ContentStore | None = None,
    ) -> None:
        """
        Initialize hybrid search service.

        Args:
            intent_parser: Query intent parser (never raises)
            vector_search: Dense retrieval backend
            keyword_search: Lexical retrieval backend
            config: Fusion and timeout settings
            content_store: Catalog used by get_content_by_id
        """
        self._intent_parser = intent_parser
        self._vector = vector_search
        self._keyword = keyword_search
        self.config = config or SearchConfig()
        self._content_store = content_store

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        intent_parser: QueryIntentParser,
        vector_search: RetrievalBackend,
        keyword_search: RetrievalBackend,
        content_store: ContentStore | None = None,
    ) -> HybridSearchService:
        """Build a service; invalid fusion settings raise ConfigurationError."""
        return cls(
            intent_parser,
            vector_search,
            keyword_search,
            config=settings.search_config(),
            content_store=content_store,
        )

    async def search(self, request: SearchRequest) -> SearchResponse:
        """
        Execute hybrid search.

        Args:
            request: Search request

        Returns:
            One page of fused results

        Raises:
            InvalidRequestError: Request failed validation
            RetrievalFailedError: A backend failed (fail-fast policy)
        """
        start_time = time.perf_counter()
        query = validate_search_request(request)

        # Phase 1: Parse intent from the caller's text as given
        intent = await self._intent_parser.parse(request.query)

        # Phase 2: Run both retrieval strategies concurrently
        vector_hits, keyword_hits = await self._retrieve_all(query, request.filters)

        # Phase 3: Reciprocal Rank Fusion
        fused = self.fuse(vector_hits, keyword_hits)

        # Phase 4: Paginate
        total_count = len(fused)
        start = (request.page - 1) * request.page_size
        end = min(start + request.page_size, total_count)
        page_results = fused[start:end]

        search_time_ms = int((time.perf_counter() - start_time) * 1000)

        logger.info(
            "Hybrid search: query='%s' -> %d results (vector=%d, keyword=%d, %dms)",
            query[:50],
            total_count,
            len(vector_hits),
            len(keyword_hits),
            search_time_ms,
        )

        return SearchResponse(
            results=page_results,
            total_count=total_count,
            page=request.page,
            page_size=request.page_size,
            query_parsed=intent,
            search_time_ms=search_time_ms,
        )

    async def vector_search(
        self,
        query: str,
        filters: SearchFilters | None = None,
    ) -> list[BackendHit]:
        """Vector-only retrieval, with the same error wrapping as search()."""
        return await self._retrieve(self._vector, query, filters)

    async def keyword_search(
        self,
        query: str,
        filters: SearchFilters | None = None,
    ) -> list[BackendHit]:
        """Keyword-only retrieval, with the same error wrapping as search()."""
        return await self._retrieve(self._keyword, query, filters)

    async def get_content_by_id(self, content_id: str) -> ContentSummary | None:
        """Look up catalog details for a result."""
        if self._content_store is None:
            return None
        return await self._content_store.get_content(content_id)

    def fuse(
        self,
        vector_hits: list[BackendHit],
        keyword_hits: list[BackendHit],
    ) -> list[SearchResult]:
        """RRF with this service's k and weights."""
        return reciprocal_rank_fusion(
            vector_hits,
            keyword_hits,
            k=self.config.rrf_k,
            vector_weight=self.config.vector_weight,
            keyword_weight=self.config.keyword_weight,
        )

    async def _retrieve_all(
        self,
        query: str,
        filters: SearchFilters | None,
    ) -> tuple[list[BackendHit], list[BackendHit]]:
        """
        Fan out to both backends and join.

        Fail-fast: the first backend failure cancels the other backend and
        is raised immediately.
        """
        if self.config.allow_partial_results:
            return await self._retrieve_partial(query, filters)

        vector_task = asyncio.create_task(self._retrieve(self._vector, query, filters))
        keyword_task = asyncio.create_task(self._retrieve(self._keyword, query, filters))
        tasks = (vector_task, keyword_task)

        try:
            await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
        finally:
            # Also runs when the caller cancels search()
            pending = [task for task in tasks if not task.done()]
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.wait(pending)

        failures = [
            task.exception() for task in tasks if not task.cancelled() and task.exception()
        ]
        if failures:
            if pending:
                logger.info(
                    "Cancelled %d in-flight backend search(es) after failure",
                    len(pending),
                )
            raise failures[0]

        return vector_task.result(), keyword_task.result()

    async def _retrieve_partial(
        self,
        query: str,
        filters: SearchFilters | None,
    ) -> tuple[list[BackendHit], list[BackendHit]]:
        """Run both backends to completion, tolerating one failure."""
        vector_result, keyword_result = await asyncio.gather(
            self._retrieve(self._vector, query, filters),
            self._retrieve(self._keyword, query, filters),
            return_exceptions=True,
        )

        failures = [
            r for r in (vector_result, keyword_result) if isinstance(r, BaseException)
        ]
        for failure in failures:
            if not isinstance(failure, RetrievalFailedError):
                raise failure

        if len(failures) == 2:
            raise failures[0]

        for failure in failures:
            logger.warning("Returning partial results without %s: %s", failure.backend, failure)

        vector_hits = [] if isinstance(vector_result, BaseException) else vector_result
        keyword_hits = [] if isinstance(keyword_result, BaseException) else keyword_result
        return vector_hits, keyword_hits

    async def _retrieve(
        self,
        backend: RetrievalBackend,
        query: str,
        filters: SearchFilters | None,
    ) -> list[BackendHit]:
        """Call one backend under its timeout, wrapping any failure."""
        try:
            return await asyncio.wait_for(
                backend.search(query, filters),
                timeout=self.config.backend_timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            logger.error("%s search timed out", backend.name)
            raise RetrievalFailedError(
                backend.name,
                f"{backend.name} search timed out",
                {"timeout_seconds": self.config.backend_timeout_seconds},
            ) from e
        except Exception as e:
            logger.error("%s search failed: %s", backend.name, e)
            raise RetrievalFailedError(
                backend.name,
                f"{backend.name} search failed: {e}",
                {"cause": type(e).__name__},
            ) from e
