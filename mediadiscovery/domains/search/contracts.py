"""
Search Contracts - Interfaces for search domain.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from .filters import SearchFilters
from .models import BackendHit, ContentSummary


@runtime_checkable
class RetrievalBackend(Protocol):
    """Contract for vector and keyword retrieval backends."""

    name: str

    async def search(
        self,
        query: str,
        filters: SearchFilters | None = None,
    ) -> list[BackendHit]:
        """Return a finite ranked list, best first, freshly computed."""
        ...


@runtime_checkable
class EmbeddingProvider(Protocol):
    """Contract for turning text into a vector."""

    @property
    def dimension(self) -> int:
        """Vector dimension."""
        ...

    async def generate(self, text: str) -> list[float]:
        """Embed text."""
        ...


@runtime_checkable
class ContentStore(Protocol):
    """Contract for catalog lookups."""

    async def get_content(self, content_id: str) -> ContentSummary | None:
        """Get content by ID."""
        ...
