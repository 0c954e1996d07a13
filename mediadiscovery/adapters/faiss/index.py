"""
FAISS Index - Vector similarity search over the content catalog.

Features:
- Async-compatible operations
- Inner-product search on L2-normalized vectors (cosine similarity)
- Per-content metadata stored alongside vectors for filtering
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from typing import Any

import faiss
import numpy as np

logger = logging.getLogger(__name__)

__all__ = ["FAISSIndex"]


class FAISSIndex:
    """
    FAISS vector index keyed by content id.

    Example:
        >>> index = FAISSIndex(dimension=768)
        >>> await index.add_vectors(["tt0113277"], embeddings, [{"genres": ["crime"]}])
        >>> results = await index.search(query_embedding, k=10)
    """

    def __init__(
        self,
        dimension: int = 768,
        index_type: str = "Flat",
    ) -> None:
        """
        Initialize FAISS index.

        Args:
            dimension: Vector dimension (must match the embedding client)
            index_type: Index type ("Flat" for exact search, "HNSW")
        """
        self.dimension = dimension
        self.index_type = index_type

        self._index: faiss.Index | None = None
        self._content_ids: list[str] = []
        self._metadata: list[dict[str, Any]] = []

    def _create_index(self) -> faiss.Index:
        """Create FAISS index based on type."""
        if self.index_type == "HNSW":
            return faiss.IndexHNSWFlat(self.dimension, 32, faiss.METRIC_INNER_PRODUCT)
        return faiss.IndexFlatIP(self.dimension)

    async def initialize(self) -> None:
        """Initialize empty index."""
        self._index = self._create_index()
        self._content_ids = []
        self._metadata = []
        logger.info(
            "FAISS index initialized: dimension=%d, type=%s",
            self.dimension,
            self.index_type,
        )

    async def add_vectors(
        self,
        content_ids: Sequence[str],
        vectors: np.ndarray | Sequence[Sequence[float]],
        metadata: Sequence[dict[str, Any]] | None = None,
    ) -> None:
        """
        Add vectors with metadata.

        Args:
            content_ids: Content identifier per vector
            vectors: Array of shape (n, dimension)
            metadata: Filterable attributes per vector (same length)
        """
        if self._index is None:
            await self.initialize()
        assert self._index is not None  # Guaranteed by initialize()

        arr = np.ascontiguousarray(np.asarray(vectors, dtype="float32"))
        if arr.ndim != 2 or arr.shape[1] != self.dimension:
            raise ValueError(
                f"Expected vectors of shape (n, {self.dimension}), got {arr.shape}"
            )

        metadata = list(metadata) if metadata is not None else [{} for _ in content_ids]
        if not len(content_ids) == len(metadata) == arr.shape[0]:
            raise ValueError("content_ids, vectors and metadata must have equal length")

        # Normalize for inner product (cosine similarity)
        faiss.normalize_L2(arr)

        await asyncio.to_thread(self._index.add, arr)
        self._content_ids.extend(content_ids)
        self._metadata.extend(dict(m) for m in metadata)

        logger.debug("Added %d vectors to index", arr.shape[0])

    async def search(
        self,
        query_vector: np.ndarray | Sequence[float],
        k: int = 10,
    ) -> list[dict[str, Any]]:
        """
        Search for similar vectors.

        Args:
            query_vector: Query vector of shape (dimension,) or (1, dimension)
            k: Number of results

        Returns:
            List of dicts with 'content_id', 'score' and 'metadata', best first
        """
        if self._index is None or self._index.ntotal == 0 or k < 1:
            return []

        query = np.asarray(query_vector, dtype="float32")
        if query.ndim == 1:
            query = query.reshape(1, -1)

        query = np.ascontiguousarray(query)
        faiss.normalize_L2(query)

        scores, indices = await asyncio.to_thread(
            self._index.search, query, min(k, self._index.ntotal)
        )

        results = []
        for score, idx in zip(scores[0], indices[0]):
            if 0 <= idx < len(self._content_ids):
                results.append(
                    {
                        "content_id": self._content_ids[idx],
                        "score": float(score),
                        "metadata": self._metadata[idx],
                    }
                )

        return results

    @property
    def size(self) -> int:
        """Get number of vectors in index."""
        return self._index.ntotal if self._index else 0
