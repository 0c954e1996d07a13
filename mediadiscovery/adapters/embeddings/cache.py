"""
Embedding Cache - Process-local query-text -> vector cache.

Shared by every concurrent search in the process. Entries are immutable
tuples replaced as a whole, so a reader never sees a half-written vector.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from collections.abc import Callable, Sequence
from typing import Any

logger = logging.getLogger(__name__)

__all__ = ["EmbeddingCache"]


class EmbeddingCache:
    """
    Read-through cache for embedding vectors.

    Features:
    - Exact-text keys (no case folding)
    - Optional LRU bound and TTL
    - Hit/miss tracking

    Example:
        >>> cache = EmbeddingCache(dimension=3)
        >>> cache.put("dark heist", [0.0, 0.6, 0.8])
        >>> cache.get("dark heist")
        [0.0, 0.6, 0.8]
    """

    def __init__(
        self,
        dimension: int,
        max_size: int | None = None,
        ttl_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize cache.

        Args:
            dimension: Required vector length for every entry
            max_size: Maximum number of entries (None = unbounded)
            ttl_seconds: Entry lifetime in seconds (None = never expires)
            clock: Monotonic time source
        """
        if max_size is not None and max_size < 1:
            raise ValueError(f"max_size must be >= 1, got {max_size}")

        self.dimension = dimension
        self._max_size = max_size
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: OrderedDict[str, tuple[tuple[float, ...], float]] = OrderedDict()
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def get(self, text: str) -> list[float] | None:
        """Return a copy of the cached vector, or None."""
        with self._lock:
            entry = self._entries.get(text)
            if entry is None:
                self._misses += 1
                return None

            vector, stored_at = entry
            if self._ttl is not None and self._clock() - stored_at > self._ttl:
                del self._entries[text]
                self._misses += 1
                logger.debug("Embedding cache entry expired: %.50s", text)
                return None

            self._entries.move_to_end(text)
            self._hits += 1

        logger.debug("Embedding cache hit: %.50s", text)
        return list(vector)

    def put(self, text: str, vector: Sequence[float]) -> None:
        """Insert or replace the entry for ``text``."""
        if len(vector) != self.dimension:
            raise ValueError(
                f"Vector dimension {len(vector)} does not match cache dimension {self.dimension}"
            )

        frozen = tuple(float(v) for v in vector)
        with self._lock:
            self._entries[text] = (frozen, self._clock())
            self._entries.move_to_end(text)

            if self._max_size is not None:
                while len(self._entries) > self._max_size:
                    evicted, _ = self._entries.popitem(last=False)
                    logger.debug("Evicted embedding cache entry: %.50s", evicted)

    def clear(self) -> None:
        """Clear all entries."""
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        logger.info("Cleared %d embedding cache entries", count)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, text: object) -> bool:
        with self._lock:
            return text in self._entries

    def stats(self) -> dict[str, Any]:
        """Get cache statistics."""
        with self._lock:
            return {
                "size": len(self._entries),
                "max_size": self._max_size,
                "ttl_seconds": self._ttl,
                "hits": self._hits,
                "misses": self._misses,
            }
