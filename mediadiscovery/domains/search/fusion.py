"""
Reciprocal Rank Fusion - Merge ranked lists without comparing raw scores.

Each list contributes ``weight / (k + rank)`` (1-based rank) to every
content id it contains; contributions are summed across lists.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from .models import BackendHit, SearchResult

logger = logging.getLogger(__name__)

__all__ = ["reciprocal_rank_fusion", "rrf_contribution"]


def rrf_contribution(rank: int, k: float = 60.0, weight: float = 1.0) -> float:
    """Score contributed by an item at 1-based ``rank``."""
    return weight / (k + rank)


@dataclass
class _Accumulator:
    score: float = 0.0
    vector_similarity: float | None = None
    keyword_score: float | None = None
    reasons: list[str] = field(default_factory=list)


def reciprocal_rank_fusion(
    vector_hits: Sequence[BackendHit],
    keyword_hits: Sequence[BackendHit],
    k: float = 60.0,
    vector_weight: float = 1.0,
    keyword_weight: float = 1.0,
) -> list[SearchResult]:
    """
    Fuse vector and keyword rankings.

    Ties in the fused score keep first-seen order: vector list first, then
    keyword-only items in keyword order. A repeated id within one list
    keeps only its first (best) rank.

    Args:
        vector_hits: Vector backend ranking, best first
        keyword_hits: Keyword backend ranking, best first
        k: RRF smoothing constant
        vector_weight: Multiplier for vector contributions
        keyword_weight: Multiplier for keyword contributions

    Returns:
        Fused results sorted by relevance_score descending
    """
    fused: dict[str, _Accumulator] = {}

    for rank, hit in enumerate(_dedupe(vector_hits), 1):
        entry = fused.setdefault(hit.content_id, _Accumulator())
        entry.score += rrf_contribution(rank, k, vector_weight)
        entry.vector_similarity = hit.score
        entry.reasons.append(f"Semantic match (rank {rank}, similarity {hit.score:.3f})")

    for rank, hit in enumerate(_dedupe(keyword_hits), 1):
        entry = fused.setdefault(hit.content_id, _Accumulator())
        entry.score += rrf_contribution(rank, k, keyword_weight)
        entry.keyword_score = hit.score
        entry.reasons.append(f"Keyword match (rank {rank}, score {hit.score:.3f})")

    # sorted() is stable: equal scores keep dict insertion order
    ranked = sorted(fused.items(), key=lambda item: item[1].score, reverse=True)

    return [
        SearchResult(
            content_id=content_id,
            relevance_score=entry.score,
            match_reasons=entry.reasons,
            vector_similarity=entry.vector_similarity,
            keyword_score=entry.keyword_score,
        )
        for content_id, entry in ranked
    ]


def _dedupe(hits: Sequence[BackendHit]) -> list[BackendHit]:
    seen: set[str] = set()
    unique = []
    for hit in hits:
        if hit.content_id in seen:
            logger.debug("Dropping duplicate backend hit: %s", hit.content_id)
            continue
        seen.add(hit.content_id)
        unique.append(hit)
    return unique
