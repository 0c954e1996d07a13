"""
Search Filters - User/query constraints and selectivity estimation.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field, model_validator

__all__ = ["SearchFilters", "PRE_FILTER_THRESHOLD"]

# Below this estimated selectivity, filters should be applied before retrieval
PRE_FILTER_THRESHOLD = 0.1

GENRE_SELECTIVITY = 0.3
PLATFORM_SELECTIVITY = 0.4
RATING_SELECTIVITY = 0.5
CATALOG_YEARS = 100.0
# A single-year range still retains one year of the catalog
MIN_YEAR_SPAN = 1


class SearchFilters(BaseModel):
    """
    Immutable filter set.

    Genre and platform lists use OR logic within the list; ranges are
    inclusive. An empty list or a None range means "unset".
    """

    genres: list[str] = Field(default_factory=list)
    platforms: list[str] = Field(default_factory=list)
    year_range: tuple[int, int] | None = None
    rating_range: tuple[float, float] | None = None

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_ranges(self) -> SearchFilters:
        if self.year_range is not None:
            low, high = self.year_range
            if low > high:
                raise ValueError(f"year_range min {low} > max {high}")
        if self.rating_range is not None:
            low, high = self.rating_range
            if low > high:
                raise ValueError(f"rating_range min {low} > max {high}")
            if low < 0.0 or high > 10.0:
                raise ValueError("rating_range bounds must lie in [0.0, 10.0]")
        return self

    def is_empty(self) -> bool:
        """True iff no filter is set."""
        return (
            not self.genres
            and not self.platforms
            and self.year_range is None
            and self.rating_range is None
        )

    def estimate_selectivity(self) -> float:
        """
        Estimated fraction of the catalog retained (lower = more selective).

        Active filters compound multiplicatively, assuming independence.
        The result always lies in (0, 1].
        """
        selectivity = 1.0

        if self.genres:
            selectivity *= GENRE_SELECTIVITY

        if self.platforms:
            selectivity *= PLATFORM_SELECTIVITY

        if self.year_range is not None:
            low, high = self.year_range
            selectivity *= min(max(high - low, MIN_YEAR_SPAN) / CATALOG_YEARS, 1.0)

        if self.rating_range is not None:
            selectivity *= RATING_SELECTIVITY

        return selectivity

    def should_pre_filter(self) -> bool:
        """Advisory: push filters down into retrieval rather than post-filtering."""
        return self.estimate_selectivity() < PRE_FILTER_THRESHOLD

    def matches(self, metadata: Mapping[str, Any]) -> bool:
        """
        Check a content record against the filters.

        Expects keys ``genres``, ``platforms``, ``release_year`` and
        ``average_rating``; a missing value fails any active filter on it.
        """
        if self.genres and not set(self.genres) & set(metadata.get("genres") or ()):
            return False

        if self.platforms and not set(self.platforms) & set(metadata.get("platforms") or ()):
            return False

        if self.year_range is not None:
            year = metadata.get("release_year")
            if year is None or not self.year_range[0] <= year <= self.year_range[1]:
                return False

        if self.rating_range is not None:
            rating = metadata.get("average_rating")
            if rating is None or not self.rating_range[0] <= rating <= self.rating_range[1]:
                return False

        return True

    def to_sql_where_clause(self, alias: str = "c") -> tuple[str, list[Any]]:
        """
        Build a parameterised SQLite WHERE clause.

        Genres/platforms are JSON arrays in the content table.

        Returns:
            (clause, params) - clause is "1=1" when no filter is set
        """
        conditions: list[str] = []
        params: list[Any] = []

        for column, values in (("genres", self.genres), ("platforms", self.platforms)):
            if values:
                placeholders = ", ".join("?" for _ in values)
                conditions.append(
                    f"EXISTS (SELECT 1 FROM json_each({alias}.{column}) "
                    f"WHERE json_each.value IN ({placeholders}))"
                )
                params.extend(values)

        if self.year_range is not None:
            conditions.append(f"{alias}.release_year BETWEEN ? AND ?")
            params.extend(self.year_range)

        if self.rating_range is not None:
            conditions.append(f"{alias}.average_rating BETWEEN ? AND ?")
            params.extend(self.rating_range)

        clause = " AND ".join(conditions) if conditions else "1=1"
        return clause, params
