"""
Intent Models - Structured interpretation of a free-text query.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator


class YearRange(BaseModel):
    """Inclusive release-year range."""

    min: int
    max: int

    @model_validator(mode="after")
    def _check_order(self) -> YearRange:
        if self.min > self.max:
            raise ValueError(f"year_range min {self.min} > max {self.max}")
        return self


class IntentFilters(BaseModel):
    """Coarse filters extracted from the query."""

    genre: list[str] = Field(default_factory=list)
    platform: list[str] = Field(default_factory=list)
    year_range: YearRange | None = None

    @field_validator("year_range", mode="before")
    @classmethod
    def _coerce_year_range(cls, value: Any) -> Any:
        # Models sometimes answer with [min, max] instead of {"min", "max"}
        if isinstance(value, (list, tuple)) and len(value) == 2:
            return {"min": value[0], "max": value[1]}
        return value


class ParsedIntent(BaseModel):
    """Parsed search intent. Created per request, never persisted."""

    mood: list[str] = Field(default_factory=list)
    themes: list[str] = Field(default_factory=list)
    references: list[str] = Field(default_factory=list)
    filters: IntentFilters = Field(default_factory=IntentFilters)
    fallback_query: str
    confidence: float = Field(..., ge=0.0, le=1.0)


class KeywordTables(BaseModel):
    """Token -> canonical value tables used by the fallback parser."""

    genres: dict[str, str] = Field(
        default_factory=lambda: {
            "action": "action",
            "comedy": "comedy",
            "drama": "drama",
            "horror": "horror",
            "thriller": "thriller",
            "romance": "romance",
            "sci-fi": "science_fiction",
            "scifi": "science_fiction",
            "fantasy": "fantasy",
            "documentary": "documentary",
        }
    )
    platforms: dict[str, str] = Field(
        default_factory=lambda: {
            "netflix": "netflix",
            "prime": "prime_video",
            "hulu": "hulu",
            "disney": "disney_plus",
            "hbo": "hbo_max",
        }
    )

    model_config = {"frozen": True}
