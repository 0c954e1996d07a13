"""
Tests for intent models and the intent parser.
"""

from __future__ import annotations

import json
from unittest.mock import AsyncMock

import httpx
import pytest

from mediadiscovery.config import LLMError

from .models import IntentFilters, KeywordTables, ParsedIntent, YearRange
from .parser import FALLBACK_CONFIDENCE, IntentParser


def _llm_payload(**overrides) -> dict:
    payload = {
        "mood": ["dark", "tense"],
        "themes": ["heist"],
        "references": ["Heat"],
        "filters": {
            "genre": ["thriller"],
            "platform": ["netflix"],
            "year_range": {"min": 1990, "max": 1999},
        },
        "fallback_query": "dark heist thriller",
        "confidence": 0.85,
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def mock_llm() -> AsyncMock:
    """Mock language model returning a well-formed intent."""
    mock = AsyncMock()
    mock.generate_json.return_value = _llm_payload()
    return mock


# --- Model Tests ---


def test_parsed_intent_rejects_out_of_range_confidence() -> None:
    """Test confidence must lie in [0, 1]."""
    with pytest.raises(ValueError):
        ParsedIntent(fallback_query="x", confidence=1.5)
    with pytest.raises(ValueError):
        ParsedIntent(fallback_query="x", confidence=-0.1)

    assert ParsedIntent(fallback_query="x", confidence=0.0).confidence == 0.0
    assert ParsedIntent(fallback_query="x", confidence=1.0).confidence == 1.0


def test_year_range_order_validation() -> None:
    """Test min must not exceed max."""
    assert YearRange(min=2020, max=2020).max == 2020
    with pytest.raises(ValueError):
        YearRange(min=2024, max=2020)


def test_intent_filters_accepts_year_range_pair() -> None:
    """Test [min, max] arrays are accepted as a year range."""
    filters = IntentFilters.model_validate({"year_range": [2000, 2010]})
    assert filters.year_range == YearRange(min=2000, max=2010)


# --- Fallback Tests ---


@pytest.fixture
def parser() -> IntentParser:
    """Fallback-only parser."""
    return IntentParser()


async def test_fallback_netflix_action_movies(parser: IntentParser) -> None:
    """Test the canonical fallback example."""
    intent = await parser.parse("netflix action movies")

    assert intent.filters.platform == ["netflix"]
    assert intent.filters.genre == ["action"]
    assert intent.confidence == FALLBACK_CONFIDENCE == 0.5
    assert intent.fallback_query == "netflix action movies"
    assert intent.mood == []
    assert intent.themes == []
    assert intent.filters.year_range is None


def test_fallback_parse_genres(parser: IntentParser) -> None:
    """Test genre keywords map to canonical names in query order."""
    intent = parser.fallback_parse("Sci-Fi comedy and action COMEDY")
    assert intent.filters.genre == ["science_fiction", "comedy", "action"]


def test_fallback_parse_platforms(parser: IntentParser) -> None:
    """Test platform keywords map to canonical names."""
    intent = parser.fallback_parse("something on Disney or prime, maybe hbo!")
    assert intent.filters.platform == ["disney_plus", "prime_video", "hbo_max"]


def test_extract_references_like(parser: IntentParser) -> None:
    """Test "like X" references keep original casing."""
    assert parser.extract_references("movies like The Matrix") == ["The Matrix"]


def test_extract_references_similar_to(parser: IntentParser) -> None:
    """Test "similar to X" references."""
    assert parser.extract_references("films similar to Inception") == ["Inception"]


def test_extract_references_requires_capitalized_title(parser: IntentParser) -> None:
    """Test lowercase phrases are not treated as titles."""
    assert parser.extract_references("i like dark movies") == []


def test_fallback_with_custom_tables() -> None:
    """Test keyword tables are configuration, not hardcoded."""
    parser = IntentParser(
        keyword_tables=KeywordTables(genres={"anime": "animation"}, platforms={"crunchyroll": "crunchyroll"})
    )
    intent = parser.fallback_parse("anime on crunchyroll")
    assert intent.filters.genre == ["animation"]
    assert intent.filters.platform == ["crunchyroll"]


def test_fallback_is_total_for_odd_input(parser: IntentParser) -> None:
    """Test the fallback never raises on unusual text."""
    for query in ["", "   ", "!!!", "like", "similar to", "été \U0001f3ac"]:
        intent = parser.fallback_parse(query)
        assert intent.fallback_query == query
        assert intent.confidence == FALLBACK_CONFIDENCE


# --- LLM Path Tests ---


async def test_parse_uses_llm_result(mock_llm: AsyncMock) -> None:
    """Test a valid model answer is returned as-is."""
    parser = IntentParser(llm=mock_llm)
    intent = await parser.parse("tense 90s heist movies like Heat on netflix")

    assert intent.confidence == 0.85
    assert intent.mood == ["dark", "tense"]
    assert intent.references == ["Heat"]
    assert intent.filters.year_range == YearRange(min=1990, max=1999)

    prompt, system = mock_llm.generate_json.call_args.args
    assert 'Query: "tense 90s heist movies like Heat on netflix"' in prompt
    assert "media search intent parser" in system


async def test_parse_falls_back_on_invalid_confidence(mock_llm: AsyncMock) -> None:
    """Test out-of-range confidence invalidates the whole intent."""
    mock_llm.generate_json.return_value = _llm_payload(confidence=1.7)
    parser = IntentParser(llm=mock_llm)

    intent = await parser.parse("netflix action movies")

    assert intent.confidence == 0.5
    assert intent.mood == []
    assert intent.filters.platform == ["netflix"]


async def test_parse_falls_back_on_schema_mismatch(mock_llm: AsyncMock) -> None:
    """Test a missing required field triggers the fallback."""
    payload = _llm_payload()
    del payload["fallback_query"]
    mock_llm.generate_json.return_value = payload
    parser = IntentParser(llm=mock_llm)

    intent = await parser.parse("horror")
    assert intent.filters.genre == ["horror"]
    assert intent.confidence == 0.5


@pytest.mark.parametrize(
    "error",
    [
        LLMError("LLM API error: 500"),
        httpx.ConnectError("refused"),
        json.JSONDecodeError("Expecting value", "nope", 0),
        RuntimeError("unexpected"),
    ],
)
async def test_parse_falls_back_on_llm_failure(mock_llm: AsyncMock, error: Exception) -> None:
    """Test network, API and decode failures never reach the caller."""
    mock_llm.generate_json.side_effect = error
    parser = IntentParser(llm=mock_llm)

    intent = await parser.parse("hulu drama")
    assert intent.filters.platform == ["hulu"]
    assert intent.filters.genre == ["drama"]
    assert intent.confidence == 0.5


def test_build_prompt_embeds_query() -> None:
    """Test the prompt template carries the query and JSON schema."""
    prompt = IntentParser.build_prompt("cozy mysteries")
    assert 'Query: "cozy mysteries"' in prompt
    assert '"fallback_query"' in prompt
    assert '"year_range": {"min": 2020, "max": 2024}' in prompt
