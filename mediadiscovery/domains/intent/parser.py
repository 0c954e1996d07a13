"""
Intent Parser - Free text to structured search intent.

Two stages:
- Remote extraction through a language model, validated strictly
- Deterministic keyword/regex fallback that cannot fail
"""

from __future__ import annotations

import json
import logging
import re

import httpx
from pydantic import ValidationError

from mediadiscovery.config import IntentParseError, MediaDiscoveryError

from .contracts import JSONGenerator
from .models import IntentFilters, KeywordTables, ParsedIntent

logger = logging.getLogger(__name__)

__all__ = ["IntentParser", "FALLBACK_CONFIDENCE"]

FALLBACK_CONFIDENCE = 0.5

INTENT_PARSER_SYSTEM_PROMPT = """You are a media search intent parser.
Extract structured information from user queries about movies and TV shows.
Focus on mood, themes, references to other content, and filters.
Return valid JSON matching the specified schema.
Be conservative with confidence scores - only give high scores when intent is very clear."""

INTENT_PROMPT_TEMPLATE = """Analyze this media search query and extract structured information:

Query: "{query}"

Extract:
1. Mood/Vibes: emotional tone (e.g., "dark", "uplifting", "tense")
2. Themes: main subjects (e.g., "heist", "romance", "sci-fi")
3. References: "similar to X" or "like Y" mentions
4. Filters: platform, genre, year constraints
5. Confidence: 0.0-1.0 score for extraction quality

Return JSON:
{{
  "mood": ["mood1", "mood2"],
  "themes": ["theme1", "theme2"],
  "references": ["title1", "title2"],
  "filters": {{
    "genre": ["genre1"],
    "platform": ["platform1"],
    "year_range": {{"min": 2020, "max": 2024}}
  }},
  "fallback_query": "simplified query string",
  "confidence": 0.85
}}"""

REFERENCE_PATTERNS = (
    re.compile(r"\blike\s+([A-Z][a-zA-Z0-9\s]+)"),
    re.compile(r"\bsimilar to\s+([A-Z][a-zA-Z0-9\s]+)"),
)

_TOKEN_STRIP = ".,!?;:\"'()[]{}"


class IntentParser:
    """
    Query intent parser with deterministic fallback.

    Example:
        >>> parser = IntentParser()  # no LLM: fallback only
        >>> intent = await parser.parse("netflix action movies")
        >>> intent.filters.platform
        ['netflix']
    """

    def __init__(
        self,
        llm: JSONGenerator | None = None,
        keyword_tables: KeywordTables | None = None,
    ) -> None:
        """
        Initialize parser.

        Args:
            llm: Language model for remote extraction. Fallback only if None.
            keyword_tables: Genre/platform tables for the fallback parser
        """
        self._llm = llm
        self.keyword_tables = keyword_tables or KeywordTables()

    async def parse(self, query: str) -> ParsedIntent:
        """Parse query into a structured intent. Never raises."""
        if self._llm is None:
            return self.fallback_parse(query)

        try:
            return await self.parse_with_llm(query)
        except (MediaDiscoveryError, httpx.HTTPError) as e:
            logger.warning("LLM intent parsing failed, using fallback: %s", e)
        except Exception as e:
            logger.warning("Unexpected intent parsing failure, using fallback: %r", e)

        return self.fallback_parse(query)

    async def parse_with_llm(self, query: str) -> ParsedIntent:
        """
        Remote extraction only.

        Raises:
            IntentParseError: Malformed JSON or schema/confidence violation
            LLMError: Model call failed
        """
        if self._llm is None:
            raise IntentParseError("No language model configured")

        prompt = self.build_prompt(query)
        try:
            data = await self._llm.generate_json(prompt, INTENT_PARSER_SYSTEM_PROMPT)
        except json.JSONDecodeError as e:
            raise IntentParseError("Model returned invalid JSON", {"error": str(e)}) from e

        try:
            intent = ParsedIntent.model_validate(data)
        except ValidationError as e:
            raise IntentParseError(
                "Model response does not match intent schema",
                {"errors": [err["msg"] for err in e.errors()]},
            ) from e

        logger.debug(
            "LLM intent: confidence=%.2f, references=%s", intent.confidence, intent.references
        )
        return intent

    @staticmethod
    def build_prompt(query: str) -> str:
        """Build the extraction prompt for query."""
        return INTENT_PROMPT_TEMPLATE.format(query=query)

    def fallback_parse(self, query: str) -> ParsedIntent:
        """Keyword/regex parsing. Pure and total."""
        tokens = [t.strip(_TOKEN_STRIP) for t in query.lower().split()]

        return ParsedIntent(
            references=self.extract_references(query),
            filters=IntentFilters(
                genre=_lookup(tokens, self.keyword_tables.genres),
                platform=_lookup(tokens, self.keyword_tables.platforms),
            ),
            fallback_query=query,
            confidence=FALLBACK_CONFIDENCE,
        )

    @staticmethod
    def extract_references(query: str) -> list[str]:
        """Titles named in "like X" / "similar to X" phrases."""
        references: list[str] = []
        for pattern in REFERENCE_PATTERNS:
            match = pattern.search(query)
            if match:
                title = match.group(1).strip()
                if title and title not in references:
                    references.append(title)
        return references


def _lookup(tokens: list[str], table: dict[str, str]) -> list[str]:
    """Map tokens through table, first-seen order, no duplicates."""
    found: list[str] = []
    for token in tokens:
        value = table.get(token)
        if value is not None and value not in found:
            found.append(value)
    return found
