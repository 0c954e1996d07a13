"""
Intent Domain - Structured interpretation of free-text queries.

This domain handles:
- LLM-based extraction of mood, themes, references and filters
- Strict validation of the model's JSON
- Deterministic keyword/regex fallback
"""

from .contracts import JSONGenerator, QueryIntentParser
from .models import IntentFilters, KeywordTables, ParsedIntent, YearRange
from .parser import FALLBACK_CONFIDENCE, IntentParser

__all__ = [
    # Contracts
    "JSONGenerator",
    "QueryIntentParser",
    # Models
    "IntentFilters",
    "KeywordTables",
    "ParsedIntent",
    "YearRange",
    # Implementations
    "IntentParser",
    "FALLBACK_CONFIDENCE",
]
