"""
Intent Contracts - Interfaces for intent domain.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from .models import ParsedIntent


@runtime_checkable
class JSONGenerator(Protocol):
    """Contract for the language model used by remote intent extraction."""

    async def generate_json(
        self,
        prompt: str,
        system_instruction: str | None = None,
    ) -> dict[str, Any]:
        """Return the model's answer as a JSON object."""
        ...


@runtime_checkable
class QueryIntentParser(Protocol):
    """Contract for intent parsers. Must never raise."""

    async def parse(self, query: str) -> ParsedIntent:
        """Parse a free-text query into a structured intent."""
        ...
