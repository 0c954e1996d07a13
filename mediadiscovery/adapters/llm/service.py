"""
LLM Service - OpenAI-compatible chat-completion client.

Used by the intent parser to turn free text into structured JSON.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import httpx

from mediadiscovery.config import ErrorCode, LLMError

if TYPE_CHECKING:
    from mediadiscovery.config import Settings

logger = logging.getLogger(__name__)

__all__ = ["ChatCompletionClient", "LLMResponse"]


@dataclass
class LLMResponse:
    """Response from LLM generation."""

    text: str
    model: str
    tokens_used: int | None = None


class ChatCompletionClient:
    """
    Chat-completion client (``POST {base_url}/chat/completions``).

    Example:
        >>> llm = ChatCompletionClient(api_key="sk-...")
        >>> data = await llm.generate_json("netflix heist movies", system_instruction="...")
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.openai.com/v1",
        model: str = "gpt-4o-mini",
        temperature: float = 0.3,
        timeout: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize chat-completion client.

        Args:
            api_key: Bearer token for the API
            base_url: API root URL
            model: Model identifier
            temperature: Sampling temperature
            timeout: Request timeout in seconds
            http_client: Pre-built HTTP client (mainly for tests)
        """
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.temperature = temperature
        self.timeout = timeout
        self._client = http_client

    @classmethod
    def from_settings(cls, settings: Settings) -> ChatCompletionClient:
        """Build a client from application settings."""
        return cls(
            api_key=settings.openai_api_key,
            base_url=settings.openai_base_url,
            model=settings.intent_model,
            temperature=settings.intent_temperature,
            timeout=settings.intent_timeout_seconds,
        )

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
            )
        return self._client

    async def generate(
        self,
        prompt: str,
        system_instruction: str | None = None,
        json_mode: bool = False,
    ) -> LLMResponse:
        """
        Generate a chat completion.

        Args:
            prompt: User message
            system_instruction: System message
            json_mode: Ask the model for a JSON object

        Returns:
            LLMResponse with the assistant message text

        Raises:
            LLMError: Non-2xx response or unexpected body shape
        """
        client = await self._get_client()

        messages = []
        if system_instruction:
            messages.append({"role": "system", "content": system_instruction})
        messages.append({"role": "user", "content": prompt})

        body: dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature,
        }
        if json_mode:
            body["response_format"] = {"type": "json_object"}

        response = await client.post(
            "/chat/completions",
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
            json=body,
        )

        if response.status_code == 429:
            raise LLMError("LLM quota exceeded", {"code": "QUOTA_EXCEEDED"})

        if not response.is_success:
            logger.error("LLM error: %s %s", response.status_code, response.text[:200])
            raise LLMError(f"LLM API error: {response.status_code}")

        try:
            data = response.json()
            text = data["choices"][0]["message"]["content"]
        except (json.JSONDecodeError, KeyError, IndexError, TypeError) as e:
            raise LLMError(
                "Invalid chat-completion response", code=ErrorCode.LLM_INVALID_RESPONSE
            ) from e

        if not isinstance(text, str):
            raise LLMError(
                "Chat-completion content is not text", code=ErrorCode.LLM_INVALID_RESPONSE
            )

        usage = data.get("usage") or {}
        return LLMResponse(
            text=text,
            model=data.get("model", self.model),
            tokens_used=usage.get("total_tokens"),
        )

    async def generate_json(
        self,
        prompt: str,
        system_instruction: str | None = None,
    ) -> dict[str, Any]:
        """
        Generate a JSON object response.

        Raises:
            LLMError: API failure
            json.JSONDecodeError: Response is not JSON
        """
        response = await self.generate(prompt, system_instruction, json_mode=True)

        try:
            result = json.loads(response.text)
        except json.JSONDecodeError:
            # Try to extract JSON from response
            text = response.text
            start = text.find("{")
            end = text.rfind("}") + 1
            if start >= 0 and end > start:
                result = json.loads(text[start:end])
            else:
                raise

        if not isinstance(result, dict):
            raise LLMError(
                "Expected a JSON object",
                {"type": type(result).__name__},
                code=ErrorCode.LLM_INVALID_RESPONSE,
            )
        return result

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
