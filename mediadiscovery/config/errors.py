"""
Error Taxonomy - Consistent error codes across the discovery core.

Usage:
    from mediadiscovery.config.errors import ErrorCode, MediaDiscoveryError

    raise MediaDiscoveryError(ErrorCode.SEARCH_INVALID_REQUEST, "page_size out of range")
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Standardized error codes for machine-readable error responses."""

    # Search errors
    SEARCH_INVALID_REQUEST = "SEARCH_INVALID_REQUEST"
    SEARCH_RETRIEVAL_FAILED = "SEARCH_RETRIEVAL_FAILED"

    # Embedding errors
    EMBEDDING_UNAVAILABLE = "EMBEDDING_UNAVAILABLE"

    # Intent errors (absorbed by the fallback parser, never surfaced)
    INTENT_PARSE_FAILED = "INTENT_PARSE_FAILED"

    # LLM/Model errors
    LLM_UNAVAILABLE = "LLM_UNAVAILABLE"
    LLM_INVALID_RESPONSE = "LLM_INVALID_RESPONSE"

    # Storage errors
    STORAGE_CONNECTION_FAILED = "STORAGE_CONNECTION_FAILED"

    # Configuration errors
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"


class MediaDiscoveryError(Exception):
    """Base exception with error code support."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(f"[{code.value}] {message}")

    def to_dict(self) -> dict[str, Any]:
        """Convert to API-friendly dictionary."""
        return {
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
        }


class InvalidRequestError(MediaDiscoveryError):
    """Malformed search request (bad page size, empty query). Never retried."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.SEARCH_INVALID_REQUEST, message, details)


class EmbeddingUnavailableError(MediaDiscoveryError):
    """Embedding API still failing after all retry attempts."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.EMBEDDING_UNAVAILABLE, message, details)


class RetrievalFailedError(MediaDiscoveryError):
    """A retrieval backend failed or timed out."""

    def __init__(
        self,
        backend: str,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.backend = backend
        details = {"backend": backend, **(details or {})}
        super().__init__(ErrorCode.SEARCH_RETRIEVAL_FAILED, message, details)


class IntentParseError(MediaDiscoveryError):
    """Remote intent extraction failed. Internal to the intent parser."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.INTENT_PARSE_FAILED, message, details)


class LLMError(MediaDiscoveryError):
    """LLM/model errors. Unreachable model by default, unusable reply with LLM_INVALID_RESPONSE."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        code: ErrorCode = ErrorCode.LLM_UNAVAILABLE,
    ) -> None:
        super().__init__(code, message, details)


class StorageError(MediaDiscoveryError):
    """Storage/database errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.STORAGE_CONNECTION_FAILED, message, details)


class ConfigurationError(MediaDiscoveryError):
    """Invalid service configuration detected at startup."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.CONFIGURATION_ERROR, message, details)
