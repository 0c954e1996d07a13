"""
Configuration - Application settings and error taxonomy.
"""

from .errors import (
    ConfigurationError,
    EmbeddingUnavailableError,
    ErrorCode,
    IntentParseError,
    InvalidRequestError,
    LLMError,
    MediaDiscoveryError,
    RetrievalFailedError,
    StorageError,
)
from .settings import Settings, get_settings

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    # Errors
    "ErrorCode",
    "MediaDiscoveryError",
    "InvalidRequestError",
    "EmbeddingUnavailableError",
    "RetrievalFailedError",
    "IntentParseError",
    "LLMError",
    "StorageError",
    "ConfigurationError",
]
