"""
Settings - Application configuration using Pydantic Settings.

Loads from environment variables (prefix ``MEDIADISCOVERY_``) and .env files.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationError

if TYPE_CHECKING:
    from mediadiscovery.domains.search.models import SearchConfig


class Settings(BaseSettings):
    """Application settings."""

    # OpenAI-compatible API (embeddings + chat completions)
    openai_api_key: str = ""
    openai_base_url: str = "https://api.openai.com/v1"

    # Embeddings
    embedding_model: str = "text-embedding-3-small"
    embedding_dimension: int = 768
    embedding_timeout_seconds: float = 5.0
    embedding_max_attempts: int = 3
    embedding_initial_backoff_ms: int = 100
    embedding_cache_max_size: int | None = 10_000
    embedding_cache_ttl_seconds: float | None = None

    # Intent parsing
    intent_model: str = "gpt-4o-mini"
    intent_temperature: float = 0.3
    intent_timeout_seconds: float = 10.0

    # Fusion / orchestration
    rrf_k: float = 60.0
    rrf_vector_weight: float = 1.0
    rrf_keyword_weight: float = 1.0
    backend_timeout_seconds: float = 10.0
    allow_partial_results: bool = False

    # Backends
    search_limit: int = 100
    candidate_multiplier: int = 4
    db_path: Path = Path("data/mediadiscovery.db")

    model_config = SettingsConfigDict(
        env_prefix="MEDIADISCOVERY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_parse_none_str="none",
        extra="ignore",
    )

    def search_config(self) -> SearchConfig:
        """
        Build the orchestrator configuration.

        Raises:
            ConfigurationError: Non-positive RRF weights or k
        """
        from mediadiscovery.domains.search.models import SearchConfig

        try:
            return SearchConfig(
                rrf_k=self.rrf_k,
                vector_weight=self.rrf_vector_weight,
                keyword_weight=self.rrf_keyword_weight,
                backend_timeout_seconds=self.backend_timeout_seconds,
                allow_partial_results=self.allow_partial_results,
            )
        except ValidationError as e:
            raise ConfigurationError(
                "Invalid search configuration",
                {"errors": [err["msg"] for err in e.errors()]},
            ) from e


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
