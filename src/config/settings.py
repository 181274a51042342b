"""
Centralized settings management using pydantic-settings.

All environment variables and configuration values are defined here.
Use get_settings() to access the singleton settings instance.
"""

import os
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Engine settings loaded from environment variables.

    Nothing is required; every value has a default suitable for local
    development against a Search Service on localhost.

    Optional environment variables:
        - SEARCH_API_BASE_URL: Search Service root (default: http://localhost:5000/api)
        - SEARCH_REQUEST_TIMEOUT_SECONDS: Per-request timeout (default: 10)
        - AUTOCOMPLETE_DEBOUNCE_MS: Autocomplete quiet period (default: 300)
        - HISTORY_MAX_ENTRIES: Local search history bound (default: 10)
        - ENVIRONMENT: Environment name (development, staging, production)
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # Environment
    # ==========================================================================
    environment: str = Field(default="development", description="Environment name")
    debug: bool = Field(default=False, description="Debug mode")

    @property
    def is_development(self) -> bool:
        return self.environment.lower() in ("development", "dev", "local")

    @property
    def is_production(self) -> bool:
        return self.environment.lower() in ("production", "prod")

    # ==========================================================================
    # Logging
    # ==========================================================================
    log_level: str = Field(default="INFO", description="Minimum log level")
    json_logs: bool = Field(default=False, description="Render logs as JSON")

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v):
        if isinstance(v, str):
            return v.strip().upper()
        return v

    # ==========================================================================
    # Search Service
    # ==========================================================================
    search_api_base_url: str = Field(
        default="http://localhost:5000/api",
        description="Base URL of the Search Service"
    )
    search_request_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Timeout for Search Service requests (seconds)"
    )
    search_cache_ttl_seconds: float = Field(
        default=300.0,
        ge=0,
        description="TTL for cached autocomplete/filter/popular responses"
    )
    search_cache_max_entries: int = Field(
        default=100,
        ge=1,
        description="Maximum cached responses before the oldest is evicted"
    )

    @field_validator("search_api_base_url", mode="before")
    @classmethod
    def strip_trailing_slash(cls, v):
        if isinstance(v, str):
            return v.rstrip("/")
        return v

    # ==========================================================================
    # Autocomplete
    # ==========================================================================
    autocomplete_debounce_ms: int = Field(
        default=300,
        ge=0,
        description="Quiet period before an autocomplete request is issued"
    )
    autocomplete_min_chars: int = Field(
        default=2,
        ge=1,
        description="Minimum trimmed query length that triggers autocomplete"
    )
    autocomplete_limit: int = Field(default=10, ge=1, le=20, description="Max suggestions")

    @property
    def autocomplete_debounce_seconds(self) -> float:
        return self.autocomplete_debounce_ms / 1000.0

    # ==========================================================================
    # History / Popular Searches
    # ==========================================================================
    history_max_entries: int = Field(default=10, ge=1, description="Local history bound")
    popular_searches_limit: int = Field(default=5, ge=1, description="Default popular lookup size")

    # ==========================================================================
    # Paging & Facets
    # ==========================================================================
    default_page_limit: int = Field(default=20, ge=1, description="Default page size")
    max_page_limit: int = Field(default=50, ge=1, description="Upper bound on page size")
    max_visible_pages: int = Field(default=5, ge=1, description="Paginator window size")
    facet_spec_cap: int = Field(
        default=5,
        ge=1,
        description="Spec names kept per category when no allow-list exists"
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get the engine settings singleton.

    Uses lru_cache to ensure only one instance is created.
    Settings are loaded from environment variables and .env file.

    Returns:
        Settings: The settings instance
    """
    # Try to find .env file in project root
    env_file = Path(__file__).parent.parent.parent / ".env"
    if env_file.exists():
        os.environ.setdefault("ENV_FILE", str(env_file))

    return Settings(_env_file=env_file if env_file.exists() else None)


def get_settings_for_testing(**overrides) -> Settings:
    """
    Create a settings instance for testing with optional overrides.

    This bypasses the cache to allow different settings in tests.

    Args:
        **overrides: Setting values to override

    Returns:
        Settings: A new settings instance with overrides applied
    """
    test_defaults = {
        "environment": "testing",
        "debug": True,
        "search_api_base_url": "http://search.test/api",
        "autocomplete_debounce_ms": 10,
    }
    test_defaults.update(overrides)

    return Settings(_env_file=None, **test_defaults)
