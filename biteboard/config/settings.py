"""
Application Settings.

Centralized configuration using Pydantic Settings with environment variable loading.
External service credentials are optional so the API can boot in development:
- without Supabase credentials the analysis cache falls back to memory
- without Google Places / Anthropic keys the related endpoints report unavailable

Production Mode:
    When app_env="production", additional validations apply:
    - debug must be False
    - cors_allowed_origins cannot be ["*"]
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Supabase (Analysis Cache)
    # -------------------------------------------------------------------------
    supabase_url: str | None = Field(default=None, description="Supabase project URL")
    supabase_key: SecretStr | None = Field(
        default=None, description="Supabase anon or service key"
    )
    analysis_cache_table: str = Field(
        default="cafe_ai_cache",
        description="Table holding cached dish analyses keyed by place_id",
    )
    analysis_cache_ttl_days: int = Field(
        default=30,
        ge=0,
        description="Age after which a cached analysis is treated as a miss (0 = never expire)",
    )
    cache_lookup_concurrency: int = Field(
        default=20,
        ge=1,
        le=100,
        description="Maximum concurrent cache lookups per analyze request",
    )

    # -------------------------------------------------------------------------
    # Google (Places API)
    # -------------------------------------------------------------------------
    google_places_api_key: SecretStr | None = Field(
        default=None, description="Google Places API key"
    )
    review_fetch_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Timeout for a single place review fetch",
    )

    # -------------------------------------------------------------------------
    # Cafe search
    # -------------------------------------------------------------------------
    search_text_query: str = Field(default="cafe", description="Text query used for discovery")
    search_radius_meters: float = Field(
        default=5000.0, gt=0, description="Location bias radius in meters"
    )
    search_min_rating: float = Field(
        default=4.0, ge=0, le=5, description="Minimum rating for returned cafes"
    )
    search_max_results: int = Field(
        default=20, ge=1, le=20, description="Results per page (API max is 20)"
    )

    # -------------------------------------------------------------------------
    # Anthropic (Claude LLM)
    # -------------------------------------------------------------------------
    anthropic_api_key: SecretStr | None = Field(
        default=None, description="Anthropic API key for Claude"
    )
    analysis_model: str = Field(
        default="claude-sonnet-4-20250514",
        description="Model used for batch dish analysis",
    )
    analysis_max_tokens: int = Field(
        default=4096, ge=256, description="Response token budget for one batch"
    )
    analysis_timeout_seconds: float = Field(
        default=30.0, gt=0, description="Timeout for the batch generative call"
    )

    # -------------------------------------------------------------------------
    # Application Settings
    # -------------------------------------------------------------------------
    app_env: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Application environment",
    )
    debug: bool = Field(
        default=True,
        description="Enable debug mode",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    api_host: str = Field(default="0.0.0.0", description="Bind address for the API server")
    api_port: int = Field(default=8000, ge=1, le=65535, description="Port for the API server")

    # -------------------------------------------------------------------------
    # CORS Settings
    # -------------------------------------------------------------------------
    cors_allowed_origins: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:8000"],
        description="Allowed CORS origins. Use ['*'] for development only.",
    )
    cors_allow_credentials: bool = Field(
        default=True,
        description="Allow credentials in CORS requests",
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.app_env == "development"

    @property
    def supabase_configured(self) -> bool:
        """Whether a persistent analysis cache can be used."""
        return bool(self.supabase_url and self.supabase_key)

    @model_validator(mode="after")
    def validate_production_settings(self) -> "Settings":
        """Validate that production settings are secure."""
        if self.app_env == "production":
            errors = []

            if self.debug:
                errors.append("debug must be False in production")

            if "*" in self.cors_allowed_origins:
                errors.append("cors_allowed_origins cannot contain '*' in production")

            if errors:
                raise ValueError(
                    f"Production configuration errors: {'; '.join(errors)}"
                )

        return self


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload settings if needed.
    """
    return Settings()
