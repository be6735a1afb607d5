"""Typed settings configuration - single source of truth."""

from functools import lru_cache

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database (storage port)
    database_url: str | None = None

    # External generation service (OpenAI-compatible endpoint)
    openrouter_api_key: SecretStr | None = None
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    openrouter_model: str = "anthropic/claude-3.5-sonnet"
    openrouter_app_title: str = "Planora Travel Planner"

    # Sampling and limits for the two external calls
    generation_temperature: float = 0.7
    regeneration_temperature: float = 0.3
    generation_max_tokens: int = 4000
    regeneration_max_tokens: int = 2000
    generation_timeout_s: float = 60.0

    # Scheduling
    travel_buffer_min: int = 30
    min_stay_days: int = 2

    # Local fallback generator
    fallback_rng_seed: int | None = None
    fallback_anchor_lat: float = 28.6139
    fallback_anchor_lng: float = 77.2090


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
