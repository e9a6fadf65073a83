"""Configuration for the Deal Advisor HTTP service."""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Service settings loaded from environment variables."""

    # Auth
    ADVISOR_API_KEY: str

    # Storage (falls back to deal_advisor.config when unset)
    PREFERENCES_PATH: str | None = None

    # Logging
    LOG_JSON: bool = False
    LOG_LEVEL: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    """Cached settings singleton."""
    return Settings()
