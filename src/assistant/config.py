"""Application configuration via Pydantic BaseSettings."""

from __future__ import annotations

from enum import Enum
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    development = "development"
    staging = "staging"
    production = "production"


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # Environment
    ENVIRONMENT: Environment = Environment.development

    # Logging
    LOG_LEVEL: str = "INFO"

    # LLM Providers
    OPENAI_API_KEY: str = ""
    ANTHROPIC_API_KEY: str = ""
    CHAT_MODEL: str = "openai/gpt-4.1"
    FALLBACK_CHAT_MODEL: str = "anthropic/claude-sonnet-4-20250514"
    LLM_TIMEOUT: int = 30
    LLM_MAX_RETRIES: int = 3

    # Agent loop
    AGENT_MAX_STEPS: int = 10  # model rounds per turn
    STREAM_BUFFER_SIZE: int = 16  # chunks buffered before the producer waits


@lru_cache
def get_settings() -> Settings:
    """Singleton settings instance."""
    return Settings()
