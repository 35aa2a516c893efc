"""
Application Settings

Environment-driven configuration for the benchmark harness, the schema
generator and the items API. Values are read once (environment first, then
`.env`) into a frozen `Settings` instance that callers pass around explicitly.
"""

import logging
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from dbeval.errors import ConfigurationError

DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class Settings(BaseSettings):
    """Process-wide configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    # Backends
    NEON_DATABASE_URL: Optional[str] = None
    SUPABASE_URL: Optional[str] = None
    SUPABASE_KEY: Optional[str] = None
    SUPABASE_DB_URL: Optional[str] = None
    MONGODB_URI: Optional[str] = None
    MONGODB_DATABASE: str = "test"

    POSTGRES_POOL_MIN_SIZE: int = Field(1, ge=0)
    POSTGRES_POOL_MAX_SIZE: int = Field(5, ge=1)

    # Completion API (Groq, OpenAI-compatible endpoint)
    GROQ_API_KEY: Optional[str] = None
    GROQ_BASE_URL: str = "https://api.groq.com/openai/v1"
    GROQ_MODEL: str = "llama-3.3-70b-versatile"
    SCHEMA_TEMPERATURE: float = Field(0.1, ge=0.0, le=2.0)
    SCHEMA_MAX_TOKENS: int = Field(4096, ge=1)
    SCHEMA_OUTPUT_PATH: str = "samples/blog-schema.sql"

    # Workloads
    BENCHMARK_WRITE_ROWS: int = Field(10_000, ge=1)
    BENCHMARK_USER_COUNT: int = Field(100, ge=1)
    BENCHMARK_RECENT_DAYS: int = Field(7, ge=1)
    BENCHMARK_ITERATIONS: int = Field(1, ge=1)

    # Items API
    API_DEFAULT_PAGE_SIZE: int = Field(10, ge=1, le=100)
    APP_DEBUG: bool = False
    CORS_ORIGINS: list[str] = Field(default_factory=list)

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = DEFAULT_LOG_FORMAT
    LOG_FILE: Optional[str] = None

    def require(self, *names: str) -> None:
        """
        Ensure every named setting has a non-empty value.

        Raises:
            ConfigurationError: listing all missing names at once
        """
        missing = [name for name in names if not getattr(self, name, None)]
        if missing:
            raise ConfigurationError(missing)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Build the settings once per process."""
    return Settings()


def configure_logging(settings: Settings) -> None:
    """Configure root logging for CLIs and the API process."""
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if settings.LOG_FILE:
        handlers.append(logging.FileHandler(settings.LOG_FILE))

    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format=settings.LOG_FORMAT,
        handlers=handlers,
    )

    # Request-level chatter from the HTTP and Mongo clients
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("pymongo").setLevel(logging.WARNING)
