"""Configuration management using Pydantic Settings."""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Firecrawl (web research provider)
    FIRECRAWL_API_KEY: SecretStr = SecretStr("")
    FIRECRAWL_BASE_URL: str = "https://api.firecrawl.dev"
    FIRECRAWL_TIMEOUT_SECONDS: float = 30.0
    FIRECRAWL_POLL_INTERVAL_SECONDS: float = 5.0
    FIRECRAWL_CRAWL_TIMEOUT_SECONDS: float = 300.0

    # Language model (routed through LiteLLM)
    LLM_MODEL: str = "anthropic/claude-sonnet-4-20250514"
    LLM_API_KEY: SecretStr = SecretStr("")
    LLM_TEMPERATURE: float = 0.0
    LLM_MAX_TOKENS: int = 2048
    LLM_TIMEOUT_SECONDS: float = 60.0
    LANGFUSE_ENABLED: bool = False

    # Enrichment pipeline
    RESEARCH_BACKOFF_SECONDS: float = 30.0
    ENRICHMENT_TIMEOUT_SECONDS: float = 180.0

    # Per-client quota on the HTTP endpoint
    RATE_LIMIT_ENABLED: bool = True
    ENRICH_RATE_LIMIT_PER_HOUR: int = 50

    # Skip list
    SKIP_LIST_SOURCE: Literal["file", "supabase"] = "file"
    SKIP_LIST_PATH: str = "skip_list.txt"

    # Supabase (only needed for SKIP_LIST_SOURCE=supabase)
    SUPABASE_URL: str = ""
    SUPABASE_SERVICE_ROLE_KEY: SecretStr = SecretStr("")

    # Application Settings
    APP_ENV: Literal["development", "staging", "production"] = "development"
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Logging
    LOG_FORMAT: Literal["text", "json"] = "text"
    LOG_LEVEL: str = "INFO"

    # CORS Configuration
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    @field_validator("SUPABASE_URL", "FIRECRAWL_BASE_URL")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate that service URLs are http(s) and strip the trailing slash."""
        if v and not v.startswith(("http://", "https://")):
            raise ValueError("URL must start with http:// or https://")
        return v.rstrip("/") if v else v

    @property
    def cors_origins_list(self) -> list[str]:
        """Get CORS origins as a list."""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.APP_ENV == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.APP_ENV == "production"

    @property
    def firecrawl_configured(self) -> bool:
        """Check if the research provider has an API key."""
        return bool(self.FIRECRAWL_API_KEY.get_secret_value())

    @property
    def llm_configured(self) -> bool:
        """Check if the language model has an API key."""
        return bool(self.LLM_API_KEY.get_secret_value())

    @property
    def is_configured(self) -> bool:
        """Check if both enrichment providers are configured."""
        return self.firecrawl_configured and self.llm_configured

    @property
    def skip_list_file(self) -> Path:
        """Skip list location as a path."""
        return Path(self.SKIP_LIST_PATH)

    def validate_startup(self) -> None:
        """Validate that all required secrets are configured.

        Raises:
            ValueError: If any required secret is missing or empty.
        """
        required_secrets = {
            "FIRECRAWL_API_KEY": self.FIRECRAWL_API_KEY.get_secret_value(),
            "LLM_API_KEY": self.LLM_API_KEY.get_secret_value(),
        }
        if self.SKIP_LIST_SOURCE == "supabase":
            required_secrets["SUPABASE_URL"] = self.SUPABASE_URL
            required_secrets["SUPABASE_SERVICE_ROLE_KEY"] = (
                self.SUPABASE_SERVICE_ROLE_KEY.get_secret_value()
            )
        missing = [name for name, value in required_secrets.items() if not value]
        if missing:
            raise ValueError(f"Required secrets are missing or empty: {', '.join(missing)}")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Secrets are not checked here; the application calls
    ``validate_startup`` during startup so that library use and tests can
    run without a fully populated environment.

    Returns:
        Settings instance.
    """
    return Settings()


# Global settings instance - import this for easy access
settings = get_settings()
