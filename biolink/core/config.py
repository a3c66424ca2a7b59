"""Application configuration using Pydantic Settings."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    app_name: str = "Biolink Web"
    app_version: str = "0.1.0"
    debug: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 5173

    # Backend API
    backend_api_url: str = "http://localhost:4000"
    backend_timeout: float = 10.0

    # Profile stats
    stats_cache_ttl: float = 60.0
    stats_query_retries: int = 1
    stats_query_retry_delay: float = 1.0
    locale: str = "es"

    # Session
    auth_cookie_name: str = "AUTH_TOKEN"

    # Observability
    sentry_dsn: str = ""
    otlp_endpoint: str = ""


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
