"""
Application configuration using Pydantic Settings.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./vidnest.db"

    # Redis
    REDIS_URL: str = "redis://localhost:6379"

    # API
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    # Pagination
    DEFAULT_PAGE_LIMIT: int = 10
    COMMENT_PAGE_LIMIT: int = 15
    MAX_PAGE_LIMIT: int = 100

    # Watch history / search history
    WATCH_HISTORY_MAX_ENTRIES: int = 500
    SEARCH_HISTORY_MAX_ENTRIES: int = 10000
    SEARCH_MIN_QUERY_LENGTH: int = 2
    SEARCH_MAX_CANDIDATES: int = 200
    SEARCH_SUGGESTION_LIMIT: int = 20

    # Content rules
    COMMENT_MAX_LENGTH: int = 2000
    ALLOW_SELF_SUBSCRIPTION: bool = False

    # Security
    JWT_SECRET: str = "change_me_in_production"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRATION_HOURS: int = 24
    AUTO_CREATE_DB_SCHEMA: bool = True

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True)


settings = Settings()


def validate_security_settings() -> None:
    """Fail fast when insecure default secrets are still configured."""
    insecure_values = {
        "",
        "change_me_in_production",
        "your_jwt_secret_change_in_production",
    }
    jwt_secret = (settings.JWT_SECRET or "").strip()

    if jwt_secret in insecure_values or len(jwt_secret) < 24:
        raise ValueError("JWT_SECRET is insecure. Configure a strong non-default secret (>=24 chars).")
