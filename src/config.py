from functools import lru_cache
from typing import ClassVar

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables / .env file."""

    # "production" disables destructive maintenance endpoints (bulk clear)
    environment: str = "development"
    log_level: str = "INFO"

    # JSON document holding bugs, users and id counters
    bug_db_path: str = "data/bugs.json"

    # Authentication
    jwt_secret: str = "change-me-in-production"
    jwt_expires_days: int = 7
    bcrypt_rounds: int = 12

    # Comma-separated origins allowed to call the API from a browser
    cors_origins: str = "http://localhost:8501,http://localhost:3000"

    # List endpoint page size when the client does not send ?limit=
    default_page_limit: int = 50

    # Base URL the HTTP client and Streamlit UI talk to
    api_url: str = "http://localhost:8000/api"

    model_config: ClassVar[SettingsConfigDict] = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Lazily load and cache settings. Fails at first call, not at import time."""
    return Settings()
