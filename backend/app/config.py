from pathlib import Path

from pydantic_settings import BaseSettings
from functools import lru_cache

_BACKEND_DIR = Path(__file__).resolve().parents[1]
_ENV_FILES = (
    _BACKEND_DIR / ".env",
    ".env",
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    app_title: str = "City Services Search API"
    app_version: str = "0.1.0"
    app_env: str = "development"
    database_url: str = "sqlite:///./city_services.db"
    database_echo: bool = False
    cors_origins: list[str] = ["http://localhost:5173"]

    # Search engine tunables
    search_cache_ttl_seconds: float = 300.0
    search_max_page_size: int = 100
    search_export_max_records: int = 10000
    search_max_bulk_ids: int = 1000
    search_max_complex_date_ranges: int = 10
    search_complex_key_threshold: int = 5     # more keys than this → complex
    search_shedding_key_threshold: int = 10   # complex + more keys than this → delayed
    search_shedding_delay_seconds: float = 0.1
    search_max_url_length: int = 2000
    search_suggestion_limit: int = 10

    # Feature flags (feature_flags table)
    feature_flag_cache_ttl_seconds: float = 30.0

    # Logging: per-category log levels (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    log_level: str = "INFO"                  # Root / app-wide
    log_level_sql: str = "WARNING"           # sqlalchemy.engine SQL queries
    log_level_uvicorn: str = "INFO"          # uvicorn.access / uvicorn.error
    log_level_search: str = "INFO"           # search engine services

    model_config = {
        "env_file": _ENV_FILES,
        "env_file_encoding": "utf-8",
    }


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance; reads .env once."""
    return Settings()
