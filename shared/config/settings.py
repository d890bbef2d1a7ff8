"""
Centralized configuration management for the newsdesk service.
Uses Pydantic Settings for validation and type safety.
"""

from functools import lru_cache
from typing import List, Optional
from urllib.parse import urlparse
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CATEGORIES = "general,sports,technology,health,business"


def _split_csv(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class AppBaseSettings(BaseSettings):
    """Base settings with shared configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


class DatabaseSettings(AppBaseSettings):
    """Relational store (SQLAlchemy URL) configuration settings."""

    database_url: str = Field(
        ...,
        validation_alias="DATABASE_URL",
    )
    echo: bool = Field(
        default=False,
        validation_alias="DB_ECHO",
    )

    @validator("database_url")
    def validate_database_url(cls, v):
        """Require a URL with a driver scheme, e.g. postgresql:// or sqlite://."""
        if not v or "://" not in v:
            raise ValueError("DATABASE_URL must be a SQLAlchemy URL")
        return v


class NewsApiSettings(AppBaseSettings):
    """Headlines feed configuration settings."""

    api_key: str = Field(
        ...,
        validation_alias="NEWS_API_KEY",
    )
    base_url: str = Field(
        default="https://newsapi.org",
        validation_alias="NEWS_API_BASE_URL",
    )
    language: str = Field(
        default="en",
        validation_alias="NEWS_API_LANGUAGE",
    )
    categories_raw: str = Field(
        default=DEFAULT_CATEGORIES,
        validation_alias="NEWS_CATEGORIES",
    )
    timeout: Optional[float] = Field(
        default=None,
        validation_alias="NEWS_API_TIMEOUT",
    )

    @validator("base_url")
    def validate_base_url(cls, v):
        """Validate that the feed base is an HTTP(S) URL."""
        parsed = urlparse(v)
        if parsed.scheme not in ["http", "https"] or not parsed.netloc:
            raise ValueError(f"News API base URL must use HTTP or HTTPS: {v}")
        return v.rstrip("/")

    @validator("categories_raw")
    def validate_categories(cls, v):
        if not _split_csv(v):
            raise ValueError("At least one news category is required")
        return v

    @property
    def categories(self) -> List[str]:
        """Ingestion categories in configured order."""
        return _split_csv(self.categories_raw)


class ApiSettings(AppBaseSettings):
    """HTTP surface configuration settings."""

    host: str = Field(
        default="0.0.0.0",
        validation_alias="API_HOST",
    )
    port: int = Field(
        default=3001,
        validation_alias="API_PORT",
    )
    cors_origins_raw: str = Field(
        default="*",
        validation_alias="CORS_ORIGINS",
    )
    search_timezone: Optional[str] = Field(
        default=None,
        validation_alias="SEARCH_TIMEZONE",
    )
    ingest_on_startup: bool = Field(
        default=True,
        validation_alias="INGEST_ON_STARTUP",
    )

    @validator("search_timezone")
    def validate_search_timezone(cls, v):
        """Validate the IANA zone name used for search day windows."""
        if not v:
            return None
        try:
            ZoneInfo(v)
        except ZoneInfoNotFoundError:
            raise ValueError(f"Unknown timezone: {v}")
        return v

    @property
    def cors_origins(self) -> List[str]:
        return _split_csv(self.cors_origins_raw)

    @property
    def search_tzinfo(self) -> Optional[ZoneInfo]:
        """Timezone for search day windows, None meaning server local time."""
        return ZoneInfo(self.search_timezone) if self.search_timezone else None


class LoggingSettings(AppBaseSettings):
    """Logging configuration settings."""

    level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
    )
    format: str = Field(
        default="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        validation_alias="LOG_FORMAT",
    )
    include_correlation_id: bool = Field(
        default=True,
        validation_alias="LOG_INCLUDE_CORRELATION_ID",
    )
    json_logs: bool = Field(
        default=False,
        validation_alias="JSON_LOGS",
    )


class Settings(AppBaseSettings):
    """Main settings class that combines all configuration sections."""

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    news_api: NewsApiSettings = Field(default_factory=NewsApiSettings)
    api: ApiSettings = Field(default_factory=ApiSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    service_name: str = Field(
        default="newsdesk",
        validation_alias="SERVICE_NAME",
    )
    environment: str = Field(
        default="development",
        validation_alias="ENVIRONMENT",
    )
    version: str = Field(
        default="1.0.0",
        validation_alias="SERVICE_VERSION",
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

