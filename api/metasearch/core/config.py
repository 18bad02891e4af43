"""Application settings parsed from environment variables and defaults."""

import json
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CORS_ORIGINS = ["http://localhost:3000", "http://127.0.0.1:3000"]
KNOWN_SOURCES = ["CatalogA", "CatalogB", "Legacy"]


def _split_list(value: str | list[str] | None) -> list[str] | None:
    """Split JSON, CSV, or list inputs into stripped non-empty strings."""
    if isinstance(value, list):
        return [item.strip() for item in value if isinstance(item, str) and item.strip()]
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            return []
        try:
            parsed = json.loads(stripped)
        except json.JSONDecodeError:
            parsed = None
        if isinstance(parsed, list):
            return [str(item).strip() for item in parsed if str(item).strip()]
        return [item.strip() for item in stripped.split(",") if item.strip()]
    return None


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    app_name: str = "Metasearch API"
    environment: str = "development"
    api_prefix: str = "/api"
    log_level: str = "INFO"
    cors_origins: list[str] | str = Field(default_factory=lambda: DEFAULT_CORS_ORIGINS.copy())

    catalog_a_search_url: str = "https://itunes.apple.com/search"
    catalog_b_search_url: str = "https://api.tvmaze.com/search/shows"
    legacy_search_url: str = "https://www.crcind.com/csp/samples/SOAP.Demo.cls"
    enabled_sources: list[str] | str = Field(default_factory=lambda: KNOWN_SOURCES.copy())

    source_timeout_seconds: float = 10.0
    source_retry_attempts: int = Field(default=1, ge=1)
    http_max_connections: int = 20
    legacy_preserve_leading_space: bool = True

    circuit_threshold: int | None = Field(default=None, ge=1)
    circuit_base_backoff_seconds: float = 15.0
    circuit_max_backoff_seconds: float = 300.0

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_cors_origins(cls, value: str | list[str] | None) -> list[str]:
        """Normalize CORS origins from JSON, CSV, or list inputs."""
        return _split_list(value) or DEFAULT_CORS_ORIGINS.copy()

    @field_validator("enabled_sources", mode="before")
    @classmethod
    def _split_enabled_sources(cls, value: str | list[str] | None) -> list[str]:
        """Normalize enabled source tags and reject unknown ones."""
        names = _split_list(value)
        if names is None:
            return KNOWN_SOURCES.copy()
        lookup = {name.casefold(): name for name in KNOWN_SOURCES}
        normalized: list[str] = []
        for name in names:
            canonical = lookup.get(name.casefold())
            if canonical is None:
                raise ValueError(f"Unknown source {name!r}; expected one of {', '.join(KNOWN_SOURCES)}")
            if canonical not in normalized:
                normalized.append(canonical)
        return normalized

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    """Return cached settings to avoid re-parsing environment variables."""
    return Settings()


settings = get_settings()
