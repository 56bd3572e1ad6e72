from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from tunedex.exceptions import ConfigError


class AppConfig(BaseModel):
    """Application-specific configuration values."""

    log_level: str = "INFO"


class IndexConfig(BaseModel):
    """Search index configuration values."""

    # Root of all per-server index directories; XDG cache directory when unset
    cache_dir: Optional[Path] = None
    batch_size: int = Field(default=1000, ge=1)
    score_threshold: float = 0.5


class Settings(BaseSettings):
    """Top-level settings loaded from environment variables and .env only."""

    model_config = SettingsConfigDict(
        env_prefix="TUNEDEX_",
        env_nested_delimiter="__",
        env_file=".env",
        extra="ignore",
    )

    app: AppConfig = AppConfig()
    index: IndexConfig = IndexConfig()


def load_settings() -> Settings:
    """Load settings from environment variables and .env only."""
    try:
        return Settings()  # type: ignore[call-arg]
    except ValidationError as exc:
        raise ConfigError(f"invalid tunedex settings: {exc}") from exc


def cache_directory(settings: Optional[Settings] = None) -> Path:
    """Return the directory under which all search indexes are kept."""
    if settings is not None and settings.index.cache_dir is not None:
        return Path(settings.index.cache_dir).expanduser()
    cache_home = os.environ.get("XDG_CACHE_HOME")
    if cache_home:
        return Path(cache_home) / "tunedex"
    return Path.home() / ".cache" / "tunedex"


def index_path_for(host: str, port: str, settings: Optional[Settings] = None) -> Path:
    """Return the directory where the index and state for one music server live."""
    return cache_directory(settings) / host / str(port)
