"""
Runtime configuration for the catalog proxy.

Values are read from environment variables (and a local ``.env`` file
outside of tests). Every timing constant used by the cache and the
request handlers lives here so that tests can shrink them.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from the environment."""

    _app_env = (os.getenv("APP_ENV") or "").strip().lower()
    _env_files = (
        []
        if _app_env in {"test", "ci"}
        else [str(Path(__file__).resolve().parents[1] / ".env")]
    )

    model_config = SettingsConfigDict(
        env_file=_env_files,
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    app_env: str = Field(default="dev", alias="APP_ENV")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=3002, alias="PORT")
    cors_allow_origins: List[str] = Field(default=["*"], alias="CORS_ALLOW_ORIGINS")

    # Upstream catalog and image CDN
    swapi_base_url: str = Field(default="https://swapi.info/api", alias="SWAPI_BASE_URL")
    image_base_url: str = Field(
        default="https://cdn.jsdelivr.net/gh/tbone849/star-wars-guide@master/build/assets/img",
        alias="IMAGE_BASE_URL",
    )
    upstream_timeout: float = Field(default=15.0, alias="UPSTREAM_TIMEOUT")

    # Cache / handler timings (seconds)
    list_wait_timeout: float = Field(default=10.0, alias="LIST_WAIT_TIMEOUT")
    stream_wait_timeout: float = Field(default=10.0, alias="STREAM_WAIT_TIMEOUT")
    stream_poll_interval: float = Field(default=0.5, alias="STREAM_POLL_INTERVAL")
    stream_first_batch: int = Field(default=10, alias="STREAM_FIRST_BATCH")

    default_page_size: int = Field(default=20, alias="DEFAULT_PAGE_SIZE")
    preload_on_startup: bool = Field(default=True, alias="PRELOAD_ON_STARTUP")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
