"""Application configuration."""

import os

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    admin_token: str
    photos_folder: str = "./test-photos"
    fallback_watch_folder: str = "./test-photos"
    gallery_folder: str = "./public/gallery"
    public_base_url: str = "http://localhost:3000"
    watcher_enabled: bool = True
    min_files_per_session: int = Field(default=2, ge=1)
    debounce_seconds: float = Field(default=5.0, ge=0.0)
    settle_delay_seconds: float = Field(default=0.5, ge=0.0)
    sweep_settle_delay_seconds: float = Field(default=0.1, ge=0.0)
    transform_timeout_seconds: float = Field(default=30.0, gt=0.0)
    transform_concurrency: int = Field(default=4, ge=1)
    thumbnail_width: int = Field(default=1920, gt=0)
    thumbnail_height: int = Field(default=1080, gt=0)
    min_image_dimension: int = Field(default=100, ge=0)
    retention_days: int = Field(default=7, ge=1)
    retention_delete_originals: bool = True
    cleanup_interval_hours: float = Field(default=24.0, gt=0.0)
    cleanup_initial_delay_seconds: float = Field(default=10.0, ge=0.0)
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )
