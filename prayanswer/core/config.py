"""
Application configuration using Pydantic Settings.

Centralizes all configuration with environment variable support.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    # Database
    database_url: str = "sqlite+aiosqlite:///./data/prayanswer.db"

    # Storage locations
    data_dir: str = "./data"
    attachment_dir_name: str = "PrayerAttachments"
    legacy_image_dir_name: str = "PrayerImages"
    shared_store_path: str = "./data/shared/group.prayAnswer.widget.json"

    # Attachments
    max_attachment_bytes: int = 20 * 1024 * 1024
    image_quality: int = 70
    thumbnail_size: int = 200

    # Widget
    widget_max_items: int = 5

    # Text extraction / AI cleanup
    ocr_model: str = "gpt-4o-mini"
    ai_cleanup_model: Optional[str] = "gpt-4o-mini"
    ai_cleanup_enabled: bool = True

    # Localization
    locale: str = "ko"

    # Logging
    log_level: str = "INFO"
    log_to_file: bool = False
    logs_dir: str = "logs"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"  # Ignore extra env vars

    @property
    def attachment_dir(self) -> Path:
        return Path(self.data_dir).expanduser() / self.attachment_dir_name

    @property
    def legacy_image_dir(self) -> Path:
        return Path(self.data_dir).expanduser() / self.legacy_image_dir_name


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
