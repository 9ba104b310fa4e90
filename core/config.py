"""
Engine configuration using Pydantic Settings.

This module manages all configuration from environment variables.
"""

from functools import lru_cache
from typing import Optional
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Engine settings loaded from environment variables."""

    # Export storage
    DOWNLOAD_PATH: str = "download/"
    EXPORT_EXTENSION: str = ".xlsx"

    # Paging: legacy binary workbooks cap a sheet at 65536 rows
    SHEET_SIZE: int = 65536

    # Header styling and per-column directives
    NOTE_MARKER: str = "注："
    NOTE_COLUMN_WIDTH: int = 6000  # 1/256 of a character
    VALIDATION_FIRST_ROW: int = 1
    VALIDATION_LAST_ROW: int = 100

    # Import behaviour
    STRICT_IMPORT: bool = False  # Raise on the first bad cell instead of skipping the row

    # Logging Configuration
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = None
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are loaded only once.
    """
    return Settings()
