from __future__ import annotations

from functools import lru_cache
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Service settings, read from CSV_CLEANER_* environment variables or .env."""

    model_config = SettingsConfigDict(
        env_prefix="CSV_CLEANER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = Field(default="INFO", description="Level for the csv_cleaner logger")
    allowed_extensions: List[str] = Field(
        default_factory=lambda: [".csv", ".tsv", ".txt"],
        description="Accepted upload filename extensions",
    )
    large_file_warning_mb: float = Field(
        default=20.0,
        description="Uploads above this size are processed with a warning",
    )
    sniff_sample_size: int = Field(default=4096, gt=0, description="Characters used for delimiter sniffing")
    preview_rows: int = Field(default=50, gt=0, description="Rows (header included) in the preview")


@lru_cache()
def get_settings() -> Settings:
    return Settings()
