"""
Configuration settings for farmbook.

Uses Pydantic Settings to load environment variables for the local snapshot
location, logging, and the optional spreadsheet sync credentials.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_PLACEHOLDER_PREFIX = "YOUR_GOOGLE_"


class Settings(BaseSettings):
    # Application
    app_env: str = Field("development", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    # Local record store
    data_file: Path = Field(Path("farm_data.json"), alias="FARM_DATA_FILE")

    # Spreadsheet sync
    sheet_id: str = Field("", alias="SHEET_ID")
    sheets_api_key: str = Field("", alias="SHEETS_API_KEY")
    sheets_base_url: str = Field(
        "https://sheets.googleapis.com/v4/spreadsheets", alias="SHEETS_BASE_URL"
    )
    sheets_timeout_seconds: float = Field(10.0, alias="SHEETS_TIMEOUT_SECONDS")
    sync_isolate_failures: bool = Field(False, alias="SYNC_ISOLATE_FAILURES")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def sheets_configured(self) -> bool:
        """True when both spreadsheet credentials are set to real values."""
        for value in (self.sheet_id, self.sheets_api_key):
            value = value.strip()
            if not value or value.startswith(_PLACEHOLDER_PREFIX):
                return False
        return True


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = ["Settings", "get_settings"]
