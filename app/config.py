# app/config.py
"""
Application settings.

Every field can be overridden with an environment variable prefixed with
``APP_`` (e.g. ``APP_DATABASE_URL=sqlite:///other.db``) or from a ``.env`` file.
"""

from pathlib import Path
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = Field(
        default="Personal Invoice Manager",
        description="Shown as the notification source and PDF header",
    )

    # Store
    database_url: str = Field(
        default="sqlite:///invoices.db",
        description="SQLAlchemy URL of the embedded database",
    )
    sqlite_foreign_keys: bool = Field(
        default=True,
        description="Turn on PRAGMA foreign_keys for every SQLite connection",
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_file: Optional[Path] = Field(
        default=None,
        description="Also append log records to this file",
    )

    # Notifications
    notifications_enabled: bool = True
    due_soon_days: int = Field(default=3, ge=0)
    due_scan_enabled: bool = True
    due_scan_interval_seconds: float = Field(default=24 * 60 * 60, gt=0)

    # Exports
    export_dir: Path = Field(
        default=Path.home() / "Documents",
        description="Directory exported PDF/CSV files are written to",
    )


def get_settings() -> Settings:
    return Settings()
