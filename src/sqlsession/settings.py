"""Environment-driven settings for sqlsession.

Fields (environment variable in brackets)
──────────────────────────────────────────
database  : Database URL or SQLite path   [SQLSESSION_DATABASE]
timeout   : SQLite busy timeout, seconds  [SQLSESSION_TIMEOUT]
readonly  : Open connections read-only    [SQLSESSION_READONLY]
log_level : Structlog log level           [SQLSESSION_LOG_LEVEL]
json_logs : JSON logs (unset = auto)      [SQLSESSION_JSON_LOGS]

Values are also read from a ``.env`` file in the working directory.
"""

from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from sqlsession.datasource import SQLiteDataSource, create_data_source

_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class SessionSettings(BaseSettings):
    """Connection and logging settings shared by the CLI and applications."""

    model_config = SettingsConfigDict(
        env_prefix="SQLSESSION_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    database: str = Field(default=":memory:", description="Database URL or SQLite file path")
    timeout: float = Field(default=5.0, gt=0)
    readonly: bool = False

    log_level: str = "INFO"
    json_logs: bool | None = None

    @field_validator("log_level")
    @classmethod
    def _check_level(cls, value: str) -> str:
        level = value.upper()
        if level not in _LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(_LEVELS)}")
        return level

    def data_source(self) -> SQLiteDataSource:
        """Build the configured data source."""
        return create_data_source(self.database, timeout=self.timeout, readonly=self.readonly)


__all__ = [
    "SessionSettings",
]
