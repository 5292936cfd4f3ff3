from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

COMPREHEND_BATCH_LIMIT = 25
_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


def _discover_env_files() -> tuple[str, ...]:
    """Determine which env files should be loaded."""
    files: list[str] = []

    custom_env = os.getenv("ENV_FILE")
    if custom_env and Path(custom_env).is_file():
        files.append(custom_env)

    project_root = Path(__file__).resolve().parents[4]
    dot_env = project_root / ".env"
    if dot_env.is_file():
        files.append(str(dot_env))

    return tuple(dict.fromkeys(files))  # Preserve order, remove duplicates


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=_discover_env_files(),
        env_file_encoding="utf-8",
        extra="allow",
        populate_by_name=True,
        protected_namespaces=("settings_",),
    )

    env: str = Field(default="development", alias="ENV")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    aws_access_key_id: str = Field(default="", alias="AWS_ACCESS_KEY_ID")
    aws_secret_access_key: str = Field(default="", alias="AWS_SECRET_ACCESS_KEY")
    aws_region: str = Field(default="us-east-1", alias="AWS_REGION")

    comprehend_language_code: str = Field(default="en", alias="COMPREHEND_LANGUAGE_CODE")
    comprehend_max_attempts: int = Field(default=3, ge=1, alias="COMPREHEND_MAX_ATTEMPTS")
    comprehend_request_timeout_seconds: float = Field(default=30.0, gt=0, alias="COMPREHEND_REQUEST_TIMEOUT_SECONDS")

    sentiment_batch_size: int = Field(default=COMPREHEND_BATCH_LIMIT, ge=1, le=COMPREHEND_BATCH_LIMIT, alias="SENTIMENT_BATCH_SIZE")
    sentiment_max_retries: int = Field(default=3, ge=1, alias="SENTIMENT_MAX_RETRIES")
    sentiment_retry_delay_seconds: float = Field(default=1.0, ge=0, alias="SENTIMENT_RETRY_DELAY_SECONDS")
    sentiment_max_text_bytes: int = Field(default=5000, ge=1, alias="SENTIMENT_MAX_TEXT_BYTES")

    statsd_host: str | None = Field(default=None, alias="STATSD_HOST")
    statsd_port: int = Field(default=8125, alias="STATSD_PORT")
    statsd_prefix: str = Field(default="comment_sentiment", alias="STATSD_PREFIX")

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: Any) -> str:
        if isinstance(value, str) and value.strip():
            candidate = value.strip().upper()
            if candidate in _LOG_LEVELS:
                return candidate
        return "INFO"

    @field_validator("comprehend_language_code", mode="before")
    @classmethod
    def _normalize_language(cls, value: Any) -> str:
        if isinstance(value, str) and value.strip():
            return value.strip().lower()
        return "en"

    @field_validator("statsd_host", mode="before")
    @classmethod
    def _blank_host_is_none(cls, value: Any) -> str | None:
        if isinstance(value, str):
            return value.strip() or None
        return value

    @property
    def secrets(self) -> list[str]:
        return [self.aws_access_key_id, self.aws_secret_access_key]


@lru_cache
def get_settings() -> Settings:
    return Settings()  # type: ignore[arg-type]
