from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Prefer repo-root `.env`; a local `.env` next to the process still wins for overrides.
    _REPO_ROOT = Path(__file__).resolve().parents[4]
    model_config = SettingsConfigDict(env_file=(_REPO_ROOT / ".env", ".env"), extra="ignore")

    VERSION: str = "0.1.0"
    APP_ENV: str = "dev"  # dev|test|prod
    LOG_LEVEL: str = "INFO"

    CORS_ORIGINS: str = "http://localhost:3000"

    # Static Gmail token used when a request carries no bearer token of its own.
    GMAIL_ACCESS_TOKEN: str = ""
    HTTP_TIMEOUT_SECONDS: float = 10.0

    ASSEMBLY_CONCURRENCY: int = 8
    MAX_BULK_IDS: int = 50
    MESSAGE_CACHE_ENABLED: bool = True
    MESSAGE_CACHE_MAX_ENTRIES: int = 1000  # 0 = unbounded
    IMAGE_PROXY_BASE: str = ""

    REQUEST_ID_HEADER: str = "x-request-id"
    RATE_LIMIT_REQUESTS_PER_MINUTE: int = 120
    ENABLE_PROMETHEUS_METRICS: bool = True
    PROMETHEUS_METRICS_PATH: str = "/metrics"
    CONTENT_SECURITY_POLICY: str = (
        "default-src 'self'; "
        "img-src 'self' data: https:; "
        "style-src 'self' 'unsafe-inline'; "
        "script-src 'self'; "
        "connect-src 'self'; "
        "frame-ancestors 'none'; "
        "base-uri 'self'; "
        "form-action 'self'"
    )

    @field_validator("LOG_LEVEL")
    @classmethod
    def _validate_log_level(cls, v: str) -> str:
        level = (v or "").strip().upper()
        if level not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
            raise ValueError("LOG_LEVEL must be a standard logging level name")
        return level

    @field_validator("ASSEMBLY_CONCURRENCY", "MAX_BULK_IDS")
    @classmethod
    def _validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be at least 1")
        return v

    @field_validator("MESSAGE_CACHE_MAX_ENTRIES", "RATE_LIMIT_REQUESTS_PER_MINUTE")
    @classmethod
    def _validate_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("must not be negative")
        return v

    @field_validator("HTTP_TIMEOUT_SECONDS")
    @classmethod
    def _validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("HTTP_TIMEOUT_SECONDS must be positive")
        return v

    @field_validator("IMAGE_PROXY_BASE", mode="before")
    @classmethod
    def _strip_image_proxy_base(cls, v: object) -> object:
        if isinstance(v, str):
            return v.strip().rstrip("?")
        return v


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
