# reelbox/core/config.py
from __future__ import annotations

"""
# ReelBox — Centralized Configuration (Pydantic v2)

Single `settings` object with strongly-typed, environment-driven config.

## Goals
- Safe defaults for local/dev; explicit where prod needs secrets.
- Two storage tiers: a **public** bucket (posters, trailers served by URL)
  and a **private** bucket (videos served only through signed/streamed access).
- Store-client timeouts live here, never in the media coordinator.

## Usage
    from reelbox.core.config import settings
"""

from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()  # harmless in prod; convenient in dev


# ─────────────────────────────────────────────────────────────
# Small helpers
# ─────────────────────────────────────────────────────────────
def _normalize_url_like(v: str | None, *, require_scheme: bool = True) -> str:
    """Normalize to a string URL without trailing slash."""
    s = (v or "").strip()
    if not s:
        return ""
    if require_scheme and not (s.startswith("http://") or s.startswith("https://")):
        s = "https://" + s
    return s.rstrip("/")


# ─────────────────────────────────────────────────────────────
# Settings
# ─────────────────────────────────────────────────────────────
class Settings(BaseSettings):
    """
    Global application settings sourced from environment.

    Storage:
        - `STORAGE_BACKEND=memory` keeps objects in-process (dev/tests).
        - `STORAGE_BACKEND=s3` requires both bucket names.

    Notes:
        - Timeouts/retries for S3 are deployment knobs; the coordinator
          never wraps store calls in its own timeout.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # don't crash on unknown keys
    )

    # ── App meta ──────────────────────────────────────────────
    PROJECT_NAME: str = "ReelBox API"
    VERSION: str = "1.0.0"
    API_V1_STR: str = "/api/v1"
    ENV: Literal["development", "staging", "production"] = "development"
    ENABLE_DOCS: bool = True

    # ── Database (PostgreSQL) ─────────────────────────────────
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: SecretStr = Field(...)
    POSTGRES_DB: str = "reelbox"
    DATABASE_URL_OVERRIDE: Optional[str] = None  # any async URL, e.g. sqlite+aiosqlite:///./dev.db

    # ── Object storage ───────────────────────────────────────
    STORAGE_BACKEND: Literal["s3", "memory"] = "s3"
    AWS_ACCESS_KEY_ID: Optional[str] = None
    AWS_SECRET_ACCESS_KEY: Optional[SecretStr] = None
    AWS_SESSION_TOKEN: Optional[SecretStr] = None
    AWS_REGION: str = "us-east-1"
    AWS_S3_ENDPOINT_URL: Optional[str] = None  # LocalStack / MinIO
    AWS_PUBLIC_BUCKET_NAME: Optional[str] = None
    AWS_PRIVATE_BUCKET_NAME: Optional[str] = None
    AWS_SSE_MODE: Optional[Literal["AES256", "aws:kms"]] = None
    AWS_KMS_KEY_ID: Optional[str] = None
    CLOUDFRONT_DOMAIN: Optional[str] = None  # public tier URL base (optional)
    PRIVATE_URL_TTL_SECONDS: int = Field(300, ge=60, le=24 * 60 * 60)

    # ── Store-client timeouts (deployment-owned) ─────────────
    S3_CONNECT_TIMEOUT: float = Field(3.0, gt=0)
    S3_READ_TIMEOUT: float = Field(60.0, gt=0)
    S3_MAX_ATTEMPTS: int = Field(5, ge=1, le=20)

    # ── Per-parent serialization ─────────────────────────────
    PARENT_LOCK_BACKEND: Literal["local", "redis"] = "local"
    REDIS_URL: str = "redis://localhost:6379/0"
    PARENT_LOCK_TIMEOUT_SECONDS: int = Field(600, ge=1)

    # ── Streaming ────────────────────────────────────────────
    STREAM_CHUNK_BYTES: int = Field(1024 * 1024, ge=4096)

    # ── Validators / normalizers ──────────────────────────────
    @field_validator("CLOUDFRONT_DOMAIN", mode="before")
    @classmethod
    def _normalize_cdn_domain(cls, v: str | None) -> str | None:
        """
        Accepts either 'cdn.example.com' or 'https://cdn.example.com' and
        normalizes to 'https://cdn.example.com' (no trailing slash).
        """
        s = (v or "").strip()
        if not s:
            return None
        return _normalize_url_like(s, require_scheme=not (s.startswith("http://") or s.startswith("https://")))

    # ── Derived / convenience properties ─────────────────────
    @property
    def is_production(self) -> bool:
        return self.ENV.lower() == "production"

    @property
    def is_development(self) -> bool:
        return self.ENV.lower() == "development"

    @property
    def DATABASE_URL(self) -> str:
        """Sync DSN."""
        return (
            f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD.get_secret_value()}"
            f"@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    @property
    def ASYNC_DATABASE_URL(self) -> str:
        """Async SQLAlchemy DSN (override wins when set)."""
        if self.DATABASE_URL_OVERRIDE:
            return self.DATABASE_URL_OVERRIDE
        return self.DATABASE_URL.replace("postgresql://", "postgresql+asyncpg://")

    @property
    def cdn_base_url(self) -> str:
        """CloudFront base URL normalized to a full https URL without trailing slash."""
        d = (self.CLOUDFRONT_DOMAIN or "").strip().rstrip("/")
        if not d:
            return ""
        return d if d.startswith(("http://", "https://")) else f"https://{d}"


# Singleton instance
settings = Settings()
