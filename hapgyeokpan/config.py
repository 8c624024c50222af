"""
Configuration and settings for the community API.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional
from urllib.parse import urlparse

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SITE_URL = "https://hapgyeokpan.kr"


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="/api")
    site_url: str = Field(default=DEFAULT_SITE_URL)
    log_level: str = Field(default="INFO")
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)

    # Supabase project (auth + REST)
    supabase_url: Optional[str] = Field(default=None)
    supabase_anon_key: Optional[str] = Field(default=None)
    supabase_service_role_key: Optional[str] = Field(default=None)

    # Supabase Postgres connection string
    database_url: Optional[str] = Field(default=None)

    # S3-compatible Supabase Storage
    storage_endpoint: Optional[str] = Field(default=None)
    storage_region: Optional[str] = Field(default=None)
    storage_bucket: str = Field(default="attachments")
    storage_access_key_id: Optional[str] = Field(default=None)
    storage_secret_access_key: Optional[str] = Field(default=None)
    storage_public_base_url: Optional[str] = Field(default=None)
    upload_max_bytes: int = Field(default=5 * 1024 * 1024)

    # Comma-separated list of emails allowed to bootstrap admin rights
    admin_emails: str = Field(default="")

    # Feature flags
    enable_transfer: bool = Field(default=True)
    enable_cpa: bool = Field(default=True)
    enable_cpa_write: bool = Field(default=False)
    enable_social_auth: bool = Field(default=True)
    enable_email_auth: bool = Field(default=False)

    # Development toggles
    use_in_memory_backends: bool = Field(default=False)

    @field_validator("site_url", mode="before")
    @classmethod
    def _normalize_site_url(cls, value: object) -> str:
        raw = str(value or "").strip()
        if not raw:
            return DEFAULT_SITE_URL
        if not raw.startswith(("http://", "https://")):
            raw = f"https://{raw}"
        parsed = urlparse(raw)
        if not parsed.netloc:
            return DEFAULT_SITE_URL
        return f"{parsed.scheme}://{parsed.netloc}"

    @property
    def admin_email_list(self) -> list[str]:
        return [
            value.strip().lower()
            for value in self.admin_emails.split(",")
            if value.strip()
        ]

    def is_exam_enabled(self, exam_slug: str) -> bool:
        if exam_slug == "cpa":
            return self.enable_cpa
        if exam_slug == "transfer":
            return self.enable_transfer
        return True

    def is_exam_writable(self, exam_slug: str) -> bool:
        if not self.is_exam_enabled(exam_slug):
            return False
        if exam_slug == "cpa":
            return self.enable_cpa_write
        return True


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
