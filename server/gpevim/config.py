"""
Configuration and settings for the site backend.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    api_prefix: str = Field(default="/api")
    port: int = Field(default=3000, validation_alias="PORT")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    # Durable record store. Any SQLAlchemy URL; hosted Postgres in production.
    database_url: Optional[str] = Field(default=None, validation_alias="DATABASE_URL")
    production: bool = Field(
        default=False, validation_alias=AliasChoices("PRODUCTION", "GPEVIM_PRODUCTION")
    )

    # Development toggles
    use_in_memory_backends: bool = Field(
        default=False, validation_alias="GPEVIM_USE_IN_MEMORY_BACKENDS"
    )
    enable_local_fallback: bool = Field(
        default=True, validation_alias="GPEVIM_ENABLE_LOCAL_FALLBACK"
    )

    # Credentials
    admin_username: str = Field(default="admin", validation_alias="GPEVIM_ADMIN_USERNAME")
    admin_password: str = Field(
        default="gpevim2025", validation_alias="GPEVIM_ADMIN_PASSWORD"
    )
    bypass_username: str = Field(default="ADM", validation_alias="GPEVIM_BYPASS_USERNAME")
    bypass_password: str = Field(
        default="fisica", validation_alias="GPEVIM_BYPASS_PASSWORD"
    )

    # S3-compatible image storage
    storage_endpoint: Optional[str] = Field(
        default=None, validation_alias="STORAGE_ENDPOINT"
    )
    storage_region: Optional[str] = Field(default=None, validation_alias="STORAGE_REGION")
    storage_public_base_url: Optional[str] = Field(
        default=None, validation_alias="STORAGE_PUBLIC_BASE_URL"
    )
    aws_access_key_id: Optional[str] = Field(
        default=None, validation_alias="AWS_ACCESS_KEY_ID"
    )
    aws_secret_access_key: Optional[str] = Field(
        default=None, validation_alias="AWS_SECRET_ACCESS_KEY"
    )
    publications_bucket: str = Field(default="publications-images")
    members_bucket: str = Field(default="members-images")
    uploads_dir: str = Field(default="uploads", validation_alias="GPEVIM_UPLOADS_DIR")

    # Image processing
    image_max_width: int = Field(default=800)
    image_max_height: int = Field(default=800)
    image_quality: int = Field(default=80, ge=1, le=100)
    max_upload_bytes: int = Field(default=5 * 1024 * 1024)

    # Static site
    site_dir: str = Field(default="site", validation_alias="GPEVIM_SITE_DIR")

    @property
    def object_storage_configured(self) -> bool:
        return bool(
            self.storage_endpoint
            and self.aws_access_key_id
            and self.aws_secret_access_key
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
