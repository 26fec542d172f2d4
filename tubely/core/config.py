from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Secrets(BaseSettings):
    """Secrets configuration, loaded from the environment or a secrets management service."""

    model_config = SettingsConfigDict(
        env_prefix="TUBELY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    jwt_secret: str = Field(default="change-me", description="Signing secret for access tokens.")
    aws_access_key_id: Optional[str] = Field(default=None, description="Falls back to the boto3 credential chain.")
    aws_secret_access_key: Optional[str] = None

    @classmethod
    def from_settings(cls, settings: "Settings") -> "Secrets":
        return cls()


class Settings(BaseSettings):
    """Centralised runtime configuration for the Tubely API."""

    model_config = SettingsConfigDict(
        env_prefix="TUBELY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "Tubely API"
    environment: str = Field(default="development", description="Deployment environment label.")
    version: str = Field(default="0.1.0", description="API version for metadata and OpenAPI.")
    log_level: str = Field(default="info")

    database_url: str = Field(
        default="sqlite+aiosqlite:///./tubely.db",
        description="SQLAlchemy compatible DSN.",
    )

    assets_root: Path = Field(default_factory=lambda: Path("assets"), description="Directory serving thumbnails.")
    assets_url_prefix: str = Field(default="/assets", description="URL path the assets directory is mounted on.")
    staging_root: Path | None = Field(
        default=None,
        description="Parent directory for per-request staging (defaults to the system temp dir).",
    )

    max_video_upload_bytes: int = Field(default=1 << 30, description="Hard limit for video uploads.")
    max_thumbnail_upload_bytes: int = Field(default=10 << 20, description="Hard limit for thumbnail uploads.")

    storage_backend: Literal["local", "s3"] = Field(default="local", description="Active object storage implementation.")
    local_storage_base_path: Path = Field(
        default_factory=lambda: Path("objects"),
        description="Root for the local object storage backend.",
    )
    s3_bucket: Optional[str] = None
    s3_region: str = Field(default="us-east-1")
    s3_endpoint_url: Optional[str] = Field(default=None, description="Custom endpoint for S3 compatible stores.")
    s3_cdn_domain: Optional[str] = Field(
        default=None,
        description="Distribution domain serving the bucket; takes precedence over the bucket URL.",
    )
    classify_orientation: bool = Field(default=True, description="Prefix object keys with the orientation class.")

    ffprobe_binary: str = Field(default="ffprobe")
    ffmpeg_binary: str = Field(default="ffmpeg")

    jwt_algorithm: str = Field(default="HS256", description="Algorithm used for JWT tokens.")
    jwt_issuer: Optional[str] = None
    jwt_audience: Optional[str] = None

    secrets: Secrets = Field(default_factory=Secrets, description="Holds sensitive configuration.")

    @property
    def environment_lower(self) -> str:
        return self.environment.lower()


@lru_cache()
def get_settings() -> Settings:
    load_dotenv(".env", override=False)

    _ENV_ALIAS_MAP = {
        "TUBELY_ENV": "TUBELY_ENVIRONMENT",
        "TUBELY_DB_URL": "TUBELY_DATABASE_URL",
    }

    for source, target in _ENV_ALIAS_MAP.items():
        value = os.getenv(source)
        if value:
            os.environ[target] = value

    settings = Settings()
    secrets = Secrets.from_settings(settings)

    if settings.environment_lower == "production" and secrets.jwt_secret == "change-me":
        raise ValueError("Production environment must have a non-default JWT secret.")
    if settings.storage_backend == "s3" and not settings.s3_bucket:
        raise ValueError("TUBELY_S3_BUCKET is required when the s3 storage backend is selected.")

    settings.secrets = secrets
    return settings


__all__ = ["Settings", "Secrets", "get_settings"]
