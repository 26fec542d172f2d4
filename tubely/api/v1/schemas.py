from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class HealthResponse(BaseModel):
    status: str = Field(default="ok", description="Health status indicator.")
    time: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    environment: str = Field(description="Deployment environment label.")
    storage_backend: str = Field(description="Object storage backend videos are published to.")


class EnvCheckResponse(BaseModel):
    ffmpeg: bool
    ffprobe: bool


class VideoCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=255, json_schema_extra={"example": "Boots on the ground"})
    description: Optional[str] = Field(default=None, json_schema_extra={"example": "First upload"})


class VideoResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    title: str
    description: Optional[str] = None
    video_url: Optional[str] = Field(default=None, description="Public URL of the published video object.")
    thumbnail_url: Optional[str] = Field(default=None, description="Path of the thumbnail under the assets mount.")
    created_at: datetime
    updated_at: datetime


__all__ = [
    "HealthResponse",
    "EnvCheckResponse",
    "VideoCreateRequest",
    "VideoResponse",
]
