"""Pydantic models for the video info/download API."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Base model serialised with camelCase keys for the browser client."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FormatInfo(ApiModel):
    itag: int
    quality: str
    container: str
    mime_type: str
    has_video: bool
    has_audio: bool
    bitrate: int | None = None
    audio_bitrate: int | None = None
    url: str | None = None


class VideoSummary(ApiModel):
    video_id: str
    title: str
    channel: str
    description: str | None = None
    duration_seconds: int | None
    duration: str
    thumbnail: str
    formats: list[FormatInfo]
    available_qualities: list[str]


class InfoResponse(ApiModel):
    success: bool = True
    data: VideoSummary


class HealthResponse(ApiModel):
    success: bool = True
    message: str
    timestamp: datetime


class ErrorResponse(ApiModel):
    success: bool = False
    error: str
