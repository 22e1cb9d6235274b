"""JSON and streaming endpoints for previewing and downloading videos."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from app.core.config import Settings, get_settings
from app.core.errors import FormatNotFoundError, InvalidVideoUrlError, UpstreamError
from app.schema.video import HealthResponse, InfoResponse
from app.services.descriptors import RawVideoMetadata
from app.services.extractor import VideoSource, YtDlpSource
from app.services.format_resolver import resolve
from app.services.metadata_projector import project
from app.services.qualities import AUDIO_ALIASES, parse_quality
from app.services.stream_relay import download_headers, prepare_relay, relay
from app.services.url_validator import VideoUrl, validate_video_url

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["api"])

HEALTH_MESSAGE = "Video Hub API is running"


def get_video_source(settings: Settings = Depends(get_settings)) -> VideoSource:
    """FastAPI dependency that yields the extraction backend."""

    return YtDlpSource.from_settings(settings)


def _validate(url: str | None) -> VideoUrl:
    try:
        return validate_video_url(url)
    except InvalidVideoUrlError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


async def _fetch_metadata(source: VideoSource, video_url: VideoUrl) -> RawVideoMetadata:
    try:
        raw = await source.fetch_metadata(video_url.watch_url)
    except UpstreamError as exc:
        logger.exception("Failed to fetch video information", extra={"video_id": video_url.video_id})
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(exc) or "Failed to fetch video information",
        ) from exc

    if not raw.video_id:
        raw.video_id = video_url.video_id
    return raw


@router.get("/info", response_model=InfoResponse)
async def video_info(
    url: str | None = Query(None, description="YouTube video URL"),
    source: VideoSource = Depends(get_video_source),
) -> InfoResponse:
    """Return the preview summary and format list for a video."""

    video_url = _validate(url)
    raw = await _fetch_metadata(source, video_url)
    summary = project(raw)
    logger.info(
        "Fetched video information",
        extra={"video_id": summary.video_id, "formats": len(summary.formats), "qualities": summary.available_qualities},
    )
    return InfoResponse(data=summary)


@router.get("/download")
async def download_video(
    url: str | None = Query(None, description="YouTube video URL"),
    quality: str | None = Query(None, description="2160p … 144p, or mp3"),
    itag: int | None = Query(None, description="Exact format id"),
    source: VideoSource = Depends(get_video_source),
    settings: Settings = Depends(get_settings),
) -> StreamingResponse:
    """Resolve one format and stream its bytes as an attachment."""

    video_url = _validate(url)
    requested_quality = parse_quality(quality)
    if quality and requested_quality is None:
        logger.info("Ignoring unrecognised quality", extra={"quality": quality})

    raw = await _fetch_metadata(source, video_url)

    try:
        descriptor = resolve(raw.descriptors, requested_quality, itag, policy=settings.quality_policy)
    except FormatNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    audio = itag is None and requested_quality in AUDIO_ALIASES

    try:
        stream = await source.open_stream(descriptor)
        primed = await prepare_relay(stream)
    except UpstreamError as exc:
        logger.exception("Failed to open media stream", extra={"video_id": raw.video_id, "itag": descriptor.id})
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(exc) or "Download failed",
        ) from exc

    headers = download_headers(
        descriptor,
        title=raw.title,
        audio=audio,
        max_length=settings.filename_max_length,
        content_length=stream.content_length,
    )
    logger.info(
        "Starting download",
        extra={"video_id": raw.video_id, "itag": descriptor.id, "quality": descriptor.quality_label, "audio": audio},
    )
    # Closes the upstream even when the body is never iterated.
    return StreamingResponse(
        relay(primed, itag=descriptor.id),
        headers=headers,
        background=BackgroundTask(stream.aclose),
    )


@router.get("/health", response_model=HealthResponse)
async def healthcheck() -> HealthResponse:
    return HealthResponse(message=HEALTH_MESSAGE, timestamp=datetime.now(timezone.utc))
