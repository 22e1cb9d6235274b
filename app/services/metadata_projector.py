"""Project raw extractor output into the client-facing video summary."""

from __future__ import annotations

import math
from typing import Iterable, Sequence

from app.schema.video import FormatInfo, VideoSummary
from app.services.descriptors import RawVideoMetadata, StreamDescriptor
from app.services.qualities import QualityToken, sort_qualities, token_for_label

DURATION_UNAVAILABLE = "N/A"
FALLBACK_THUMBNAIL_TEMPLATE = "https://img.youtube.com/vi/{video_id}/maxresdefault.jpg"


def parse_duration(value: object) -> int | None:
    """Return whole seconds for a numeric value or numeric string, else None."""

    if value is None or isinstance(value, bool):
        return None
    try:
        seconds = float(str(value).strip())
    except ValueError:
        return None
    if not math.isfinite(seconds) or seconds < 0:
        return None
    return int(seconds)


def format_duration(value: object) -> str:
    """Render seconds as `H:MM:SS` (one hour or more) or `M:SS`."""

    seconds = parse_duration(value)
    if seconds is None:
        return DURATION_UNAVAILABLE

    hours, remainder = divmod(seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def select_thumbnail(thumbnails: Sequence[str], video_id: str) -> str:
    """Pick the highest-resolution thumbnail (last of an ascending list)."""

    for url in reversed(thumbnails):
        if url:
            return url
    return FALLBACK_THUMBNAIL_TEMPLATE.format(video_id=video_id)


def available_qualities(descriptors: Iterable[StreamDescriptor]) -> list[str]:
    tokens: list[str] = []
    for descriptor in descriptors:
        if descriptor.has_video and descriptor.quality_label:
            token = token_for_label(descriptor.quality_label)
            if token is not None:
                tokens.append(token.value)
        elif descriptor.is_audio_only:
            tokens.append(QualityToken.MP3.value)
    return sort_qualities(tokens)


def _format_info(descriptor: StreamDescriptor) -> FormatInfo:
    return FormatInfo(
        itag=descriptor.id,
        quality=descriptor.quality_label or descriptor.audio_quality or "audio",
        container=descriptor.container,
        mime_type=descriptor.mime_type,
        has_video=descriptor.has_video,
        has_audio=descriptor.has_audio,
        bitrate=descriptor.bitrate,
        audio_bitrate=descriptor.audio_bitrate,
        url=descriptor.url,
    )


def project(raw: RawVideoMetadata) -> VideoSummary:
    """Build the preview summary for a single metadata fetch. Pure."""

    return VideoSummary(
        video_id=raw.video_id,
        title=raw.title,
        channel=raw.channel,
        description=raw.description,
        duration_seconds=parse_duration(raw.duration),
        duration=format_duration(raw.duration),
        thumbnail=select_thumbnail(raw.thumbnails, raw.video_id),
        formats=[_format_info(descriptor) for descriptor in raw.descriptors if descriptor.has_video or descriptor.has_audio],
        available_qualities=available_qualities(raw.descriptors),
    )
