"""Per-request value types describing a video and its downloadable formats."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class StreamDescriptor:
    """One downloadable variant of a video as reported by the extractor."""

    id: int
    has_video: bool
    has_audio: bool
    container: str
    mime_type: str
    quality_label: str | None = None
    bitrate: int | None = None
    audio_bitrate: int | None = None
    audio_quality: str | None = None
    url: str | None = None
    http_headers: dict[str, str] = field(default_factory=dict, compare=False, hash=False)

    @property
    def is_audio_only(self) -> bool:
        return self.has_audio and not self.has_video

    @property
    def is_combined(self) -> bool:
        return self.has_audio and self.has_video


@dataclass(slots=True)
class RawVideoMetadata:
    """Video-level fields plus the descriptor set from a single metadata fetch."""

    video_id: str
    title: str
    channel: str
    description: str | None = None
    duration: str | None = None
    thumbnails: list[str] = field(default_factory=list)
    descriptors: list[StreamDescriptor] = field(default_factory=list)
