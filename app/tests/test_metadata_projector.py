"""Tests for the preview summary projection."""

import pytest

from app.services.descriptors import RawVideoMetadata, StreamDescriptor
from app.services.metadata_projector import (
    DURATION_UNAVAILABLE,
    available_qualities,
    format_duration,
    project,
    select_thumbnail,
)


def _descriptor(itag: int, *, video: bool, audio: bool, label: str | None = None, **kwargs) -> StreamDescriptor:
    return StreamDescriptor(
        id=itag,
        has_video=video,
        has_audio=audio,
        container=kwargs.pop("container", "mp4"),
        mime_type=kwargs.pop("mime_type", "video/mp4"),
        quality_label=label,
        **kwargs,
    )


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (3725, "1:02:05"),
        (95, "1:35"),
        ("95", "1:35"),
        ("212.0", "3:32"),
        (0, "0:00"),
        (3600, "1:00:00"),
        (59, "0:59"),
    ],
)
def test_format_duration(value, expected):
    assert format_duration(value) == expected


@pytest.mark.parametrize("value", [None, "", "abc", "12:30", -5, float("nan"), True])
def test_format_duration_marks_unusable_input(value):
    assert format_duration(value) == DURATION_UNAVAILABLE


def test_select_thumbnail_prefers_last_entry():
    thumbs = ["https://i.ytimg.com/vi/x/default.jpg", "https://i.ytimg.com/vi/x/maxresdefault.jpg"]
    assert select_thumbnail(thumbs, "x") == "https://i.ytimg.com/vi/x/maxresdefault.jpg"


def test_select_thumbnail_falls_back_to_video_id():
    assert select_thumbnail([], "dQw4w9WgXcQ") == "https://img.youtube.com/vi/dQw4w9WgXcQ/maxresdefault.jpg"


def test_available_qualities_orders_tokens_and_appends_mp3():
    descriptors = [
        _descriptor(140, video=False, audio=True, mime_type="audio/mp4"),
        _descriptor(18, video=True, audio=True, label="360p"),
        _descriptor(299, video=True, audio=False, label="1080p60"),
        _descriptor(137, video=True, audio=False, label="1080p"),
        _descriptor(136, video=True, audio=False, label="720p"),
        _descriptor(999, video=True, audio=False, label=None),
    ]

    assert available_qualities(descriptors) == ["1080p", "720p", "360p", "mp3"]


def test_available_qualities_without_audio_only_streams_has_no_mp3():
    descriptors = [_descriptor(18, video=True, audio=True, label="360p")]
    assert available_qualities(descriptors) == ["360p"]


def test_project_builds_camel_case_summary():
    raw = RawVideoMetadata(
        video_id="dQw4w9WgXcQ",
        title="Never Gonna Give You Up",
        channel="Rick Astley",
        description="The official video",
        duration="212",
        thumbnails=["https://i.ytimg.com/low.jpg", "https://i.ytimg.com/high.jpg"],
        descriptors=[
            _descriptor(18, video=True, audio=True, label="360p", bitrate=500_000, url="https://media/18"),
            _descriptor(
                140,
                video=False,
                audio=True,
                container="m4a",
                mime_type="audio/mp4",
                audio_bitrate=129,
                audio_quality="129kbps",
            ),
        ],
    )

    summary = project(raw)
    payload = summary.model_dump(by_alias=True)

    assert payload["videoId"] == "dQw4w9WgXcQ"
    assert payload["durationSeconds"] == 212
    assert payload["duration"] == "3:32"
    assert payload["thumbnail"] == "https://i.ytimg.com/high.jpg"
    assert payload["availableQualities"] == ["360p", "mp3"]
    assert [fmt["itag"] for fmt in payload["formats"]] == [18, 140]
    assert payload["formats"][0]["hasVideo"] is True
    assert payload["formats"][0]["quality"] == "360p"
    assert payload["formats"][1]["quality"] == "129kbps"
    assert payload["formats"][1]["mimeType"] == "audio/mp4"


def test_project_handles_missing_duration_and_thumbnails():
    raw = RawVideoMetadata(video_id="abcdefghijk", title="Live", channel="Somebody", duration=None)

    summary = project(raw)

    assert summary.duration == DURATION_UNAVAILABLE
    assert summary.duration_seconds is None
    assert summary.thumbnail.endswith("/abcdefghijk/maxresdefault.jpg")
    assert summary.available_qualities == []
