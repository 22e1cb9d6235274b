"""Syntactic validation of user-supplied YouTube video URLs."""

from __future__ import annotations

import re
from dataclasses import dataclass
from urllib.parse import parse_qs, urlparse

from app.core.errors import InvalidVideoUrlError

VIDEO_ID_REGEX = re.compile(r"^[0-9A-Za-z_-]{11}$")
WATCH_URL_TEMPLATE = "https://www.youtube.com/watch?v={video_id}"

_SHORT_LINK_HOSTS = frozenset({"youtu.be", "www.youtu.be"})
_PLATFORM_HOSTS = frozenset(
    {
        "youtube.com",
        "www.youtube.com",
        "m.youtube.com",
        "music.youtube.com",
        "youtube-nocookie.com",
        "www.youtube-nocookie.com",
    }
)
# Path prefixes whose next segment is the video id.
_ID_PATH_PREFIXES = ("embed", "shorts", "live", "v")


@dataclass(frozen=True, slots=True)
class VideoUrl:
    """A validated video reference."""

    video_id: str
    watch_url: str


def _candidate_id(raw: str | None) -> str | None:
    if raw and VIDEO_ID_REGEX.match(raw):
        return raw
    return None


def _extract_from_platform_path(path: str, query: str) -> str | None:
    segments = [segment for segment in path.split("/") if segment]
    if segments and segments[0] == "watch":
        return _candidate_id(parse_qs(query).get("v", [None])[0])
    if len(segments) >= 2 and segments[0] in _ID_PATH_PREFIXES:
        return _candidate_id(segments[1])
    # Other pages (attribution links, playlists opened on a video) still carry ?v=
    return _candidate_id(parse_qs(query).get("v", [None])[0])


def validate_video_url(raw: str | None) -> VideoUrl:
    """Validate a YouTube URL and extract its video id.

    Accepts, with or without a scheme:
      * Watch pages (`youtube.com/watch?v=ID`)
      * Short links (`youtu.be/ID`)
      * Embed, shorts and live paths (`youtube.com/embed/ID`, `/shorts/ID`, `/live/ID`)

    No network access is performed.
    """

    candidate = (raw or "").strip()
    if not candidate:
        raise InvalidVideoUrlError("YouTube URL is required")

    if "://" not in candidate:
        candidate = f"https://{candidate}"

    parsed = urlparse(candidate)
    if parsed.scheme not in ("http", "https"):
        raise InvalidVideoUrlError("Invalid YouTube URL")

    host = (parsed.hostname or "").lower()
    if host in _SHORT_LINK_HOSTS:
        segments = [segment for segment in parsed.path.split("/") if segment]
        video_id = _candidate_id(segments[0]) if segments else None
    elif host in _PLATFORM_HOSTS:
        video_id = _extract_from_platform_path(parsed.path, parsed.query)
    else:
        raise InvalidVideoUrlError("Invalid YouTube URL")

    if video_id is None:
        raise InvalidVideoUrlError("Could not extract video ID from URL")

    return VideoUrl(video_id=video_id, watch_url=WATCH_URL_TEMPLATE.format(video_id=video_id))
