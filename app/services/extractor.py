"""Boundary to the external extraction library and the media host.

Everything the rest of the application knows about YouTube comes through the
`VideoSource` protocol: one call to fetch metadata plus descriptors, one call
to open a byte stream for a chosen descriptor. `YtDlpSource` is the production
implementation; tests substitute an in-memory fake.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, AsyncIterator, Protocol

import httpx
import yt_dlp

from app.core.config import Settings
from app.core.errors import UpstreamError
from app.services.descriptors import RawVideoMetadata, StreamDescriptor
from app.services.qualities import resolution_of

logger = logging.getLogger(__name__)

CODEC_NONE = "none"
DIRECT_PROTOCOLS = frozenset({"http", "https"})

_VIDEO_MIME_TYPES = {"mp4": "video/mp4", "webm": "video/webm", "3gp": "video/3gpp", "flv": "video/x-flv"}
_AUDIO_MIME_TYPES = {"m4a": "audio/mp4", "mp4": "audio/mp4", "webm": "audio/webm", "mp3": "audio/mpeg", "opus": "audio/ogg"}


class ByteStream(Protocol):
    content_length: int | None

    def chunks(self) -> AsyncIterator[bytes]: ...

    async def aclose(self) -> None: ...


class VideoSource(Protocol):
    async def fetch_metadata(self, url: str) -> RawVideoMetadata: ...

    async def open_stream(self, descriptor: StreamDescriptor) -> ByteStream: ...


def _has_codec(value: Any) -> bool:
    return bool(value) and value != CODEC_NONE


def _mime_type(ext: str, *, has_video: bool) -> str:
    if has_video:
        return _VIDEO_MIME_TYPES.get(ext, f"video/{ext}")
    return _AUDIO_MIME_TYPES.get(ext, f"audio/{ext}")


def _quality_label(raw_format: dict[str, Any]) -> str | None:
    note = raw_format.get("format_note")
    if isinstance(note, str) and resolution_of(note) is not None:
        return note.split()[0]
    if height := raw_format.get("height"):
        return f"{int(height)}p"
    return None


def descriptor_from_format(raw_format: dict[str, Any]) -> StreamDescriptor | None:
    """Map one yt-dlp format dict to a descriptor, or None if it cannot be relayed."""

    format_id = str(raw_format.get("format_id") or "")
    if not format_id.isdigit():
        return None
    if raw_format.get("protocol") not in DIRECT_PROTOCOLS or not raw_format.get("url"):
        return None

    has_video = _has_codec(raw_format.get("vcodec"))
    has_audio = _has_codec(raw_format.get("acodec"))
    if not has_video and not has_audio:
        return None

    ext = raw_format.get("ext") or ("mp4" if has_video else "m4a")
    tbr = raw_format.get("tbr")
    abr = raw_format.get("abr") if has_audio else None

    audio_quality = None
    if has_audio and not has_video:
        audio_quality = f"{int(abr)}kbps" if abr else raw_format.get("format_note")

    return StreamDescriptor(
        id=int(format_id),
        has_video=has_video,
        has_audio=has_audio,
        container=ext,
        mime_type=_mime_type(ext, has_video=has_video),
        quality_label=_quality_label(raw_format) if has_video else None,
        bitrate=int(tbr * 1000) if tbr else None,
        audio_bitrate=int(abr) if abr else None,
        audio_quality=audio_quality,
        url=raw_format["url"],
        http_headers=dict(raw_format.get("http_headers") or {}),
    )


def _duration_text(value: Any) -> str | None:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(int(value))
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def metadata_from_info(info: dict[str, Any]) -> RawVideoMetadata:
    """Convert a yt-dlp info dict into the fields the API needs."""

    # yt-dlp orders thumbnails from lowest to highest preference.
    thumbnails = [thumb["url"] for thumb in info.get("thumbnails") or [] if thumb.get("url")]
    if not thumbnails and info.get("thumbnail"):
        thumbnails = [info["thumbnail"]]

    descriptors: list[StreamDescriptor] = []
    for raw_format in info.get("formats") or []:
        descriptor = descriptor_from_format(raw_format)
        if descriptor is None:
            logger.debug("Skipping format", extra={"format_id": raw_format.get("format_id")})
            continue
        descriptors.append(descriptor)

    return RawVideoMetadata(
        video_id=str(info.get("id") or ""),
        title=info.get("title") or "Unknown Title",
        channel=info.get("channel") or info.get("uploader") or "Unknown",
        description=info.get("description"),
        duration=_duration_text(info.get("duration")),
        thumbnails=thumbnails,
        descriptors=descriptors,
    )


def _clean_error(exc: Exception) -> str:
    message = str(exc).strip()
    if message.startswith("ERROR: "):
        message = message[len("ERROR: ") :]
    return message or "Failed to fetch video information"


class HttpxByteStream:
    """Response body of a streaming httpx request, closed together with its client."""

    def __init__(self, client: httpx.AsyncClient, response: httpx.Response, *, chunk_size: int) -> None:
        self._client = client
        self._response = response
        self._chunk_size = chunk_size
        length = response.headers.get("Content-Length")
        self.content_length = int(length) if length and length.isdigit() else None

    async def chunks(self) -> AsyncIterator[bytes]:
        try:
            async for chunk in self._response.aiter_raw(self._chunk_size):
                if chunk:
                    yield chunk
        except (httpx.HTTPError, httpx.StreamError) as exc:
            raise UpstreamError(f"Media host stream failed: {exc}") from exc

    async def aclose(self) -> None:
        try:
            await self._response.aclose()
        finally:
            await self._client.aclose()


class YtDlpSource:
    """Resolve videos with yt-dlp and fetch media bytes with httpx."""

    def __init__(
        self,
        *,
        metadata_timeout: float = 30.0,
        connect_timeout: float = 10.0,
        read_timeout: float = 30.0,
        chunk_size: int = 64 * 1024,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._metadata_timeout = metadata_timeout
        self._timeout = httpx.Timeout(read_timeout, connect=connect_timeout)
        self._chunk_size = chunk_size
        self._transport = transport
        self._ydl_opts = {
            "quiet": True,
            "no_warnings": True,
            "noplaylist": True,
            "skip_download": True,
            "socket_timeout": connect_timeout,
        }

    @classmethod
    def from_settings(cls, settings: Settings) -> "YtDlpSource":
        return cls(
            metadata_timeout=settings.metadata_timeout_seconds,
            connect_timeout=settings.stream_connect_timeout_seconds,
            read_timeout=settings.stream_read_timeout_seconds,
            chunk_size=settings.stream_chunk_size,
        )

    async def fetch_metadata(self, url: str) -> RawVideoMetadata:
        """Run yt-dlp extraction off the event loop, bounded by the metadata timeout."""

        loop = asyncio.get_running_loop()

        def _blocking_extract() -> dict[str, Any]:
            with yt_dlp.YoutubeDL(self._ydl_opts) as ydl:
                return ydl.extract_info(url, download=False)

        try:
            info = await asyncio.wait_for(
                loop.run_in_executor(None, _blocking_extract),
                timeout=self._metadata_timeout,
            )
        except asyncio.TimeoutError as exc:
            raise UpstreamError(f"Timed out fetching video information after {self._metadata_timeout:g}s") from exc
        except yt_dlp.utils.YoutubeDLError as exc:
            raise UpstreamError(_clean_error(exc)) from exc

        if not info:
            raise UpstreamError("Failed to fetch video information")
        return metadata_from_info(info)

    async def open_stream(self, descriptor: StreamDescriptor) -> HttpxByteStream:
        if not descriptor.url:
            raise UpstreamError("Format has no direct media URL")

        client = httpx.AsyncClient(timeout=self._timeout, follow_redirects=True, transport=self._transport)
        response: httpx.Response | None = None
        try:
            # Bytes are relayed undecoded, so ask the host not to compress them.
            headers = {**descriptor.http_headers, "Accept-Encoding": "identity"}
            request = client.build_request("GET", descriptor.url, headers=headers)
            response = await client.send(request, stream=True)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            if response is not None:
                await response.aclose()
            await client.aclose()
            raise UpstreamError(f"Media host request failed: {exc}") from exc

        logger.info(
            "Opened media stream",
            extra={"itag": descriptor.id, "status": response.status_code, "content_length": response.headers.get("Content-Length")},
        )
        return HttpxByteStream(client, response, chunk_size=self._chunk_size)
