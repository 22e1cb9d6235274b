"""Relay a media byte stream to the client response."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import AsyncIterator

from app.core.errors import PartialStreamError
from app.services.descriptors import StreamDescriptor
from app.services.extractor import ByteStream

logger = logging.getLogger(__name__)

AUDIO_EXTENSION = "mp3"
AUDIO_CONTENT_TYPE = "audio/mpeg"
DEFAULT_STEM = "video"

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9]")


def build_filename(title: str | None, extension: str, max_length: int = 100) -> str:
    """Return `<sanitised title>.<extension>`, at most `max_length` characters long."""

    extension = _UNSAFE_CHARS.sub("", extension) or "bin"
    stem = _UNSAFE_CHARS.sub("_", title or "")
    budget = max(max_length - len(extension) - 1, 1)
    stem = stem[:budget] or DEFAULT_STEM[:budget]
    return f"{stem}.{extension}"


def extension_for(descriptor: StreamDescriptor, *, audio: bool) -> str:
    return AUDIO_EXTENSION if audio else descriptor.container


def content_type_for(descriptor: StreamDescriptor, *, audio: bool) -> str:
    return AUDIO_CONTENT_TYPE if audio else descriptor.mime_type


def download_headers(
    descriptor: StreamDescriptor,
    *,
    title: str,
    audio: bool,
    max_length: int,
    content_length: int | None = None,
) -> dict[str, str]:
    filename = build_filename(title, extension_for(descriptor, audio=audio), max_length)
    headers = {
        "Content-Disposition": f'attachment; filename="{filename}"',
        "Content-Type": content_type_for(descriptor, audio=audio),
    }
    if content_length is not None:
        headers["Content-Length"] = str(content_length)
    return headers


@dataclass(slots=True)
class PrimedStream:
    """An upstream stream whose first chunk has already been read."""

    stream: ByteStream
    chunks: AsyncIterator[bytes]
    first_chunk: bytes


async def prepare_relay(stream: ByteStream) -> PrimedStream:
    """Read the first chunk so early upstream failures surface before headers are sent."""

    chunks = stream.chunks()
    try:
        first_chunk = await anext(chunks)
    except StopAsyncIteration:
        first_chunk = b""
    except BaseException:
        await stream.aclose()
        raise
    return PrimedStream(stream=stream, chunks=chunks, first_chunk=first_chunk)


async def relay(primed: PrimedStream, *, itag: int | None = None) -> AsyncIterator[bytes]:
    """Yield the primed stream chunk by chunk.

    Once headers are out an upstream failure cannot become an error response;
    it is logged and re-raised as `PartialStreamError` so the server aborts the
    connection instead of ending the body cleanly. A client disconnect closes
    the generator, which closes the upstream without raising.
    """

    bytes_sent = 0
    completed = False
    failed = False
    try:
        if primed.first_chunk:
            yield primed.first_chunk
            bytes_sent += len(primed.first_chunk)
        async for chunk in primed.chunks:
            yield chunk
            bytes_sent += len(chunk)
        completed = True
    except Exception as exc:
        failed = True
        logger.error(
            "Upstream stream failed after response started",
            extra={"itag": itag, "bytes_sent": bytes_sent, "error": str(exc)},
        )
        raise PartialStreamError(str(exc), bytes_sent=bytes_sent) from exc
    finally:
        await primed.stream.aclose()
        if completed:
            logger.info("Relay complete", extra={"itag": itag, "bytes_sent": bytes_sent})
        elif not failed:
            logger.info("Client disconnected during relay", extra={"itag": itag, "bytes_sent": bytes_sent})
