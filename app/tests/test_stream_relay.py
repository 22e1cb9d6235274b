"""Tests for filename/header rules and the byte relay generator."""

from __future__ import annotations

import re

import pytest

from app.core.errors import PartialStreamError, UpstreamError
from app.services.descriptors import StreamDescriptor
from app.services.stream_relay import (
    build_filename,
    content_type_for,
    download_headers,
    prepare_relay,
    relay,
)


class FakeStream:
    def __init__(self, chunks: list[bytes], *, fail_after: int | None = None) -> None:
        self._chunks = chunks
        self._fail_after = fail_after
        self.content_length = sum(len(chunk) for chunk in chunks)
        self.closed = False

    async def chunks(self):
        for index, chunk in enumerate(self._chunks):
            if self._fail_after is not None and index >= self._fail_after:
                raise UpstreamError("connection reset")
            yield chunk
        if self._fail_after is not None and self._fail_after >= len(self._chunks):
            raise UpstreamError("connection reset")

    async def aclose(self) -> None:
        self.closed = True


def _descriptor(**overrides) -> StreamDescriptor:
    values = dict(
        id=18,
        has_video=True,
        has_audio=True,
        container="mp4",
        mime_type='video/mp4; codecs="avc1.42001E, mp4a.40.2"',
        quality_label="360p",
    )
    values.update(overrides)
    return StreamDescriptor(**values)


async def _collect(generator) -> bytes:
    return b"".join([chunk async for chunk in generator])


def test_build_filename_replaces_symbols_and_spaces():
    assert build_filename("Hello, World! (Official Video)", "mp4") == "Hello__World___Official_Video_.mp4"
    assert build_filename("Café 東京", "webm") == "Caf____.webm"


def test_build_filename_respects_length_bound():
    name = build_filename("a very long title " * 40, "webm", max_length=50)

    assert len(name) == 50
    assert re.fullmatch(r"[A-Za-z0-9_]+\.webm", name)


def test_build_filename_uses_default_stem_for_empty_title():
    assert build_filename("", "mp3") == "video.mp3"


def test_content_type_for_audio_branch_is_mpeg():
    descriptor = _descriptor(has_video=False, container="m4a", mime_type="audio/mp4")

    assert content_type_for(descriptor, audio=True) == "audio/mpeg"
    assert content_type_for(descriptor, audio=False) == "audio/mp4"


def test_download_headers():
    headers = download_headers(_descriptor(), title="My clip", audio=False, max_length=100, content_length=42)

    assert headers["Content-Disposition"] == 'attachment; filename="My_clip.mp4"'
    assert headers["Content-Type"].startswith("video/mp4")
    assert headers["Content-Length"] == "42"


def test_download_headers_audio_uses_mp3_extension():
    headers = download_headers(_descriptor(has_video=False), title="Song", audio=True, max_length=100)

    assert headers["Content-Disposition"] == 'attachment; filename="Song.mp3"'
    assert headers["Content-Type"] == "audio/mpeg"
    assert "Content-Length" not in headers


@pytest.mark.asyncio
async def test_relay_streams_all_chunks_and_closes_upstream():
    stream = FakeStream([b"abc", b"def", b"ghi"])

    primed = await prepare_relay(stream)
    body = await _collect(relay(primed, itag=18))

    assert body == b"abcdefghi"
    assert stream.closed is True


@pytest.mark.asyncio
async def test_relay_of_empty_stream_yields_nothing():
    stream = FakeStream([])

    primed = await prepare_relay(stream)

    assert primed.first_chunk == b""
    assert await _collect(relay(primed)) == b""
    assert stream.closed is True


@pytest.mark.asyncio
async def test_failure_before_first_chunk_surfaces_from_prepare():
    stream = FakeStream([b"abc"], fail_after=0)

    with pytest.raises(UpstreamError, match="connection reset"):
        await prepare_relay(stream)
    assert stream.closed is True


@pytest.mark.asyncio
async def test_failure_mid_stream_raises_partial_stream_error():
    stream = FakeStream([b"abc", b"def", b"ghi"], fail_after=2)
    primed = await prepare_relay(stream)
    received: list[bytes] = []

    with pytest.raises(PartialStreamError) as excinfo:
        async for chunk in relay(primed, itag=18):
            received.append(chunk)

    assert received == [b"abc", b"def"]
    assert excinfo.value.bytes_sent == 6
    assert stream.closed is True


@pytest.mark.asyncio
async def test_client_disconnect_closes_upstream_quietly():
    stream = FakeStream([b"abc", b"def", b"ghi"])
    primed = await prepare_relay(stream)
    generator = relay(primed, itag=18)

    assert await anext(generator) == b"abc"
    await generator.aclose()

    assert stream.closed is True
