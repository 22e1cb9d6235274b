"""Pick the single stream descriptor that answers a download request."""

from __future__ import annotations

import logging
from typing import Callable, Sequence

from app.core.config import QualityPolicy
from app.core.errors import FormatNotFoundError
from app.services.descriptors import StreamDescriptor
from app.services.qualities import AUDIO_ALIASES, resolution_of

logger = logging.getLogger(__name__)


def _max_by(
    descriptors: Sequence[StreamDescriptor],
    key: Callable[[StreamDescriptor], int | None],
) -> StreamDescriptor | None:
    # max() keeps the first of equal elements, which is the tie-break we want.
    if not descriptors:
        return None
    return max(descriptors, key=lambda descriptor: key(descriptor) or 0)


def matching_quality(descriptors: Sequence[StreamDescriptor], quality: str) -> list[StreamDescriptor]:
    """Return exact label matches, or failing that, same-resolution matches."""

    exact = [descriptor for descriptor in descriptors if descriptor.quality_label == quality]
    if exact:
        return exact

    wanted = resolution_of(quality)
    if wanted is None:
        return []
    return [descriptor for descriptor in descriptors if resolution_of(descriptor.quality_label) == wanted]


def best_audio(descriptors: Sequence[StreamDescriptor]) -> StreamDescriptor:
    audio_only = [descriptor for descriptor in descriptors if descriptor.is_audio_only]
    chosen = _max_by(audio_only, lambda descriptor: descriptor.audio_bitrate)
    if chosen is None:
        raise FormatNotFoundError("No audio-only format available")
    return chosen


def best_video(
    descriptors: Sequence[StreamDescriptor],
    quality: str | None,
    *,
    policy: QualityPolicy = QualityPolicy.BEST_EFFORT,
) -> StreamDescriptor:
    combined = [descriptor for descriptor in descriptors if descriptor.is_combined]
    if not combined:
        raise FormatNotFoundError("No combined audio/video format available")

    if quality:
        matched = _max_by(matching_quality(combined, quality), lambda descriptor: descriptor.bitrate)
        if matched is not None:
            return matched
        if policy is QualityPolicy.STRICT:
            raise FormatNotFoundError(f"Requested quality {quality} is not available")
        logger.info("Quality unavailable; falling back to best combined stream", extra={"quality": quality})

    return max(combined, key=lambda descriptor: descriptor.bitrate or 0)


def resolve(
    descriptors: Sequence[StreamDescriptor],
    requested_quality: str | None = None,
    requested_id: int | None = None,
    *,
    policy: QualityPolicy = QualityPolicy.BEST_EFFORT,
) -> StreamDescriptor:
    """Select one descriptor for a download request.

    Precedence, first applicable rule wins:
      1. An explicit format id must match exactly.
      2. `mp3`/`audio` selects the audio-only stream with the highest audio bitrate.
      3. Otherwise only combined streams qualify: the highest-bitrate stream of the
         requested quality, else (best-effort policy) the highest-bitrate overall.

    Ties are resolved in favour of the earlier descriptor.
    """

    if requested_id is not None:
        for descriptor in descriptors:
            if descriptor.id == requested_id:
                return descriptor
        raise FormatNotFoundError("Format not available")

    if requested_quality in AUDIO_ALIASES:
        return best_audio(descriptors)

    return best_video(descriptors, requested_quality, policy=policy)
