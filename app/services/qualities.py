"""Client-facing quality tokens and their fixed ordering."""

from __future__ import annotations

import re
from enum import Enum
from typing import Iterable


class QualityToken(str, Enum):
    P2160 = "2160p"
    P1440 = "1440p"
    P1080 = "1080p"
    P720 = "720p"
    P480 = "480p"
    P360 = "360p"
    P240 = "240p"
    P144 = "144p"
    MP3 = "mp3"


# Descending resolution; mp3 is audio-only and always last.
QUALITY_ORDER: tuple[QualityToken, ...] = tuple(QualityToken)
VIDEO_TOKENS: tuple[QualityToken, ...] = tuple(token for token in QUALITY_ORDER if token is not QualityToken.MP3)
AUDIO_ALIASES = frozenset({"mp3", "audio"})

_RANK = {token.value: index for index, token in enumerate(QUALITY_ORDER)}
_RESOLUTION_PREFIX = re.compile(r"^\s*(\d+)p", re.IGNORECASE)


def resolution_of(label: str | None) -> int | None:
    """Return the numeric resolution a label starts with (`"1080p60"` -> 1080)."""

    if not label:
        return None
    match = _RESOLUTION_PREFIX.match(label)
    if not match:
        return None
    return int(match.group(1))


def token_for_label(label: str | None) -> QualityToken | None:
    """Map a descriptor quality label onto a known video token, if any."""

    resolution = resolution_of(label)
    if resolution is None:
        return None
    for token in VIDEO_TOKENS:
        if resolution_of(token.value) == resolution:
            return token
    return None


def parse_quality(raw: str | None) -> str | None:
    """Normalise a requested quality; unknown values mean "unspecified"."""

    if raw is None:
        return None
    value = raw.strip().lower()
    if value in AUDIO_ALIASES:
        return value
    if value in _RANK:
        return value
    return None


def sort_qualities(tokens: Iterable[str]) -> list[str]:
    """Deduplicate tokens and order them by the fixed quality ordering."""

    unique = {token for token in tokens if token in _RANK}
    return sorted(unique, key=_RANK.__getitem__)


DISPLAY_LABELS: dict[str, str] = {
    QualityToken.P2160.value: "4K (2160p)",
    QualityToken.P1440.value: "1440p",
    QualityToken.P1080.value: "1080p",
    QualityToken.P720.value: "720p",
    QualityToken.P480.value: "480p",
    QualityToken.P360.value: "360p",
    QualityToken.P240.value: "240p",
    QualityToken.P144.value: "144p",
    QualityToken.MP3.value: "MP3 Audio",
}
