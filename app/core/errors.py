"""Domain errors raised by the services and mapped to HTTP responses by the routers."""

from __future__ import annotations


class InvalidVideoUrlError(ValueError):
    """Raised when a string is not a usable YouTube video URL."""


class FormatNotFoundError(LookupError):
    """Raised when no stream descriptor satisfies a download request."""


class UpstreamError(RuntimeError):
    """Raised when the extraction library or the media host fails."""


class PartialStreamError(UpstreamError):
    """Raised when the upstream fails after response headers were sent."""

    def __init__(self, message: str, *, bytes_sent: int) -> None:
        super().__init__(message)
        self.bytes_sent = bytes_sent
