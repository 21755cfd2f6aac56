"""
Exception hierarchy shared by the engine and the request layer.

Validation problems never raise; they are reported alongside the result.
Everything below ``ProcessingError`` aborts a transform.
"""

from __future__ import annotations


class TachyonError(Exception):
    """Base class for all tachyon errors."""


class ProcessingError(TachyonError):
    """A transform could not be completed."""


class DecodeError(ProcessingError):
    """The source buffer is not a readable image."""


class CodecError(ProcessingError):
    """The codec backend failed during resize, extract or encode."""


class SaliencyError(ProcessingError):
    """The salient crop service failed."""


class GeometryError(ProcessingError):
    """A step produced a non-positive width or height."""

    def __init__(self, step: str, width: float, height: float):
        self.step = step
        self.width = width
        self.height = height
        super().__init__(f"{step} produced invalid dimensions {width}x{height}")


class OriginError(TachyonError):
    """The source image could not be fetched."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class SourceNotFoundError(OriginError):
    """The source image does not exist at the origin."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Source not found: {key}", status_code=404)
