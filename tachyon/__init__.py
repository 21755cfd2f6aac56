"""
Public package interface for tachyon.

``TransformEngine`` (and the module-level ``transform`` shortcut) turns an
image buffer plus query-style parameters into a ``TransformResult``.
"""

from __future__ import annotations

from tachyon.backends.codec import ImageCodecBackend, PillowCodecBackend
from tachyon.backends.saliency import SalientCropService, SmartCropService
from tachyon.domain.types import (
    CropRect,
    ImageMetadata,
    StepKind,
    TransformResult,
    ValidatedParameters,
    ValidationError,
)
from tachyon.engine import TransformEngine, transform
from tachyon.io.exceptions import (
    CodecError,
    DecodeError,
    GeometryError,
    OriginError,
    ProcessingError,
    SaliencyError,
    SourceNotFoundError,
    TachyonError,
)
from tachyon.ops.quality import apply_zoom_compression
from tachyon.ops.validate import validate_params

__version__ = "0.1.0"
