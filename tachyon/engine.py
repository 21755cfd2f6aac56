"""
Single entry point for transforming an image buffer.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from tachyon.backends.codec import ImageCodecBackend, PillowCodecBackend
from tachyon.backends.saliency import SalientCropService, SmartCropService
from tachyon.domain.types.image import TransformResult
from tachyon.domain.types.params import RawParameters
from tachyon.domain.types.steps import build_step_order
from tachyon.ops.dimensions import DimensionTracker
from tachyon.ops.format import select_format
from tachyon.ops.pipeline import TransformPipeline
from tachyon.ops.quality import DEFAULT_QUALITY, resolve_quality
from tachyon.ops.validate import validate_params

logger = logging.getLogger(__name__)


class TransformEngine:
    """
    Validate -> order steps -> apply -> select format -> encode.

    The engine holds no per-request state, so one instance can serve
    concurrent calls as long as the injected backends are thread-safe.
    """

    def __init__(
        self,
        codec: Optional[ImageCodecBackend] = None,
        saliency: Optional[SalientCropService] = None,
        default_quality: int = DEFAULT_QUALITY,
    ):
        self.codec = codec or PillowCodecBackend()
        self.saliency = saliency if saliency is not None else SmartCropService()
        self.default_quality = default_quality

    def transform(
        self,
        buffer: bytes,
        raw_params: RawParameters,
        param_order: Optional[Iterable[str]] = None,
    ) -> TransformResult:
        """
        Transform ``buffer`` according to ``raw_params``.

        ``param_order`` is the order parameter names arrived in; it defaults
        to the insertion order of ``raw_params``. Invalid parameters are
        dropped and reported in ``TransformResult.errors``; decode and codec
        failures raise ProcessingError subclasses.
        """
        handle, metadata = self.codec.decode(buffer)
        handle = self.codec.auto_rotate(handle)
        width, height = self.codec.dimensions(handle)
        tracker = DimensionTracker(width, height, rotated=metadata.needs_rotation)

        params, errors = validate_params(raw_params)
        steps = build_step_order(raw_params if param_order is None else param_order, params)
        logger.debug(
            "Transforming %s %sx%s with steps %s",
            metadata.format,
            width,
            height,
            [step.value for step in steps],
        )

        pipeline = TransformPipeline(self.codec, handle, params, tracker, saliency=self.saliency)
        handle = pipeline.run(steps)

        quality = resolve_quality(params.quality, pipeline.zoom, self.default_quality)
        options = select_format(params, metadata.format, quality)
        data = self.codec.encode(handle, options)

        if errors:
            logger.info("Ignored invalid args: %s", ";".join(e.message for e in errors))
        return TransformResult(
            data=data,
            format=options.format,
            width=tracker.width,
            height=tracker.height,
            quality=options.quality,
            errors=[e.message for e in errors],
        )


_default_engine: Optional[TransformEngine] = None


def transform(
    buffer: bytes, raw_params: RawParameters, param_order: Optional[Iterable[str]] = None
) -> TransformResult:
    """Transform with a shared engine using the Pillow and numpy backends."""
    global _default_engine
    if _default_engine is None:
        _default_engine = TransformEngine()
    return _default_engine.transform(buffer, raw_params, param_order)
