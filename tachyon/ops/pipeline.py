"""
Ordered execution of the geometric transform steps.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

from tachyon.backends.codec import ImageCodecBackend
from tachyon.backends.saliency import SalientCropService
from tachyon.domain.types.codec import EncodeOptions, Region, ResizeOptions
from tachyon.domain.types.params import ValidatedParameters
from tachyon.domain.types.steps import StepKind
from tachyon.io.exceptions import CodecError, SaliencyError
from tachyon.ops.dimensions import DimensionTracker, resized_size
from tachyon.ops.transforms import get_transform

logger = logging.getLogger(__name__)


class TransformPipeline:
    """
    Runs a StepOrder against one decoded image.

    A pipeline instance belongs to a single transform call: it owns the
    codec handle and the DimensionTracker, and issues backend calls one at
    a time.
    """

    def __init__(
        self,
        codec: ImageCodecBackend,
        handle: Any,
        params: ValidatedParameters,
        tracker: DimensionTracker,
        saliency: Optional[SalientCropService] = None,
    ):
        self.codec = codec
        self.handle = handle
        self.params = params
        self.tracker = tracker
        self.saliency = saliency
        self.zoom = params.effective_zoom
        self.applied: list[StepKind] = []

    def run(self, steps: Iterable[StepKind]) -> Any:
        for kind in steps:
            get_transform(kind)(self)
            self.applied.append(kind)
            logger.debug("Applied %s -> %sx%s", kind.value, self.tracker.width, self.tracker.height)
        return self.handle

    def _verify(self, step: str) -> None:
        actual = tuple(self.codec.dimensions(self.handle))
        if actual != self.tracker.size:
            raise CodecError(
                f"{step} produced {actual[0]}x{actual[1]}, "
                f"expected {self.tracker.width}x{self.tracker.height}"
            )

    def extract(self, step: str, region: Region) -> None:
        self.tracker.update(step, region.width, region.height)
        self.handle = self.codec.extract(self.handle, region)
        self._verify(step)

    def resize(self, step: str, options: ResizeOptions) -> None:
        width, height = resized_size(
            self.tracker.width,
            self.tracker.height,
            options.width,
            options.height,
            options.fit,
            enlarge=not options.without_enlargement,
        )
        self.tracker.update(step, width, height)
        self.handle = self.codec.resize(self.handle, options)
        self._verify(step)

    def salient_crop(self, width: int, height: int) -> None:
        """Extract the salient region for a ``width``x``height`` target, if any."""
        if self.saliency is None:
            logger.debug("No salient crop service configured, skipping smart crop")
            return
        snapshot = self.codec.encode(self.handle, EncodeOptions(format="png"))
        try:
            rect = self.saliency.crop(snapshot, width, height)
        except SaliencyError:
            raise
        except Exception as e:
            raise SaliencyError(f"Salient crop service failed: {e}") from e
        if rect is None:
            logger.debug("Salient crop service returned no region")
            return
        self.extract(
            "smart crop",
            Region(left=rect.x, top=rect.y, width=rect.width, height=rect.height),
        )
