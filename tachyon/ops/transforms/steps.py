"""
Geometric steps of the transform pipeline.

Every step reads the current size from the pipeline's DimensionTracker and
leaves it matching the buffer it produced.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Tuple

from tachyon.domain.types.codec import Fit, ResizeOptions
from tachyon.domain.types.params import CropStrategy, ValidatedParameters
from tachyon.domain.types.steps import StepKind
from tachyon.ops.quality import round_half_up
from tachyon.ops.transforms.registry import register

if TYPE_CHECKING:
    from tachyon.ops.pipeline import TransformPipeline

DEFAULT_BACKGROUND = "black"


def zoomed(dims: Tuple[int, int], zoom: float) -> Tuple[int, int]:
    return round_half_up(dims[0] * zoom), round_half_up(dims[1] * zoom)


def resize_position(params: ValidatedParameters) -> str:
    """Anchor for the overflow of a resize."""
    if params.crop_strategy is not None and params.crop_strategy != CropStrategy.SMART:
        return params.crop_strategy.value
    if params.gravity is not None:
        return params.gravity.value
    return "centre"


@register(StepKind.CROP)
def crop(pipeline: TransformPipeline) -> None:
    region = pipeline.tracker.crop_region(pipeline.params.crop)
    pipeline.extract("crop", region)


@register(StepKind.RESIZE)
def resize(pipeline: TransformPipeline) -> None:
    params = pipeline.params
    if params.smart_crop:
        # the salient region is chosen for the requested, un-zoomed aspect
        pipeline.salient_crop(*params.resize)

    target_width, target_height = zoomed(params.resize, pipeline.zoom)
    width, height = pipeline.tracker.scale_to_fit(target_width, target_height, "resize")
    pipeline.resize(
        "resize",
        ResizeOptions(
            width=width,
            height=height,
            fit=Fit.COVER,
            position=resize_position(params),
        ),
    )


@register(StepKind.FIT)
def fit(pipeline: TransformPipeline) -> None:
    target_width, target_height = zoomed(pipeline.params.fit, pipeline.zoom)
    width, height = pipeline.tracker.scale_to_fit(target_width, target_height, "fit")
    pipeline.resize("fit", ResizeOptions(width=width, height=height, fit=Fit.INSIDE))


@register(StepKind.LB)
def letterbox(pipeline: TransformPipeline) -> None:
    width, height = zoomed(pipeline.params.lb, pipeline.zoom)
    pipeline.resize(
        "lb",
        ResizeOptions(
            width=width,
            height=height,
            fit=Fit.CONTAIN,
            background=pipeline.params.background or DEFAULT_BACKGROUND,
        ),
    )


@register(StepKind.WH)
def width_height(pipeline: TransformPipeline) -> None:
    params = pipeline.params
    width, height = pipeline.tracker.proportional_size(params.w, params.h)
    target_width, target_height = zoomed((width, height), pipeline.zoom)
    pipeline.resize(
        "w/h",
        ResizeOptions(
            width=target_width,
            height=target_height,
            # a crop has already fixed the framing, so fill the box
            fit=Fit.COVER if params.crop is not None else Fit.INSIDE,
        ),
    )
