"""
Registry of pipeline step implementations keyed by StepKind.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Dict

from tachyon.domain.types.steps import StepKind

if TYPE_CHECKING:
    from tachyon.ops.pipeline import TransformPipeline

StepHandler = Callable[["TransformPipeline"], None]

TRANSFORMS: Dict[StepKind, StepHandler] = {}


def register(kind: StepKind) -> Callable[[StepHandler], StepHandler]:
    def decorator(handler: StepHandler) -> StepHandler:
        if kind in TRANSFORMS:
            raise ValueError(f"Transform already registered for {kind.value}")
        TRANSFORMS[kind] = handler
        return handler

    return decorator


def get_transform(kind: StepKind) -> StepHandler:
    try:
        return TRANSFORMS[kind]
    except KeyError:
        raise NotImplementedError(f"No transform registered for {kind.value}") from None
