import enum
from typing import Iterable, Optional, Tuple

from tachyon.domain.types.params import ValidatedParameters


class StepKind(str, enum.Enum):
    CROP = "crop"
    RESIZE = "resize"
    FIT = "fit"
    LB = "lb"
    WH = "wh"


_PARAM_STEPS = {
    "crop": StepKind.CROP,
    "resize": StepKind.RESIZE,
    "fit": StepKind.FIT,
    "lb": StepKind.LB,
    "w": StepKind.WH,
    "h": StepKind.WH,
}

StepOrder = Tuple[StepKind, ...]


def step_for_param(name: str) -> Optional[StepKind]:
    return _PARAM_STEPS.get(name)


def _is_active(kind: StepKind, params: ValidatedParameters) -> bool:
    if kind == StepKind.WH:
        return params.w is not None or params.h is not None
    return params.has(kind.value)


def build_step_order(param_order: Iterable[str], params: ValidatedParameters) -> StepOrder:
    """
    Executable steps in request order.

    ``w`` and ``h`` share one step placed where either first appears, and a
    crop always runs before everything else.
    """
    steps = []
    for name in param_order:
        kind = step_for_param(name)
        if kind is None or kind in steps or not _is_active(kind, params):
            continue
        steps.append(kind)
    if params.crop is not None:
        if StepKind.CROP in steps:
            steps.remove(StepKind.CROP)
        steps.insert(0, StepKind.CROP)
    return tuple(steps)
