import dataclasses
import enum
from typing import Optional


class Fit(str, enum.Enum):
    COVER = "cover"
    INSIDE = "inside"
    CONTAIN = "contain"
    FILL = "fill"


@dataclasses.dataclass(frozen=True)
class Region:
    left: int
    top: int
    width: int
    height: int


@dataclasses.dataclass(frozen=True)
class ResizeOptions:
    width: int
    height: int
    fit: Fit = Fit.COVER
    # gravity token, "centre", or a content-aware strategy (entropy/attention)
    position: str = "centre"
    background: str = "black"
    without_enlargement: bool = True


@dataclasses.dataclass(frozen=True)
class EncodeOptions:
    format: str
    quality: Optional[int] = None
    palette: bool = False
