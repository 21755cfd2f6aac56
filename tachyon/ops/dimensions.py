"""
Dimension bookkeeping for the transform pipeline.

The geometry helpers here are shared with the codec backends so that the
size the pipeline expects after a resize is exactly the size produced.
"""

from __future__ import annotations

from typing import Sequence, Tuple

from tachyon.domain.types.codec import Fit, Region
from tachyon.domain.types.image import ImageState
from tachyon.domain.types.params import CropValue
from tachyon.io.exceptions import GeometryError
from tachyon.ops.quality import clamp, round_half_up

Size = Tuple[int, int]


def fit_inside(
    width: int, height: int, target_width: int, target_height: int, enlarge: bool = False
) -> Size:
    """Largest size with the source aspect that fits the box."""
    scale = min(target_width / width, target_height / height)
    if not enlarge:
        scale = min(scale, 1)
    return round_half_up(width * scale), round_half_up(height * scale)


def fit_cover(
    width: int, height: int, target_width: int, target_height: int, enlarge: bool = False
) -> Tuple[Size, Size]:
    """
    Cover the box, enlarging only when asked to.

    Returns the scaled size and the final size after the overflow is cropped.
    """
    scale = max(target_width / width, target_height / height)
    if not enlarge:
        scale = min(scale, 1)
    scaled = (round_half_up(width * scale), round_half_up(height * scale))
    return scaled, (min(target_width, scaled[0]), min(target_height, scaled[1]))


def resized_size(
    width: int,
    height: int,
    target_width: int,
    target_height: int,
    fit: Fit,
    enlarge: bool = False,
) -> Size:
    """Output size of a resize with the given fit."""
    if fit == Fit.INSIDE:
        return fit_inside(width, height, target_width, target_height, enlarge)
    if fit == Fit.COVER:
        return fit_cover(width, height, target_width, target_height, enlarge)[1]
    # contain pads to the box, fill stretches to it
    return target_width, target_height


class DimensionTracker:
    """Owns the ImageState of one pipeline run."""

    def __init__(self, width: int, height: int, rotated: bool = False):
        self.state = ImageState(width=width, height=height, rotated=rotated)
        self._check("source", width, height)

    @property
    def width(self) -> int:
        return self.state.width

    @property
    def height(self) -> int:
        return self.state.height

    @property
    def size(self) -> Size:
        return self.state.width, self.state.height

    @staticmethod
    def _check(step: str, width: float, height: float) -> None:
        if width < 1 or height < 1:
            raise GeometryError(step, width, height)

    def update(self, step: str, width: int, height: int) -> None:
        self._check(step, width, height)
        self.state.width = int(width)
        self.state.height = int(height)

    def crop_region(self, values: Sequence[CropValue]) -> Region:
        """
        Resolve ``[x, y, w, h]`` against the current size and clamp it.

        Percentages refer to the width for x and w and to the height for y
        and h. The result always lies inside the image and is at least 1px
        in each direction.
        """
        resolved = []
        for index, value in enumerate(values):
            dimension = self.width if index % 2 == 0 else self.height
            if value.is_pixels:
                resolved.append(value.value)
            else:
                resolved.append(round_half_up(dimension * (value.value / 100)))
        x, y, w, h = resolved
        x = clamp(x, 0, self.width - 1)
        y = clamp(y, 0, self.height - 1)
        w = clamp(w, 1, self.width - x)
        h = clamp(h, 1, self.height - y)
        return Region(left=x, top=y, width=w, height=h)

    def scale_to_fit(self, target_width: int, target_height: int, step: str) -> Size:
        """Size for a no-enlargement fit into the target box."""
        self._check(step, target_width, target_height)
        return fit_inside(self.width, self.height, target_width, target_height)

    def proportional_size(self, w: int | None, h: int | None) -> Size:
        """
        Requested size for a width and/or height; a missing side follows
        the current aspect ratio.
        """
        if w is not None and h is None:
            return w, round_half_up(w * self.state.aspect_ratio)
        if h is not None and w is None:
            return round_half_up(h / self.state.aspect_ratio), h
        return w or self.width, h or self.height

    def __repr__(self) -> str:
        return f"DimensionTracker({self.width}x{self.height}, rotated={self.state.rotated})"
