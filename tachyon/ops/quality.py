"""
Default compression quality as a function of zoom.

Zoomed output is served at a higher pixel density, where compression
artifacts are magnified, so the default quality drops as zoom grows while
staying bounded by ``round(default / zoom)`` from below and ``default``
from above::

    apply_zoom_compression(100, 2)   == 65
    apply_zoom_compression(80, 2)    == 50
    apply_zoom_compression(100, 1.5) == 86
    apply_zoom_compression(80, 1.5)  == 68
"""

from __future__ import annotations

import math
from typing import Optional, Union

DEFAULT_QUALITY = 82

Number = Union[int, float]


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (2.5 -> 3, -2.5 -> -2)."""
    return math.floor(value + 0.5)


def clamp(value: Number, minimum: Number, maximum: Number) -> Number:
    """Clamp ``value``; when the bounds cross, ``maximum`` wins."""
    return min(max(value, minimum), maximum)


def apply_zoom_compression(default_value: int = DEFAULT_QUALITY, zoom: float = 1.0) -> int:
    if not zoom or zoom == 1:
        return default_value
    minimum = round_half_up(default_value / zoom)
    denominator = math.log(default_value / zoom)
    if denominator == 0:
        # zoom == default_value: the curve diverges towards -inf
        return int(clamp(minimum, minimum, default_value))
    value = round_half_up(
        default_value - (math.log(zoom) / denominator) * (default_value * zoom)
    )
    return int(clamp(value, minimum, default_value))


def resolve_quality(
    quality: Optional[int], zoom: float = 1.0, default_value: int = DEFAULT_QUALITY
) -> int:
    """Explicit quality when given, otherwise the zoom curve."""
    if quality is not None:
        return quality
    return apply_zoom_compression(default_value, zoom)


def encoder_quality(quality: Number) -> int:
    return round_half_up(clamp(quality, 0, 100))
