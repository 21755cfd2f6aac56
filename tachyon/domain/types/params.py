import enum
from typing import Any, Dict, Mapping, Optional, Tuple

from pydantic import Field

from tachyon.domain.types.base import BaseInfo

# Loosely typed request parameters, in the order they were received.
RawParameters = Mapping[str, Any]


class CropStrategy(str, enum.Enum):
    SMART = "smart"
    ENTROPY = "entropy"
    ATTENTION = "attention"


class Gravity(str, enum.Enum):
    NORTH = "north"
    NORTHEAST = "northeast"
    EAST = "east"
    SOUTHEAST = "southeast"
    SOUTH = "south"
    SOUTHWEST = "southwest"
    WEST = "west"
    NORTHWEST = "northwest"
    CENTER = "center"


class CropUnit(str, enum.Enum):
    PIXELS = "px"
    PERCENT = "%"


class CropValue(BaseInfo):
    """One component of a crop argument: a pixel count or a percentage."""

    value: int = Field(..., ge=0)
    unit: CropUnit = CropUnit.PERCENT

    @property
    def is_pixels(self) -> bool:
        return self.unit == CropUnit.PIXELS


class ValidationError(BaseInfo):
    field: str
    message: str

    def __str__(self) -> str:
        return self.message


class ValidatedParameters(BaseInfo):
    """
    Parameters that passed validation. A field that was not supplied, or was
    rejected, is None.
    """

    w: Optional[int] = None
    h: Optional[int] = None
    quality: Optional[int] = None
    resize: Optional[Tuple[int, int]] = None
    fit: Optional[Tuple[int, int]] = None
    lb: Optional[Tuple[int, int]] = None
    crop: Optional[Tuple[CropValue, CropValue, CropValue, CropValue]] = None
    crop_strategy: Optional[CropStrategy] = None
    gravity: Optional[Gravity] = None
    zoom: Optional[float] = None
    webp: Optional[bool] = None
    avif: Optional[bool] = None
    background: Optional[str] = None
    passthrough: Dict[str, Any] = Field(default_factory=dict)

    @property
    def effective_zoom(self) -> float:
        """Zoom multiplier; missing or zero zoom means 1."""
        return self.zoom or 1.0

    @property
    def smart_crop(self) -> bool:
        return self.crop_strategy == CropStrategy.SMART and self.crop is None

    def has(self, name: str) -> bool:
        return getattr(self, name, None) is not None
