import dataclasses
from typing import List, Optional

from pydantic import Field

from tachyon.domain.types.base import BaseInfo


class ImageMetadata(BaseInfo):
    """What the codec backend reports about a decoded source."""

    width: int = Field(..., gt=0)
    height: int = Field(..., gt=0)
    format: str = Field(..., description="Lower-case codec name, e.g. jpeg, png, webp")
    orientation: Optional[int] = Field(default=None, description="EXIF orientation tag")

    @property
    def needs_rotation(self) -> bool:
        return self.orientation is not None and self.orientation != 1


class CropRect(BaseInfo):
    """A rectangle in source pixels, as returned by the salient crop service."""

    x: int = Field(..., ge=0)
    y: int = Field(..., ge=0)
    width: int = Field(..., gt=0)
    height: int = Field(..., gt=0)


@dataclasses.dataclass
class ImageState:
    """Current logical size of the image while the pipeline runs."""

    width: int
    height: int
    rotated: bool = False

    @property
    def aspect_ratio(self) -> float:
        return self.height / self.width


class TransformResult(BaseInfo):
    data: bytes = Field(..., repr=False)
    format: str
    width: int
    height: int
    quality: Optional[int] = None
    errors: List[str] = Field(default_factory=list)

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def errors_header(self) -> str:
        """Validation messages joined for a single diagnostic header."""
        return ";".join(self.errors)

    @property
    def content_type(self) -> str:
        return f"image/{self.format}"
