"""
Shared fixtures: a recording fake codec so pipeline ordering can be checked
without real pixels, and small real images for end-to-end runs.
"""

import dataclasses
from io import BytesIO
from typing import List, Optional, Tuple

import pytest
from PIL import Image

from tachyon.backends.codec import ImageCodecBackend
from tachyon.backends.saliency import SalientCropService
from tachyon.domain.types import CropRect, EncodeOptions, ImageMetadata, Region, ResizeOptions
from tachyon.ops.dimensions import resized_size


@dataclasses.dataclass(frozen=True)
class FakeImage:
    width: int
    height: int
    format: str = "jpeg"


class FakeCodec(ImageCodecBackend):
    """Tracks sizes only; every call is recorded in ``calls``."""

    def __init__(self, width: int = 1000, height: int = 500, fmt: str = "jpeg"):
        self.source = FakeImage(width, height, fmt)
        self.calls: List[Tuple[str, object]] = []

    def decode(self, data):
        self.calls.append(("decode", len(data)))
        meta = ImageMetadata(
            width=self.source.width, height=self.source.height, format=self.source.format
        )
        return self.source, meta

    def auto_rotate(self, handle):
        self.calls.append(("auto_rotate", None))
        return handle

    def dimensions(self, handle):
        return handle.width, handle.height

    def resize(self, handle, options: ResizeOptions):
        self.calls.append(("resize", options))
        size = resized_size(
            handle.width,
            handle.height,
            options.width,
            options.height,
            options.fit,
            enlarge=not options.without_enlargement,
        )
        return FakeImage(size[0], size[1], handle.format)

    def extract(self, handle, region: Region):
        self.calls.append(("extract", region))
        return FakeImage(region.width, region.height, handle.format)

    def encode(self, handle, options: EncodeOptions):
        self.calls.append(("encode", options))
        return f"{options.format}:{handle.width}x{handle.height}".encode()

    def operations(self) -> List[str]:
        return [name for name, _ in self.calls if name in ("resize", "extract")]


class RecordingSaliency(SalientCropService):
    def __init__(self, rect: Optional[CropRect] = None):
        self.rect = rect
        self.requests: List[Tuple[int, int]] = []

    def crop(self, data, width, height):
        self.requests.append((width, height))
        return self.rect


def encode_image(
    width: int,
    height: int,
    fmt: str = "JPEG",
    color=(200, 40, 40),
    mode: str = "RGB",
    exif: Optional[Image.Exif] = None,
) -> bytes:
    image = Image.new(mode, (width, height), color)
    buffer = BytesIO()
    kwargs = {"exif": exif} if exif is not None else {}
    image.save(buffer, format=fmt, **kwargs)
    return buffer.getvalue()


@pytest.fixture
def fake_codec():
    return FakeCodec()


@pytest.fixture
def saliency():
    return RecordingSaliency(CropRect(x=250, y=0, width=500, height=500))


@pytest.fixture
def jpeg_1000x500():
    return encode_image(1000, 500, "JPEG")


@pytest.fixture
def png_400x300():
    return encode_image(400, 300, "PNG", color=(10, 120, 200, 255), mode="RGBA")
