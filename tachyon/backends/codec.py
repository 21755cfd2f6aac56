from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from io import BytesIO
from typing import Any, Dict, Tuple

from PIL import Image, ImageColor, ImageOps, UnidentifiedImageError

from tachyon.backends.saliency import focus_offset
from tachyon.domain.types.codec import EncodeOptions, Fit, Region, ResizeOptions
from tachyon.domain.types.image import ImageMetadata
from tachyon.io.exceptions import CodecError, DecodeError
from tachyon.ops.dimensions import fit_cover, fit_inside
from tachyon.ops.quality import round_half_up

logger = logging.getLogger(__name__)

EXIF_ORIENTATION = 0x0112

# gravity -> (horizontal, vertical) centering for the overflow of a cover resize
CENTERING: Dict[str, Tuple[float, float]] = {
    "north": (0.5, 0.0),
    "northeast": (1.0, 0.0),
    "east": (1.0, 0.5),
    "southeast": (1.0, 1.0),
    "south": (0.5, 1.0),
    "southwest": (0.0, 1.0),
    "west": (0.0, 0.5),
    "northwest": (0.0, 0.0),
    "center": (0.5, 0.5),
    "centre": (0.5, 0.5),
}

CONTENT_AWARE_POSITIONS = ("entropy", "attention")

# multi-picture JPEGs from cameras and phones decode as MPO
FORMAT_ALIASES: Dict[str, str] = {"mpo": "jpeg"}

# Pillow plugin names for the lower-case format names used throughout tachyon
PIL_FORMATS: Dict[str, str] = {
    "jpeg": "JPEG",
    "jpg": "JPEG",
    "png": "PNG",
    "webp": "WEBP",
    "avif": "AVIF",
    "gif": "GIF",
    "tiff": "TIFF",
    "bmp": "BMP",
}


class ImageCodecBackend(ABC):
    """Pixel-level operations the engine delegates to an image library."""

    @abstractmethod
    def decode(self, data: bytes) -> Tuple[Any, ImageMetadata]:
        """Decode ``data``. Raises DecodeError on unreadable input."""

    @abstractmethod
    def auto_rotate(self, handle: Any) -> Any:
        """Apply the embedded EXIF orientation."""

    @abstractmethod
    def dimensions(self, handle: Any) -> Tuple[int, int]:
        """Current (width, height) of the handle."""

    @abstractmethod
    def resize(self, handle: Any, options: ResizeOptions) -> Any:
        """Resize according to ``options``."""

    @abstractmethod
    def extract(self, handle: Any, region: Region) -> Any:
        """Cut ``region`` out of the image."""

    @abstractmethod
    def encode(self, handle: Any, options: EncodeOptions) -> bytes:
        """Serialise the image."""

    def __repr__(self) -> str:  # pragma: no cover - trivial
        return f"{self.__class__.__name__}()"


def _centered_offset(
    scaled: Tuple[int, int], final: Tuple[int, int], position: str
) -> Tuple[int, int]:
    cx, cy = CENTERING.get(position, CENTERING["centre"])
    return (
        round_half_up((scaled[0] - final[0]) * cx),
        round_half_up((scaled[1] - final[1]) * cy),
    )


class PillowCodecBackend(ImageCodecBackend):
    """ImageCodecBackend built on Pillow. Handles are ``PIL.Image.Image``."""

    resample = Image.Resampling.LANCZOS

    def decode(self, data: bytes) -> Tuple[Image.Image, ImageMetadata]:
        try:
            image = Image.open(BytesIO(data))
            image.seek(0)
            image.load()
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
            raise DecodeError(f"Could not decode image: {e}") from e
        fmt = (image.format or "").lower()
        fmt = FORMAT_ALIASES.get(fmt, fmt)
        orientation = image.getexif().get(EXIF_ORIENTATION)
        metadata = ImageMetadata(
            width=image.width, height=image.height, format=fmt, orientation=orientation
        )
        return image, metadata

    def auto_rotate(self, handle: Image.Image) -> Image.Image:
        try:
            rotated = ImageOps.exif_transpose(handle)
        except (OSError, ValueError, KeyError, TypeError) as e:
            raise CodecError(f"EXIF orientation could not be applied: {e}") from e
        return rotated if rotated is not None else handle

    def dimensions(self, handle: Image.Image) -> Tuple[int, int]:
        return handle.size

    def resize(self, handle: Image.Image, options: ResizeOptions) -> Image.Image:
        width, height = handle.size
        enlarge = not options.without_enlargement
        try:
            if options.fit == Fit.INSIDE:
                size = fit_inside(width, height, options.width, options.height, enlarge)
                return self._resample(handle, size)
            if options.fit == Fit.COVER:
                scaled, final = fit_cover(width, height, options.width, options.height, enlarge)
                resized = self._resample(handle, scaled)
                if final == scaled:
                    return resized
                if options.position in CONTENT_AWARE_POSITIONS:
                    left, top = focus_offset(resized, final[0], final[1], options.position)
                else:
                    left, top = _centered_offset(scaled, final, options.position)
                return resized.crop((left, top, left + final[0], top + final[1]))
            if options.fit == Fit.CONTAIN:
                return self._letterbox(handle, options, enlarge)
            return self._resample(handle, (options.width, options.height))
        except (OSError, ValueError) as e:
            raise CodecError(f"Resize to {options.width}x{options.height} failed: {e}") from e

    def _resample(self, image: Image.Image, size: Tuple[int, int]) -> Image.Image:
        if size == image.size:
            return image
        return image.resize(size, self.resample)

    def _letterbox(self, image: Image.Image, options: ResizeOptions, enlarge: bool) -> Image.Image:
        inner = fit_inside(image.width, image.height, options.width, options.height, enlarge)
        content = self._resample(image, inner)
        mode = "RGBA" if "A" in content.getbands() or content.mode == "P" else "RGB"
        if content.mode != mode:
            content = content.convert(mode)
        color = ImageColor.getcolor(options.background, mode)
        canvas = Image.new(mode, (options.width, options.height), color)
        left = (options.width - inner[0]) // 2
        top = (options.height - inner[1]) // 2
        canvas.paste(content, (left, top))
        return canvas

    def extract(self, handle: Image.Image, region: Region) -> Image.Image:
        right, bottom = region.left + region.width, region.top + region.height
        if region.left < 0 or region.top < 0 or right > handle.width or bottom > handle.height:
            raise CodecError(f"Extract region {region} is outside {handle.width}x{handle.height}")
        return handle.crop((region.left, region.top, right, bottom))

    def encode(self, handle: Image.Image, options: EncodeOptions) -> bytes:
        pil_format = PIL_FORMATS.get(options.format, options.format.upper())
        image = handle
        params: Dict[str, Any] = {}
        if pil_format == "JPEG":
            if image.mode not in ("RGB", "L", "CMYK"):
                image = image.convert("RGB")
        elif pil_format == "PNG" and options.palette:
            image = self._palette(image)
            params["optimize"] = True
        if options.quality is not None and pil_format in ("JPEG", "WEBP", "AVIF"):
            params["quality"] = options.quality

        buffer = BytesIO()
        try:
            image.save(buffer, format=pil_format, **params)
        except (OSError, ValueError, KeyError) as e:
            raise CodecError(f"Encoding {options.format} failed: {e}") from e
        return buffer.getvalue()

    @staticmethod
    def _palette(image: Image.Image) -> Image.Image:
        if image.mode == "P":
            return image
        if image.mode not in ("RGB", "RGBA"):
            image = image.convert("RGBA" if "A" in image.getbands() else "RGB")
        method = Image.Quantize.FASTOCTREE if image.mode == "RGBA" else Image.Quantize.MEDIANCUT
        return image.quantize(colors=256, method=method)
