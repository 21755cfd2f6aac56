"""
Content-aware crop selection.

``SmartCropService`` scores a downsampled copy of the image for detail
(luminance edges) and colour (saturation) and slides the largest window of
the requested aspect ratio over the score map. The same scoring picks the
anchor for ``entropy`` and ``attention`` positioned resizes.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from io import BytesIO
from typing import Optional, Tuple

import numpy as np
from PIL import Image, UnidentifiedImageError

from tachyon.domain.types.image import CropRect
from tachyon.io.exceptions import SaliencyError
from tachyon.ops.quality import round_half_up

logger = logging.getLogger(__name__)

ANALYSE_SIZE = 256
EDGE_WEIGHT = 1.0
SATURATION_WEIGHT = 0.3
ENTROPY_BINS = 64
ENTROPY_STEPS = 24

_LUMA = np.array([0.2126, 0.7152, 0.0722], dtype=np.float32)


class SalientCropService(ABC):
    """Finds the most interesting rectangle for a target aspect ratio."""

    @abstractmethod
    def crop(self, data: bytes, width: int, height: int) -> Optional[CropRect]:
        """
        Salient rectangle of ``data`` with the aspect ratio of
        ``width``x``height``, or None when there is nothing to suggest.
        """


def _analysis_array(image: Image.Image, max_side: int = ANALYSE_SIZE) -> Tuple[np.ndarray, float]:
    """RGB float array of a downsampled copy and the scale used."""
    rgb = image.convert("RGB")
    scale = min(1.0, max_side / max(rgb.size))
    if scale < 1.0:
        size = (max(1, round_half_up(rgb.width * scale)), max(1, round_half_up(rgb.height * scale)))
        rgb = rgb.resize(size, Image.Resampling.BILINEAR)
    return np.asarray(rgb, dtype=np.float32) / 255.0, scale


def edge_map(rgb: np.ndarray) -> np.ndarray:
    luma = rgb @ _LUMA
    gx = np.abs(np.diff(luma, axis=1, prepend=luma[:, :1]))
    gy = np.abs(np.diff(luma, axis=0, prepend=luma[:1, :]))
    return gx + gy


def saturation_map(rgb: np.ndarray) -> np.ndarray:
    high = rgb.max(axis=2)
    low = rgb.min(axis=2)
    return np.where(high > 0, (high - low) / np.maximum(high, 1e-6), 0.0)


def attention_map(rgb: np.ndarray) -> np.ndarray:
    return EDGE_WEIGHT * edge_map(rgb) + SATURATION_WEIGHT * saturation_map(rgb)


def best_window(score: np.ndarray, win_w: int, win_h: int) -> Tuple[int, int]:
    """
    Top-left corner of the ``win_w``x``win_h`` window with the highest total
    score. Ties go to the window closest to the centre.
    """
    rows, cols = score.shape
    win_w = min(max(win_w, 1), cols)
    win_h = min(max(win_h, 1), rows)
    integral = np.pad(score.cumsum(axis=0).cumsum(axis=1), ((1, 0), (1, 0)))
    sums = (
        integral[win_h:, win_w:]
        - integral[:-win_h, win_w:]
        - integral[win_h:, :-win_w]
        + integral[:-win_h, :-win_w]
    )
    best = sums.max()
    ys, xs = np.nonzero(sums >= best - 1e-6 * max(abs(best), 1.0))
    cy, cx = (sums.shape[0] - 1) / 2, (sums.shape[1] - 1) / 2
    pick = np.argmin((ys - cy) ** 2 + (xs - cx) ** 2)
    return int(xs[pick]), int(ys[pick])


def _entropy(luma: np.ndarray) -> float:
    hist, _ = np.histogram(luma, bins=ENTROPY_BINS, range=(0.0, 1.0))
    total = hist.sum()
    if total == 0:
        return 0.0
    p = hist[hist > 0] / total
    return float(-np.sum(p * np.log2(p)))


def best_entropy_window(rgb: np.ndarray, win_w: int, win_h: int) -> Tuple[int, int]:
    """Window with the richest luminance histogram, searched on a coarse grid."""
    rows, cols = rgb.shape[:2]
    win_w = min(max(win_w, 1), cols)
    win_h = min(max(win_h, 1), rows)
    luma = rgb @ _LUMA
    xs = np.unique(np.linspace(0, cols - win_w, ENTROPY_STEPS).round().astype(int))
    ys = np.unique(np.linspace(0, rows - win_h, ENTROPY_STEPS).round().astype(int))
    best, best_pos = -1.0, (int(xs[len(xs) // 2]), int(ys[len(ys) // 2]))
    for y in ys:
        for x in xs:
            score = _entropy(luma[y : y + win_h, x : x + win_w])
            if score > best + 1e-9:
                best, best_pos = score, (int(x), int(y))
    return best_pos


def focus_offset(image: Image.Image, width: int, height: int, strategy: str) -> Tuple[int, int]:
    """
    Offset of a ``width``x``height`` crop inside ``image`` chosen by
    ``strategy`` (``entropy`` or ``attention``).
    """
    if width >= image.width and height >= image.height:
        return 0, 0
    rgb, scale = _analysis_array(image)
    win_w, win_h = round_half_up(width * scale), round_half_up(height * scale)
    if strategy == "entropy":
        x, y = best_entropy_window(rgb, win_w, win_h)
    else:
        x, y = best_window(attention_map(rgb), win_w, win_h)
    left = min(max(round_half_up(x / scale), 0), image.width - width)
    top = min(max(round_half_up(y / scale), 0), image.height - height)
    return left, top


def largest_crop(width: int, height: int, target_width: int, target_height: int) -> Tuple[int, int]:
    """Largest size with the target aspect ratio that fits ``width``x``height``."""
    aspect = target_width / target_height
    if width / height > aspect:
        return max(1, min(width, round_half_up(height * aspect))), height
    return width, max(1, min(height, round_half_up(width / aspect)))


class SmartCropService(SalientCropService):
    """Saliency crop computed locally with numpy."""

    def __init__(self, analyse_size: int = ANALYSE_SIZE):
        self.analyse_size = analyse_size

    def crop(self, data: bytes, width: int, height: int) -> Optional[CropRect]:
        if not width or not height or width < 0 or height < 0:
            return None
        try:
            with Image.open(BytesIO(data)) as image:
                image.load()
                crop_w, crop_h = largest_crop(image.width, image.height, width, height)
                rgb, scale = _analysis_array(image, self.analyse_size)
                x, y = best_window(
                    attention_map(rgb),
                    round_half_up(crop_w * scale),
                    round_half_up(crop_h * scale),
                )
                left = min(max(round_half_up(x / scale), 0), image.width - crop_w)
                top = min(max(round_half_up(y / scale), 0), image.height - crop_h)
        except (UnidentifiedImageError, OSError, ValueError) as e:
            raise SaliencyError(f"Salient crop failed: {e}") from e

        rect = CropRect(x=left, y=top, width=crop_w, height=crop_h)
        logger.debug("Salient crop for %sx%s: %s", width, height, rect)
        return rect
