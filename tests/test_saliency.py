from io import BytesIO

import numpy as np
import pytest
from PIL import Image

from tachyon.backends.saliency import (
    SmartCropService,
    best_entropy_window,
    best_window,
    focus_offset,
    largest_crop,
)
from tachyon.io.exceptions import SaliencyError


def png_bytes(image):
    buffer = BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def detailed_on_right(width=800, height=400):
    image = Image.new("RGB", (width, height), (90, 90, 90))
    for x in range(width - 200, width, 6):
        image.paste((250, 30, 30), (x, 0, x + 3, height))
    return image


def test_largest_crop_matches_aspect():
    assert largest_crop(1000, 500, 200, 200) == (500, 500)
    assert largest_crop(500, 1000, 200, 100) == (500, 250)
    assert largest_crop(300, 300, 300, 300) == (300, 300)


def test_best_window_finds_hot_spot():
    score = np.zeros((10, 20), dtype=np.float32)
    score[2:5, 15:18] = 1.0
    x, y = best_window(score, 4, 4)
    assert x <= 15 and x + 4 >= 18
    assert y <= 2 and y + 4 >= 5


def test_best_window_ties_prefer_centre():
    score = np.ones((10, 30), dtype=np.float32)
    assert best_window(score, 10, 10) == (10, 0)


def test_best_entropy_window_prefers_texture():
    rgb = np.zeros((50, 200, 3), dtype=np.float32)
    rng = np.random.default_rng(0)
    rgb[:, :50] = rng.random((50, 50, 1))
    x, _ = best_entropy_window(rgb, 50, 50)
    assert x < 25


def test_smart_crop_follows_detail():
    service = SmartCropService()
    rect = service.crop(png_bytes(detailed_on_right()), 100, 100)
    assert (rect.width, rect.height) == (400, 400)
    assert rect.x + rect.width == 800
    assert rect.y == 0


def test_smart_crop_without_target_returns_none():
    assert SmartCropService().crop(png_bytes(detailed_on_right()), 0, 100) is None


def test_smart_crop_bad_data():
    with pytest.raises(SaliencyError):
        SmartCropService().crop(b"junk", 100, 100)


def test_focus_offset_stays_inside():
    image = detailed_on_right()
    left, top = focus_offset(image, 300, 400, "attention")
    assert 0 <= left <= 500 and top == 0
    assert left >= 400
    left, top = focus_offset(image, 300, 400, "entropy")
    assert 0 <= left <= 500 and top == 0
