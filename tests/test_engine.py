"""
End-to-end tests with the Pillow codec backend.
"""

from io import BytesIO

import pytest
from conftest import encode_image
from PIL import Image, features

from tachyon import DecodeError, TransformEngine, transform
from tachyon.backends.saliency import SmartCropService


class CountingSmartCrop(SmartCropService):
    def __init__(self):
        super().__init__()
        self.calls = 0

    def crop(self, data, width, height):
        self.calls += 1
        return super().crop(data, width, height)


def open_result(result) -> Image.Image:
    return Image.open(BytesIO(result.data))


@pytest.fixture
def engine():
    return TransformEngine()


def test_smart_resize_end_to_end(jpeg_1000x500):
    saliency = CountingSmartCrop()
    engine = TransformEngine(saliency=saliency)
    result = engine.transform(jpeg_1000x500, {"resize": "200,200", "crop_strategy": "smart"})

    assert saliency.calls == 1
    assert result.format == "jpeg"
    assert result.width <= 200 and result.height <= 200
    image = open_result(result)
    assert image.format == "JPEG"
    assert image.size == (result.width, result.height)


def test_smart_resize_as_webp(jpeg_1000x500):
    result = TransformEngine().transform(
        jpeg_1000x500, {"resize": "200,200", "crop_strategy": "smart", "webp": "1"}
    )
    assert result.format == "webp"
    assert open_result(result).format == "WEBP"
    assert result.width <= 200 and result.height <= 200


def test_invalid_quality_falls_back_to_default(engine, jpeg_1000x500):
    result = engine.transform(jpeg_1000x500, {"quality": "150"})
    assert result.quality == 82
    assert len(result.errors) == 1
    assert "quality" in result.errors[0]


def test_zoom_lowers_default_quality(engine, jpeg_1000x500):
    result = engine.transform(jpeg_1000x500, {"zoom": "2", "w": "100"})
    assert result.quality == 51
    assert (result.width, result.height) == (200, 100)


def test_explicit_quality_is_used(engine, jpeg_1000x500):
    result = engine.transform(jpeg_1000x500, {"quality": "40"})
    assert result.quality == 40
    assert result.errors == []


def test_width_only_preserves_aspect(engine):
    source = encode_image(640, 480)
    result = engine.transform(source, {"w": "320"})
    assert open_result(result).size == (320, 240)


def test_height_only_preserves_aspect(engine):
    source = encode_image(640, 480)
    result = engine.transform(source, {"h": "120"})
    assert open_result(result).size == (160, 120)


def test_crop_runs_before_resize(engine):
    image = Image.new("RGB", (200, 100), (255, 0, 0))
    image.paste((0, 0, 255), (100, 0, 200, 100))
    buffer = BytesIO()
    image.save(buffer, format="PNG")

    result = engine.transform(buffer.getvalue(), {"resize": "20,20", "crop": "50,0,50,100"})
    output = open_result(result).convert("RGB")
    assert output.size == (20, 20)
    r, g, b = output.getpixel((10, 10))
    assert b > 200 and r < 50


def test_png_is_palette_compressed(engine, png_400x300):
    result = engine.transform(png_400x300, {"fit": "100,100"})
    image = open_result(result)
    assert result.format == "png"
    assert result.quality is None
    assert image.mode == "P"
    assert image.size == (100, 75)


def test_letterbox_pads_to_box(engine, png_400x300):
    result = engine.transform(png_400x300, {"lb": "300,300", "background": "#fff"})
    image = open_result(result).convert("RGBA")
    assert image.size == (300, 300)
    assert all(channel >= 250 for channel in image.getpixel((150, 2))[:3])


def test_other_formats_pass_through(engine):
    source = encode_image(120, 80, "GIF")
    result = engine.transform(source, {"w": "60"})
    assert result.format == "gif"
    assert open_result(result).format == "GIF"


@pytest.mark.skipif(not features.check("avif"), reason="Pillow built without AVIF")
def test_avif_wins_over_webp(engine, jpeg_1000x500):
    result = engine.transform(jpeg_1000x500, {"avif": "true", "webp": "true", "w": "100"})
    assert result.format == "avif"
    assert result.content_type == "image/avif"


def test_exif_orientation_is_applied(engine):
    exif = Image.Exif()
    exif[0x0112] = 6
    source = encode_image(100, 50, exif=exif)
    result = engine.transform(source, {})
    assert (result.width, result.height) == (50, 100)
    assert open_result(result).size == (50, 100)


def test_corrupt_input_is_fatal(engine):
    with pytest.raises(DecodeError):
        engine.transform(b"not an image", {"w": "10"})


def test_module_level_transform(jpeg_1000x500):
    result = transform(jpeg_1000x500, {"fit": "50,50", "unknown": "x"})
    assert (result.width, result.height) == (50, 25)
    assert result.errors == []


def test_mpo_source_is_reencoded_as_jpeg(engine):
    buffer = BytesIO()
    Image.new("RGB", (200, 100), (20, 40, 60)).save(buffer, format="MPO", save_all=True)
    result = engine.transform(buffer.getvalue(), {"w": "100", "quality": "60"})
    assert result.format == "jpeg"
    assert result.content_type == "image/jpeg"
    assert result.quality == 60
    assert open_result(result).format == "JPEG"
    assert (result.width, result.height) == (100, 50)


def test_overflowing_zoom_is_rejected(engine, jpeg_1000x500):
    result = engine.transform(jpeg_1000x500, {"zoom": "1" + "0" * 400, "w": "100"})
    assert result.errors == ["zoom arg is not valid"]
    assert result.quality == 82
    assert (result.width, result.height) == (100, 50)
