"""
Tests for request parameter validation.
"""

import pytest

from tachyon.domain.types import CropStrategy, Gravity
from tachyon.domain.types.params import CropUnit
from tachyon.ops.validate import RECOGNISED_FIELDS, validate_params

VALID = {
    "w": "300",
    "h": "200",
    "quality": "75",
    "resize": "300,200",
    "fit": "300px,200px",
    "lb": "300,200",
    "crop": "10,20px,50,60px",
    "crop_strategy": "smart",
    "gravity": "northeast",
    "zoom": "1.5",
    "webp": "1",
    "avif": "false",
    "background": "#ff00aa",
}


def test_all_valid_fields_accepted():
    params, errors = validate_params(VALID)
    assert errors == []
    assert params.w == 300 and params.h == 200
    assert params.quality == 75
    assert params.resize == (300, 200)
    assert params.fit == (300, 200)
    assert params.lb == (300, 200)
    assert params.crop_strategy == CropStrategy.SMART
    assert params.gravity == Gravity.NORTHEAST
    assert params.zoom == 1.5
    assert params.webp is True
    assert params.avif is False
    assert params.background == "#ff00aa"
    assert [v.value for v in params.crop] == [10, 20, 50, 60]
    assert [v.unit for v in params.crop] == [
        CropUnit.PERCENT,
        CropUnit.PIXELS,
        CropUnit.PERCENT,
        CropUnit.PIXELS,
    ]


@pytest.mark.parametrize(
    "field, value",
    [
        ("w", "0"),
        ("w", "012"),
        ("w", "-5"),
        ("w", "abc"),
        ("w", "1\u0660\u0660"),
        ("h", "1.5"),
        ("quality", "150"),
        ("quality", "1000"),
        ("quality", "high"),
        ("resize", "300"),
        ("resize", "300,200,100"),
        ("resize", "300x200"),
        ("fit", "a,b"),
        ("lb", "300,"),
        ("crop", "10,10,10"),
        ("crop", "10%,10,10,10"),
        ("crop_strategy", "clever"),
        ("gravity", "up"),
        ("gravity", "centre"),
        ("zoom", "-1"),
        ("zoom", "1."),
        ("zoom", "1" + "0" * 400),
        ("webp", "yes"),
        ("webp", "10"),
        ("avif", "truee"),
        ("background", "ff0000"),
        ("background", "#ff00"),
        ("background", "#gggggg"),
    ],
)
def test_invalid_field_is_removed_with_one_error(field, value):
    raw = dict(VALID)
    raw[field] = value
    params, errors = validate_params(raw)

    assert getattr(params, field) is None
    assert [e.field for e in errors] == [field]
    assert errors[0].message == f"{field} arg is not valid"

    # everything else survives
    expected, _ = validate_params(VALID)
    for other in RECOGNISED_FIELDS:
        if other != field:
            assert getattr(params, other) == getattr(expected, other)


def test_errors_follow_check_order():
    _, errors = validate_params({"background": "red", "w": "x", "crop": "1"})
    assert [e.field for e in errors] == ["w", "crop", "background"]


def test_unknown_fields_pass_through():
    raw = {"w": "10", "key": "uploads/a.jpg", "X-Amz-Expires": "300"}
    params, errors = validate_params(raw)
    assert errors == []
    assert params.passthrough == {"key": "uploads/a.jpg", "X-Amz-Expires": "300"}


def test_input_is_not_mutated():
    raw = {"w": "bad", "h": "20"}
    validate_params(raw)
    assert raw == {"w": "bad", "h": "20"}


def test_empty_values_count_as_not_supplied():
    params, errors = validate_params({"w": "", "quality": None})
    assert errors == []
    assert params.w is None and params.quality is None


def test_non_string_values_are_normalised():
    params, errors = validate_params(
        {"resize": [300, 200], "quality": 80, "zoom": 2.0, "webp": True, "avif": False}
    )
    assert errors == []
    assert params.resize == (300, 200)
    assert params.quality == 80
    assert params.zoom == 2.0
    assert params.webp is True
    assert params.avif is False


def test_quality_zero_is_kept():
    params, errors = validate_params({"quality": "0"})
    assert errors == []
    assert params.quality == 0


def test_effective_zoom_defaults_to_one():
    assert validate_params({})[0].effective_zoom == 1.0
    assert validate_params({"zoom": "0"})[0].effective_zoom == 1.0
    assert validate_params({"zoom": "2.5"})[0].effective_zoom == 2.5


def test_smart_crop_requires_no_explicit_crop():
    params, _ = validate_params({"crop_strategy": "smart", "resize": "10,10"})
    assert params.smart_crop
    params, _ = validate_params({"crop_strategy": "smart", "crop": "0,0,50,50"})
    assert not params.smart_crop
