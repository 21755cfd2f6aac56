"""
Tests for StepOrder construction.
"""

from tachyon.domain.types import StepKind, build_step_order
from tachyon.ops.validate import validate_params


def order_for(raw, order=None):
    params, _ = validate_params(raw)
    return build_step_order(order if order is not None else raw, params)


def test_steps_follow_parameter_order():
    raw = {"fit": "10,10", "quality": "50", "resize": "20,20", "lb": "5,5"}
    assert order_for(raw) == (StepKind.FIT, StepKind.RESIZE, StepKind.LB)


def test_crop_moves_to_front():
    raw = {"resize": "100,100", "w": "50", "crop": "0,0,50,50"}
    assert order_for(raw) == (StepKind.CROP, StepKind.RESIZE, StepKind.WH)


def test_crop_runs_first_even_when_missing_from_order():
    raw = {"crop": "0,0,50,50", "fit": "10,10"}
    assert order_for(raw, ["fit"]) == (StepKind.CROP, StepKind.FIT)


def test_w_and_h_collapse_into_one_step():
    raw = {"h": "10", "fit": "10,10", "w": "20"}
    assert order_for(raw) == (StepKind.WH, StepKind.FIT)


def test_invalid_parameters_do_not_become_steps():
    raw = {"resize": "nope", "crop": "1,2", "fit": "10,10"}
    assert order_for(raw) == (StepKind.FIT,)


def test_non_geometric_fields_are_ignored():
    raw = {"quality": "10", "webp": "1", "gravity": "north", "zoom": "2"}
    assert order_for(raw) == ()
