"""
Domain models (parameters, image state, results, pipeline steps).
"""

from tachyon.domain.types.image import CropRect, ImageMetadata, ImageState, TransformResult
from tachyon.domain.types.params import (
    CropStrategy,
    CropUnit,
    CropValue,
    Gravity,
    RawParameters,
    ValidatedParameters,
    ValidationError,
)
from tachyon.domain.types.steps import StepKind, StepOrder, build_step_order
from tachyon.domain.types.codec import EncodeOptions, Fit, Region, ResizeOptions
from tachyon.domain.types.origin import OriginObject, OriginSource
