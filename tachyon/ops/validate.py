"""
Validation of request parameters.

Each recognised field must match its syntactic contract in full. A field
that does not is dropped (never clamped or repaired) and reported as
``"<field> arg is not valid"``. Unknown fields are passed through untouched.
"""

from __future__ import annotations

import logging
import math
import re
from typing import Any, Callable, Dict, List, Optional, Tuple

from tachyon.domain.types.params import (
    CropStrategy,
    CropUnit,
    CropValue,
    Gravity,
    RawParameters,
    ValidatedParameters,
    ValidationError,
)

logger = logging.getLogger(__name__)

_DIMENSION = r"\d+(?:px)?"

PATTERNS: Dict[str, "re.Pattern[str]"] = {
    "w": re.compile(r"[1-9]\d*", re.ASCII),
    "h": re.compile(r"[1-9]\d*", re.ASCII),
    "quality": re.compile(r"[0-9]{1,3}", re.ASCII),
    "resize": re.compile(rf"{_DIMENSION},{_DIMENSION}", re.ASCII),
    "crop_strategy": re.compile(r"smart|entropy|attention", re.ASCII),
    "gravity": re.compile(
        r"north|northeast|east|southeast|south|southwest|west|northwest|center", re.ASCII
    ),
    "fit": re.compile(rf"{_DIMENSION},{_DIMENSION}", re.ASCII),
    "crop": re.compile(rf"{_DIMENSION},{_DIMENSION},{_DIMENSION},{_DIMENSION}", re.ASCII),
    "zoom": re.compile(r"\d+(?:\.\d+)?", re.ASCII),
    "webp": re.compile(r"0|1|true|false", re.ASCII),
    "avif": re.compile(r"0|1|true|false", re.ASCII),
    "lb": re.compile(rf"{_DIMENSION},{_DIMENSION}", re.ASCII),
    "background": re.compile(r"#[a-f0-9]{3}(?:[a-f0-9]{3})?", re.ASCII),
}

# Checked in this order, which is also the order errors are reported in.
RECOGNISED_FIELDS: Tuple[str, ...] = tuple(PATTERNS)


def _normalize(value: Any) -> Optional[str]:
    """Brings a raw value to its query-string form, or None if not supplied."""
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (list, tuple)):
        return ",".join(_normalize(v) or "" for v in value)
    text = str(value)
    return text or None


def _parse_pair(text: str) -> Tuple[int, int]:
    first, second = text.split(",")
    return int(first.removesuffix("px")), int(second.removesuffix("px"))


def _parse_crop(text: str) -> Tuple[CropValue, ...]:
    values = []
    for part in text.split(","):
        if part.endswith("px"):
            values.append(CropValue(value=int(part[:-2]), unit=CropUnit.PIXELS))
        else:
            values.append(CropValue(value=int(part), unit=CropUnit.PERCENT))
    return tuple(values)


def _parse_zoom(text: str) -> float:
    zoom = float(text)
    if not math.isfinite(zoom):
        raise ValueError(text)
    return zoom


def _parse_quality(text: str) -> int:
    quality = int(text)
    if not 0 <= quality <= 100:
        raise ValueError(quality)
    return quality


_PARSERS: Dict[str, Callable[[str], Any]] = {
    "w": int,
    "h": int,
    "quality": _parse_quality,
    "resize": _parse_pair,
    "crop_strategy": CropStrategy,
    "gravity": Gravity,
    "fit": _parse_pair,
    "crop": _parse_crop,
    "zoom": _parse_zoom,
    "webp": lambda text: text in ("1", "true"),
    "avif": lambda text: text in ("1", "true"),
    "lb": _parse_pair,
    "background": str,
}


def validate_params(raw: RawParameters) -> Tuple[ValidatedParameters, List[ValidationError]]:
    """
    Validates ``raw`` without modifying it.

    Returns the accepted parameters and the ordered list of rejections.
    """
    accepted: Dict[str, Any] = {}
    errors: List[ValidationError] = []

    for field in RECOGNISED_FIELDS:
        text = _normalize(raw.get(field))
        if text is None:
            continue
        try:
            if PATTERNS[field].fullmatch(text) is None:
                raise ValueError(text)
            accepted[field] = _PARSERS[field](text)
        except ValueError:
            logger.debug("Rejected %s=%r", field, raw.get(field))
            errors.append(ValidationError(field=field, message=f"{field} arg is not valid"))

    passthrough = {k: v for k, v in raw.items() if k not in PATTERNS}
    return ValidatedParameters(**accepted, passthrough=passthrough), errors
