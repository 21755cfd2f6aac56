from __future__ import annotations

from tachyon.domain.types.codec import EncodeOptions
from tachyon.domain.types.params import ValidatedParameters
from tachyon.ops.quality import encoder_quality


def select_format(params: ValidatedParameters, source_format: str, quality: int) -> EncodeOptions:
    """
    Output codec for a transformed image.

    AVIF wins over WEBP; otherwise JPEG is re-encoded at ``quality``, PNG is
    palette-compressed (quality does not apply) and anything else keeps its
    source format.
    """
    if params.avif:
        return EncodeOptions(format="avif", quality=encoder_quality(quality))
    if params.webp:
        return EncodeOptions(format="webp", quality=encoder_quality(quality))
    if source_format == "jpeg":
        return EncodeOptions(format="jpeg", quality=encoder_quality(quality))
    if source_format == "png":
        return EncodeOptions(format="png", palette=True)
    return EncodeOptions(format=source_format)
