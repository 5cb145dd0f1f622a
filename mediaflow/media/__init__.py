"""Media reference resolution, image compression and aspect ratio helpers."""

from mediaflow.media.aspect_ratio import (
    SUPPORTED_RATIOS,
    normalize_to_standard_ratio,
    parse_aspect_ratio,
    ratio_from_dimensions,
)
from mediaflow.media.compression import compress_image_bytes
from mediaflow.media.resolver import MediaConversionError, MediaResolver

__all__ = [
    "MediaConversionError",
    "MediaResolver",
    "SUPPORTED_RATIOS",
    "compress_image_bytes",
    "normalize_to_standard_ratio",
    "parse_aspect_ratio",
    "ratio_from_dimensions",
]
