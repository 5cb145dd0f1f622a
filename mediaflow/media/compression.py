"""JPEG recompression of reference images for inline transport.

Generation back-ends accept images inline as base64 data URLs with a size
ceiling. Images are downscaled so the longest side fits and then re-encoded
at decreasing quality until the data URL fits.
"""

import base64
import logging
from io import BytesIO

from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

MAX_BASE64_SIZE = 4 * 1024 * 1024  # characters of data URL
MAX_IMAGE_DIMENSION = 2048  # pixels on the longest side
QUALITY_LADDER = (92, 85, 75, 65, 50, 40, 30)

DATA_URL_PREFIX = "data:image/jpeg;base64,"


class ImageCompressionError(Exception):
    """The input bytes could not be decoded as an image."""


def _fit_within(width: int, height: int, limit: int) -> tuple[int, int]:
    if width <= limit and height <= limit:
        return width, height
    if width > height:
        return limit, round(height / width * limit)
    return round(width / height * limit), limit


def _encode(image: Image.Image, quality: int) -> str:
    buffer = BytesIO()
    image.save(buffer, format="JPEG", quality=quality)
    return DATA_URL_PREFIX + base64.b64encode(buffer.getvalue()).decode("ascii")


def compress_image_bytes(
    content: bytes,
    max_size: int = MAX_BASE64_SIZE,
    max_dimension: int = MAX_IMAGE_DIMENSION,
) -> str:
    """Compress raw image bytes into a JPEG data URL.

    Args:
        content: Encoded image in any format Pillow can read
        max_size: Ceiling on the length of the returned data URL
        max_dimension: Ceiling on the longest side in pixels

    Returns:
        A ``data:image/jpeg;base64,...`` URL. When even the lowest quality
        exceeds ``max_size``, the lowest quality result is returned anyway.

    Raises:
        ImageCompressionError: If the bytes are not a readable image
    """
    try:
        image = Image.open(BytesIO(content))
        image.load()
    except (UnidentifiedImageError, OSError) as e:
        raise ImageCompressionError(f"Failed to load image for compression: {e}") from e

    # JPEG has no alpha channel
    image = image.convert("RGB")

    width, height = _fit_within(image.width, image.height, max_dimension)
    if (width, height) != image.size:
        image = image.resize((width, height), Image.Resampling.LANCZOS)

    encoded = ""
    for quality in QUALITY_LADDER:
        encoded = _encode(image, quality)
        if len(encoded) <= max_size:
            logger.debug(
                f"Compressed image to {len(encoded) // 1024}KB at quality {quality}"
            )
            return encoded

    logger.warning(
        f"Image still {len(encoded) // 1024}KB at lowest quality, sending anyway"
    )
    return encoded


def decode_data_url(data_url: str) -> bytes:
    """Extract the payload bytes of a base64 ``data:`` URL."""
    header, _, payload = data_url.partition(",")
    if not header.startswith("data:") or not payload:
        raise ImageCompressionError("Malformed data URL")
    if not header.endswith(";base64"):
        raise ImageCompressionError("Only base64 data URLs are supported")
    try:
        return base64.b64decode(payload, validate=True)
    except ValueError as e:
        raise ImageCompressionError(f"Invalid base64 payload: {e}") from e
