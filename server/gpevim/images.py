"""
Image normalization for uploaded pictures.
"""

from __future__ import annotations

import io
import logging

from PIL import Image, ImageOps, UnidentifiedImageError

from gpevim.errors import ProcessingError

logger = logging.getLogger(__name__)

OUTPUT_FORMAT = "WEBP"
OUTPUT_EXTENSION = ".webp"
OUTPUT_CONTENT_TYPE = "image/webp"

DEFAULT_MAX_WIDTH = 800
DEFAULT_MAX_HEIGHT = 800
DEFAULT_QUALITY = 80


def is_image_media_type(content_type: str | None) -> bool:
    return bool(content_type) and content_type.lower().startswith("image/")


def process_image(
    data: bytes,
    max_width: int = DEFAULT_MAX_WIDTH,
    max_height: int = DEFAULT_MAX_HEIGHT,
    quality: int = DEFAULT_QUALITY,
) -> bytes:
    """
    Fits an image inside max_width x max_height and re-encodes it as WebP.

    The aspect ratio is preserved and images are never enlarged.

    Args:
        data (bytes): The raw uploaded bytes.
        max_width (int): Maximum output width in pixels.
        max_height (int): Maximum output height in pixels.
        quality (int): WebP quality, 1-100.

    Returns:
        bytes: The encoded WebP image.

    Raises:
        ProcessingError: If the bytes cannot be decoded as an image.
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            # Camera photos keep rotated pixels plus an EXIF Orientation tag.
            img = ImageOps.exif_transpose(img)
            original_size = img.size
            if img.mode not in ("RGB", "RGBA"):
                has_alpha = img.mode in ("LA", "PA") or (
                    img.mode == "P" and "transparency" in img.info
                )
                img = img.convert("RGBA" if has_alpha else "RGB")
            # thumbnail() only ever shrinks and keeps the aspect ratio.
            img.thumbnail((max_width, max_height), Image.Resampling.LANCZOS)
            output = io.BytesIO()
            img.save(output, format=OUTPUT_FORMAT, quality=quality)
    except (UnidentifiedImageError, OSError, ValueError) as exc:
        raise ProcessingError(detail=f"Could not decode image: {exc}") from exc

    logger.debug("Processed image %s -> %s", original_size, img.size)
    return output.getvalue()
