"""
Image output through Pillow.

The file extension picks the format (PNG, JPEG, BMP, ...).
"""

from __future__ import annotations
from pathlib import Path
import logging

from PIL import Image

from .errors import ImageError
from .framebuffer import FrameBuffer

logger = logging.getLogger(__name__)


def to_image(buffer: FrameBuffer, tone_mapping: str = "clamp", gamma: float = 1.0) -> Image.Image:
    """Convert a frame buffer to an 8-bit RGB Pillow image."""
    if buffer.is_empty:
        raise ImageError(f"Cannot encode an empty {buffer.width}x{buffer.height} image")
    return Image.fromarray(buffer.to_rgb8(tone_mapping, gamma))


def save_image(buffer: FrameBuffer, filename: str, tone_mapping: str = "clamp", gamma: float = 1.0) -> Path:
    """Save a frame buffer to an image file.

    Args:
        buffer: The rendered frame buffer
        filename: Output filename (extension determines format)
        tone_mapping: "clamp" or "max"
        gamma: Gamma applied before quantizing

    Returns:
        The path written

    Raises:
        ImageError: If the image cannot be encoded or written
    """
    path = Path(filename)
    image = to_image(buffer, tone_mapping, gamma)

    try:
        # Ensure output directory exists
        path.parent.mkdir(parents=True, exist_ok=True)
        image.save(path)
    except (OSError, ValueError) as e:
        raise ImageError(f"Cannot write image '{filename}': {e}") from e

    logger.info("Saved %dx%d image to %s", buffer.width, buffer.height, path)
    return path
