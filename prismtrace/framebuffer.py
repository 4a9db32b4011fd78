"""
Frame buffer holding the rendered image.

Pixels are stored as a (height, width, 3) float64 numpy array, row-major
with row 0 at the top. Render workers write disjoint tiles, so no locking
is needed.
"""

from __future__ import annotations
from typing import Optional

import numpy as np

from .vec3 import Color

TONE_MAPPINGS = ("clamp", "max")


def tone_map(image: np.ndarray, mode: str = "clamp") -> np.ndarray:
    """Bring HDR values into [0, 1].

    Args:
        image: Float image of shape (..., 3)
        mode: "clamp" clips each channel; "max" divides a pixel by its
              largest channel when that exceeds 1, preserving hue

    Returns:
        New array with values in [0, 1]
    """
    if mode == "clamp":
        return np.clip(image, 0.0, 1.0)
    if mode == "max":
        image = np.clip(image, 0.0, None)
        peak = image.max(axis=-1, keepdims=True)
        scale = np.where(peak > 1.0, peak, 1.0)
        return image / scale
    raise ValueError(f"Unknown tone mapping '{mode}', expected one of {TONE_MAPPINGS}")


def apply_gamma(image: np.ndarray, gamma: float = 1.0) -> np.ndarray:
    """Gamma-encode an image in [0, 1]; gamma 1.0 leaves it untouched."""
    if gamma <= 0:
        raise ValueError(f"Gamma must be positive, got {gamma}")
    if gamma == 1.0:
        return image
    return np.power(image, 1.0 / gamma)


class FrameBuffer:
    """A width x height grid of RGB values."""

    def __init__(self, width: int, height: int, pixels: Optional[np.ndarray] = None):
        """Create a frame buffer, zero-filled unless pixels are given.

        Args:
            width: Image width in pixels (may be 0)
            height: Image height in pixels (may be 0)
            pixels: Existing (height, width, 3) array to wrap
        """
        if width < 0 or height < 0:
            raise ValueError(f"Frame buffer size must be non-negative, got {width}x{height}")
        self.width = width
        self.height = height
        if pixels is None:
            pixels = np.zeros((height, width, 3), dtype=np.float64)
        elif pixels.shape != (height, width, 3):
            raise ValueError(f"Pixel array shape {pixels.shape} does not match {width}x{height}")
        self.pixels = pixels

    @property
    def is_empty(self) -> bool:
        return self.width == 0 or self.height == 0

    def set_pixel(self, x: int, y: int, color: Color) -> None:
        self.pixels[y, x] = color.to_array()

    def get_pixel(self, x: int, y: int) -> Color:
        return Color.from_array(self.pixels[y, x].copy())

    def write_tile(self, x0: int, y0: int, tile: np.ndarray) -> None:
        """Copy a (h, w, 3) block into the buffer with its top-left at (x0, y0)."""
        h, w = tile.shape[:2]
        self.pixels[y0:y0 + h, x0:x0 + w] = tile

    def mean_color(self) -> Color:
        """Average color over all pixels (black when empty)."""
        if self.is_empty:
            return Color(0.0, 0.0, 0.0)
        return Color.from_array(self.pixels.reshape(-1, 3).mean(axis=0))

    def to_rgb8(self, tone_mapping: str = "clamp", gamma: float = 1.0) -> np.ndarray:
        """Convert to an 8-bit (height, width, 3) array ready for encoding."""
        ldr = apply_gamma(tone_map(self.pixels, tone_mapping), gamma)
        return np.round(ldr * 255.0).astype(np.uint8)

    def copy(self) -> FrameBuffer:
        return FrameBuffer(self.width, self.height, self.pixels.copy())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FrameBuffer):
            return NotImplemented
        return (
            self.width == other.width
            and self.height == other.height
            and np.array_equal(self.pixels, other.pixels)
        )

    def __repr__(self) -> str:
        return f"FrameBuffer({self.width}x{self.height})"
