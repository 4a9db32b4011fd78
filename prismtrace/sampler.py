"""
Stratified (jittered) sampling.

The unit square is split into a rows x cols grid with one jittered point
per cell. Every sequence is seeded from the pixel coordinates, so the same
pixel always receives the same points regardless of which worker renders
it or in which order.

Also provides the mappings from unit-square samples to the disk,
hemisphere, sphere and triangle used by cameras and lights.
"""

from __future__ import annotations
from collections.abc import Sequence
from typing import Iterator, Optional
import math

import numpy as np

from .vec3 import Vec3, Point3

# Independent random streams drawn for the same pixel
PIXEL_STREAM = 0
SHADING_STREAM = 1

# Largest float below 1.0; keeps jittered points inside [0, 1)
_BELOW_ONE = np.nextafter(1.0, 0.0)


def grid_shape(count: int) -> tuple[int, int]:
    """Rows and columns of the stratification grid for `count` samples.

    cols is the largest divisor of count not exceeding sqrt(count), so a
    perfect square gives a square grid and a prime gives a single column.
    """
    if count <= 0:
        raise ValueError(f"Sample count must be positive, got {count}")
    cols = int(math.isqrt(count))
    while count % cols:
        cols -= 1
    return count // cols, cols


def jittered(count: int, rng: np.random.Generator) -> np.ndarray:
    """Return a (count, 2) array of jittered points in [0, 1)^2.

    A single sample sits at the centre of the pixel.
    """
    if count == 1:
        return np.array([[0.5, 0.5]])

    rows, cols = grid_shape(count)
    jitter = rng.random((rows, cols, 2))
    cell_x = np.arange(cols)[np.newaxis, :]
    cell_y = np.arange(rows)[:, np.newaxis]

    points = np.empty((rows, cols, 2))
    points[..., 0] = (cell_x + jitter[..., 0]) / cols
    points[..., 1] = (cell_y + jitter[..., 1]) / rows
    return np.minimum(points.reshape(count, 2), _BELOW_ONE)


class PixelSamples(Sequence):
    """A finite, restartable sequence of sample points for one pixel.

    Points are generated on demand from the seed, so iterating twice
    yields exactly the same values.
    """

    def __init__(self, count: int, seed: tuple[int, ...]):
        if count <= 0:
            raise ValueError(f"Sample count must be positive, got {count}")
        self.count = count
        self.seed = seed

    def points(self) -> np.ndarray:
        return jittered(self.count, np.random.default_rng(list(self.seed)))

    def __len__(self) -> int:
        return self.count

    def __getitem__(self, index):
        return self.points()[index]

    def __iter__(self) -> Iterator[tuple[float, float]]:
        for x, y in self.points():
            yield float(x), float(y)

    def __repr__(self) -> str:
        return f"PixelSamples(count={self.count}, seed={self.seed})"


class Sampler:
    """Produces per-pixel jittered sample sequences.

    Seeding is a pure function of (seed, x, y, stream), never of global
    random state.
    """

    def __init__(self, count: int = 1, seed: int = 0):
        """Create a sampler.

        Args:
            count: Samples per pixel
            seed: Base seed shared by every pixel of a render
        """
        if count <= 0:
            raise ValueError(f"Sample count must be positive, got {count}")
        self.count = count
        self.seed = seed

    def samples(self, x: int, y: int, count: Optional[int] = None, stream: int = PIXEL_STREAM) -> PixelSamples:
        """Samples for pixel (x, y), `count` defaulting to the sampler's own."""
        return PixelSamples(self.count if count is None else count, (self.seed, x, y, stream))

    def for_pixel(self, x: int, y: int) -> PixelSamples:
        return self.samples(x, y)

    def rng(self, x: int, y: int, stream: int = SHADING_STREAM) -> np.random.Generator:
        """Generator for the secondary samples (lights, occlusion) of a pixel."""
        return np.random.default_rng([self.seed, x, y, stream])

    def __repr__(self) -> str:
        return f"Sampler(count={self.count}, seed={self.seed})"


def to_disk(point) -> tuple[float, float]:
    """Map a unit-square point to the unit disk (concentric mapping)."""
    sx = 2.0 * point[0] - 1.0
    sy = 2.0 * point[1] - 1.0
    if sx == 0.0 and sy == 0.0:
        return 0.0, 0.0

    if abs(sx) > abs(sy):
        r = sx
        phi = (math.pi / 4.0) * (sy / sx)
    else:
        r = sy
        phi = (math.pi / 2.0) - (math.pi / 4.0) * (sx / sy)
    return r * math.cos(phi), r * math.sin(phi)


def to_hemisphere(point, exponent: float = 1.0) -> Vec3:
    """Map a unit-square point to a hemisphere around +z.

    Density is proportional to cos(theta)^exponent; exponent 1 is the
    cosine distribution.
    """
    phi = 2.0 * math.pi * point[0]
    cos_theta = (1.0 - point[1]) ** (1.0 / (exponent + 1.0))
    sin_theta = math.sqrt(max(0.0, 1.0 - cos_theta * cos_theta))
    return Vec3(sin_theta * math.cos(phi), sin_theta * math.sin(phi), cos_theta)


def to_sphere(point) -> Vec3:
    """Map a unit-square point uniformly onto the unit sphere."""
    z = 1.0 - 2.0 * point[1]
    r = math.sqrt(max(0.0, 1.0 - z * z))
    phi = 2.0 * math.pi * point[0]
    return Vec3(r * math.cos(phi), r * math.sin(phi), z)


def to_triangle(point, a: Point3, b: Point3, c: Point3) -> Point3:
    """Map a unit-square point uniformly onto triangle abc.

    Points beyond the diagonal are folded back into the lower half.
    """
    u, v = float(point[0]), float(point[1])
    if u + v > 1.0:
        u, v = 1.0 - u, 1.0 - v
    return a + (b - a) * u + (c - a) * v
