"""
Axis-aligned bounding boxes.

A box is the intersection of three slabs; the slab test gives both a
quick rejection and the distance at which a ray enters the box, which
the BVH uses to visit the nearer child first.
"""

from __future__ import annotations
from typing import Optional

from .vec3 import Vec3, Point3
from .ray import Ray


class AABB:
    """Axis-Aligned Bounding Box for acceleration structures.

    Invariant: minimum <= maximum component-wise.
    """

    __slots__ = ('minimum', 'maximum')

    def __init__(self, minimum: Point3, maximum: Point3):
        """Create an AABB from corner points.

        Args:
            minimum: Corner with smallest x, y, z values
            maximum: Corner with largest x, y, z values
        """
        if any(lo > hi for lo, hi in zip(minimum, maximum)):
            raise ValueError(f"AABB minimum {minimum} exceeds maximum {maximum}")
        self.minimum = minimum
        self.maximum = maximum

    @classmethod
    def from_points(cls, *points: Point3) -> AABB:
        """Smallest box containing all of the given points."""
        lo = points[0]
        hi = points[0]
        for p in points[1:]:
            lo = lo.min_with(p)
            hi = hi.max_with(p)
        return cls(lo, hi)

    def hit_distance(self, ray: Ray, t_min: float, t_max: float) -> Optional[float]:
        """Slab test returning the entry parameter, or None on a miss.

        The entry parameter is clipped to t_min, so a ray starting inside
        the box reports t_min.
        """
        for i in range(3):
            origin = ray.origin[i]
            d = ray.direction[i]
            if d == 0.0:
                # Parallel to this slab: inside it or never
                if origin < self.minimum[i] or origin > self.maximum[i]:
                    return None
                continue

            inv_d = 1.0 / d
            t0 = (self.minimum[i] - origin) * inv_d
            t1 = (self.maximum[i] - origin) * inv_d
            if inv_d < 0:
                t0, t1 = t1, t0

            t_min = t0 if t0 > t_min else t_min
            t_max = t1 if t1 < t_max else t_max

            if t_max < t_min:
                return None

        return t_min

    def hit(self, ray: Ray, t_min: float, t_max: float) -> bool:
        """Test if ray intersects this AABB using the slab method."""
        return self.hit_distance(ray, t_min, t_max) is not None

    def contains(self, other: AABB, tolerance: float = 0.0) -> bool:
        """True if other lies entirely inside this box."""
        return all(
            self.minimum[i] - tolerance <= other.minimum[i]
            and other.maximum[i] <= self.maximum[i] + tolerance
            for i in range(3)
        )

    def centroid(self) -> Point3:
        return (self.minimum + self.maximum) * 0.5

    def extent(self) -> Vec3:
        return self.maximum - self.minimum

    def longest_axis(self) -> int:
        """Index of the axis with the largest extent (ties favour x, then y)."""
        e = self.extent()
        if e.x >= e.y and e.x >= e.z:
            return 0
        if e.y >= e.z:
            return 1
        return 2

    def surface_area(self) -> float:
        e = self.extent()
        return 2.0 * (e.x * e.y + e.y * e.z + e.z * e.x)

    @staticmethod
    def surrounding_box(box0: AABB, box1: AABB) -> AABB:
        """Return the AABB that contains both input boxes."""
        return AABB(box0.minimum.min_with(box1.minimum), box0.maximum.max_with(box1.maximum))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AABB):
            return NotImplemented
        return self.minimum == other.minimum and self.maximum == other.maximum

    def __repr__(self) -> str:
        return f"AABB(min={self.minimum}, max={self.maximum})"
