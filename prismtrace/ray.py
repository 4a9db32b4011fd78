"""
Ray class for representing rays in 3D space.

A ray is defined by an origin point, a direction vector and the
interval of parameters it is valid for:
Ray(t) = origin + t * direction,  t_min <= t <= t_max
"""

from __future__ import annotations
import math
from .vec3 import Vec3, Point3


class Ray:
    """An immutable ray with origin, direction and valid t-interval.

    Rays are never modified after construction; reflection, refraction
    and shadow queries create new rays with `spawn`.
    """

    __slots__ = ('origin', 'direction', 't_min', 't_max')

    def __init__(
        self,
        origin: Point3,
        direction: Vec3,
        t_min: float = 0.0,
        t_max: float = math.inf
    ):
        """Create a ray with given origin and direction.

        Args:
            origin: The starting point of the ray
            direction: The direction vector (expected to be normalized)
            t_min: Smallest valid ray parameter
            t_max: Largest valid ray parameter
        """
        object.__setattr__(self, 'origin', origin)
        object.__setattr__(self, 'direction', direction)
        object.__setattr__(self, 't_min', t_min)
        object.__setattr__(self, 't_max', t_max)

    def __setattr__(self, name, value):
        raise AttributeError("Ray is immutable")

    def __reduce__(self):
        return (Ray, (self.origin, self.direction, self.t_min, self.t_max))

    def at(self, t: float) -> Point3:
        """Get the point along the ray at parameter t.

        Args:
            t: The parameter value (distance if direction is normalized)

        Returns:
            The point at origin + t * direction
        """
        return self.origin + self.direction * t

    @classmethod
    def spawn(cls, origin: Point3, direction: Vec3, t_max: float = math.inf) -> Ray:
        """Create a secondary ray leaving a surface point."""
        return cls(origin, direction, 0.0, t_max)

    def __repr__(self) -> str:
        return (
            f"Ray(origin={self.origin}, direction={self.direction}, "
            f"t=[{self.t_min}, {self.t_max}])"
        )
