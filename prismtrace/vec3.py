"""
Three-component vectors for points, directions and RGB radiance.

A single numpy-backed type covers all three roles; `Point3` and `Color`
are aliases that document intent at call sites.
"""

from __future__ import annotations
import math
from typing import Optional, Union
import numpy as np


def _operand(other: Union[Vec3, float]):
    return other._data if isinstance(other, Vec3) else other


class Vec3:
    """Immutable 3-vector; arithmetic is component-wise and returns new values.

    Equality is approximate (np.allclose), so vectors are not hashable.
    """

    __slots__ = ('_data',)

    def __init__(self, x: float = 0.0, y: float = 0.0, z: float = 0.0):
        self._data = np.array([x, y, z], dtype=np.float64)

    @classmethod
    def from_array(cls, arr: np.ndarray) -> Vec3:
        """Wrap an array of three floats without copying it."""
        v = cls.__new__(cls)
        v._data = np.asarray(arr, dtype=np.float64)
        return v

    @classmethod
    def repeat(cls, value: float) -> Vec3:
        return cls(value, value, value)

    @property
    def x(self) -> float:
        return float(self._data[0])

    @property
    def y(self) -> float:
        return float(self._data[1])

    @property
    def z(self) -> float:
        return float(self._data[2])

    # Color channels
    r = x
    g = y
    b = z

    def __repr__(self) -> str:
        return f"Vec3({self.x:.4f}, {self.y:.4f}, {self.z:.4f})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Vec3):
            return NotImplemented
        return bool(np.allclose(self._data, other._data))

    __hash__ = None

    def __neg__(self) -> Vec3:
        return Vec3.from_array(-self._data)

    def __add__(self, other: Union[Vec3, float]) -> Vec3:
        return Vec3.from_array(self._data + _operand(other))

    def __radd__(self, other: float) -> Vec3:
        return Vec3.from_array(other + self._data)

    def __sub__(self, other: Union[Vec3, float]) -> Vec3:
        return Vec3.from_array(self._data - _operand(other))

    def __rsub__(self, other: float) -> Vec3:
        return Vec3.from_array(other - self._data)

    def __mul__(self, other: Union[Vec3, float]) -> Vec3:
        return Vec3.from_array(self._data * _operand(other))

    def __rmul__(self, other: float) -> Vec3:
        return Vec3.from_array(other * self._data)

    def __truediv__(self, other: Union[Vec3, float]) -> Vec3:
        return Vec3.from_array(self._data / _operand(other))

    def __getitem__(self, index: int) -> float:
        return float(self._data[index])

    def __iter__(self):
        return (float(c) for c in self._data)

    def length(self) -> float:
        return math.sqrt(self.length_squared())

    def length_squared(self) -> float:
        return float(np.dot(self._data, self._data))

    def normalize(self) -> Vec3:
        """Unit vector in the same direction; the zero vector stays zero."""
        length = self.length()
        if length == 0.0:
            return Vec3()
        return Vec3.from_array(self._data / length)

    def dot(self, other: Vec3) -> float:
        return float(np.dot(self._data, other._data))

    def cross(self, other: Vec3) -> Vec3:
        return Vec3.from_array(np.cross(self._data, other._data))

    def reflect(self, normal: Vec3) -> Vec3:
        """Mirror this incident direction about a unit normal."""
        return self - normal * (2.0 * self.dot(normal))

    def refract(self, normal: Vec3, eta: float, cos_t: Optional[float] = None) -> Optional[Vec3]:
        """Bend this unit incident direction through a surface (Snell's law).

        Args:
            normal: Unit normal on the incident side, facing against this vector
            eta: Relative index of refraction (transmitted side / incident side)
            cos_t: Cosine of the transmitted angle when the caller already
                has it (e.g. from the Fresnel terms)

        Returns:
            Unit transmitted direction, None on total internal reflection
        """
        cos_i = -self.dot(normal)
        if cos_t is None:
            sin_t_sq = (1.0 - cos_i * cos_i) / (eta * eta)
            if sin_t_sq >= 1.0:
                return None
            cos_t = math.sqrt(1.0 - sin_t_sq)
        return (self / eta - normal * (cos_t - cos_i / eta)).normalize()

    def near_zero(self, epsilon: float = 1e-8) -> bool:
        return bool(np.all(np.abs(self._data) < epsilon))

    def is_black(self) -> bool:
        """True if no channel carries positive energy."""
        return bool(np.all(self._data <= 0.0))

    def min_with(self, other: Vec3) -> Vec3:
        return Vec3.from_array(np.minimum(self._data, other._data))

    def max_with(self, other: Vec3) -> Vec3:
        return Vec3.from_array(np.maximum(self._data, other._data))

    def to_array(self) -> np.ndarray:
        """Copy of the components."""
        return self._data.copy()


Point3 = Vec3
Color = Vec3

BLACK = Color(0.0, 0.0, 0.0)
WHITE = Color(1.0, 1.0, 1.0)
