"""
Geometric shapes for the ray tracer.

The shape set is closed: Sphere, Plane, Triangle, TriangleMesh (with its
MeshTriangle faces) and Group. Each one answers `hit` and `bounding_box`.

Every intersection test discards parameters below t_min + HIT_EPSILON so
secondary rays leaving a surface do not immediately hit it again.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Sequence, TYPE_CHECKING
import logging
import math

import numpy as np

from .aabb import AABB
from .config import HIT_EPSILON, PARALLEL_EPSILON, DEGENERATE_AREA
from .errors import SceneError
from .ray import Ray
from .sampler import to_triangle, to_sphere
from .vec3 import Vec3, Point3

if TYPE_CHECKING:
    from .materials import Material

logger = logging.getLogger(__name__)


@dataclass
class HitRecord:
    """Stores information about a ray-object intersection.

    Attributes:
        point: The intersection point in world space
        normal: The surface normal at the intersection (always points against ray)
        t: The ray parameter at intersection
        front_face: True if ray hit from outside the object
        material: The material at the hit point
        u, v: Texture coordinates at the hit point
        obj: The primitive that was hit
    """
    point: Point3
    normal: Vec3
    t: float
    front_face: bool
    material: Optional[Material] = None
    u: float = 0.0
    v: float = 0.0
    obj: Optional[GeometricObject] = None

    def set_face_normal(self, ray: Ray, outward_normal: Vec3) -> None:
        """Set the normal to always point against the ray direction.

        Args:
            ray: The incoming ray
            outward_normal: The geometric normal pointing outward from surface
        """
        self.front_face = ray.direction.dot(outward_normal) < 0
        self.normal = outward_normal if self.front_face else -outward_normal


def _in_range(t: float, t_min: float, t_max: float) -> bool:
    return t_min + HIT_EPSILON <= t <= t_max


class GeometricObject(ABC):
    """Abstract base class for all objects that can be hit by rays."""

    material: Optional[Material] = None

    @abstractmethod
    def hit(self, ray: Ray, t_min: float, t_max: float) -> Optional[HitRecord]:
        """Test if ray intersects this object.

        Args:
            ray: The ray to test
            t_min: Minimum t value to consider (HIT_EPSILON is added)
            t_max: Maximum t value to consider

        Returns:
            HitRecord for the closest intersection in range, None otherwise
        """

    @abstractmethod
    def bounding_box(self) -> Optional[AABB]:
        """Get the axis-aligned bounding box for this object.

        Returns:
            AABB if the object is bounded, None otherwise
        """

    def intersect(self, ray: Ray) -> Optional[HitRecord]:
        """Closest hit within the ray's own valid interval."""
        return self.hit(ray, ray.t_min, ray.t_max)

    def primitives(self) -> list[GeometricObject]:
        """Objects a scene-level BVH should index for this shape."""
        return [self]

    def centroid(self) -> Point3:
        box = self.bounding_box()
        if box is None:
            return Point3(0, 0, 0)
        return box.centroid()

    def sample_points(self, unit_points: np.ndarray) -> list[Point3]:
        """Map unit-square samples onto the surface (for area lights)."""
        return []


class Sphere(GeometricObject):
    """A sphere defined by center and radius."""

    def __init__(self, center: Point3, radius: float, material: Optional[Material] = None):
        """Create a sphere.

        Args:
            center: Center point of the sphere
            radius: Radius of the sphere
            material: Material for shading
        """
        if radius <= 0:
            raise ValueError(f"Sphere radius must be positive, got {radius}")
        self.center = center
        self.radius = radius
        self.material = material

    def hit(self, ray: Ray, t_min: float, t_max: float) -> Optional[HitRecord]:
        """Test ray-sphere intersection using the quadratic formula.

        The equation (P-C)·(P-C) = r² where P = ray.at(t)
        expands to: t²(d·d) + 2t(d·(O-C)) + (O-C)·(O-C) - r² = 0
        which is the quadratic at² + bt + c = 0.
        """
        oc = ray.origin - self.center
        a = ray.direction.length_squared()
        if a == 0.0:
            return None
        half_b = oc.dot(ray.direction)
        c = oc.length_squared() - self.radius * self.radius

        discriminant = half_b * half_b - a * c
        if discriminant < 0:
            return None

        sqrtd = math.sqrt(discriminant)

        # Find the nearest root in the acceptable range
        root = (-half_b - sqrtd) / a
        if not _in_range(root, t_min, t_max):
            root = (-half_b + sqrtd) / a
            if not _in_range(root, t_min, t_max):
                return None

        point = ray.at(root)
        outward_normal = (point - self.center) / self.radius
        u, v = self._get_sphere_uv(outward_normal)

        hit_record = HitRecord(
            point=point,
            normal=outward_normal,
            t=root,
            front_face=True,
            material=self.material,
            u=u,
            v=v,
            obj=self
        )
        hit_record.set_face_normal(ray, outward_normal)

        return hit_record

    def _get_sphere_uv(self, point: Vec3) -> tuple[float, float]:
        """Get spherical UV coordinates for a point on the unit sphere.

        u: returned value [0,1] of angle around the Y axis from X=-1
        v: returned value [0,1] of angle from Y=-1 to Y=+1
        """
        theta = math.acos(max(-1.0, min(1.0, -point.y)))
        phi = math.atan2(-point.z, point.x) + math.pi
        return phi / (2 * math.pi), theta / math.pi

    def bounding_box(self) -> AABB:
        """Return the AABB containing this sphere."""
        r_vec = Vec3.repeat(self.radius)
        return AABB(self.center - r_vec, self.center + r_vec)

    def centroid(self) -> Point3:
        return self.center

    def sample_points(self, unit_points: np.ndarray) -> list[Point3]:
        return [self.center + to_sphere(p) * self.radius for p in unit_points]

    def __repr__(self) -> str:
        return f"Sphere(center={self.center}, radius={self.radius})"


class Plane(GeometricObject):
    """An infinite plane defined by a point and normal."""

    def __init__(self, point: Point3, normal: Vec3, material: Optional[Material] = None):
        """Create a plane.

        Args:
            point: Any point on the plane
            normal: The plane's normal vector (will be normalized)
            material: Material for shading
        """
        if normal.near_zero():
            raise ValueError("Plane normal must be non-zero")
        self.point = point
        self.normal = normal.normalize()
        self.material = material

    def hit(self, ray: Ray, t_min: float, t_max: float) -> Optional[HitRecord]:
        """Test ray-plane intersection."""
        denom = self.normal.dot(ray.direction)

        # Ray is parallel to plane
        if abs(denom) < PARALLEL_EPSILON:
            return None

        t = (self.point - ray.origin).dot(self.normal) / denom

        if not _in_range(t, t_min, t_max):
            return None

        point = ray.at(t)

        # Simple planar UV mapping
        u = point.x - math.floor(point.x)
        v = point.z - math.floor(point.z)

        hit_record = HitRecord(
            point=point,
            normal=self.normal,
            t=t,
            front_face=True,
            material=self.material,
            u=u,
            v=v,
            obj=self
        )
        hit_record.set_face_normal(ray, self.normal)

        return hit_record

    def bounding_box(self) -> Optional[AABB]:
        """Planes are infinite, so no bounding box."""
        return None

    def centroid(self) -> Point3:
        return self.point


class Triangle(GeometricObject):
    """A triangle defined by three vertices.

    A triangle with (near) zero area is kept but never reports a hit.
    """

    def __init__(self, v0: Point3, v1: Point3, v2: Point3, material: Optional[Material] = None):
        """Create a triangle from three vertices.

        Args:
            v0, v1, v2: The three vertices in counter-clockwise order
            material: Material for shading
        """
        self.v0 = v0
        self.v1 = v1
        self.v2 = v2
        self.material = material

        # Pre-compute edges and normal
        self.e1 = v1 - v0
        self.e2 = v2 - v0
        cross = self.e1.cross(self.e2)
        self.area = 0.5 * cross.length()
        self.degenerate = self.area < DEGENERATE_AREA
        self.normal = cross.normalize()

    def hit(self, ray: Ray, t_min: float, t_max: float) -> Optional[HitRecord]:
        """Test ray-triangle intersection using Möller-Trumbore algorithm."""
        if self.degenerate:
            return None

        h = ray.direction.cross(self.e2)
        a = self.e1.dot(h)

        # Ray is parallel to triangle
        if abs(a) < PARALLEL_EPSILON:
            return None

        f = 1.0 / a
        s = ray.origin - self.v0
        u = f * s.dot(h)

        if u < 0.0 or u > 1.0:
            return None

        q = s.cross(self.e1)
        v = f * ray.direction.dot(q)

        if v < 0.0 or u + v > 1.0:
            return None

        t = f * self.e2.dot(q)

        if not _in_range(t, t_min, t_max):
            return None

        hit_record = HitRecord(
            point=ray.at(t),
            normal=self.normal,
            t=t,
            front_face=True,
            material=self.material,
            u=u,
            v=v,
            obj=self
        )
        hit_record.set_face_normal(ray, self.normal)

        return hit_record

    def bounding_box(self) -> AABB:
        """Return the AABB containing this triangle.

        Padded slightly so axis-aligned triangles still have volume.
        """
        pad = Vec3.repeat(0.0001)
        box = AABB.from_points(self.v0, self.v1, self.v2)
        return AABB(box.minimum - pad, box.maximum + pad)

    def centroid(self) -> Point3:
        return (self.v0 + self.v1 + self.v2) / 3.0

    def sample_points(self, unit_points: np.ndarray) -> list[Point3]:
        return [to_triangle(p, self.v0, self.v1, self.v2) for p in unit_points]

    def __repr__(self) -> str:
        return f"Triangle({self.v0}, {self.v1}, {self.v2})"


class MeshTriangle(Triangle):
    """One face of a TriangleMesh, addressed by index into its vertex arena."""

    def __init__(self, mesh: TriangleMesh, face_index: int):
        i0, i1, i2 = (int(i) for i in mesh.faces[face_index])
        verts = mesh.vertices
        super().__init__(
            Vec3.from_array(verts[i0]),
            Vec3.from_array(verts[i1]),
            Vec3.from_array(verts[i2]),
            mesh.material
        )
        self.mesh = mesh
        self.face_index = face_index


class TriangleMesh(GeometricObject):
    """A set of triangles sharing one vertex arena and one material.

    Faces index rows of `vertices`; several meshes may share the same
    vertex array. Zero-area faces are rejected at construction. The mesh
    keeps its own BVH so it can be used as a single object.
    """

    def __init__(
        self,
        vertices: np.ndarray,
        faces: np.ndarray,
        material: Optional[Material] = None,
        name: str = ""
    ):
        self.vertices = np.asarray(vertices, dtype=np.float64).reshape(-1, 3)
        faces = np.asarray(faces, dtype=np.int64).reshape(-1, 3)
        self.material = material
        self.name = name

        if faces.size and (faces.min() < 0 or faces.max() >= len(self.vertices)):
            raise SceneError(
                f"Mesh '{name}' references vertex {int(faces.max())} "
                f"but only {len(self.vertices)} vertices exist"
            )

        self.faces = faces
        triangles = []
        for index in range(len(faces)):
            tri = MeshTriangle(self, index)
            if tri.degenerate:
                logger.warning("Mesh '%s': dropping zero-area face %d", name, index)
                continue
            triangles.append(tri)
        self.triangles: tuple[MeshTriangle, ...] = tuple(triangles)

        from .bvh import BVH
        self._bvh = BVH(self.triangles)

    def hit(self, ray: Ray, t_min: float, t_max: float) -> Optional[HitRecord]:
        return self._bvh.hit(ray, t_min, t_max)

    def bounding_box(self) -> Optional[AABB]:
        return self._bvh.bounding_box()

    def sample_points(self, unit_points: np.ndarray) -> list[Point3]:
        points = []
        for tri in self.triangles:
            points.extend(tri.sample_points(unit_points))
        return points

    def __len__(self) -> int:
        return len(self.triangles)

    def __iter__(self):
        return iter(self.triangles)

    def __repr__(self) -> str:
        return f"TriangleMesh(name={self.name!r}, triangles={len(self.triangles)})"


class Group(GeometricObject):
    """A composite of objects, intersected by linear search."""

    def __init__(self, objects: Optional[Sequence[GeometricObject]] = None):
        self.objects: list[GeometricObject] = list(objects) if objects is not None else []

    def add(self, obj: GeometricObject) -> None:
        """Add an object to the group."""
        self.objects.append(obj)

    def hit(self, ray: Ray, t_min: float, t_max: float) -> Optional[HitRecord]:
        """Find the closest intersection among all objects.

        On equal distances the object listed first wins.
        """
        closest_hit: Optional[HitRecord] = None
        closest_t = t_max

        for obj in self.objects:
            hit_record = obj.hit(ray, t_min, closest_t)
            if hit_record is not None and (closest_hit is None or hit_record.t < closest_t):
                closest_hit = hit_record
                closest_t = hit_record.t

        return closest_hit

    def bounding_box(self) -> Optional[AABB]:
        """Return the AABB containing all objects, None if any is unbounded."""
        if not self.objects:
            return None

        output_box: Optional[AABB] = None
        for obj in self.objects:
            box = obj.bounding_box()
            if box is None:
                return None
            output_box = box if output_box is None else AABB.surrounding_box(output_box, box)

        return output_box

    def primitives(self) -> list[GeometricObject]:
        flat = []
        for obj in self.objects:
            flat.extend(obj.primitives())
        return flat

    def sample_points(self, unit_points: np.ndarray) -> list[Point3]:
        points = []
        for obj in self.objects:
            points.extend(obj.sample_points(unit_points))
        return points

    def __len__(self) -> int:
        return len(self.objects)

    def __iter__(self):
        return iter(self.objects)


def quad(
    corner: Point3,
    edge1: Vec3,
    edge2: Vec3,
    material: Optional[Material] = None
) -> list[Triangle]:
    """Split the parallelogram corner + s*edge1 + t*edge2 into two triangles.

    The face normal is edge1 x edge2.
    """
    far = corner + edge1 + edge2
    return [
        Triangle(corner, corner + edge1, far, material),
        Triangle(corner, far, corner + edge2, material),
    ]
