"""
The scene: geometry, lights, camera and ambient term.

A Scene is built once and is read-only afterwards, so every render
worker can share it without locking.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional, Sequence
import logging
import math

from .bvh import BVH
from .camera import Camera
from .config import DEFAULT_MAX_LEAF_SIZE, SHADOW_EPSILON
from .lights import AmbientLight, Light
from .ray import Ray
from .shapes import GeometricObject, HitRecord
from .vec3 import Vec3, Point3, Color, BLACK

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Scene:
    """Immutable aggregate of everything needed to render an image.

    Attributes:
        bvh: Acceleration structure over all primitives
        lights: Lights contributing direct illumination
        camera: Camera generating the primary rays
        ambient: Ambient light (or occluder) used for the ambient term
        background: Color returned by rays that hit nothing
    """
    bvh: BVH
    lights: tuple[Light, ...]
    camera: Camera
    ambient: AmbientLight
    background: Color = field(default_factory=lambda: BLACK)

    @classmethod
    def build(
        cls,
        objects: Sequence[GeometricObject],
        lights: Sequence[Light],
        camera: Camera,
        ambient: Optional[AmbientLight] = None,
        background: Color = BLACK,
        max_leaf_size: int = DEFAULT_MAX_LEAF_SIZE
    ) -> Scene:
        """Flatten groups, build the BVH and freeze the result.

        Args:
            objects: Shapes in the scene; groups are expanded
            lights: Direct light sources
            camera: The camera
            ambient: Ambient term; no ambient light when omitted
            background: Color for rays that escape the scene
            max_leaf_size: BVH leaf threshold
        """
        primitives: list[GeometricObject] = []
        for obj in objects:
            primitives.extend(obj.primitives())

        scene = cls(
            bvh=BVH(primitives, max_leaf_size),
            lights=tuple(lights),
            camera=camera,
            ambient=ambient if ambient is not None else AmbientLight(0.0),
            background=background
        )
        logger.info(
            "Scene built: %d primitives, %d lights, BVH depth %d",
            len(primitives), len(scene.lights), scene.bvh.depth()
        )
        return scene

    def intersect(self, ray: Ray) -> Optional[HitRecord]:
        """Closest hit within the ray's valid interval, None on a miss."""
        return self.bvh.hit(ray, ray.t_min, ray.t_max)

    def hit(self, ray: Ray, t_min: float, t_max: float) -> Optional[HitRecord]:
        return self.bvh.hit(ray, t_min, t_max)

    def is_in_shadow(self, point: Point3, direction: Vec3, distance: float = math.inf) -> bool:
        """True if anything lies between point and point + distance * direction.

        Emissive objects never block, and hits within SHADOW_EPSILON of the
        far end are ignored.
        """
        shadow_ray = Ray.spawn(point, direction, distance - SHADOW_EPSILON)
        return self.bvh.occluded(shadow_ray, shadow_ray.t_min, shadow_ray.t_max)

    @property
    def objects(self) -> tuple[GeometricObject, ...]:
        return self.bvh.objects + self.bvh.unbounded

    def __repr__(self) -> str:
        return (
            f"Scene(objects={len(self.bvh)}, lights={len(self.lights)}, "
            f"camera={self.camera!r}, background={self.background})"
        )
