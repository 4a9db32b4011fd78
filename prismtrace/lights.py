"""
Light sources for the ray tracer.

Implements various light types:
- Ambient light (constant, unshadowed)
- Ambient occluder (ambient light attenuated by nearby geometry)
- Point lights
- Directional lights (sun)
- Area lights (emissive triangles and spheres)

Lights are stateless; every query receives the ShadeContext of the point
being shaded. Soft shadows draw their sample points from the context's
per-pixel generator, so they are reproducible.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Sequence, TYPE_CHECKING
import math

from .sampler import jittered, to_hemisphere
from .vec3 import Vec3, Point3, Color, WHITE

if TYPE_CHECKING:
    from .materials import Emissive, ShadeContext
    from .shapes import GeometricObject

_NO_DIRECTION = Vec3(0.0, 0.0, 0.0)


class Light(ABC):
    """Abstract base class for light sources."""

    casts_shadows = True

    @abstractmethod
    def direction(self, ctx: ShadeContext) -> Vec3:
        """Unit direction from the hit point toward the light."""

    @abstractmethod
    def radiance(self, ctx: ShadeContext) -> Color:
        """Incident radiance at the hit point, before shadowing."""

    def shadow_amount(self, ctx: ShadeContext) -> float:
        """Fraction of the light visible from the hit point (0 to 1)."""
        return 1.0


class AmbientLight(Light):
    """Constant light arriving from everywhere."""

    casts_shadows = False

    def __init__(self, ls: float = 1.0, cl: Color = WHITE):
        """Create an ambient light.

        Args:
            ls: Radiance scaling factor
            cl: Light color
        """
        self.ls = ls
        self.cl = cl

    def direction(self, ctx: ShadeContext) -> Vec3:
        return _NO_DIRECTION

    def radiance(self, ctx: ShadeContext) -> Color:
        return self.cl * self.ls

    def __repr__(self) -> str:
        return f"AmbientLight(ls={self.ls}, cl={self.cl})"


class AmbientOccluder(AmbientLight):
    """Ambient light scaled by how much of the hemisphere is unobstructed.

    Cosine-distributed rays are cast over the hemisphere around the
    normal; blocked directions still receive `min_amount` of the light.
    """

    def __init__(self, ls: float = 1.0, cl: Color = WHITE, min_amount: float = 0.0):
        super().__init__(ls, cl)
        self.min_amount = min_amount

    @staticmethod
    def uvw(normal: Vec3) -> tuple[Vec3, Vec3, Vec3]:
        """Orthonormal basis with w along the normal."""
        w = normal
        # Jittered up vector so the cross product never degenerates
        v = w.cross(Vec3(0.0072, 1.0, 0.0034)).normalize()
        u = v.cross(w)
        return u, v, w

    def visible_fraction(self, ctx: ShadeContext) -> float:
        u, v, w = self.uvw(ctx.hit.normal)
        samples = jittered(ctx.light_samples * ctx.light_samples, ctx.rng)
        point = ctx.hit.point

        visible = 0
        for sample in samples:
            local = to_hemisphere(sample)
            direction = (u * local.x + v * local.y + w * local.z).normalize()
            if not ctx.scene.is_in_shadow(point, direction, math.inf):
                visible += 1
        return visible / len(samples)

    def radiance(self, ctx: ShadeContext) -> Color:
        fraction = self.visible_fraction(ctx)
        return self.cl * (self.ls * (fraction + (1.0 - fraction) * self.min_amount))

    def __repr__(self) -> str:
        return f"AmbientOccluder(ls={self.ls}, cl={self.cl}, min_amount={self.min_amount})"


class PointLight(Light):
    """A point light source.

    Point lights emit light equally in all directions from a single point.
    They produce hard shadows.
    """

    def __init__(self, location: Point3, ls: float = 1.0, cl: Color = WHITE, falloff: bool = False):
        """Create a point light.

        Args:
            location: Position of the light
            ls: Radiance scaling factor
            cl: Light color
            falloff: Apply inverse square distance attenuation
        """
        self.location = location
        self.ls = ls
        self.cl = cl
        self.falloff = falloff

    def direction(self, ctx: ShadeContext) -> Vec3:
        return (self.location - ctx.hit.point).normalize()

    def radiance(self, ctx: ShadeContext) -> Color:
        color = self.cl * self.ls
        if self.falloff:
            distance_sq = (self.location - ctx.hit.point).length_squared()
            if distance_sq > 0.0:
                color = color / distance_sq
        return color

    def shadow_amount(self, ctx: ShadeContext) -> float:
        to_light = self.location - ctx.hit.point
        distance = to_light.length()
        if ctx.scene.is_in_shadow(ctx.hit.point, to_light.normalize(), distance):
            return 0.0
        return 1.0

    def __repr__(self) -> str:
        return f"PointLight(location={self.location}, ls={self.ls}, cl={self.cl})"


class DirectionalLight(Light):
    """A directional light (like the sun).

    Directional lights have parallel rays and no falloff.
    """

    def __init__(self, towards: Vec3, ls: float = 1.0, cl: Color = WHITE):
        """Create a directional light.

        Args:
            towards: Direction pointing TO the light
            ls: Radiance scaling factor
            cl: Light color
        """
        if towards.near_zero():
            raise ValueError("Directional light needs a non-zero direction")
        self.towards = towards.normalize()
        self.ls = ls
        self.cl = cl

    def direction(self, ctx: ShadeContext) -> Vec3:
        return self.towards

    def radiance(self, ctx: ShadeContext) -> Color:
        return self.cl * self.ls

    def shadow_amount(self, ctx: ShadeContext) -> float:
        if ctx.scene.is_in_shadow(ctx.hit.point, self.towards, math.inf):
            return 0.0
        return 1.0

    def __repr__(self) -> str:
        return f"DirectionalLight(towards={self.towards}, ls={self.ls}, cl={self.cl})"


class AreaLight(Light):
    """Light emitted by a set of surfaces sharing one Emissive material.

    Shading uses the direction to the centre of the emitters; the shadow
    amount is the fraction of stratified points on the emitters that the
    hit point can see, which produces soft shadows.
    """

    def __init__(self, objects: Sequence[GeometricObject], emissive: Emissive):
        if not objects:
            raise ValueError("Area light needs at least one emitting object")
        self.objects = tuple(objects)
        self.emissive = emissive

        total = Vec3(0.0, 0.0, 0.0)
        for obj in self.objects:
            total = total + obj.centroid()
        self.center = total / len(self.objects)

    def direction(self, ctx: ShadeContext) -> Vec3:
        return (self.center - ctx.hit.point).normalize()

    def radiance(self, ctx: ShadeContext) -> Color:
        return self.emissive.radiance()

    def shadow_amount(self, ctx: ShadeContext) -> float:
        point = ctx.hit.point
        count = ctx.light_samples * ctx.light_samples

        visible = 0
        total = 0
        for obj in self.objects:
            for point_on_light in obj.sample_points(jittered(count, ctx.rng)):
                to_light = point_on_light - point
                distance = to_light.length()
                total += 1
                if distance == 0.0:
                    continue
                if not ctx.scene.is_in_shadow(point, to_light / distance, distance):
                    visible += 1

        if total == 0:
            return 0.0
        return visible / total

    def __repr__(self) -> str:
        return f"AreaLight(objects={len(self.objects)}, emissive={self.emissive})"
