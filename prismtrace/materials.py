"""
Materials and the shared shading equation.

Implements:
- Matte (ambient + Lambertian diffuse)
- Phong (adds a glossy specular highlight)
- Reflective (Phong + perfect mirror reflection)
- Dielectric (Phong + Fresnel weighted reflection and refraction)
- Emissive (light-emitting surfaces)

Every non-emissive material is shaded by `shade`:

    L = rho_a * L_ambient
        + sum over lights with n.wi > 0 of (f_d + f_s) * L_light * shadow * n.wi
        + indirect (reflected / transmitted rays)
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional, TYPE_CHECKING
import math

import numpy as np

from .brdf import Lambertian, GlossySpecular, PerfectSpecular
from .config import DEFAULT_AMBIENT_KD, DEFAULT_DIFFUSE_KD, DEFAULT_SPECULAR_EXP
from .ray import Ray
from .vec3 import Vec3, Color, BLACK, WHITE

if TYPE_CHECKING:
    from .scene import Scene
    from .shapes import HitRecord


@dataclass
class ShadeContext:
    """Everything a material needs to shade one hit.

    Attributes:
        ray: The ray that produced the hit
        hit: The intersection being shaded (normal faces the ray)
        scene: The scene being rendered
        depth: Bounce depth of `ray` (0 for camera rays)
        tracer: Object exposing trace(scene, ray, depth, rng), normally the Renderer
        rng: Per-pixel generator for light and occlusion samples
        light_samples: Per-axis sample count for area lights and occlusion
    """
    ray: Ray
    hit: HitRecord
    scene: Scene
    depth: int
    tracer: Any
    rng: np.random.Generator
    light_samples: int = 1

    @property
    def wo(self) -> Vec3:
        """Unit direction from the hit point back toward the viewer."""
        return -self.ray.direction.normalize()

    def trace(self, ray: Ray) -> Color:
        """Trace a secondary ray one bounce deeper."""
        return self.tracer.trace(self.scene, ray, self.depth + 1, self.rng)


class Material(ABC):
    """Abstract base class for materials."""

    emissive = False

    @abstractmethod
    def shade(self, ctx: ShadeContext) -> Color:
        """Outgoing radiance toward the viewer at ctx.hit."""

    def ambient(self, ctx: ShadeContext) -> Color:
        """Reflectance applied to the scene's ambient radiance."""
        return BLACK

    def direct(self, normal: Vec3, wo: Vec3, wi: Vec3) -> Color:
        """Combined diffuse and specular BRDF for light arriving along wi."""
        return BLACK

    def indirect(self, ctx: ShadeContext) -> Color:
        """Radiance gathered by secondary rays."""
        return BLACK


def shade(m: Material, ctx: ShadeContext) -> Color:
    """Evaluate the shading equation for material m."""
    normal = ctx.hit.normal
    wo = ctx.wo

    color = m.ambient(ctx) * ctx.scene.ambient.radiance(ctx)

    for light in ctx.scene.lights:
        wi = light.direction(ctx)
        n_dot_wi = normal.dot(wi)
        if n_dot_wi <= 0.0:
            continue

        radiance = light.radiance(ctx)
        if radiance.is_black():
            continue

        shadow = light.shadow_amount(ctx) if light.casts_shadows else 1.0
        if shadow <= 0.0:
            continue

        color = color + m.direct(normal, wo, wi) * radiance * (n_dot_wi * shadow)

    return color + m.indirect(ctx)


class Matte(Material):
    """Purely diffuse material."""

    def __init__(
        self,
        cd: Color = WHITE,
        ka: float = DEFAULT_AMBIENT_KD,
        kd: float = DEFAULT_DIFFUSE_KD,
        ca: Optional[Color] = None
    ):
        """Create a matte material.

        Args:
            cd: Diffuse color (RGB, each component 0-1)
            ka: Ambient reflection coefficient
            kd: Diffuse reflection coefficient
            ca: Ambient color, defaults to cd
        """
        self.ambient_brdf = Lambertian(ka, ca if ca is not None else cd)
        self.diffuse_brdf = Lambertian(kd, cd)

    @property
    def color(self) -> Color:
        return self.diffuse_brdf.cd

    def shade(self, ctx: ShadeContext) -> Color:
        return shade(self, ctx)

    def ambient(self, ctx: ShadeContext) -> Color:
        return self.ambient_brdf.rho(ctx.hit.normal, ctx.wo)

    def direct(self, normal: Vec3, wo: Vec3, wi: Vec3) -> Color:
        return self.diffuse_brdf.f(normal, wo, wi)

    def __repr__(self) -> str:
        return f"Matte(cd={self.color}, ka={self.ambient_brdf.kd}, kd={self.diffuse_brdf.kd})"


class Phong(Matte):
    """Diffuse plus a glossy specular highlight."""

    def __init__(
        self,
        cd: Color = WHITE,
        ka: float = 0.25,
        kd: float = 0.6,
        ks: float = 0.2,
        exp: float = DEFAULT_SPECULAR_EXP,
        cs: Color = WHITE
    ):
        """Create a Phong material.

        Args:
            cd: Diffuse color
            ka: Ambient reflection coefficient
            kd: Diffuse reflection coefficient
            ks: Specular reflection coefficient
            exp: Specular exponent (larger = sharper highlight)
            cs: Specular color

        Raises:
            ValueError: If kd + ks is not in [0, 1)
        """
        if not 0.0 <= kd + ks < 1.0:
            raise ValueError(f"Phong requires 0 <= kd + ks < 1, got kd={kd}, ks={ks}")
        super().__init__(cd, ka, kd)
        self.specular_brdf = GlossySpecular(ks, exp, cs)

    def direct(self, normal: Vec3, wo: Vec3, wi: Vec3) -> Color:
        return self.diffuse_brdf.f(normal, wo, wi) + self.specular_brdf.f(normal, wo, wi)


class Reflective(Matte):
    """Mirror reflection on top of a (by default non-glossy) Phong base.

    With the recursion depth exhausted the reflected term is zero and the
    material shades exactly like Matte with the same ka, kd and cd.
    """

    def __init__(
        self,
        cd: Color = WHITE,
        ka: float = DEFAULT_AMBIENT_KD,
        kd: float = DEFAULT_DIFFUSE_KD,
        kr: float = 0.75,
        cr: Color = WHITE,
        ks: float = 0.0,
        exp: float = DEFAULT_SPECULAR_EXP,
        cs: Color = WHITE
    ):
        super().__init__(cd, ka, kd)
        self.specular_brdf = GlossySpecular(ks, exp, cs)
        self.reflective_brdf = PerfectSpecular(kr, cr)

    def direct(self, normal: Vec3, wo: Vec3, wi: Vec3) -> Color:
        return self.diffuse_brdf.f(normal, wo, wi) + self.specular_brdf.f(normal, wo, wi)

    def indirect(self, ctx: ShadeContext) -> Color:
        normal = ctx.hit.normal
        wi, fr = self.reflective_brdf.sample_f(normal, ctx.wo)
        if fr.is_black():
            return BLACK
        reflected = Ray.spawn(ctx.hit.point, wi)
        return fr * ctx.trace(reflected) * normal.dot(wi)


def fresnel(cos_i: float, eta: float) -> tuple[float, float]:
    """Exact dielectric Fresnel reflectance.

    Args:
        cos_i: Cosine between the normal and the direction toward the viewer
        eta: Relative index of refraction (transmitted side / incident side)

    Returns:
        (kr, cos_t); kr is 1.0 and cos_t 0.0 on total internal reflection
    """
    sin_t_sq = (1.0 - cos_i * cos_i) / (eta * eta)
    if sin_t_sq >= 1.0:
        return 1.0, 0.0
    cos_t = math.sqrt(1.0 - sin_t_sq)
    r_parallel = (eta * cos_i - cos_t) / (eta * cos_i + cos_t)
    r_perpendicular = (cos_i - eta * cos_t) / (cos_i + eta * cos_t)
    return 0.5 * (r_parallel * r_parallel + r_perpendicular * r_perpendicular), cos_t


class Dielectric(Phong):
    """Transparent material such as glass or water."""

    def __init__(
        self,
        ior: float = 1.5,
        cf: Color = WHITE,
        ka: float = 0.0,
        kd: float = 0.0,
        ks: float = 0.5,
        exp: float = 2000.0,
        cs: Color = WHITE
    ):
        """Create a dielectric material.

        Args:
            ior: Index of refraction (1.0 = air, 1.5 = glass, 2.4 = diamond)
            cf: Filter color applied to transmitted light
        """
        if ior <= 0:
            raise ValueError(f"Index of refraction must be positive, got {ior}")
        super().__init__(cf, ka, kd, ks, exp, cs)
        self.ior = ior
        self.cf = cf

    def indirect(self, ctx: ShadeContext) -> Color:
        normal = ctx.hit.normal
        wo = ctx.wo
        cos_i = normal.dot(wo)
        eta = self.ior if ctx.hit.front_face else 1.0 / self.ior

        kr, cos_t = fresnel(cos_i, eta)
        reflected_dir = (-wo).reflect(normal)
        color = ctx.trace(Ray.spawn(ctx.hit.point, reflected_dir)) * kr

        if kr < 1.0:
            transmitted_dir = (-wo).refract(normal, eta, cos_t)
            transmitted = ctx.trace(Ray.spawn(ctx.hit.point, transmitted_dir))
            color = color + transmitted * self.cf * (1.0 - kr)

        return color

    def __repr__(self) -> str:
        return f"Dielectric(ior={self.ior}, cf={self.cf})"


class Emissive(Material):
    """A surface that emits light and reflects nothing."""

    emissive = True

    def __init__(self, ls: float = 1.0, ce: Color = WHITE):
        """Create an emissive material.

        Args:
            ls: Radiance scaling factor
            ce: Emitted color
        """
        self.ls = ls
        self.ce = ce

    def radiance(self) -> Color:
        return self.ce * self.ls

    def shade(self, ctx: ShadeContext) -> Color:
        return self.radiance()

    def __repr__(self) -> str:
        return f"Emissive(ls={self.ls}, ce={self.ce})"
