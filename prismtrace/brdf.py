"""
BRDFs used by the shading materials.

Implements:
- Lambertian diffuse
- Glossy specular (Phong lobe)
- Perfect specular (mirror)

wi points toward the light, wo toward the viewer; both are unit vectors.
"""

from __future__ import annotations
import math

from .vec3 import Vec3, Color, BLACK, WHITE

INV_PI = 1.0 / math.pi


class Lambertian:
    """Ideal diffuse reflection."""

    def __init__(self, kd: float, cd: Color):
        """Create a Lambertian BRDF.

        Args:
            kd: Diffuse reflection coefficient
            cd: Diffuse color
        """
        self.kd = kd
        self.cd = cd

    def f(self, normal: Vec3, wo: Vec3, wi: Vec3) -> Color:
        return self.cd * (self.kd * INV_PI)

    def rho(self, normal: Vec3, wo: Vec3) -> Color:
        """Bihemispherical reflectance."""
        return self.cd * self.kd

    def __repr__(self) -> str:
        return f"Lambertian(kd={self.kd}, cd={self.cd})"


class GlossySpecular:
    """Phong specular lobe around the mirror direction of wi."""

    def __init__(self, ks: float, exp: float, cs: Color = WHITE):
        self.ks = ks
        self.exp = exp
        self.cs = cs

    def f(self, normal: Vec3, wo: Vec3, wi: Vec3) -> Color:
        if self.ks == 0.0:
            return BLACK
        r = (-wi).reflect(normal)
        r_dot_wo = r.dot(wo)
        if r_dot_wo <= 0.0:
            return BLACK
        return self.cs * (self.ks * r_dot_wo ** self.exp)

    def rho(self, normal: Vec3, wo: Vec3) -> Color:
        return BLACK

    def __repr__(self) -> str:
        return f"GlossySpecular(ks={self.ks}, exp={self.exp}, cs={self.cs})"


class PerfectSpecular:
    """Mirror reflection; only meaningful through sample_f."""

    def __init__(self, kr: float, cr: Color = WHITE):
        self.kr = kr
        self.cr = cr

    def f(self, normal: Vec3, wo: Vec3, wi: Vec3) -> Color:
        return BLACK

    def sample_f(self, normal: Vec3, wo: Vec3) -> tuple[Vec3, Color]:
        """Return the mirror direction of wo and the matching reflectance.

        The reflectance is divided by n.wi so that the caller's cosine
        factor cancels.
        """
        wi = (-wo).reflect(normal)
        n_dot_wi = normal.dot(wi)
        if n_dot_wi <= 0.0:
            return wi, BLACK
        return wi, self.cr * (self.kr / n_dot_wi)

    def rho(self, normal: Vec3, wo: Vec3) -> Color:
        return self.cr * self.kr

    def __repr__(self) -> str:
        return f"PerfectSpecular(kr={self.kr}, cr={self.cr})"
