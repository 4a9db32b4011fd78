"""
Camera module for generating primary rays.

Supports:
- Perspective (pinhole) projection
- Depth of field through a thin lens
- Configurable field of view
- Arbitrary positioning via look-at

Pixel (0, 0) is the top-left corner of the image and y grows downward.
Cameras hold no per-render state; `generate_ray` is a pure function of
its arguments.
"""

from __future__ import annotations
import math

from .config import DEFAULT_VFOV, DEFAULT_LENS_RADIUS, DEFAULT_FOCAL_DISTANCE
from .errors import ConfigError
from .ray import Ray
from .sampler import to_disk
from .vec3 import Vec3, Point3


class Camera:
    """A pinhole camera with perspective projection."""

    def __init__(
        self,
        look_from: Point3,
        look_at: Point3,
        vup: Vec3 = Vec3(0, 1, 0),
        vfov: float = DEFAULT_VFOV
    ):
        """Create a camera.

        Args:
            look_from: Camera position in world space
            look_at: Point the camera is looking at
            vup: World up vector (usually (0, 1, 0))
            vfov: Vertical field of view in degrees

        Raises:
            ConfigError: If the view direction or up vector is degenerate
        """
        if not 0.0 < vfov < 180.0:
            raise ConfigError(f"Vertical field of view must be in (0, 180), got {vfov}")

        view = look_from - look_at
        if view.near_zero():
            raise ConfigError("Camera look_from and look_at must differ")

        # Compute orthonormal camera basis
        self.w = view.normalize()                  # Points backward from camera
        u = vup.cross(self.w)
        if u.near_zero():
            raise ConfigError("Camera up vector is parallel to the view direction")
        self.u = u.normalize()                     # Points right
        self.v = self.w.cross(self.u)              # Points up

        self.origin = look_from
        self.look_at = look_at
        self.vup = vup
        self.vfov = vfov
        self.half_height = math.tan(math.radians(vfov) / 2.0)

    def view_direction(self, pixel_x: int, pixel_y: int, offset, width: int, height: int) -> Vec3:
        """Unit direction through the image point (pixel + offset)."""
        half_width = self.half_height * width / height
        s = (pixel_x + offset[0]) / width
        t = (pixel_y + offset[1]) / height

        direction = (
            self.u * ((2.0 * s - 1.0) * half_width)
            + self.v * ((1.0 - 2.0 * t) * self.half_height)
            - self.w
        )
        return direction.normalize()

    def generate_ray(self, pixel_x: int, pixel_y: int, offset, width: int, height: int) -> Ray:
        """Generate a ray through a point inside a pixel.

        Args:
            pixel_x: Column, 0 = left
            pixel_y: Row, 0 = top
            offset: Sub-pixel sample position in [0, 1)^2
            width, height: Image resolution in pixels

        Returns:
            A ray from the camera through the specified point
        """
        return Ray(self.origin, self.view_direction(pixel_x, pixel_y, offset, width, height))

    def __repr__(self) -> str:
        return f"Camera(origin={self.origin}, look_at={self.look_at}, vfov={self.vfov:.2f})"


class ThinLensCamera(Camera):
    """A camera with a finite aperture, focusing at focus_dist.

    The sub-pixel offset is also mapped onto the lens disk, so the blur
    is as deterministic as the pixel samples themselves.
    """

    def __init__(
        self,
        look_from: Point3,
        look_at: Point3,
        vup: Vec3 = Vec3(0, 1, 0),
        vfov: float = DEFAULT_VFOV,
        lens_radius: float = DEFAULT_LENS_RADIUS,
        focus_dist: float = DEFAULT_FOCAL_DISTANCE
    ):
        super().__init__(look_from, look_at, vup, vfov)
        if lens_radius < 0:
            raise ConfigError(f"Lens radius must be non-negative, got {lens_radius}")
        if focus_dist <= 0:
            raise ConfigError(f"Focus distance must be positive, got {focus_dist}")
        self.lens_radius = lens_radius
        self.focus_dist = focus_dist

    def generate_ray(self, pixel_x: int, pixel_y: int, offset, width: int, height: int) -> Ray:
        direction = self.view_direction(pixel_x, pixel_y, offset, width, height)

        # Point on the plane of focus seen through the lens centre
        focal_point = self.origin + direction * (self.focus_dist / -direction.dot(self.w))

        dx, dy = to_disk(offset)
        lens_point = self.origin + (self.u * dx + self.v * dy) * self.lens_radius

        return Ray(lens_point, (focal_point - lens_point).normalize())

    def __repr__(self) -> str:
        return (
            f"ThinLensCamera(origin={self.origin}, look_at={self.look_at}, "
            f"lens_radius={self.lens_radius}, focus_dist={self.focus_dist})"
        )
