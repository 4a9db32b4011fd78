"""
Built-in scenes.

- single_sphere: one white matte sphere under ambient light
- cornell_box: the classic box with colored walls, a ceiling area light,
  a mirror sphere and a Phong sphere
- demo: a small showcase of every material and light type
"""

from __future__ import annotations
from typing import Callable, Dict

from .camera import Camera, ThinLensCamera
from .config import (
    DEFAULT_AMBIENT_STRENGTH, CORNELL_LIGHT_STRENGTH,
    DEFAULT_EYE_POSITION, DEFAULT_LOOKAT_POSITION, DEFAULT_VFOV,
    DEFAULT_LENS_RADIUS, DEFAULT_FOCAL_DISTANCE,
    LARGE_SPHERE_RADIUS, LARGE_SPHERE_POSITION,
    SMALL_SPHERE_RADIUS, SMALL_SPHERE_POSITION
)
from .errors import ConfigError
from .lights import AmbientLight, AmbientOccluder, AreaLight, DirectionalLight, PointLight
from .materials import Matte, Phong, Reflective, Dielectric, Emissive
from .scene import Scene
from .shapes import Sphere, Plane, quad
from .vec3 import Vec3, Point3, Color, BLACK, WHITE

CAMERA_TYPES = ("pinhole", "thin-lens")


def _make_camera(camera_type: str, look_from: Point3, look_at: Point3, vfov: float) -> Camera:
    if camera_type == "pinhole":
        return Camera(look_from, look_at, Vec3(0, 1, 0), vfov)
    if camera_type == "thin-lens":
        return ThinLensCamera(
            look_from, look_at, Vec3(0, 1, 0), vfov,
            lens_radius=DEFAULT_LENS_RADIUS,
            focus_dist=DEFAULT_FOCAL_DISTANCE
        )
    raise ConfigError(f"Unknown camera type '{camera_type}', expected one of {CAMERA_TYPES}")


def single_sphere(camera_type: str = "pinhole") -> Scene:
    """A white matte unit sphere at the origin seen from z=5.

    Only ambient light reaches it; rays that miss return black.
    """
    sphere = Sphere(Point3(0, 0, 0), 1.0, Matte(WHITE))
    camera = _make_camera(camera_type, Point3(0, 0, 5), Point3(0, 0, 0), 45.0)
    return Scene.build([sphere], [], camera, ambient=AmbientLight(1.0), background=BLACK)


def cornell_box(camera_type: str = "pinhole") -> Scene:
    """The Cornell box in [-1, 1]^3, open toward the camera at z=-3."""
    red = Matte(Color(0.63, 0.06, 0.04))
    green = Matte(Color(0.15, 0.48, 0.09))
    white = Matte(Color(0.76, 0.75, 0.5))
    light = Emissive(CORNELL_LIGHT_STRENGTH, WHITE)

    objects = []
    objects += quad(Point3(-1, -1, -1), Vec3(0, 0, 2), Vec3(2, 0, 0), white)   # floor
    objects += quad(Point3(-1, 1, -1), Vec3(2, 0, 0), Vec3(0, 0, 2), white)    # ceiling
    objects += quad(Point3(-1, -1, 1), Vec3(0, 2, 0), Vec3(2, 0, 0), white)    # back
    objects += quad(Point3(1, -1, -1), Vec3(0, 0, 2), Vec3(0, 2, 0), red)      # x = +1, left on screen
    objects += quad(Point3(-1, -1, -1), Vec3(0, 2, 0), Vec3(0, 0, 2), green)   # x = -1, right on screen

    # Just below the ceiling, facing down
    emitters = quad(Point3(-0.25, 0.99, -0.25), Vec3(0.5, 0, 0), Vec3(0, 0, 0.5), light)
    objects += emitters

    mirror = Reflective(WHITE, ka=0.1, kd=0.7, kr=0.8, ks=0.1, exp=10.0)
    objects.append(Sphere(Point3(*LARGE_SPHERE_POSITION), LARGE_SPHERE_RADIUS, mirror))

    glossy = Phong(WHITE, ka=0.1, kd=0.1, ks=0.3, exp=2.0)
    objects.append(Sphere(Point3(*SMALL_SPHERE_POSITION), SMALL_SPHERE_RADIUS, glossy))

    camera = _make_camera(
        camera_type,
        Point3(*DEFAULT_EYE_POSITION),
        Point3(*DEFAULT_LOOKAT_POSITION),
        DEFAULT_VFOV
    )
    ambient = AmbientOccluder(0.5, WHITE, min_amount=DEFAULT_AMBIENT_STRENGTH)
    return Scene.build(objects, [AreaLight(emitters, light)], camera, ambient=ambient)


def demo(camera_type: str = "pinhole") -> Scene:
    """Floor plane with matte, Phong, mirror and glass spheres."""
    floor = Plane(Point3(0, -1, 0), Vec3(0, 1, 0), Matte(Color(0.5, 0.5, 0.5)))

    objects = [
        floor,
        Sphere(Point3(-2.2, 0, 0), 1.0, Matte(Color(0.8, 0.3, 0.1))),
        Sphere(Point3(0, 0, -0.5), 1.0, Reflective(Color(0.9, 0.9, 0.9), ka=0.1, kd=0.2, kr=0.7)),
        Sphere(Point3(2.2, 0, 0), 1.0, Phong(Color(0.2, 0.4, 0.9), ks=0.3, exp=50.0)),
        Sphere(Point3(0.6, -0.6, 1.6), 0.4, Dielectric(1.5)),
    ]
    lights = [
        PointLight(Point3(3, 5, 4), 2.0),
        DirectionalLight(Vec3(-1, 2, 1), 0.8, Color(1.0, 0.95, 0.85)),
    ]

    camera = _make_camera(camera_type, Point3(0, 1.5, 7), Point3(0, 0, 0), 40.0)
    return Scene.build(
        objects, lights, camera,
        ambient=AmbientLight(DEFAULT_AMBIENT_STRENGTH * 2),
        background=Color(0.6, 0.75, 0.95)
    )


SCENES: Dict[str, Callable[[str], Scene]] = {
    "cornell": cornell_box,
    "demo": demo,
    "sphere": single_sphere,
}
