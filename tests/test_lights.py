"""Tests for light sources."""

import math

import numpy as np
import pytest

from prismtrace.camera import Camera
from prismtrace.lights import (
    AmbientLight, AmbientOccluder, PointLight, DirectionalLight, AreaLight,
)
from prismtrace.materials import Emissive, ShadeContext
from prismtrace.ray import Ray
from prismtrace.scene import Scene
from prismtrace.shapes import HitRecord, Sphere, Plane, Triangle
from prismtrace.vec3 import Vec3, Point3, Color, WHITE


def scene_with(objects):
    camera = Camera(Point3(0, 5, 5), Point3(0, 0, 0), Vec3(0, 1, 0), 45.0)
    return Scene.build(objects, [], camera)


def context_at(scene, point=Point3(0, 0, 0), normal=Vec3(0, 1, 0), light_samples=3, seed=0):
    """Shade context for a surface point facing `normal`."""
    hit = HitRecord(point=point, normal=normal, t=1.0, front_face=True)
    ray = Ray(point + normal, -normal)
    return ShadeContext(
        ray=ray, hit=hit, scene=scene, depth=0, tracer=None,
        rng=np.random.default_rng(seed), light_samples=light_samples
    )


class TestAmbientLight:
    """Test constant ambient light."""

    def test_radiance(self):
        light = AmbientLight(0.5, Color(1.0, 0.5, 0.0))
        assert light.radiance(context_at(scene_with([]))) == Color(0.5, 0.25, 0.0)

    def test_no_shadows(self):
        light = AmbientLight()
        assert not light.casts_shadows
        assert light.shadow_amount(context_at(scene_with([]))) == 1.0


class TestAmbientOccluder:
    """Test ambient occlusion."""

    def test_open_sky_is_fully_lit(self):
        occluder = AmbientOccluder(1.0, WHITE, min_amount=0.1)
        ctx = context_at(scene_with([]))
        assert occluder.visible_fraction(ctx) == 1.0
        assert occluder.radiance(ctx) == WHITE

    def test_covered_point_gets_min_amount(self):
        ceiling = Plane(Point3(0, 1, 0), Vec3(0, -1, 0))
        occluder = AmbientOccluder(2.0, WHITE, min_amount=0.25)
        ctx = context_at(scene_with([ceiling]))
        assert occluder.visible_fraction(ctx) == 0.0
        assert occluder.radiance(ctx) == Color(0.5, 0.5, 0.5)

    def test_emissive_cover_does_not_occlude(self):
        glowing_ceiling = Plane(Point3(0, 1, 0), Vec3(0, -1, 0), Emissive())
        occluder = AmbientOccluder(1.0, WHITE, min_amount=0.0)
        assert occluder.visible_fraction(context_at(scene_with([glowing_ceiling]))) == 1.0

    def test_partial_cover_in_between(self):
        blocker = Sphere(Point3(0, 1.5, 0), 1.0)
        occluder = AmbientOccluder(1.0, WHITE, min_amount=0.0)
        fraction = occluder.visible_fraction(context_at(scene_with([blocker]), light_samples=6))
        assert 0.0 < fraction < 1.0

    def test_deterministic_for_same_generator(self):
        blocker = Sphere(Point3(0.5, 1.5, 0), 1.0)
        occluder = AmbientOccluder(1.0, WHITE)
        scene = scene_with([blocker])
        a = occluder.visible_fraction(context_at(scene, seed=3))
        b = occluder.visible_fraction(context_at(scene, seed=3))
        assert a == b

    @pytest.mark.parametrize("normal", [
        Vec3(0, 1, 0), Vec3(0, -1, 0), Vec3(1, 0, 0), Vec3(0, 0, 1),
        Vec3(1, 1, 1).normalize(),
    ])
    def test_uvw_is_orthonormal(self, normal):
        u, v, w = AmbientOccluder.uvw(normal)
        for axis in (u, v, w):
            assert axis.length() == pytest.approx(1.0)
        assert u.dot(v) == pytest.approx(0.0, abs=1e-12)
        assert v.dot(w) == pytest.approx(0.0, abs=1e-12)
        assert u.dot(w) == pytest.approx(0.0, abs=1e-12)


class TestPointLight:
    """Test point lights."""

    def test_direction(self):
        light = PointLight(Point3(0, 4, 0))
        assert light.direction(context_at(scene_with([]))) == Vec3(0, 1, 0)

    def test_radiance(self):
        light = PointLight(Point3(0, 4, 0), ls=3.0, cl=Color(1.0, 0.5, 0.5))
        assert light.radiance(context_at(scene_with([]))) == Color(3.0, 1.5, 1.5)

    def test_falloff(self):
        light = PointLight(Point3(0, 4, 0), ls=32.0, falloff=True)
        assert light.radiance(context_at(scene_with([]))) == Color(2.0, 2.0, 2.0)

    def test_unblocked(self):
        light = PointLight(Point3(0, 4, 0))
        assert light.shadow_amount(context_at(scene_with([]))) == 1.0

    def test_blocked(self):
        light = PointLight(Point3(0, 4, 0))
        blocker = Sphere(Point3(0, 2, 0), 0.5)
        assert light.shadow_amount(context_at(scene_with([blocker]))) == 0.0

    def test_blocker_behind_light_ignored(self):
        light = PointLight(Point3(0, 4, 0))
        blocker = Sphere(Point3(0, 6, 0), 0.5)
        assert light.shadow_amount(context_at(scene_with([blocker]))) == 1.0


class TestDirectionalLight:
    """Test directional lights."""

    def test_direction_normalized(self):
        light = DirectionalLight(Vec3(0, 5, 0))
        assert light.direction(context_at(scene_with([]))) == Vec3(0, 1, 0)

    def test_zero_direction_rejected(self):
        with pytest.raises(ValueError):
            DirectionalLight(Vec3(0, 0, 0))

    def test_blocked_at_any_distance(self):
        light = DirectionalLight(Vec3(0, 1, 0))
        blocker = Sphere(Point3(0, 1000, 0), 1.0)
        assert light.shadow_amount(context_at(scene_with([blocker]))) == 0.0

    def test_unblocked(self):
        light = DirectionalLight(Vec3(0, 1, 0))
        blocker = Sphere(Point3(5, 5, 0), 1.0)
        assert light.shadow_amount(context_at(scene_with([blocker]))) == 1.0


class TestAreaLight:
    """Test area lights and soft shadows."""

    @staticmethod
    def emitter():
        return Triangle(Point3(-1, 2, -1), Point3(1, 2, -1), Point3(0, 2, 1))

    def test_requires_objects(self):
        with pytest.raises(ValueError):
            AreaLight([], Emissive())

    def test_center_is_mean_of_centroids(self):
        light = AreaLight([Sphere(Point3(0, 2, 0), 0.5), Sphere(Point3(2, 2, 0), 0.5)], Emissive())
        assert light.center == Point3(1, 2, 0)

    def test_radiance_from_material(self):
        light = AreaLight([self.emitter()], Emissive(4.0, Color(1.0, 0.5, 0.25)))
        assert light.radiance(context_at(scene_with([]))) == Color(4.0, 2.0, 1.0)

    def test_fully_visible(self):
        emitter = self.emitter()
        light = AreaLight([emitter], Emissive())
        # The emitter itself is part of the scene and must not shadow itself
        assert light.shadow_amount(context_at(scene_with([emitter]))) == 1.0

    def test_fully_blocked(self):
        emitter = self.emitter()
        light = AreaLight([emitter], Emissive())
        ceiling = Plane(Point3(0, 1, 0), Vec3(0, -1, 0))
        assert light.shadow_amount(context_at(scene_with([emitter, ceiling]))) == 0.0

    def test_soft_shadow(self):
        emitter = Triangle(Point3(-2, 3, -2), Point3(2, 3, -2), Point3(0, 3, 2))
        light = AreaLight([emitter], Emissive())
        # Small blocker right above the point hides only part of the light
        blocker = Sphere(Point3(0, 1.5, 0), 0.3)
        amount = light.shadow_amount(context_at(scene_with([emitter, blocker]), light_samples=8))
        assert 0.0 < amount < 1.0

    def test_sphere_light_not_self_shadowed(self):
        emissive = Emissive()
        bulb = Sphere(Point3(0, 3, 0), 0.5, emissive)
        floor = Plane(Point3(0, 0, 0), Vec3(0, 1, 0))
        light = AreaLight([bulb], emissive)
        # Samples on the far side of the bulb pass through its near side
        ctx = context_at(scene_with([floor, bulb]), light_samples=4)
        assert light.shadow_amount(ctx) == 1.0

    def test_emitter_still_hidden_by_opaque_blocker(self):
        emissive = Emissive()
        bulb = Sphere(Point3(0, 3, 0), 0.5, emissive)
        ceiling = Plane(Point3(0, 1, 0), Vec3(0, -1, 0))
        light = AreaLight([bulb], emissive)
        assert light.shadow_amount(context_at(scene_with([bulb, ceiling]), light_samples=4)) == 0.0

    def test_direction_toward_center(self):
        light = AreaLight([Sphere(Point3(0, 3, 0), 0.5)], Emissive())
        assert light.direction(context_at(scene_with([]))) == Vec3(0, 1, 0)
