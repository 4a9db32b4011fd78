"""Tests for scene assembly and queries."""

import math

import pytest

from prismtrace.bvh import BVH
from prismtrace.lights import AmbientLight, PointLight
from prismtrace.ray import Ray
from prismtrace.scene import Scene
from prismtrace.shapes import Sphere, Plane, Triangle, TriangleMesh, Group
from prismtrace.vec3 import Vec3, Point3, Color, BLACK


class TestSceneBuild:
    """Test Scene.build."""

    def test_defaults(self, front_camera):
        scene = Scene.build([], [], front_camera)
        assert isinstance(scene.bvh, BVH)
        assert scene.lights == ()
        assert scene.background == BLACK
        assert isinstance(scene.ambient, AmbientLight)
        assert scene.ambient.ls == 0.0

    def test_groups_are_flattened(self, front_camera):
        spheres = [Sphere(Point3(i, 0, 0), 0.4) for i in range(3)]
        group = Group([spheres[0], Group(spheres[1:])])
        scene = Scene.build([group], [], front_camera)
        assert sorted(map(id, scene.objects)) == sorted(map(id, spheres))

    def test_mesh_kept_whole(self, front_camera):
        mesh = TriangleMesh([0, 0, 0, 1, 0, 0, 0, 1, 0], [[0, 1, 2]])
        scene = Scene.build([mesh], [], front_camera)
        assert scene.objects == (mesh,)

    def test_lights_tuple(self, front_camera):
        light = PointLight(Point3(0, 5, 0))
        scene = Scene.build([], [light], front_camera)
        assert scene.lights == (light,)

    def test_immutable(self, sphere_scene):
        with pytest.raises(AttributeError):
            sphere_scene.background = Color(1, 1, 1)

    def test_includes_unbounded(self, front_camera):
        plane = Plane(Point3(0, -1, 0), Vec3(0, 1, 0))
        sphere = Sphere(Point3(0, 0, 0), 1.0)
        scene = Scene.build([plane, sphere], [], front_camera)
        assert set(map(id, scene.objects)) == {id(plane), id(sphere)}


class TestSceneQueries:
    """Test intersection and shadow queries."""

    def test_intersect_closest(self, sphere_scene):
        hit = sphere_scene.intersect(Ray(Point3(0, 0, 5), Vec3(0, 0, -1)))
        assert hit.t == pytest.approx(4.0)
        assert hit.point == Point3(0, 0, 1)

    def test_intersect_respects_ray_interval(self, sphere_scene):
        ray = Ray(Point3(0, 0, 5), Vec3(0, 0, -1), t_min=0.0, t_max=3.0)
        assert sphere_scene.intersect(ray) is None

    def test_hit_interval(self, sphere_scene):
        ray = Ray(Point3(0, 0, 5), Vec3(0, 0, -1))
        hit = sphere_scene.hit(ray, 4.5, math.inf)
        assert hit.t == pytest.approx(6.0)

    def test_miss(self, sphere_scene):
        assert sphere_scene.intersect(Ray(Point3(0, 5, 5), Vec3(0, 0, -1))) is None

    def test_shadow_blocked(self, sphere_scene):
        assert sphere_scene.is_in_shadow(Point3(0, 0, 5), Vec3(0, 0, -1), 10.0)

    def test_shadow_beyond_distance(self, sphere_scene):
        assert not sphere_scene.is_in_shadow(Point3(0, 0, 5), Vec3(0, 0, -1), 3.0)

    def test_shadow_ignores_target_surface(self, front_camera):
        # Blocker ending exactly at the light position does not count
        tri = Triangle(Point3(-1, -1, 2), Point3(1, -1, 2), Point3(0, 1, 2))
        scene = Scene.build([tri], [], front_camera)
        assert not scene.is_in_shadow(Point3(0, 0, 0), Vec3(0, 0, 1), 2.0)
        assert scene.is_in_shadow(Point3(0, 0, 0), Vec3(0, 0, 1), 2.5)

    def test_shadow_infinite_distance(self, sphere_scene):
        assert sphere_scene.is_in_shadow(Point3(0, 0, -5), Vec3(0, 0, 1))
        assert not sphere_scene.is_in_shadow(Point3(0, 0, -5), Vec3(0, 0, -1))
