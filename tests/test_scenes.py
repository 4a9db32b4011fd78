"""Tests for the built-in scenes."""

import pytest

from prismtrace.camera import Camera, ThinLensCamera
from prismtrace.errors import ConfigError
from prismtrace.lights import AmbientLight, AmbientOccluder, AreaLight
from prismtrace.materials import Emissive, Reflective, Phong
from prismtrace.ray import Ray
from prismtrace.scene import Scene
from prismtrace.scenes import SCENES, single_sphere, cornell_box, demo
from prismtrace.vec3 import Vec3, Point3, BLACK


class TestBuiltinScenes:
    """Test scene construction."""

    @pytest.mark.parametrize("name", sorted(SCENES))
    @pytest.mark.parametrize("camera_type", ["pinhole", "thin-lens"])
    def test_all_build(self, name, camera_type):
        scene = SCENES[name](camera_type)
        assert isinstance(scene, Scene)
        assert len(scene.objects) > 0

    def test_camera_type(self):
        assert type(single_sphere("pinhole").camera) is Camera
        assert isinstance(single_sphere("thin-lens").camera, ThinLensCamera)

    def test_unknown_camera(self):
        with pytest.raises(ConfigError):
            single_sphere("orthographic")

    def test_single_sphere(self):
        scene = single_sphere()
        assert len(scene.objects) == 1
        assert scene.lights == ()
        assert scene.background == BLACK
        assert isinstance(scene.ambient, AmbientLight)
        assert scene.camera.origin == Point3(0, 0, 5)

    def test_cornell_lighting(self):
        scene = cornell_box()
        assert isinstance(scene.ambient, AmbientOccluder)
        area_lights = [light for light in scene.lights if isinstance(light, AreaLight)]
        assert len(area_lights) == 1
        assert isinstance(area_lights[0].emissive, Emissive)
        # Emitters are part of the geometry
        assert set(map(id, area_lights[0].objects)) <= set(map(id, scene.objects))

    def test_cornell_materials(self):
        materials = {type(obj.material) for obj in cornell_box().objects}
        assert Reflective in materials
        assert Phong in materials

    def test_cornell_is_closed_behind(self):
        scene = cornell_box()
        hit = scene.intersect(Ray(Point3(0.1, 0.3, -3), Vec3(0, 0, 1)))
        assert hit is not None
        assert hit.point.z == pytest.approx(1.0)

    def test_cornell_light_faces_down(self):
        scene = cornell_box()
        for emitter in scene.lights[0].objects:
            assert emitter.normal.y < 0

    def test_demo_has_sky(self):
        scene = demo()
        assert not scene.background.is_black()
        assert len(scene.lights) == 2
