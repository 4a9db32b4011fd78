"""Shared fixtures for the prismtrace test suite."""

import numpy as np
import pytest

from prismtrace.camera import Camera
from prismtrace.lights import AmbientLight
from prismtrace.materials import Matte
from prismtrace.renderer import Renderer, RenderSettings
from prismtrace.scene import Scene
from prismtrace.shapes import Sphere
from prismtrace.vec3 import Vec3, Point3, Color


@pytest.fixture
def white_matte():
    return Matte(Color(1, 1, 1))


@pytest.fixture
def front_camera():
    """Camera on the +z axis looking at the origin."""
    return Camera(Point3(0, 0, 5), Point3(0, 0, 0), Vec3(0, 1, 0), 45.0)


@pytest.fixture
def sphere_scene(white_matte, front_camera):
    """Unit sphere at the origin lit only by ambient light."""
    sphere = Sphere(Point3(0, 0, 0), 1.0, white_matte)
    return Scene.build([sphere], [], front_camera, ambient=AmbientLight(1.0))


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def serial_renderer():
    """Single-threaded renderer for small deterministic images."""
    return Renderer(RenderSettings(width=8, height=8, samples_per_pixel=1, num_threads=1))
