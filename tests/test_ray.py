"""Tests for Ray class."""

import math
import pickle

import pytest

from prismtrace.vec3 import Vec3, Point3
from prismtrace.ray import Ray


class TestRay:
    """Test Ray construction and evaluation."""

    def test_defaults(self):
        ray = Ray(Point3(0, 0, 0), Vec3(1, 0, 0))
        assert ray.t_min == 0.0
        assert ray.t_max == math.inf

    def test_at(self):
        ray = Ray(Point3(1, 2, 3), Vec3(0, 0, 1))
        assert ray.at(0) == Point3(1, 2, 3)
        assert ray.at(2.5) == Point3(1, 2, 5.5)

    def test_negative_t(self):
        ray = Ray(Point3(0, 0, 0), Vec3(1, 0, 0))
        assert ray.at(-2) == Point3(-2, 0, 0)

    def test_immutable(self):
        ray = Ray(Point3(0, 0, 0), Vec3(1, 0, 0))
        with pytest.raises(AttributeError):
            ray.origin = Point3(1, 1, 1)
        with pytest.raises(AttributeError):
            ray.t_max = 5.0

    def test_spawn(self):
        ray = Ray.spawn(Point3(0, 1, 0), Vec3(0, 1, 0), t_max=3.0)
        assert ray.origin == Point3(0, 1, 0)
        assert ray.t_min == 0.0
        assert ray.t_max == 3.0

    def test_pickle_round_trip(self):
        ray = Ray(Point3(1, 2, 3), Vec3(0, 1, 0), 0.5, 10.0)
        copy = pickle.loads(pickle.dumps(ray))
        assert copy.origin == ray.origin
        assert copy.direction == ray.direction
        assert (copy.t_min, copy.t_max) == (0.5, 10.0)

    def test_repr(self):
        assert "Ray(" in repr(Ray(Point3(0, 0, 0), Vec3(1, 0, 0)))
