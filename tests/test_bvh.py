"""Tests for BVH acceleration structure."""

import math
import random

import pytest

from prismtrace.aabb import AABB
from prismtrace.bvh import BVH, BVHNode, linear_intersect
from prismtrace.materials import Emissive, Matte
from prismtrace.ray import Ray
from prismtrace.shapes import Sphere, Plane, Triangle
from prismtrace.vec3 import Vec3, Point3


def random_scene(count, seed=7):
    rnd = random.Random(seed)
    objects = []
    for i in range(count):
        center = Point3(rnd.uniform(-10, 10), rnd.uniform(-10, 10), rnd.uniform(-10, 10))
        if i % 3 == 0:
            a = center + Vec3(rnd.uniform(-1, 1), rnd.uniform(-1, 1), rnd.uniform(-1, 1))
            b = center + Vec3(rnd.uniform(-1, 1), rnd.uniform(-1, 1), rnd.uniform(-1, 1))
            objects.append(Triangle(center, a, b))
        else:
            objects.append(Sphere(center, rnd.uniform(0.2, 1.5)))
    return objects


def random_rays(count, seed=11):
    rnd = random.Random(seed)
    rays = []
    for _ in range(count):
        origin = Point3(rnd.uniform(-15, 15), rnd.uniform(-15, 15), rnd.uniform(-15, 15))
        target = Point3(rnd.uniform(-8, 8), rnd.uniform(-8, 8), rnd.uniform(-8, 8))
        rays.append(Ray(origin, (target - origin).normalize()))
    return rays


class TestBVHNode:
    """Test BVHNode records."""

    def test_leaf(self):
        node = BVHNode(AABB(Point3(0, 0, 0), Point3(1, 1, 1)), start=0, count=3)
        assert node.is_leaf

    def test_interior(self):
        node = BVHNode(AABB(Point3(0, 0, 0), Point3(1, 1, 1)), left=1, right=2)
        assert not node.is_leaf

    def test_frozen(self):
        node = BVHNode(AABB(Point3(0, 0, 0), Point3(1, 1, 1)), start=0, count=1)
        with pytest.raises(AttributeError):
            node.count = 5


class TestBVHBuild:
    """Test BVH construction."""

    def test_empty_scene(self):
        bvh = BVH([])
        assert bvh.nodes == ()
        assert bvh.depth() == 0
        assert bvh.bounding_box() is None
        assert bvh.hit(Ray(Point3(0, 0, 0), Vec3(1, 0, 0)), 0.0, math.inf) is None
        assert not bvh.occluded(Ray(Point3(0, 0, 0), Vec3(1, 0, 0)), 0.0, math.inf)

    def test_small_scene_is_single_leaf(self):
        bvh = BVH([Sphere(Point3(i, 0, 0), 0.4) for i in range(4)])
        assert len(bvh.nodes) == 1
        assert bvh.nodes[0].is_leaf

    def test_leaf_size_respected(self):
        bvh = BVH(random_scene(200), max_leaf_size=4)
        leaves = [node for node in bvh.nodes if node.is_leaf]
        assert all(1 <= leaf.count <= 4 for leaf in leaves)
        assert sum(leaf.count for leaf in leaves) == 200

    def test_every_object_in_exactly_one_leaf(self):
        objects = random_scene(120)
        bvh = BVH(objects)
        assert sorted(map(id, bvh.objects)) == sorted(map(id, objects))

    def test_invalid_leaf_size(self):
        with pytest.raises(ValueError):
            BVH([], max_leaf_size=0)

    def test_deterministic_build(self):
        objects = random_scene(150)
        a = BVH(objects)
        b = BVH(objects)
        assert a.nodes == b.nodes
        assert [id(o) for o in a.objects] == [id(o) for o in b.objects]

    def test_depth_is_logarithmic(self):
        bvh = BVH(random_scene(512), max_leaf_size=4)
        # Median splits halve the set at every level
        assert bvh.depth() <= math.ceil(math.log2(512 / 4)) + 1

    def test_node_boxes_contain_children(self):
        bvh = BVH(random_scene(300))
        for node in bvh.nodes:
            if node.is_leaf:
                for obj in bvh.objects[node.start:node.start + node.count]:
                    assert node.bbox.contains(obj.bounding_box(), tolerance=1e-9)
            else:
                left = bvh.nodes[node.left].bbox
                right = bvh.nodes[node.right].bbox
                assert node.bbox.contains(left, tolerance=1e-9)
                assert node.bbox.contains(right, tolerance=1e-9)
                # Tight: equal to the union of the children
                assert node.bbox == AABB.surrounding_box(left, right)

    def test_planes_kept_out_of_tree(self):
        plane = Plane(Point3(0, -1, 0), Vec3(0, 1, 0))
        bvh = BVH([plane, Sphere(Point3(0, 0, 0), 1.0)])
        assert bvh.unbounded == (plane,)
        assert len(bvh.objects) == 1
        assert len(bvh) == 2
        assert bvh.bounding_box() is None


class TestBVHTraversal:
    """Test BVH ray queries."""

    def test_single_sphere(self):
        bvh = BVH([Sphere(Point3(0, 0, -5), 1.0)])
        hit = bvh.hit(Ray(Point3(0, 0, 0), Vec3(0, 0, -1)), 0.0, math.inf)
        assert hit.t == pytest.approx(4.0)

    def test_multiple_spheres_finds_closest(self):
        spheres = [Sphere(Point3(0, 0, -5 * i), 1.0) for i in range(1, 10)]
        bvh = BVH(list(reversed(spheres)))
        hit = bvh.hit(Ray(Point3(0, 0, 0), Vec3(0, 0, -1)), 0.0, math.inf)
        assert hit.t == pytest.approx(4.0)
        assert hit.obj is spheres[0]

    def test_miss(self):
        bvh = BVH([Sphere(Point3(0, 0, -5), 1.0), Sphere(Point3(5, 0, -5), 1.0)])
        assert bvh.hit(Ray(Point3(0, 10, 0), Vec3(0, 0, -1)), 0.0, math.inf) is None

    def test_respects_t_max(self):
        bvh = BVH([Sphere(Point3(0, 0, -5), 1.0)])
        assert bvh.hit(Ray(Point3(0, 0, 0), Vec3(0, 0, -1)), 0.0, 3.0) is None

    def test_plane_closer_than_tree(self):
        plane = Plane(Point3(0, 0, -2), Vec3(0, 0, 1))
        bvh = BVH([plane] + [Sphere(Point3(i, 0, -5), 0.5) for i in range(10)])
        hit = bvh.hit(Ray(Point3(0, 0, 0), Vec3(0, 0, -1)), 0.0, math.inf)
        assert hit.obj is plane

    def test_matches_linear_search(self):
        objects = random_scene(250)
        bvh = BVH(objects)

        hits = 0
        for ray in random_rays(400):
            expected = linear_intersect(objects, ray)
            actual = bvh.hit(ray, ray.t_min, ray.t_max)
            if expected is None:
                assert actual is None
                continue
            hits += 1
            assert actual is not None
            assert actual.obj is expected.obj
            assert actual.t == pytest.approx(expected.t, abs=1e-9)

        # The comparison must exercise real hits
        assert hits > 50

    def test_occluded_matches_hit(self):
        objects = random_scene(100)
        bvh = BVH(objects)
        for ray in random_rays(200, seed=3):
            for t_max in (2.0, 10.0, math.inf):
                hit = linear_intersect(objects, ray, 0.0, t_max)
                assert bvh.occluded(ray, 0.0, t_max) == (hit is not None)

    def test_occluded_skips_emitters(self):
        ray = Ray(Point3(0, 0, -5), Vec3(0, 0, 1))
        glowing = BVH([Sphere(Point3(0, 0, 0), 1.0, Emissive())])
        assert glowing.hit(ray, 0.0, math.inf) is not None
        assert not glowing.occluded(ray, 0.0, math.inf)

        opaque = BVH([Sphere(Point3(0, 0, 0), 1.0, Emissive()), Sphere(Point3(0, 0, 3), 1.0, Matte())])
        assert opaque.occluded(ray, 0.0, math.inf)

    def test_occluded_skips_emissive_planes(self):
        ray = Ray(Point3(0, -5, 0), Vec3(0, 1, 0))
        bvh = BVH([Plane(Point3(0, 0, 0), Vec3(0, 1, 0), Emissive())])
        assert not bvh.occluded(ray, 0.0, math.inf)

    def test_tie_keeps_first_found(self):
        first = Triangle(Point3(-1, -1, 0), Point3(1, -1, 0), Point3(0, 1, 0))
        second = Triangle(Point3(-1, -1, 0), Point3(1, -1, 0), Point3(0, 1, 0))
        bvh = BVH([first, second])
        ray = Ray(Point3(0, 0, -1), Vec3(0, 0, 1))
        # Same result on every query
        results = {id(bvh.hit(ray, 0.0, math.inf).obj) for _ in range(5)}
        assert results == {id(first)}
