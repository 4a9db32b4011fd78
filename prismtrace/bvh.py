"""
Bounding Volume Hierarchy (BVH) for accelerating ray-object intersection.

The tree is stored as a flat arena of BVHNode records addressed by index.
Each node holds an AABB and either:
- Two child node indices (interior node)
- A range into the reordered object tuple (leaf node)

Construction splits at the centroid median along the longest axis of the
node's box, which makes the build deterministic. The structure is never
modified after construction and can be read by any number of workers.

Objects without a bounding box (planes) are kept out of the tree and
tested linearly on every query.
"""

from __future__ import annotations
from dataclasses import dataclass
from functools import reduce
from typing import Optional, Sequence
import logging

from .aabb import AABB
from .config import DEFAULT_MAX_LEAF_SIZE
from .ray import Ray
from .shapes import GeometricObject, HitRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BVHNode:
    """A node in the Bounding Volume Hierarchy arena.

    Interior nodes reference two children by index; leaves reference
    `count` objects starting at `start`.
    """
    bbox: AABB
    left: int = -1
    right: int = -1
    start: int = 0
    count: int = 0

    @property
    def is_leaf(self) -> bool:
        return self.count > 0


class BVH(GeometricObject):
    """Bounding Volume Hierarchy acceleration structure.

    Provides O(log n) ray intersection instead of O(n) for n objects.
    """

    def __init__(self, objects: Sequence[GeometricObject], max_leaf_size: int = DEFAULT_MAX_LEAF_SIZE):
        """Build a BVH from a list of objects.

        Args:
            objects: Objects to accelerate
            max_leaf_size: Maximum objects per leaf node
        """
        if max_leaf_size < 1:
            raise ValueError(f"max_leaf_size must be at least 1, got {max_leaf_size}")
        self.max_leaf_size = max_leaf_size

        bounded = []
        boxes = []
        unbounded = []
        for obj in objects:
            box = obj.bounding_box()
            if box is None:
                unbounded.append(obj)
            else:
                bounded.append(obj)
                boxes.append(box)

        self.unbounded: tuple[GeometricObject, ...] = tuple(unbounded)

        nodes: list[Optional[BVHNode]] = []
        order: list[int] = []
        if bounded:
            centroids = [box.centroid() for box in boxes]
            self._build_node(list(range(len(bounded))), boxes, centroids, nodes, order)

        self.nodes: tuple[BVHNode, ...] = tuple(nodes)
        self.objects: tuple[GeometricObject, ...] = tuple(bounded[i] for i in order)

        logger.debug(
            "BVH built: %d objects, %d nodes, %d leaves, depth %d, %d unbounded",
            len(self.objects), len(self.nodes),
            sum(1 for node in self.nodes if node.is_leaf),
            self.depth(), len(self.unbounded)
        )

    @classmethod
    def build(cls, objects: Sequence[GeometricObject], max_leaf_size: int = DEFAULT_MAX_LEAF_SIZE) -> BVH:
        return cls(objects, max_leaf_size)

    def _build_node(
        self,
        items: list[int],
        boxes: list[AABB],
        centroids: list,
        nodes: list,
        order: list[int]
    ) -> int:
        """Recursively build the subtree over `items` and return its index."""
        bbox = reduce(AABB.surrounding_box, (boxes[i] for i in items))
        index = len(nodes)
        nodes.append(None)

        if len(items) <= self.max_leaf_size:
            nodes[index] = BVHNode(bbox, start=len(order), count=len(items))
            order.extend(items)
            return index

        # Median split along the longest axis; sort is stable so ties keep input order
        axis = bbox.longest_axis()
        items = sorted(items, key=lambda i: centroids[i][axis])
        mid = len(items) // 2

        left = self._build_node(items[:mid], boxes, centroids, nodes, order)
        right = self._build_node(items[mid:], boxes, centroids, nodes, order)
        nodes[index] = BVHNode(bbox, left=left, right=right)
        return index

    def hit(self, ray: Ray, t_min: float, t_max: float) -> Optional[HitRecord]:
        """Find the closest intersection in [t_min, t_max].

        Children are visited nearest first and a subtree is skipped when
        its box starts no closer than the best hit so far. On equal
        distances the first hit found is kept.
        """
        closest_hit: Optional[HitRecord] = None
        closest_t = t_max

        for obj in self.unbounded:
            hit_record = obj.hit(ray, t_min, closest_t)
            if hit_record is not None and (closest_hit is None or hit_record.t < closest_t):
                closest_hit = hit_record
                closest_t = hit_record.t

        if not self.nodes:
            return closest_hit

        entry = self.nodes[0].bbox.hit_distance(ray, t_min, closest_t)
        if entry is None:
            return closest_hit

        stack = [(0, entry)]
        while stack:
            index, entry = stack.pop()
            if closest_hit is not None and entry >= closest_t:
                continue

            node = self.nodes[index]
            if node.is_leaf:
                for obj in self.objects[node.start:node.start + node.count]:
                    hit_record = obj.hit(ray, t_min, closest_t)
                    if hit_record is not None and (closest_hit is None or hit_record.t < closest_t):
                        closest_hit = hit_record
                        closest_t = hit_record.t
                continue

            left_entry = self.nodes[node.left].bbox.hit_distance(ray, t_min, closest_t)
            right_entry = self.nodes[node.right].bbox.hit_distance(ray, t_min, closest_t)

            # Push the farther child first so the nearer one is popped next
            if left_entry is not None and right_entry is not None:
                if right_entry < left_entry:
                    stack.append((node.left, left_entry))
                    stack.append((node.right, right_entry))
                else:
                    stack.append((node.right, right_entry))
                    stack.append((node.left, left_entry))
            elif left_entry is not None:
                stack.append((node.left, left_entry))
            elif right_entry is not None:
                stack.append((node.right, right_entry))

        return closest_hit

    def occluded(self, ray: Ray, t_min: float, t_max: float) -> bool:
        """Return True if anything blocks the ray within [t_min, t_max].

        Emissive objects let shadow rays through, so a light never
        shadows itself.
        """
        for obj in self.unbounded:
            if _casts_shadow(obj) and obj.hit(ray, t_min, t_max) is not None:
                return True

        if not self.nodes:
            return False

        stack = [0]
        while stack:
            node = self.nodes[stack.pop()]
            if node.bbox.hit_distance(ray, t_min, t_max) is None:
                continue
            if node.is_leaf:
                for obj in self.objects[node.start:node.start + node.count]:
                    if _casts_shadow(obj) and obj.hit(ray, t_min, t_max) is not None:
                        return True
            else:
                stack.append(node.right)
                stack.append(node.left)

        return False

    def bounding_box(self) -> Optional[AABB]:
        """Return the root box, None when empty or holding unbounded objects."""
        if self.unbounded or not self.nodes:
            return None
        return self.nodes[0].bbox

    def depth(self) -> int:
        """Number of levels in the tree (0 when empty)."""
        if not self.nodes:
            return 0
        deepest = 0
        stack = [(0, 1)]
        while stack:
            index, level = stack.pop()
            deepest = max(deepest, level)
            node = self.nodes[index]
            if not node.is_leaf:
                stack.append((node.left, level + 1))
                stack.append((node.right, level + 1))
        return deepest

    def __len__(self) -> int:
        return len(self.objects) + len(self.unbounded)

    def __repr__(self) -> str:
        return f"BVH(objects={len(self.objects)}, unbounded={len(self.unbounded)}, nodes={len(self.nodes)})"


def linear_intersect(
    objects: Sequence[GeometricObject],
    ray: Ray,
    t_min: Optional[float] = None,
    t_max: Optional[float] = None
) -> Optional[HitRecord]:
    """Brute-force closest hit over every object, first found on ties."""
    t_min = ray.t_min if t_min is None else t_min
    closest_t = ray.t_max if t_max is None else t_max
    closest_hit: Optional[HitRecord] = None

    for obj in objects:
        hit_record = obj.hit(ray, t_min, closest_t)
        if hit_record is not None and (closest_hit is None or hit_record.t < closest_t):
            closest_hit = hit_record
            closest_t = hit_record.t

    return closest_hit


def _casts_shadow(obj: GeometricObject) -> bool:
    return obj.material is None or not obj.material.emissive
