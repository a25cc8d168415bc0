"""Bounding volume hierarchy over bounded primitives.

The tree lives in a flat tuple of :class:`BVHNode` records addressed by index
(the root is node 0). Leaves own a contiguous run of ``primitive_indices``;
interior nodes own exactly two children. Nothing is mutated after the
constructor returns, so one BVH can be traversed from many threads at once.
"""
import logging
import time
from typing import List, NamedTuple, Optional, Sequence

from core.errors import InvalidInputError
from core.math import Ray, AABB
from core.material import HitRecord
from core.geometry import Hittable

logger = logging.getLogger(__name__)

DEFAULT_LEAF_SIZE = 4
DEFAULT_MAX_DEPTH = 64


class BVHNode(NamedTuple):
    box: AABB
    left: int
    right: int
    start: int
    count: int

    @property
    def is_leaf(self) -> bool:
        return self.left < 0


class BVH:
    def __init__(self, primitives: Sequence[Hittable],
                 leaf_size: int = DEFAULT_LEAF_SIZE,
                 max_depth: int = DEFAULT_MAX_DEPTH):
        if not primitives:
            raise InvalidInputError("cannot build a BVH over zero primitives")
        if leaf_size < 1:
            raise InvalidInputError(f"leaf_size must be at least 1, got {leaf_size}")
        if max_depth < 0:
            raise InvalidInputError(f"max_depth must be non-negative, got {max_depth}")

        start_time = time.time()
        self.primitives = tuple(primitives)
        self.leaf_size = leaf_size
        self.max_depth = max_depth

        boxes = []
        for prim in self.primitives:
            box = prim.bounding_box()
            if box is None:
                raise InvalidInputError(f"unbounded primitive {prim!r} cannot be placed in a BVH")
            boxes.append(box)
        self._boxes = boxes
        self._centroids = [prim.centroid() for prim in self.primitives]

        self._nodes: List[Optional[BVHNode]] = []
        order = list(range(len(self.primitives)))
        self.depth = 0
        self._build(order, 0, len(order), 0)

        self.nodes = tuple(self._nodes)
        self.primitive_indices = tuple(order)
        del self._nodes, self._boxes, self._centroids

        self.build_seconds = time.time() - start_time
        logger.info("BVH built: %d primitives, %d nodes (%d leaves), depth %d in %.3fs",
                    len(self.primitives), self.node_count, self.leaf_count,
                    self.depth, self.build_seconds)

    @property
    def node_count(self) -> int:
        return len(self.nodes)

    @property
    def leaf_count(self) -> int:
        return sum(1 for node in self.nodes if node.is_leaf)

    @property
    def bounds(self) -> AABB:
        return self.nodes[0].box

    def _build(self, order: List[int], start: int, end: int, depth: int) -> int:
        """Builds the subtree over order[start:end] and returns its node index."""
        index = len(self._nodes)
        self._nodes.append(None)
        self.depth = max(self.depth, depth)

        box = AABB.union_all(self._boxes[i] for i in order[start:end])
        span = end - start
        if span <= self.leaf_size or depth >= self.max_depth:
            self._nodes[index] = BVHNode(box, -1, -1, start, span)
            return index

        # split on the axis where centroids spread the most
        centroid_box = AABB.from_points(self._centroids[i] for i in order[start:end])
        axis = centroid_box.longest_axis()
        if centroid_box.extent[axis] == 0.0:
            axis = box.longest_axis()

        # stable sort keeps duplicate centroids in index order so the split
        # always makes progress
        order[start:end] = sorted(order[start:end],
                                  key=lambda i: (self._centroids[i][axis], i))
        mid = start + span // 2

        left = self._build(order, start, mid, depth + 1)
        right = self._build(order, mid, end, depth + 1)
        self._nodes[index] = BVHNode(box, left, right, start, span)
        return index

    def _leaf_primitives(self, node: BVHNode):
        for k in range(node.start, node.start + node.count):
            yield self.primitives[self.primitive_indices[k]]

    def closest_hit(self, ray: Ray, t_min: Optional[float] = None,
                    t_max: Optional[float] = None) -> Optional[HitRecord]:
        """Nearest primitive hit inside the ray's interval (NearestHit)."""
        t_min = ray.t_min if t_min is None else t_min
        closest_so_far = ray.t_max if t_max is None else t_max
        nodes = self.nodes

        entry = nodes[0].box.intersect(ray, t_min, closest_so_far)
        if entry is None:
            return None

        best = None
        stack = [(0, entry)]
        while stack:
            index, entry = stack.pop()
            if entry > closest_so_far:
                continue
            node = nodes[index]
            if node.is_leaf:
                for prim in self._leaf_primitives(node):
                    rec = prim.hit(ray, t_min, closest_so_far)
                    if rec is not None:
                        best = rec
                        closest_so_far = rec.t
                continue

            t_left = nodes[node.left].box.intersect(ray, t_min, closest_so_far)
            t_right = nodes[node.right].box.intersect(ray, t_min, closest_so_far)
            # push the far child first so the near one is popped first
            if t_left is not None and t_right is not None:
                if t_left <= t_right:
                    stack.append((node.right, t_right))
                    stack.append((node.left, t_left))
                else:
                    stack.append((node.left, t_left))
                    stack.append((node.right, t_right))
            elif t_left is not None:
                stack.append((node.left, t_left))
            elif t_right is not None:
                stack.append((node.right, t_right))
        return best

    def any_hit(self, ray: Ray, t_min: Optional[float] = None,
                t_max: Optional[float] = None) -> bool:
        """True as soon as any primitive is hit inside the interval (AnyHit)."""
        t_min = ray.t_min if t_min is None else t_min
        t_max = ray.t_max if t_max is None else t_max
        nodes = self.nodes

        stack = [0]
        while stack:
            node = nodes[stack.pop()]
            if not node.box.hit(ray, t_min, t_max):
                continue
            if node.is_leaf:
                for prim in self._leaf_primitives(node):
                    if prim.hit(ray, t_min, t_max) is not None:
                        return True
            else:
                stack.append(node.right)
                stack.append(node.left)
        return False


def closest_hit_linear(primitives: Sequence[Hittable], ray: Ray,
                       t_min: float, t_max: float) -> Optional[HitRecord]:
    """Brute-force nearest hit over every primitive."""
    best = None
    closest_so_far = t_max
    for prim in primitives:
        rec = prim.hit(ray, t_min, closest_so_far)
        if rec is not None:
            best = rec
            closest_so_far = rec.t
    return best


def any_hit_linear(primitives: Sequence[Hittable], ray: Ray,
                   t_min: float, t_max: float) -> bool:
    return any(prim.hit(ray, t_min, t_max) is not None for prim in primitives)
