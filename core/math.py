import math
from typing import Iterable, Optional

import numpy as np

from core.errors import InvalidInputError

# Offset used for ray origins and t_min so a ray never re-hits the surface it left.
EPSILON = 1e-4


class Vec3:
    __slots__ = ("x", "y", "z")

    def __init__(self, x=0.0, y=0.0, z=0.0):
        self.x = float(x)
        self.y = float(y)
        self.z = float(z)

    @classmethod
    def of(cls, value) -> "Vec3":
        """Vec3, 3-sequence or scalar (promoted to all components)."""
        if isinstance(value, Vec3):
            return value
        if isinstance(value, (int, float)):
            return cls(value, value, value)
        x, y, z = value
        return cls(x, y, z)

    def __add__(self, other):
        return Vec3(self.x + other.x,
                    self.y + other.y,
                    self.z + other.z)

    def __sub__(self, other):
        return Vec3(self.x - other.x,
                    self.y - other.y,
                    self.z - other.z)

    def __mul__(self, t):
        # scalar or componentwise (Hadamard) product
        if isinstance(t, Vec3):
            return Vec3(self.x * t.x,
                        self.y * t.y,
                        self.z * t.z)
        return Vec3(self.x * t, self.y * t, self.z * t)

    __rmul__ = __mul__

    def __truediv__(self, t):
        return Vec3(self.x / t, self.y / t, self.z / t)

    def __neg__(self):
        return Vec3(-self.x, -self.y, -self.z)

    def __getitem__(self, axis):
        if axis == 0:
            return self.x
        if axis == 1:
            return self.y
        if axis == 2:
            return self.z
        raise IndexError(axis)

    def __iter__(self):
        yield self.x
        yield self.y
        yield self.z

    def __eq__(self, other):
        if not isinstance(other, Vec3):
            return NotImplemented
        return self.x == other.x and self.y == other.y and self.z == other.z

    def __hash__(self):
        return hash((self.x, self.y, self.z))

    def dot(self, other):
        return self.x * other.x + self.y * other.y + self.z * other.z

    def cross(self, other):
        return Vec3(
            self.y * other.z - self.z * other.y,
            self.z * other.x - self.x * other.z,
            self.x * other.y - self.y * other.x
        )

    def length_squared(self):
        return self.x * self.x + self.y * self.y + self.z * self.z

    def length(self):
        return math.sqrt(self.length_squared())

    def normalize(self):
        l = self.length()
        if l == 0 or not math.isfinite(l):
            return Vec3(0, 0, 0)
        return self / l

    def reflect(self, normal):
        # r = v - 2 * dot(v, n) * n
        return self - normal * (2 * self.dot(normal))

    def min(self, other):
        return Vec3(min(self.x, other.x), min(self.y, other.y), min(self.z, other.z))

    def max(self, other):
        return Vec3(max(self.x, other.x), max(self.y, other.y), max(self.z, other.z))

    def is_finite(self):
        return math.isfinite(self.x) and math.isfinite(self.y) and math.isfinite(self.z)

    def is_zero(self):
        return self.x == 0.0 and self.y == 0.0 and self.z == 0.0

    def to_np(self):
        return np.array([self.x, self.y, self.z], dtype=np.float64)

    def __repr__(self):
        return f"Vec3({self.x:.3f}, {self.y:.3f}, {self.z:.3f})"


def refract(direction: Vec3, normal: Vec3, eta: float) -> Optional[Vec3]:
    """Snell refraction of a unit ``direction`` through a unit ``normal``.

    ``normal`` must face against ``direction`` and ``eta`` is the ratio
    n_incident / n_transmitted. Returns None on total internal reflection.
    """
    cos_i = -direction.dot(normal)
    sin2_t = eta * eta * (1.0 - cos_i * cos_i)
    if sin2_t > 1.0:
        return None
    cos_t = math.sqrt(1.0 - sin2_t)
    return (direction * eta + normal * (eta * cos_i - cos_t)).normalize()


class Ray:
    """Immutable ray with a unit direction and a valid interval [t_min, t_max]."""

    __slots__ = ("origin", "direction", "t_min", "t_max", "inv_direction")

    def __init__(self, origin: Vec3, direction: Vec3,
                 t_min: float = EPSILON, t_max: float = math.inf):
        object.__setattr__(self, "origin", origin)
        object.__setattr__(self, "direction", direction.normalize())
        object.__setattr__(self, "t_min", float(t_min))
        object.__setattr__(self, "t_max", float(t_max))
        d = self.direction
        object.__setattr__(self, "inv_direction", tuple(
            1.0 / c if c != 0.0 else math.inf for c in (d.x, d.y, d.z)
        ))

    def __setattr__(self, name, value):
        raise AttributeError("Ray is immutable")

    @property
    def is_degenerate(self) -> bool:
        return self.direction.is_zero() or not self.origin.is_finite()

    def point_at_parameter(self, t):
        return self.origin + self.direction * t

    def __repr__(self):
        return f"Ray({self.origin!r}, {self.direction!r}, [{self.t_min}, {self.t_max}])"


class AABB:
    __slots__ = ("min", "max")

    def __init__(self, min_pt: Vec3, max_pt: Vec3):
        if min_pt.x > max_pt.x or min_pt.y > max_pt.y or min_pt.z > max_pt.z:
            raise InvalidInputError(f"AABB min {min_pt!r} exceeds max {max_pt!r}")
        self.min = min_pt
        self.max = max_pt

    @staticmethod
    def surrounding_box(box0, box1):
        return AABB(box0.min.min(box1.min), box0.max.max(box1.max))

    @staticmethod
    def union_all(boxes: Iterable["AABB"]) -> "AABB":
        boxes = iter(boxes)
        try:
            result = next(boxes)
        except StopIteration:
            raise InvalidInputError("cannot take the union of no boxes") from None
        lo, hi = result.min, result.max
        for box in boxes:
            lo = lo.min(box.min)
            hi = hi.max(box.max)
        return AABB(lo, hi)

    @staticmethod
    def from_points(points: Iterable[Vec3]) -> "AABB":
        points = list(points)
        lo = hi = points[0]
        for p in points[1:]:
            lo = lo.min(p)
            hi = hi.max(p)
        return AABB(lo, hi)

    @property
    def extent(self) -> Vec3:
        return self.max - self.min

    @property
    def centroid(self) -> Vec3:
        return (self.min + self.max) * 0.5

    def longest_axis(self) -> int:
        e = self.extent
        if e.x >= e.y and e.x >= e.z:
            return 0
        return 1 if e.y >= e.z else 2

    def padded(self, delta: float) -> "AABB":
        d = Vec3(delta, delta, delta)
        return AABB(self.min - d, self.max + d)

    def contains_point(self, p: Vec3) -> bool:
        return (self.min.x <= p.x <= self.max.x
                and self.min.y <= p.y <= self.max.y
                and self.min.z <= p.z <= self.max.z)

    def intersect(self, ray: Ray, t_min: float, t_max: float) -> Optional[float]:
        """Slab test. Returns the entry distance clipped to t_min, or None on a miss."""
        origin = ray.origin
        for a in range(3):
            o = origin[a]
            inv = ray.inv_direction[a]
            lo = self.min[a]
            hi = self.max[a]
            if inv == math.inf:
                # parallel to this slab
                if o < lo or o > hi:
                    return None
                continue
            t0 = (lo - o) * inv
            t1 = (hi - o) * inv
            if inv < 0.0:
                t0, t1 = t1, t0
            if t0 > t_min:
                t_min = t0
            if t1 < t_max:
                t_max = t1
            if t_max < t_min:
                return None
        return t_min

    def hit(self, ray: Ray, t_min: float, t_max: float) -> bool:
        return self.intersect(ray, t_min, t_max) is not None

    def __repr__(self):
        return f"AABB({self.min!r}, {self.max!r})"
