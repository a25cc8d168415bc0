import math
from abc import ABC, abstractmethod
from typing import Optional, Sequence, Tuple

from core.errors import InvalidInputError
from core.math import Vec3, Ray, AABB
from core.material import Material, HitRecord

# Bounding boxes of flat primitives are padded so axis-aligned faces never
# produce zero-thickness slabs in the BVH.
BOX_PADDING = 1e-7


def _orthonormal_axes(normal: Vec3) -> Tuple[Vec3, Vec3]:
    """Two unit tangents spanning the plane orthogonal to ``normal``."""
    helper = Vec3(1, 0, 0) if abs(normal.x) < 0.9 else Vec3(0, 1, 0)
    u_axis = helper.cross(normal).normalize()
    v_axis = normal.cross(u_axis)
    return u_axis, v_axis


class Hittable(ABC):
    material: Material

    @abstractmethod
    def hit(self, ray: Ray, t_min: float, t_max: float) -> Optional[HitRecord]:
        """Nearest intersection with t strictly inside (t_min, t_max), or None."""

    @abstractmethod
    def bounding_box(self) -> Optional[AABB]:
        """World-space bounds; None for unbounded primitives."""

    def centroid(self) -> Vec3:
        return self.bounding_box().centroid


class Sphere(Hittable):
    def __init__(self, center: Vec3, radius: float, material: Material):
        if not radius > 0 or not math.isfinite(radius):
            raise InvalidInputError(f"sphere radius must be positive, got {radius}")
        self.center = center
        self.radius = float(radius)
        self.material = material
        r = Vec3(radius, radius, radius)
        self.box = AABB(center - r, center + r)

    def hit(self, ray: Ray, t_min: float, t_max: float) -> Optional[HitRecord]:
        if ray.is_degenerate:
            return None
        # direction is unit length, so the quadratic's a == 1
        oc = ray.origin - self.center
        b = oc.dot(ray.direction)
        c = oc.length_squared() - self.radius * self.radius
        discriminant = b * b - c
        if not discriminant >= 0:
            return None
        sqrt_d = math.sqrt(discriminant)
        for root in (-b - sqrt_d, -b + sqrt_d):
            if t_min < root < t_max:
                return self._record(ray, root)
        return None

    def _record(self, ray: Ray, t: float) -> HitRecord:
        point = ray.point_at_parameter(t)
        outward = (point - self.center) / self.radius
        front_face = ray.direction.dot(outward) < 0
        theta = math.acos(max(-1.0, min(1.0, -outward.y)))
        phi = math.atan2(-outward.z, outward.x) + math.pi
        return HitRecord(
            t=t,
            point=point,
            normal=outward if front_face else -outward,
            front_face=front_face,
            material=self.material,
            u=phi / (2 * math.pi),
            v=theta / math.pi,
            primitive=self,
        )

    def bounding_box(self) -> AABB:
        return self.box

    def centroid(self) -> Vec3:
        return self.center


class Plane(Hittable):
    """Infinite plane through ``point``. Unbounded, so it never enters the BVH."""

    def __init__(self, point: Vec3, normal: Vec3, material: Material, uv_scale: float = 1.0):
        if normal.is_zero() or not normal.is_finite():
            raise InvalidInputError("plane normal must be a non-zero finite vector")
        if not uv_scale > 0:
            raise InvalidInputError(f"plane uv_scale must be positive, got {uv_scale}")
        self.point = point
        self.normal = normal.normalize()
        self.material = material
        self.uv_scale = float(uv_scale)
        self.u_axis, self.v_axis = _orthonormal_axes(self.normal)

    def hit(self, ray: Ray, t_min: float, t_max: float) -> Optional[HitRecord]:
        if ray.is_degenerate:
            return None
        denom = self.normal.dot(ray.direction)
        if abs(denom) < 1e-12:
            return None  # parallel to the plane

        t = (self.point - ray.origin).dot(self.normal) / denom
        if not t_min < t < t_max:
            return None

        p = ray.point_at_parameter(t)
        local = p - self.point
        front_face = denom < 0
        return HitRecord(
            t=t,
            point=p,
            normal=self.normal if front_face else -self.normal,
            front_face=front_face,
            material=self.material,
            u=(local.dot(self.u_axis) / self.uv_scale) % 1.0,
            v=(local.dot(self.v_axis) / self.uv_scale) % 1.0,
            primitive=self,
        )

    def bounding_box(self) -> Optional[AABB]:
        return None

    def centroid(self) -> Vec3:
        return self.point


class Triangle(Hittable):
    def __init__(self,
                 v0: Vec3, v1: Vec3, v2: Vec3,
                 material: Material,
                 normals: Optional[Sequence[Vec3]] = None,
                 uvs: Optional[Sequence[Tuple[float, float]]] = None):
        self.v0 = v0
        self.v1 = v1
        self.v2 = v2
        self.material = material
        self.edge1 = v1 - v0
        self.edge2 = v2 - v0
        face = self.edge1.cross(self.edge2)
        area2 = face.length()
        if not area2 > 1e-12:
            raise InvalidInputError(f"degenerate triangle {v0!r}, {v1!r}, {v2!r}")
        self.normal = face / area2

        if normals is not None:
            if len(normals) != 3:
                raise InvalidInputError("a triangle needs exactly three vertex normals")
            normals = tuple(n.normalize() for n in normals)
            if any(n.is_zero() for n in normals):
                raise InvalidInputError("vertex normals must be non-zero")
        self.normals = normals

        if uvs is not None:
            if len(uvs) != 3:
                raise InvalidInputError("a triangle needs exactly three vertex UVs")
            uvs = tuple((float(u), float(v)) for u, v in uvs)
        self.uvs = uvs

        self.box = AABB.from_points((v0, v1, v2)).padded(BOX_PADDING)
        self._centroid = (v0 + v1 + v2) / 3.0

    def hit(self, ray: Ray, t_min: float, t_max: float) -> Optional[HitRecord]:
        # Möller–Trumbore
        if ray.is_degenerate:
            return None
        h = ray.direction.cross(self.edge2)
        a = self.edge1.dot(h)
        if abs(a) < 1e-12:
            return None  # parallel

        f = 1.0 / a
        s = ray.origin - self.v0
        u = f * s.dot(h)
        if not 0.0 <= u <= 1.0:
            return None

        q = s.cross(self.edge1)
        v = f * ray.direction.dot(q)
        if v < 0.0 or u + v > 1.0 or not math.isfinite(v):
            return None

        t = f * self.edge2.dot(q)
        if not t_min < t < t_max:
            return None

        w = 1.0 - u - v
        front_face = self.normal.dot(ray.direction) < 0
        if self.normals is not None:
            n0, n1, n2 = self.normals
            shading = (n0 * w + n1 * u + n2 * v).normalize()
            if shading.is_zero():
                shading = self.normal
        else:
            shading = self.normal

        if self.uvs is not None:
            (u0, v0), (u1, v1), (u2, v2) = self.uvs
            tex_u = w * u0 + u * u1 + v * u2
            tex_v = w * v0 + u * v1 + v * v2
        else:
            tex_u, tex_v = u, v

        return HitRecord(
            t=t,
            point=ray.point_at_parameter(t),
            normal=shading if front_face else -shading,
            front_face=front_face,
            material=self.material,
            u=tex_u,
            v=tex_v,
            primitive=self,
        )

    def bounding_box(self) -> AABB:
        return self.box

    def centroid(self) -> Vec3:
        return self._centroid
