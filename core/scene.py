import logging
import math
import os
from dataclasses import dataclass
from typing import Iterable, Optional

from core.errors import InvalidInputError
from core.math import Vec3, Ray, EPSILON
from core.material import HitRecord, Material
from core.geometry import Hittable
from core.light import Light, AmbientLight
from core.camera import Camera
from core.acceleration import BVH, DEFAULT_LEAF_SIZE, closest_hit_linear, any_hit_linear

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderSettings:
    width: int = 800
    height: int = 600
    samples_per_pixel: int = 4
    max_depth: int = 4
    workers: Optional[int] = None   # None: one per CPU core
    tile_size: int = 32
    seed: int = 0

    def __post_init__(self):
        if self.width < 1 or self.height < 1:
            raise InvalidInputError(f"image size must be positive, got {self.width}x{self.height}")
        if self.samples_per_pixel < 1:
            raise InvalidInputError(f"samples_per_pixel must be at least 1, got {self.samples_per_pixel}")
        if self.max_depth < 0:
            raise InvalidInputError(f"max_depth must be non-negative, got {self.max_depth}")
        if self.workers is not None and self.workers < 1:
            raise InvalidInputError(f"workers must be at least 1, got {self.workers}")
        if self.tile_size < 1:
            raise InvalidInputError(f"tile_size must be at least 1, got {self.tile_size}")

    @property
    def worker_count(self) -> int:
        return self.workers if self.workers is not None else (os.cpu_count() or 1)


class Scene:
    """Read-only render input: primitives, lights, camera and background.

    Bounded primitives go into a BVH built here; unbounded ones (planes) are
    scanned linearly on every query. Nothing is mutated after construction.
    """

    def __init__(self,
                 objects: Iterable[Hittable],
                 lights: Iterable[Light],
                 camera: Camera,
                 background: Vec3 = Vec3(0, 0, 0),
                 leaf_size: int = DEFAULT_LEAF_SIZE):
        objects = tuple(objects)
        lights = tuple(lights)
        if not objects:
            raise InvalidInputError("scene has no primitives")
        if not isinstance(camera, Camera):
            raise InvalidInputError("scene needs a camera")
        for obj in objects:
            if not isinstance(obj, Hittable):
                raise InvalidInputError(f"{obj!r} is not a primitive")
            if not isinstance(getattr(obj, "material", None), Material):
                raise InvalidInputError(f"{obj!r} has no valid material")
        for light in lights:
            if not isinstance(light, Light):
                raise InvalidInputError(f"{light!r} is not a light")

        self.objects = objects
        self.lights = lights
        self.camera = camera
        self.background = background

        bounded = [obj for obj in objects if obj.bounding_box() is not None]
        self.unbounded = tuple(obj for obj in objects if obj.bounding_box() is None)
        self.bvh = BVH(bounded, leaf_size=leaf_size) if bounded else None

        ambient = Vec3(0, 0, 0)
        for light in lights:
            if isinstance(light, AmbientLight):
                ambient += light.intensity
        self.ambient = ambient
        self.direct_lights = tuple(light for light in lights if light.casts_shadows)

        logger.info("Scene ready: %d primitives (%d in BVH), %d lights",
                    len(objects), len(bounded), len(lights))

    @property
    def bvh_build_seconds(self) -> float:
        return self.bvh.build_seconds if self.bvh is not None else 0.0

    def closest_hit(self, ray: Ray, t_min: Optional[float] = None,
                    t_max: Optional[float] = None) -> Optional[HitRecord]:
        t_min = ray.t_min if t_min is None else t_min
        t_max = ray.t_max if t_max is None else t_max
        best = None
        if self.bvh is not None:
            best = self.bvh.closest_hit(ray, t_min, t_max)
            if best is not None:
                t_max = best.t
        rec = closest_hit_linear(self.unbounded, ray, t_min, t_max)
        return rec if rec is not None else best

    def occluded(self, ray: Ray, max_distance: float = math.inf) -> bool:
        """Whether anything blocks ``ray`` before ``max_distance`` (shadow query)."""
        t_max = min(ray.t_max, max_distance - EPSILON)
        if self.bvh is not None and self.bvh.any_hit(ray, ray.t_min, t_max):
            return True
        return any_hit_linear(self.unbounded, ray, ray.t_min, t_max)

    def closest_hit_linear(self, ray: Ray) -> Optional[HitRecord]:
        """Reference nearest hit without the BVH."""
        return closest_hit_linear(self.objects, ray, ray.t_min, ray.t_max)
