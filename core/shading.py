"""Recursive Whitted-style shading.

For one ray: find the nearest hit, gather the lights that reach the hit point
(hard shadows via any-hit queries), let the material compute the local color,
then blend in reflected and refracted rays until ``max_depth`` is reached.
"""
from typing import List

from core.math import Vec3, Ray, EPSILON, refract
from core.material import HitRecord
from core.light import LightSample
from core.scene import Scene


class WhittedShader:
    def __init__(self, scene: Scene, max_depth: int):
        self.scene = scene
        self.max_depth = max_depth

    def trace(self, ray: Ray, depth: int = 0) -> Vec3:
        rec = self.scene.closest_hit(ray)
        if rec is None:
            return self.scene.background

        mat = rec.material
        local_color = self.local_color(ray, rec)
        # at the depth limit the local term stands alone
        if depth >= self.max_depth:
            return local_color

        reflectivity = mat.reflectivity
        transparency = mat.transparency
        if reflectivity <= 0 and transparency <= 0:
            return local_color

        color = local_color * (1.0 - reflectivity - transparency)
        if reflectivity > 0:
            color += self.trace(self.reflected_ray(ray, rec), depth + 1) * reflectivity
        if transparency > 0:
            color += self.trace(self.refracted_ray(ray, rec), depth + 1) * transparency
        return color

    def visible_lights(self, rec: HitRecord) -> List[LightSample]:
        """Light samples at the hit point that no primitive blocks."""
        samples = []
        shadow_origin = rec.point + rec.normal * EPSILON
        for light in self.scene.direct_lights:
            sample = light.sample(rec.point)
            if sample is None:
                continue
            # lights behind the surface contribute nothing; skip the shadow ray
            if rec.normal.dot(sample.direction) <= 0:
                continue
            shadow_ray = Ray(shadow_origin, sample.direction)
            if self.scene.occluded(shadow_ray, sample.distance):
                continue
            samples.append(sample)
        return samples

    def local_color(self, ray: Ray, rec: HitRecord) -> Vec3:
        return rec.material.shade(rec, -ray.direction, self.scene.ambient,
                                  self.visible_lights(rec))

    def reflected_ray(self, ray: Ray, rec: HitRecord) -> Ray:
        direction = ray.direction.reflect(rec.normal)
        return Ray(rec.point + rec.normal * EPSILON, direction)

    def refracted_ray(self, ray: Ray, rec: HitRecord) -> Ray:
        ior = rec.material.ior
        eta = 1.0 / ior if rec.front_face else ior
        direction = refract(ray.direction, rec.normal, eta)
        if direction is None:
            # total internal reflection
            return self.reflected_ray(ray, rec)
        return Ray(rec.point - rec.normal * EPSILON, direction)
