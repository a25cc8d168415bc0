"""Light sources.

Every non-ambient light turns a surface point into a :class:`LightSample`:
the unit direction from the point toward the light, the RGB intensity
arriving there, and how far a shadow ray has to travel before it reaches the
light. Ambient light has no direction and is never shadow tested.
"""
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Tuple

from core.errors import InvalidInputError
from core.math import Vec3


@dataclass(frozen=True)
class LightSample:
    direction: Vec3
    intensity: Vec3
    distance: float


def _attenuation(coefficients, distance: float) -> float:
    constant, linear, quadratic = coefficients
    return constant + linear * distance + quadratic * distance * distance


def _check_attenuation(attenuation) -> Tuple[float, float, float]:
    constant, linear, quadratic = (float(c) for c in attenuation)
    if constant < 0 or linear < 0 or quadratic < 0 or constant + linear + quadratic == 0:
        raise InvalidInputError(f"invalid attenuation coefficients {attenuation}")
    return constant, linear, quadratic


class Light(ABC):
    casts_shadows = True

    def __init__(self, intensity):
        self.intensity = Vec3.of(intensity)

    @abstractmethod
    def sample(self, point: Vec3) -> Optional[LightSample]:
        """Light arriving at ``point``, or None if the point is not lit at all."""


class AmbientLight(Light):
    casts_shadows = False

    def sample(self, point: Vec3) -> Optional[LightSample]:
        return None


class PointLight(Light):
    def __init__(self, position: Vec3, intensity=1.0, attenuation=(1.0, 0.0, 0.0)):
        super().__init__(intensity)
        self.position = position
        self.attenuation = _check_attenuation(attenuation)

    def sample(self, point: Vec3) -> Optional[LightSample]:
        to_light = self.position - point
        distance = to_light.length()
        if distance == 0:
            return None
        falloff = _attenuation(self.attenuation, distance)
        return LightSample(to_light / distance, self.intensity / falloff, distance)


class DirectionalLight(Light):
    """Parallel light travelling along ``direction`` (e.g. sunlight)."""

    def __init__(self, direction: Vec3, intensity=1.0):
        super().__init__(intensity)
        if direction.is_zero():
            raise InvalidInputError("directional light needs a non-zero direction")
        self.direction = direction.normalize()

    def sample(self, point: Vec3) -> Optional[LightSample]:
        return LightSample(-self.direction, self.intensity, math.inf)


class ConeLight(PointLight):
    """Spot light: a point light restricted to a cone around ``direction``.

    ``angle`` is the cone's half-angle in degrees; the outer ``softness``
    degrees fade smoothly to zero.
    """

    def __init__(self, position: Vec3, direction: Vec3, intensity=1.0, angle=30.0,
                 softness=0.0, attenuation=(1.0, 0.0, 0.0)):
        super().__init__(position, intensity, attenuation)
        if direction.is_zero():
            raise InvalidInputError("cone light needs a non-zero direction")
        if not 0 < angle < 180:
            raise InvalidInputError(f"cone angle must be within (0, 180), got {angle}")
        if not 0 <= softness <= angle:
            raise InvalidInputError(f"cone softness must be within [0, angle], got {softness}")
        self.direction = direction.normalize()
        self.angle = float(angle)
        self.softness = float(softness)
        self.cos_outer = math.cos(math.radians(angle))
        self.cos_inner = math.cos(math.radians(angle - softness))

    def sample(self, point: Vec3) -> Optional[LightSample]:
        sample = super().sample(point)
        if sample is None:
            return None
        cos_theta = (-sample.direction).dot(self.direction)
        if cos_theta < self.cos_outer:
            return None
        if cos_theta >= self.cos_inner:
            return sample
        x = (cos_theta - self.cos_outer) / (self.cos_inner - self.cos_outer)
        weight = x * x * (3.0 - 2.0 * x)
        if weight <= 0:
            return None
        return LightSample(sample.direction, sample.intensity * weight, sample.distance)
