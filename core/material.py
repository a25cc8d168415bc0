import math
from abc import ABC, abstractmethod
from typing import Optional, Sequence, Union

import numpy as np
from PIL import Image

from core.errors import InvalidInputError
from core.math import Vec3


class Texture(ABC):
    """2D color lookup over (u, v) in [0, 1]."""

    @abstractmethod
    def sample(self, u: float, v: float) -> Vec3:
        pass

    def __call__(self, u: float, v: float) -> Vec3:
        return self.sample(u, v)


class ImageTexture(Texture):
    def __init__(self, source: Union[str, Image.Image]):
        if isinstance(source, Image.Image):
            self.path = None
            img = source.convert("RGB")
        else:
            self.path = source
            img = Image.open(source).convert("RGB")
        self.width, self.height = img.size
        self.pixels = np.asarray(img, dtype=np.float64) / 255.0  # (height, width, 3)

    def sample(self, u: float, v: float) -> Vec3:
        """
        (0, 0) is the bottom-left corner of the image; PIL rows run top to
        bottom, so v is flipped when indexing.
        """
        iu = int(max(0, min(self.width - 1, u * (self.width - 1))))
        iv = int(max(0, min(self.height - 1, (1.0 - v) * (self.height - 1))))
        r, g, b = self.pixels[iv, iu]
        return Vec3(r, g, b)


class CheckerTexture(Texture):
    def __init__(self, even: Vec3, odd: Vec3, checks: int = 8):
        if checks < 1:
            raise InvalidInputError("checker texture needs at least one check")
        self.even = even
        self.odd = odd
        self.checks = checks

    def sample(self, u: float, v: float) -> Vec3:
        parity = int(math.floor(u * self.checks)) + int(math.floor(v * self.checks))
        return self.even if parity % 2 == 0 else self.odd


class SolidTexture(Texture):
    def __init__(self, color: Vec3):
        self.color = color

    def sample(self, u: float, v: float) -> Vec3:
        return self.color


class HitRecord:
    __slots__ = ("t", "point", "normal", "front_face", "material", "u", "v", "primitive")

    def __init__(self, t=float('inf'), point=None, normal=None, front_face=True,
                 material=None, u=0.0, v=0.0, primitive=None):
        self.t = t
        self.point = point
        # unit, always facing against the incoming ray
        self.normal = normal
        self.front_face = front_face
        self.material = material
        self.u = u
        self.v = v
        self.primitive = primitive

    def __repr__(self):
        return f"HitRecord(t={self.t:.6f}, point={self.point!r}, normal={self.normal!r})"


def _check_weight(name: str, value: float) -> float:
    value = float(value)
    if not 0.0 <= value <= 1.0:
        raise InvalidInputError(f"{name} must be within [0, 1], got {value}")
    return value


class Material(ABC):
    """Local illumination plus the recursive-ray weights read by the shader.

    ``reflectivity`` and ``transparency`` are the fractions of the final color
    taken from the reflected and refracted rays; the local term keeps the rest.
    """

    reflectivity = 0.0
    transparency = 0.0
    ior = 1.0

    def base_color(self, rec: HitRecord) -> Vec3:
        return self.color

    @abstractmethod
    def shade(self, rec: HitRecord, view_dir: Vec3, ambient: Vec3,
              light_samples: Sequence) -> Vec3:
        """Local color at ``rec`` from the ambient term and the unoccluded lights.

        ``view_dir`` points from the hit point back toward the viewer; each
        light sample carries a unit ``direction`` toward the light and an RGB
        ``intensity``.
        """

    def _lambert(self, base: Vec3, rec: HitRecord, ambient: Vec3, light_samples, diffuse=1.0) -> Vec3:
        color = base * ambient
        for sample in light_samples:
            n_dot_l = rec.normal.dot(sample.direction)
            if n_dot_l > 0:
                color += base * sample.intensity * (diffuse * n_dot_l)
        return color


class FlatMaterial(Material):
    """Pure Lambertian surface of a single color."""

    def __init__(self, color: Vec3 = Vec3(1, 1, 1)):
        self.color = color

    def shade(self, rec, view_dir, ambient, light_samples):
        return self._lambert(self.color, rec, ambient, light_samples)


class PhongMaterial(Material):
    def __init__(self,
                 color: Vec3 = Vec3(1, 1, 1),
                 diffuse=1.0,
                 specular=0.0,
                 shininess=32.0,
                 ambient=1.0,
                 texture: Optional[Texture] = None):
        """
        color: base color, used when there is no texture
        diffuse: Lambert coefficient
        specular: Phong specular coefficient
        shininess: Phong exponent
        ambient: scale applied to the scene's ambient light
        texture: optional (u, v) -> color lookup replacing ``color``
        """
        if diffuse < 0 or specular < 0 or ambient < 0:
            raise InvalidInputError("phong coefficients must be non-negative")
        if not shininess > 0:
            raise InvalidInputError(f"shininess must be positive, got {shininess}")
        if texture is not None and not callable(texture):
            raise InvalidInputError("texture must be a (u, v) lookup")
        self.color = color
        self.diffuse = float(diffuse)
        self.specular = float(specular)
        self.shininess = float(shininess)
        self.ambient = float(ambient)
        self.texture = texture

    def base_color(self, rec: HitRecord) -> Vec3:
        if self.texture is not None:
            return self.texture(rec.u, rec.v)
        return self.color

    def shade(self, rec, view_dir, ambient, light_samples):
        base = self.base_color(rec)
        color = self._lambert(base, rec, ambient * self.ambient, light_samples, self.diffuse)
        if self.specular > 0:
            for sample in light_samples:
                if rec.normal.dot(sample.direction) <= 0:
                    continue
                reflect_dir = (-sample.direction).reflect(rec.normal)
                spec = max(view_dir.dot(reflect_dir), 0.0)
                if spec > 0:
                    color += sample.intensity * (self.specular * spec ** self.shininess)
        return color


class ReflectiveMaterial(PhongMaterial):
    """Phong surface mixed with a perfect mirror reflection."""

    def __init__(self, color: Vec3 = Vec3(1, 1, 1), reflectivity=0.8, **phong):
        super().__init__(color, **phong)
        self.reflectivity = _check_weight("reflectivity", reflectivity)


class TransparentMaterial(PhongMaterial):
    """Refractive surface; the transmitted ray is weighted by ``transparency``."""

    def __init__(self, color: Vec3 = Vec3(1, 1, 1), ior=1.5, transparency=0.8,
                 reflectivity=0.0, **phong):
        super().__init__(color, **phong)
        if not ior > 0 or not math.isfinite(ior):
            raise InvalidInputError(f"index of refraction must be positive, got {ior}")
        self.ior = float(ior)
        self.transparency = _check_weight("transparency", transparency)
        self.reflectivity = _check_weight("reflectivity", reflectivity)
        if self.transparency + self.reflectivity > 1.0:
            raise InvalidInputError("transparency + reflectivity must not exceed 1")


class TexturedMaterial(PhongMaterial):
    """Phong surface whose base color always comes from a texture."""

    def __init__(self, texture: Optional[Texture], **phong):
        if texture is None:
            raise InvalidInputError("textured material needs a texture lookup")
        super().__init__(Vec3(1, 1, 1), texture=texture, **phong)
