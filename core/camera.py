import math

from core.errors import InvalidInputError
from core.math import Vec3, Ray


class Camera:
    def __init__(self,
                 lookfrom: Vec3,
                 lookat: Vec3,
                 vup: Vec3,
                 vfov: float,        # vertical FOV (degrees)
                 width: int,
                 height: int):
        if width < 1 or height < 1:
            raise InvalidInputError(f"image size must be positive, got {width}x{height}")
        if not 0 < vfov < 180:
            raise InvalidInputError(f"vertical field of view must be within (0, 180), got {vfov}")
        w = (lookfrom - lookat).normalize()
        u = vup.cross(w).normalize()
        if w.is_zero() or u.is_zero():
            raise InvalidInputError("camera needs distinct lookfrom/lookat and a vup not parallel to the view")
        v = w.cross(u)

        self.origin = lookfrom
        self.width = width
        self.height = height
        self.vfov = vfov
        self.aspect = width / height
        self.u, self.v, self.w = u, v, w

        theta = math.radians(vfov)
        half_height = math.tan(theta / 2)
        half_width = self.aspect * half_height

        self.lower_left_corner = self.origin - u * half_width - v * half_height - w
        self.horizontal = u * (2 * half_width)
        self.vertical = v * (2 * half_height)

    def get_ray(self, s: float, t: float) -> Ray:
        """(s, t) in [0, 1]^2 over the viewport, (0, 0) bottom-left."""
        direction = (self.lower_left_corner +
                     self.horizontal * s +
                     self.vertical * t -
                     self.origin)
        return Ray(self.origin, direction)

    def ray_for_pixel(self, x: int, y: int, dx: float = 0.5, dy: float = 0.5) -> Ray:
        """Primary ray through pixel (x, y) at sub-pixel offset (dx, dy).

        Pixel (0, 0) is the top-left corner of the image.
        """
        s = (x + dx) / self.width
        t = 1.0 - (y + dy) / self.height
        return self.get_ray(s, t)
