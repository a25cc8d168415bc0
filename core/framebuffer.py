import numpy as np
from PIL import Image

from core.errors import InvalidInputError
from core.math import Vec3


class Framebuffer:
    """Linear RGB pixels in [0, 1], row 0 at the top of the image."""

    def __init__(self, width: int, height: int):
        if width < 1 or height < 1:
            raise InvalidInputError(f"framebuffer size must be positive, got {width}x{height}")
        self.width = width
        self.height = height
        self.pixels = np.zeros((height, width, 3), dtype=np.float64)

    def set_pixel(self, x: int, y: int, color: Vec3):
        # stored values are displayable, HDR highlights saturate to 1
        self.pixels[y, x] = np.clip((color.x, color.y, color.z), 0.0, 1.0)

    def get_pixel(self, x: int, y: int) -> Vec3:
        r, g, b = self.pixels[y, x]
        return Vec3(r, g, b)

    def to_image(self, gamma: float = 2.2) -> Image.Image:
        """Gamma-encodes the pixels and converts them to an 8-bit PIL image."""
        if not gamma > 0:
            raise InvalidInputError(f"gamma must be positive, got {gamma}")
        encoded = self.pixels ** (1.0 / gamma)
        data = (encoded * 255.0 + 0.5).astype(np.uint8)
        return Image.fromarray(data)
