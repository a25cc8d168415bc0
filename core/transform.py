import math

import numpy as np

from core.errors import InvalidInputError
from core.math import Vec3


class Transform:
    """Affine 4x4 object-to-world transform.

    Transforms compose right to left, so ``translate @ rotate`` rotates first.
    """

    def __init__(self, matrix=None):
        self.matrix = np.identity(4) if matrix is None else np.asarray(matrix, dtype=np.float64)
        if self.matrix.shape != (4, 4):
            raise InvalidInputError(f"transform matrix must be 4x4, got {self.matrix.shape}")
        linear = self.matrix[:3, :3]
        if abs(np.linalg.det(linear)) < 1e-12:
            raise InvalidInputError("transform is singular")
        self._normal_matrix = np.linalg.inv(linear).T

    @classmethod
    def translation(cls, offset: Vec3) -> "Transform":
        m = np.identity(4)
        m[:3, 3] = offset.to_np()
        return cls(m)

    @classmethod
    def scale(cls, sx, sy=None, sz=None) -> "Transform":
        sy = sx if sy is None else sy
        sz = sx if sz is None else sz
        return cls(np.diag([sx, sy, sz, 1.0]))

    @classmethod
    def rotation(cls, axis: int, degrees: float) -> "Transform":
        """Right-handed rotation about the x (0), y (1) or z (2) axis."""
        c = math.cos(math.radians(degrees))
        s = math.sin(math.radians(degrees))
        i, j = [(1, 2), (2, 0), (0, 1)][axis]
        m = np.identity(4)
        m[i, i] = c
        m[i, j] = -s
        m[j, i] = s
        m[j, j] = c
        return cls(m)

    def __matmul__(self, other: "Transform") -> "Transform":
        return Transform(self.matrix @ other.matrix)

    def inverse(self) -> "Transform":
        return Transform(np.linalg.inv(self.matrix))

    def point(self, p: Vec3) -> Vec3:
        x, y, z, w = self.matrix @ np.array([p.x, p.y, p.z, 1.0])
        return Vec3(x / w, y / w, z / w)

    def vector(self, v: Vec3) -> Vec3:
        x, y, z = self.matrix[:3, :3] @ v.to_np()
        return Vec3(x, y, z)

    def normal(self, n: Vec3) -> Vec3:
        x, y, z = self._normal_matrix @ n.to_np()
        return Vec3(x, y, z).normalize()
