"""Triangle mesh helpers.

Meshes are flattened into independent :class:`Triangle` objects so the BVH
can treat every face as one primitive.
"""
import math
from typing import List, Optional, Sequence, Tuple

from core.errors import InvalidInputError
from core.geometry import Triangle
from core.material import Material
from core.math import Vec3
from core.transform import Transform


def triangle_mesh(vertices: Sequence,
                  faces: Sequence[Tuple[int, int, int]],
                  material: Material,
                  normals: Optional[Sequence] = None,
                  uvs: Optional[Sequence[Tuple[float, float]]] = None,
                  transform: Optional[Transform] = None,
                  smooth: bool = False) -> List[Triangle]:
    """Builds one triangle per face of an indexed mesh.

    ``normals`` and ``uvs`` are per vertex. With ``smooth=True`` and no
    explicit normals, vertex normals are the area-weighted average of the
    adjacent face normals.
    """
    if not faces:
        raise InvalidInputError("mesh has no faces")
    points = [Vec3.of(v) for v in vertices]
    for face in faces:
        if len(face) != 3 or any(not 0 <= i < len(points) for i in face):
            raise InvalidInputError(f"invalid mesh face {face}")
    if normals is not None:
        if len(normals) != len(points):
            raise InvalidInputError("mesh needs one normal per vertex")
        normals = [Vec3.of(n) for n in normals]
    if uvs is not None and len(uvs) != len(points):
        raise InvalidInputError("mesh needs one uv per vertex")

    if transform is not None:
        points = [transform.point(p) for p in points]
        if normals is not None:
            normals = [transform.normal(n) for n in normals]

    if normals is None and smooth:
        normals = _vertex_normals(points, faces)

    triangles = []
    for a, b, c in faces:
        triangles.append(Triangle(
            points[a], points[b], points[c], material,
            normals=None if normals is None else (normals[a], normals[b], normals[c]),
            uvs=None if uvs is None else (uvs[a], uvs[b], uvs[c]),
        ))
    return triangles


def _vertex_normals(points: List[Vec3], faces) -> List[Vec3]:
    sums = [Vec3(0, 0, 0) for _ in points]
    for a, b, c in faces:
        # unnormalized cross product weights by face area
        n = (points[b] - points[a]).cross(points[c] - points[a])
        sums[a] += n
        sums[b] += n
        sums[c] += n
    return [s.normalize() for s in sums]


def quad(p0: Vec3, p1: Vec3, p2: Vec3, p3: Vec3, material: Material) -> List[Triangle]:
    """Planar quad p0 -> p1 -> p2 -> p3 (counter-clockwise seen from its front)."""
    return triangle_mesh(
        [p0, p1, p2, p3], [(0, 1, 2), (0, 2, 3)], material,
        uvs=[(0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 1.0)],
    )


def box(min_pt: Vec3, max_pt: Vec3, material: Material,
        transform: Optional[Transform] = None) -> List[Triangle]:
    """Closed axis-aligned box with outward-facing faces (12 triangles)."""
    x0, y0, z0 = min_pt
    x1, y1, z1 = max_pt
    if not (x0 < x1 and y0 < y1 and z0 < z1):
        raise InvalidInputError(f"box corners {min_pt!r}, {max_pt!r} span no volume")
    vertices = [
        (x0, y0, z0), (x1, y0, z0), (x1, y1, z0), (x0, y1, z0),
        (x0, y0, z1), (x1, y0, z1), (x1, y1, z1), (x0, y1, z1),
    ]
    faces = [
        (0, 3, 2), (0, 2, 1),  # -z
        (4, 5, 6), (4, 6, 7),  # +z
        (0, 4, 7), (0, 7, 3),  # -x
        (1, 2, 6), (1, 6, 5),  # +x
        (0, 1, 5), (0, 5, 4),  # -y
        (3, 7, 6), (3, 6, 2),  # +y
    ]
    return triangle_mesh(vertices, faces, material, transform=transform)


def uv_sphere(center: Vec3, radius: float, material: Material,
              rings: int = 12, segments: int = 24, smooth: bool = True) -> List[Triangle]:
    """Tessellated sphere; a dense triangle source for exercising the BVH."""
    if rings < 2 or segments < 3:
        raise InvalidInputError("uv sphere needs at least 2 rings and 3 segments")
    if not radius > 0:
        raise InvalidInputError(f"sphere radius must be positive, got {radius}")

    vertices, normals, uvs = [], [], []
    for i in range(rings + 1):
        theta = math.pi * i / rings
        for j in range(segments + 1):
            phi = 2 * math.pi * j / segments
            n = Vec3(math.sin(theta) * math.cos(phi), math.cos(theta), math.sin(theta) * math.sin(phi))
            vertices.append(center + n * radius)
            normals.append(n)
            uvs.append((j / segments, 1.0 - i / rings))

    def index(i, j):
        return i * (segments + 1) + j

    faces = []
    for i in range(rings):
        for j in range(segments):
            a, b = index(i, j), index(i, j + 1)
            c, d = index(i + 1, j + 1), index(i + 1, j)
            # the pole rows collapse to a point; emit one triangle there
            if i != 0:
                faces.append((a, b, d))
            if i != rings - 1:
                faces.append((b, c, d))
    return triangle_mesh(vertices, faces, material,
                         normals=normals if smooth else None, uvs=uvs)
