"""Assertion helpers and scene factories shared by the test modules."""

import pytest

from core.camera import Camera
from core.geometry import Triangle
from core.math import Vec3


def assert_vec_close(actual, expected, tol=1e-6):
    assert actual.x == pytest.approx(expected.x, abs=tol)
    assert actual.y == pytest.approx(expected.y, abs=tol)
    assert actual.z == pytest.approx(expected.z, abs=tol)


def make_camera(width=32, height=32, lookfrom=Vec3(0, 0, 5), lookat=Vec3(0, 0, 0), vfov=45.0):
    return Camera(lookfrom, lookat, Vec3(0, 1, 0), vfov, width, height)


def random_unit_vector(rng):
    while True:
        v = Vec3(rng.gauss(0, 1), rng.gauss(0, 1), rng.gauss(0, 1))
        if v.length() > 1e-6:
            return v.normalize()


def random_triangles(rng, count, material, spread=5.0, size=1.0):
    """Seeded triangle soup scattered inside a cube of half-width ``spread``."""
    triangles = []
    while len(triangles) < count:
        center = Vec3(rng.uniform(-spread, spread), rng.uniform(-spread, spread),
                      rng.uniform(-spread, spread))
        verts = [center + Vec3(rng.uniform(-size, size), rng.uniform(-size, size),
                               rng.uniform(-size, size)) for _ in range(3)]
        area2 = (verts[1] - verts[0]).cross(verts[2] - verts[0]).length()
        if area2 < 1e-3:
            continue
        triangles.append(Triangle(verts[0], verts[1], verts[2], material))
    return triangles
