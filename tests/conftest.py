"""Shared fixtures for the ray tracer tests."""

import random

import pytest

from core.geometry import Plane, Sphere
from core.light import AmbientLight, PointLight
from core.material import FlatMaterial
from core.math import Vec3
from core.scene import Scene
from tests.helpers import make_camera


@pytest.fixture
def white():
    return FlatMaterial(Vec3(1, 1, 1))


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def lit_sphere_scene(white):
    """Unit sphere at the origin, point light at (0, 5, 5), camera on +Z."""
    return Scene(
        [Sphere(Vec3(0, 0, 0), 1.0, white)],
        [PointLight(Vec3(0, 5, 5), intensity=1.0)],
        make_camera(),
        background=Vec3(0.1, 0.2, 0.3),
    )


@pytest.fixture
def shadow_scene():
    """Unit sphere resting on a grey floor at y = -1, point light straight above."""
    floor = FlatMaterial(Vec3(0.5, 0.5, 0.5))
    return Scene(
        [Sphere(Vec3(0, 0, 0), 1.0, FlatMaterial(Vec3(1, 0, 0))),
         Plane(Vec3(0, -1, 0), Vec3(0, 1, 0), floor)],
        [AmbientLight(0.2), PointLight(Vec3(0, 5, 0), intensity=1.0)],
        make_camera(lookfrom=Vec3(0, -0.5, 6)),
    )
