"""
Tests for materials, textures and light sources.

Covers:
- Local shading of each material kind
- Weight validation for reflective and transparent materials
- Checker and image texture lookups
- Light samples for point, directional and cone lights
"""

import math

import pytest
from PIL import Image

from core.errors import InvalidInputError
from core.light import AmbientLight, ConeLight, DirectionalLight, LightSample, PointLight
from core.material import (CheckerTexture, FlatMaterial, HitRecord, ImageTexture,
                           PhongMaterial, ReflectiveMaterial, SolidTexture,
                           TexturedMaterial, TransparentMaterial)
from core.math import Vec3
from tests.helpers import assert_vec_close

UP = Vec3(0, 0, 1)


def record(material, normal=UP, u=0.0, v=0.0):
    return HitRecord(t=1.0, point=Vec3(0, 0, 0), normal=normal, material=material, u=u, v=v)


def overhead(intensity=1.0):
    return LightSample(UP, Vec3.of(intensity), 10.0)


class TestFlatMaterial:
    def test_ambient_only(self):
        mat = FlatMaterial(Vec3(0.5, 0.4, 0.2))
        color = mat.shade(record(mat), UP, Vec3(0.2, 0.2, 0.2), [])
        assert_vec_close(color, Vec3(0.1, 0.08, 0.04))

    def test_lambert_term(self):
        mat = FlatMaterial(Vec3(1, 1, 1))
        tilted = LightSample(Vec3(0, 1, 1).normalize(), Vec3(1, 1, 1), 10.0)
        color = mat.shade(record(mat), UP, Vec3(0, 0, 0), [tilted])
        assert_vec_close(color, Vec3.of(math.sqrt(0.5)))

    def test_light_below_surface_is_ignored(self):
        mat = FlatMaterial(Vec3(1, 1, 1))
        below = LightSample(Vec3(0, 0, -1), Vec3(1, 1, 1), 10.0)
        assert_vec_close(mat.shade(record(mat), UP, Vec3(0, 0, 0), [below]), Vec3(0, 0, 0))

    def test_no_recursive_weights(self):
        mat = FlatMaterial()
        assert mat.reflectivity == 0.0
        assert mat.transparency == 0.0


class TestPhongMaterial:
    def test_specular_highlight(self):
        """Viewer on the mirror direction of the light sees the full highlight."""
        mat = PhongMaterial(Vec3(0.5, 0.5, 0.5), diffuse=1.0, specular=0.5, shininess=8)
        color = mat.shade(record(mat), UP, Vec3(0.1, 0.1, 0.1), [overhead()])
        # ambient 0.05 + diffuse 0.5 + specular 0.5
        assert_vec_close(color, Vec3.of(1.05))

    def test_specular_falls_off_with_view_angle(self):
        mat = PhongMaterial(Vec3(0, 0, 0), specular=1.0, shininess=32)
        head_on = mat.shade(record(mat), UP, Vec3(0, 0, 0), [overhead()])
        glancing = mat.shade(record(mat), Vec3(1, 0, 1).normalize(), Vec3(0, 0, 0), [overhead()])
        assert glancing.x < head_on.x

    def test_ambient_coefficient_scales_scene_ambient(self):
        mat = PhongMaterial(Vec3(1, 1, 1), ambient=0.5)
        color = mat.shade(record(mat), UP, Vec3(0.4, 0.4, 0.4), [])
        assert_vec_close(color, Vec3.of(0.2))

    @pytest.mark.parametrize("kwargs", [
        {"diffuse": -1.0},
        {"specular": -0.1},
        {"shininess": 0.0},
    ])
    def test_invalid_coefficients(self, kwargs):
        with pytest.raises(InvalidInputError):
            PhongMaterial(Vec3(1, 1, 1), **kwargs)


class TestRecursiveMaterials:
    """Reflective and transparent materials carry validated weights."""

    def test_reflective_weight(self):
        mat = ReflectiveMaterial(Vec3(1, 1, 1), reflectivity=0.3)
        assert mat.reflectivity == 0.3
        assert mat.transparency == 0.0

    @pytest.mark.parametrize("reflectivity", [-0.1, 1.5])
    def test_reflectivity_out_of_range(self, reflectivity):
        with pytest.raises(InvalidInputError):
            ReflectiveMaterial(Vec3(1, 1, 1), reflectivity=reflectivity)

    def test_transparent_weights(self):
        mat = TransparentMaterial(Vec3(1, 1, 1), ior=1.33, transparency=0.6, reflectivity=0.2)
        assert mat.ior == 1.33
        assert mat.transparency == 0.6
        assert mat.reflectivity == 0.2

    def test_transparent_weights_must_not_exceed_one(self):
        with pytest.raises(InvalidInputError):
            TransparentMaterial(Vec3(1, 1, 1), transparency=0.8, reflectivity=0.3)

    @pytest.mark.parametrize("ior", [0.0, -1.5, float("inf")])
    def test_invalid_ior(self, ior):
        with pytest.raises(InvalidInputError):
            TransparentMaterial(Vec3(1, 1, 1), ior=ior)


class TestTextures:
    def test_checker(self):
        tex = CheckerTexture(Vec3(1, 1, 1), Vec3(0, 0, 0), checks=8)
        assert tex(0.05, 0.05) == Vec3(1, 1, 1)
        assert tex(0.15, 0.05) == Vec3(0, 0, 0)
        assert tex(0.15, 0.15) == Vec3(1, 1, 1)

    def test_image_texture_origin_is_bottom_left(self):
        img = Image.new("RGB", (2, 2))
        img.putpixel((0, 0), (255, 0, 0))  # top-left
        img.putpixel((0, 1), (0, 255, 0))  # bottom-left
        tex = ImageTexture(img)
        assert tex(0.0, 1.0) == Vec3(1, 0, 0)
        assert tex(0.0, 0.0) == Vec3(0, 1, 0)

    def test_image_texture_clamps_uv(self):
        img = Image.new("RGB", (2, 2), (0, 0, 255))
        assert ImageTexture(img)(1.5, -0.5) == Vec3(0, 0, 1)

    def test_textured_material_uses_uv(self):
        mat = TexturedMaterial(CheckerTexture(Vec3(1, 0, 0), Vec3(0, 0, 1), checks=2))
        red = mat.shade(record(mat, u=0.1, v=0.1), UP, Vec3(1, 1, 1), [])
        blue = mat.shade(record(mat, u=0.6, v=0.1), UP, Vec3(1, 1, 1), [])
        assert_vec_close(red, Vec3(1, 0, 0))
        assert_vec_close(blue, Vec3(0, 0, 1))

    def test_textured_material_accepts_any_lookup(self):
        mat = TexturedMaterial(lambda u, v: Vec3(u, v, 0))
        assert mat.base_color(record(mat, u=0.25, v=0.75)) == Vec3(0.25, 0.75, 0)
        assert TexturedMaterial(SolidTexture(Vec3(0, 1, 0))).base_color(record(mat)) == Vec3(0, 1, 0)

    def test_textured_material_requires_texture(self):
        with pytest.raises(InvalidInputError):
            TexturedMaterial(None)

    def test_reflective_material_takes_texture(self):
        checker = CheckerTexture(Vec3(1, 0, 0), Vec3(0, 0, 1), checks=2)
        mat = ReflectiveMaterial(Vec3(0, 1, 0), reflectivity=0.5, texture=checker)
        assert mat.base_color(record(mat, u=0.1, v=0.1)) == Vec3(1, 0, 0)
        assert mat.base_color(record(mat, u=0.6, v=0.1)) == Vec3(0, 0, 1)
        blue = mat.shade(record(mat, u=0.6, v=0.1), UP, Vec3(1, 1, 1), [])
        assert_vec_close(blue, Vec3(0, 0, 1))
        assert mat.reflectivity == 0.5

    def test_transparent_material_takes_texture(self):
        mat = TransparentMaterial(ior=1.33, transparency=0.6, texture=lambda u, v: Vec3(u, v, 1))
        assert mat.base_color(record(mat, u=0.3, v=0.7)) == Vec3(0.3, 0.7, 1)
        assert mat.transparency == 0.6

    def test_untextured_materials_use_color(self):
        mat = ReflectiveMaterial(Vec3(0.2, 0.4, 0.6))
        assert mat.texture is None
        assert mat.base_color(record(mat, u=0.9, v=0.9)) == Vec3(0.2, 0.4, 0.6)

    def test_texture_must_be_a_lookup(self):
        with pytest.raises(InvalidInputError):
            ReflectiveMaterial(texture="checker.png")


class TestLights:
    def test_ambient_has_no_sample(self):
        light = AmbientLight(0.3)
        assert light.sample(Vec3(0, 0, 0)) is None
        assert not light.casts_shadows
        assert light.intensity == Vec3(0.3, 0.3, 0.3)

    def test_point_light(self):
        sample = PointLight(Vec3(0, 4, 0), intensity=2.0).sample(Vec3(0, 0, 0))
        assert_vec_close(sample.direction, Vec3(0, 1, 0))
        assert sample.distance == pytest.approx(4.0)
        assert_vec_close(sample.intensity, Vec3(2, 2, 2))

    def test_point_light_attenuation(self):
        light = PointLight(Vec3(0, 2, 0), intensity=1.0, attenuation=(1.0, 0.0, 1.0))
        assert_vec_close(light.sample(Vec3(0, 0, 0)).intensity, Vec3.of(0.2))

    def test_invalid_attenuation(self):
        with pytest.raises(InvalidInputError):
            PointLight(Vec3(0, 0, 0), attenuation=(0.0, 0.0, 0.0))

    def test_directional_light(self):
        sample = DirectionalLight(Vec3(0, -2, 0), intensity=0.5).sample(Vec3(3, 1, 4))
        assert_vec_close(sample.direction, Vec3(0, 1, 0))
        assert sample.distance == math.inf
        assert_vec_close(sample.intensity, Vec3.of(0.5))


class TestConeLight:
    """Spot light pointing straight down from (0, 0, 0)."""

    def make_light(self, **kwargs):
        return ConeLight(Vec3(0, 0, 0), Vec3(0, -1, 0), intensity=1.0, **kwargs)

    def point_at(self, degrees):
        rad = math.radians(degrees)
        return Vec3(math.sin(rad), -math.cos(rad), 0)

    def test_inside_cone_is_fully_lit(self):
        sample = self.make_light(angle=30).sample(self.point_at(10))
        assert_vec_close(sample.intensity, Vec3(1, 1, 1))

    def test_outside_cone_is_dark(self):
        assert self.make_light(angle=30).sample(self.point_at(45)) is None

    def test_soft_edge_fades(self):
        light = self.make_light(angle=30, softness=10)
        assert_vec_close(light.sample(self.point_at(15)).intensity, Vec3(1, 1, 1))
        faded = light.sample(self.point_at(25)).intensity
        assert 0.0 < faded.x < 1.0
        nearer_edge = light.sample(self.point_at(28)).intensity
        assert nearer_edge.x < faded.x

    @pytest.mark.parametrize("kwargs", [
        {"angle": 0},
        {"angle": 180},
        {"angle": 20, "softness": 30},
    ])
    def test_invalid_cone(self, kwargs):
        with pytest.raises(InvalidInputError):
            self.make_light(**kwargs)
