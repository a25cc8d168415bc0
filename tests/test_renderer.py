"""
Tests for the tiled multithreaded renderer.

Covers:
- Tiling and sub-pixel sample placement
- Rendered images do not depend on the worker count
- Failures inside a worker abort the render
- Renderer registry and settings checks
"""

import numpy as np
import pytest

from core.errors import InvalidInputError, RenderError
from core.geometry import Sphere
from core.light import AmbientLight, PointLight
from core.material import FlatMaterial, PhongMaterial
from core.math import Vec3
from core.scene import RenderSettings, Scene
from renderers.base_renderer import RendererFactory
from renderers.cpu_renderer import CPURenderer, make_tiles, pixel_offsets
from tests.helpers import assert_vec_close, make_camera


class ExplodingMaterial(FlatMaterial):
    def shade(self, rec, view_dir, ambient, light_samples):
        raise RuntimeError("boom")


class TestTiles:
    @pytest.mark.parametrize("width,height,tile_size", [(70, 45, 16), (8, 8, 8), (5, 3, 100)])
    def test_tiles_cover_every_pixel_once(self, width, height, tile_size):
        counts = np.zeros((height, width), dtype=int)
        for tile in make_tiles(width, height, tile_size):
            counts[tile.y0:tile.y1, tile.x0:tile.x1] += 1
        assert (counts == 1).all()

    def test_tile_pixel_count(self):
        tiles = make_tiles(70, 45, 16)
        assert sum(tile.pixel_count for tile in tiles) == 70 * 45


class TestPixelOffsets:
    def test_single_sample_uses_pixel_centre(self):
        assert pixel_offsets(3, 7, 1, seed=0) == [(0.5, 0.5)]

    def test_samples_stay_inside_pixel(self):
        offsets = pixel_offsets(3, 7, 9, seed=0)
        assert len(offsets) == 9
        for dx, dy in offsets:
            assert 0.0 <= dx < 1.0
            assert 0.0 <= dy < 1.0

    def test_offsets_are_deterministic(self):
        assert pixel_offsets(5, 2, 4, seed=11) == pixel_offsets(5, 2, 4, seed=11)
        assert pixel_offsets(5, 2, 4, seed=11) != pixel_offsets(5, 2, 4, seed=12)


class TestCPURenderer:
    """End-to-end renders of small scenes."""

    def test_lit_sphere(self, lit_sphere_scene):
        settings = RenderSettings(width=32, height=32, samples_per_pixel=1, max_depth=2, workers=2)
        fb = CPURenderer().render(lit_sphere_scene, settings)
        assert fb.pixels.shape == (32, 32, 3)
        centre = fb.get_pixel(16, 16)
        assert centre != lit_sphere_scene.background
        assert centre.x > 0.5
        assert_vec_close(fb.get_pixel(0, 0), lit_sphere_scene.background)
        # near the silhouette the surface turns away from the light
        edge = fb.get_pixel(23, 16)
        assert edge != lit_sphere_scene.background
        assert centre.x > edge.x
        # the light sits above the camera, so the top of the sphere is brighter
        assert fb.get_pixel(16, 12).x > fb.get_pixel(16, 20).x

    def test_bright_highlights_are_clamped(self):
        """Light sums above 1 saturate instead of leaking into the framebuffer."""
        scene = Scene([Sphere(Vec3(0, 0, 0), 1.0, PhongMaterial(specular=1.0))],
                      [AmbientLight(0.5), PointLight(Vec3(0, 5, 5), intensity=3.0)],
                      make_camera())
        settings = RenderSettings(width=32, height=32, samples_per_pixel=1, max_depth=2, workers=2)
        fb = CPURenderer().render(scene, settings)
        assert fb.pixels.max() <= 1.0
        assert fb.pixels.min() >= 0.0
        assert fb.get_pixel(16, 16) == Vec3(1, 1, 1)

    @pytest.mark.parametrize("tile_size", [4, 7, 32])
    def test_worker_count_does_not_change_image(self, lit_sphere_scene, tile_size):
        base = dict(width=32, height=32, samples_per_pixel=4, max_depth=2,
                    tile_size=tile_size, seed=3)
        single = CPURenderer().render(lit_sphere_scene, RenderSettings(workers=1, **base))
        many = CPURenderer().render(lit_sphere_scene, RenderSettings(workers=4, **base))
        assert np.array_equal(single.pixels, many.pixels)

    def test_stats(self, lit_sphere_scene):
        renderer = CPURenderer()
        renderer.render(lit_sphere_scene, RenderSettings(width=32, height=32, samples_per_pixel=2,
                                                         tile_size=16, workers=3))
        stats = renderer.last_stats
        assert stats.tiles == 4
        assert stats.workers == 3
        assert stats.primary_rays == 32 * 32 * 2
        assert stats.render_seconds >= 0

    def test_worker_failure_raises_render_error(self):
        scene = Scene([Sphere(Vec3(0, 0, 0), 1.0, ExplodingMaterial())],
                      [AmbientLight(1.0)], make_camera(16, 16))
        settings = RenderSettings(width=16, height=16, samples_per_pixel=1, workers=2, tile_size=4)
        with pytest.raises(RenderError) as excinfo:
            CPURenderer().render(scene, settings)
        assert isinstance(excinfo.value.__cause__, RuntimeError)

    def test_camera_size_must_match_settings(self, lit_sphere_scene):
        with pytest.raises(InvalidInputError):
            CPURenderer().render(lit_sphere_scene, RenderSettings(width=64, height=32))


class TestRendererFactory:
    def test_cpu_renderer_is_registered(self):
        renderer = RendererFactory.create("cpu_raytracer")
        assert isinstance(renderer, CPURenderer)
        assert renderer.supports("bvh_acceleration")
        assert not renderer.supports("path_tracing")

    def test_unknown_renderer(self):
        with pytest.raises(InvalidInputError):
            RendererFactory.create("nope")
