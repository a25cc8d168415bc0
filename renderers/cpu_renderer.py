import logging
import math
import random
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import List, NamedTuple, Tuple

from core.errors import InvalidInputError, RenderError
from core.math import Vec3
from core.framebuffer import Framebuffer
from core.scene import Scene, RenderSettings
from core.shading import WhittedShader
from renderers.base_renderer import BaseRenderer, RendererFactory, RenderStats

logger = logging.getLogger(__name__)


class Tile(NamedTuple):
    x0: int
    y0: int
    x1: int
    y1: int

    @property
    def pixel_count(self) -> int:
        return (self.x1 - self.x0) * (self.y1 - self.y0)


def make_tiles(width: int, height: int, tile_size: int) -> List[Tile]:
    """Row-major square tiles covering every pixel exactly once."""
    tiles = []
    for y in range(0, height, tile_size):
        for x in range(0, width, tile_size):
            tiles.append(Tile(x, y, min(x + tile_size, width), min(y + tile_size, height)))
    return tiles


def _pixel_seed(seed: int, x: int, y: int) -> int:
    return (seed * 73856093) ^ (x * 19349663) ^ (y * 83492791)


def pixel_offsets(x: int, y: int, samples: int, seed: int) -> List[Tuple[float, float]]:
    """Sub-pixel sample positions for pixel (x, y).

    One sample goes through the pixel centre. More samples are jittered
    inside the cells of a near-square grid; the jitter is seeded from the
    pixel coordinates alone, so it does not depend on which worker renders
    the pixel.
    """
    if samples == 1:
        return [(0.5, 0.5)]
    rng = random.Random(_pixel_seed(seed, x, y))
    cols = math.ceil(math.sqrt(samples))
    rows = math.ceil(samples / cols)
    offsets = []
    for k in range(samples):
        i, j = k % cols, k // cols
        offsets.append(((i + rng.random()) / cols, (j + rng.random()) / rows))
    return offsets


class CPURenderer(BaseRenderer):
    """Whitted ray tracer that spreads image tiles over a thread pool."""

    def __init__(self):
        super().__init__("cpu_raytracer")

    def get_capabilities(self) -> List[str]:
        return [
            "ray_tracing",
            "shadows",
            "reflection",
            "refraction",
            "textures",
            "anti_aliasing",
            "bvh_acceleration",
            "multithreading",
        ]

    def render(self, scene: Scene, settings: RenderSettings) -> Framebuffer:
        camera = scene.camera
        if (camera.width, camera.height) != (settings.width, settings.height):
            raise InvalidInputError(
                f"camera is {camera.width}x{camera.height} but settings ask for "
                f"{settings.width}x{settings.height}")

        start_time = time.time()
        shader = WhittedShader(scene, settings.max_depth)
        framebuffer = Framebuffer(settings.width, settings.height)
        tiles = make_tiles(settings.width, settings.height, settings.tile_size)
        workers = settings.worker_count

        logger.info("CPU render: %dx%d, %d spp, depth %d, %d tiles on %d workers",
                    settings.width, settings.height, settings.samples_per_pixel,
                    settings.max_depth, len(tiles), workers)

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="render") as executor:
            futures = {
                executor.submit(self._render_tile, shader, framebuffer, tile, settings): tile
                for tile in tiles
            }
            done = 0
            for future in as_completed(futures):
                exc = future.exception()
                if exc is not None:
                    for pending in futures:
                        pending.cancel()
                    raise RenderError(f"render worker failed on tile {futures[future]}") from exc
                done += 1
                logger.debug("tile %d/%d done", done, len(tiles))

        elapsed = time.time() - start_time
        self.last_stats = RenderStats(
            bvh_build_seconds=scene.bvh_build_seconds,
            render_seconds=elapsed,
            tiles=len(tiles),
            workers=workers,
            primary_rays=settings.width * settings.height * settings.samples_per_pixel,
        )
        logger.info("CPU render finished in %dm %.2fs", int(elapsed // 60), elapsed % 60)
        return framebuffer

    @staticmethod
    def _render_tile(shader: WhittedShader, framebuffer: Framebuffer, tile: Tile,
                     settings: RenderSettings):
        camera = shader.scene.camera
        samples = settings.samples_per_pixel
        for y in range(tile.y0, tile.y1):
            for x in range(tile.x0, tile.x1):
                col = Vec3(0, 0, 0)
                for dx, dy in pixel_offsets(x, y, samples, settings.seed):
                    col += shader.trace(camera.ray_for_pixel(x, y, dx, dy))
                # this tile owns the pixel; no other worker writes here
                framebuffer.set_pixel(x, y, col / samples)


RendererFactory.register("cpu_raytracer", CPURenderer)
