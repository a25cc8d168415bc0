import argparse
import logging
import sys
import time

from core.errors import RaytracerError
from core.scene import RenderSettings
from scene_builders.custom_scene_builder import SCENE_BUILDERS
from renderers.base_renderer import RendererFactory

# imported for its renderer registration
import renderers.cpu_renderer  # noqa: F401

logger = logging.getLogger("raytracer")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='BVH-accelerated Whitted ray tracer')
    parser.add_argument('--renderer', '-r',
                        choices=RendererFactory.list_available(),
                        default='cpu_raytracer',
                        help='renderer to use')
    parser.add_argument('--scene',
                        choices=sorted(SCENE_BUILDERS),
                        default='custom',
                        help='scene to render')
    parser.add_argument('--width', '-w', type=int, default=320,
                        help='image width in pixels')
    parser.add_argument('--height', type=int, default=240,
                        help='image height in pixels')
    parser.add_argument('--samples', '-s', type=int, default=4,
                        help='samples per pixel')
    parser.add_argument('--depth', '-d', type=int, default=4,
                        help='maximum reflection/refraction depth')
    parser.add_argument('--workers', '-j', type=int, default=None,
                        help='render threads (default: one per CPU core)')
    parser.add_argument('--tile-size', type=int, default=32,
                        help='tile edge length in pixels')
    parser.add_argument('--seed', type=int, default=0,
                        help='seed for sub-pixel jitter')
    parser.add_argument('--gamma', type=float, default=2.2,
                        help='gamma applied when encoding the image')
    parser.add_argument('--output', '-o', default='output.png',
                        help='output file name')
    parser.add_argument('--log-level', default='INFO',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='logging verbosity')
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level,
                        format='%(asctime)s %(levelname)s %(name)s: %(message)s')

    try:
        settings = RenderSettings(
            width=args.width,
            height=args.height,
            samples_per_pixel=args.samples,
            max_depth=args.depth,
            workers=args.workers,
            tile_size=args.tile_size,
            seed=args.seed,
        )

        logger.info("Building scene: %s", args.scene)
        scene = SCENE_BUILDERS[args.scene]().build_scene(settings.width, settings.height)

        renderer = RendererFactory.create(args.renderer)
        logger.info("Renderer %s supports: %s", renderer.get_name(),
                    ', '.join(renderer.get_capabilities()))

        start_time = time.time()
        framebuffer = renderer.render(scene, settings)
        elapsed = time.time() - start_time

        framebuffer.to_image(gamma=args.gamma).save(args.output)
    except RaytracerError as exc:
        logger.error("%s", exc)
        return 1

    logger.info("Image saved: %s", args.output)
    stats = renderer.last_stats
    logger.info("BVH build %.3fs, render %dm %.2fs, %.2fk primary rays/sec",
                stats.bvh_build_seconds, int(elapsed // 60), elapsed % 60,
                stats.primary_rays / max(elapsed, 1e-9) / 1e3)
    return 0


if __name__ == "__main__":
    sys.exit(main())
