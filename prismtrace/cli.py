"""
Command-line interface.

Renders a built-in scene or a scene file and writes the image:

    prismtrace --scene cornell --samples 16 --output cornell.png
    prismtrace --scene-file scenes/room.yaml --preview

Exit status is 0 on success, 1 on a render or input error and 2 on a
usage error.
"""

from __future__ import annotations
from typing import List, Optional
import argparse
import logging
import sys
import time

from .config import (
    DEFAULT_WIDTH, DEFAULT_HEIGHT, DEFAULT_SAMPLES, DEFAULT_MAX_DEPTH, OUTPUT_FILENAME
)
from .errors import RayTracingError
from .image_io import save_image
from .renderer import Renderer, RenderSettings, EXECUTORS
from .scene_parser import load_scene
from .scenes import SCENES, CAMERA_TYPES

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(verbose: bool = False) -> None:
    """Send log records to stderr, at DEBUG level when verbose."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        stream=sys.stderr
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='prismtrace',
        description='prismtrace - an offline CPU ray tracer',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Examples:
  prismtrace --scene cornell --output cornell.png
  prismtrace --width 1280 --height 720 --samples 64 --camera thin-lens
  prismtrace --scene-file room.yaml --preview
        '''
    )

    parser.add_argument('--width', type=int, help=f'Image width (default: {DEFAULT_WIDTH})')
    parser.add_argument('--height', type=int, help=f'Image height (default: {DEFAULT_HEIGHT})')
    parser.add_argument('--samples', type=int, help=f'Samples per pixel (default: {DEFAULT_SAMPLES})')
    parser.add_argument('--depth', type=int, help=f'Max ray depth (default: {DEFAULT_MAX_DEPTH})')
    parser.add_argument('--preview', action='store_true',
                        help='Quick low-quality render (1 sample, depth 1)')
    parser.add_argument('--camera', choices=CAMERA_TYPES, default='pinhole',
                        help='Camera for built-in scenes (default: pinhole)')
    parser.add_argument('--scene', choices=sorted(SCENES), default='cornell',
                        help='Built-in scene to render (default: cornell)')
    parser.add_argument('--scene-file', help='YAML or JSON scene description (overrides --scene)')
    parser.add_argument('--threads', type=int, help='Number of workers (0=auto)')
    parser.add_argument('--executor', choices=EXECUTORS, help='Worker pool type (default: thread)')
    parser.add_argument('--seed', type=int, help='Sampling seed (default: 0)')
    parser.add_argument('--output', default=OUTPUT_FILENAME,
                        help=f'Output filename (default: {OUTPUT_FILENAME})')
    parser.add_argument('--verbose', '-v', action='store_true', help='Enable debug logging')
    return parser


def apply_overrides(settings: RenderSettings, args: argparse.Namespace) -> RenderSettings:
    """Replace settings fields with any values given on the command line."""
    overrides = {
        'width': args.width,
        'height': args.height,
        'samples_per_pixel': args.samples,
        'max_depth': args.depth,
        'num_threads': args.threads,
        'executor': args.executor,
        'seed': args.seed,
    }
    for name, value in overrides.items():
        if value is not None:
            setattr(settings, name, value)
    if args.preview:
        settings.preview = True
    return settings


def _progress_bar():
    last_progress = [-1]

    def progress_callback(progress: float):
        pct = int(progress * 100)
        if pct > last_progress[0]:
            last_progress[0] = pct
            bar_len = 40
            filled = int(bar_len * progress)
            bar = '#' * filled + '-' * (bar_len - filled)
            print(f'\rRendering: [{bar}] {pct}%', end='', file=sys.stderr, flush=True)
            if pct >= 100:
                print(file=sys.stderr)

    return progress_callback


def run(args: argparse.Namespace) -> int:
    """Render according to parsed arguments; raises RayTracingError on failure."""
    if args.scene_file:
        scene, settings = load_scene(args.scene_file)
        settings = apply_overrides(settings, args)
        settings.validate(allow_empty=False)
    else:
        settings = apply_overrides(RenderSettings(), args)
        settings.validate(allow_empty=False)
        logger.info("Building scene '%s' with %s camera", args.scene, args.camera)
        scene = SCENES[args.scene](args.camera)

    renderer = Renderer(settings)
    if sys.stderr.isatty():
        renderer.set_progress_callback(_progress_bar())

    start_time = time.perf_counter()
    buffer = renderer.render(scene)
    elapsed = time.perf_counter() - start_time

    active = settings.effective()
    rays = active.width * active.height * active.samples_per_pixel
    logger.info("%d camera rays in %.2f s (%.0f rays/s)", rays, elapsed, rays / max(elapsed, 1e-9))

    save_image(buffer, args.output, settings.tone_mapping, settings.gamma)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    try:
        return run(args)
    except RayTracingError as e:
        logger.error("%s", e)
        return 1


if __name__ == '__main__':
    sys.exit(main())
