"""
Renderer module - the heart of the ray tracer.

Implements:
- Recursive Whitted-style tracing with a bounded bounce depth
- Jittered antialiasing with per-pixel deterministic seeding
- Multi-threaded (or multi-process) tile-based rendering
- Cooperative cancellation returning a partial image

Every pixel depends only on the read-only Scene and its own seeded
samples, so the image is identical whatever the worker count or the
order in which tiles finish.
"""

from __future__ import annotations
from concurrent.futures import ThreadPoolExecutor, ProcessPoolExecutor, as_completed
from dataclasses import dataclass, replace
from typing import Optional, Callable, Tuple
import logging
import os
import threading
import time

import numpy as np

from .config import (
    DEFAULT_WIDTH, DEFAULT_HEIGHT, DEFAULT_SAMPLES, DEFAULT_MAX_DEPTH,
    DEFAULT_TILE_SIZE, DEFAULT_LIGHT_SAMPLES, MAX_DIMENSION,
    PREVIEW_SAMPLES, PREVIEW_MAX_DEPTH, PREVIEW_LIGHT_SAMPLES
)
from .errors import ConfigError
from .framebuffer import FrameBuffer, TONE_MAPPINGS
from .materials import ShadeContext
from .ray import Ray
from .sampler import Sampler
from .scene import Scene
from .vec3 import Color, BLACK

logger = logging.getLogger(__name__)

EXECUTORS = ("thread", "process")

Tile = Tuple[int, int, int, int]


@dataclass
class RenderSettings:
    """Configuration for the renderer."""
    width: int = DEFAULT_WIDTH
    height: int = DEFAULT_HEIGHT
    samples_per_pixel: int = DEFAULT_SAMPLES
    max_depth: int = DEFAULT_MAX_DEPTH
    tile_size: int = DEFAULT_TILE_SIZE
    num_threads: int = 0  # 0 = auto-detect
    executor: str = "thread"
    gamma: float = 1.0
    tone_mapping: str = "clamp"
    seed: int = 0
    light_samples: int = DEFAULT_LIGHT_SAMPLES
    preview: bool = False

    def effective(self) -> RenderSettings:
        """Settings actually used for rendering, with preview overrides applied."""
        if not self.preview:
            return self
        return replace(
            self,
            samples_per_pixel=PREVIEW_SAMPLES,
            max_depth=PREVIEW_MAX_DEPTH,
            light_samples=PREVIEW_LIGHT_SAMPLES
        )

    def validate(self, allow_empty: bool = True) -> None:
        """Check the settings, raising ConfigError on the first problem.

        Args:
            allow_empty: Accept a zero width or height (renders an empty image)
        """
        for name in ("width", "height"):
            value = getattr(self, name)
            if value < 0 or (value == 0 and not allow_empty):
                raise ConfigError(f"Image {name} must be positive, got {value}")
            if value > MAX_DIMENSION:
                raise ConfigError(f"Image {name} must be at most {MAX_DIMENSION}, got {value}")
        if self.samples_per_pixel <= 0:
            raise ConfigError(f"Samples per pixel must be positive, got {self.samples_per_pixel}")
        if self.max_depth < 0:
            raise ConfigError(f"Max depth must be non-negative, got {self.max_depth}")
        if self.tile_size <= 0:
            raise ConfigError(f"Tile size must be positive, got {self.tile_size}")
        if self.num_threads < 0:
            raise ConfigError(f"Thread count must be non-negative, got {self.num_threads}")
        if self.light_samples <= 0:
            raise ConfigError(f"Light samples must be positive, got {self.light_samples}")
        if self.gamma <= 0:
            raise ConfigError(f"Gamma must be positive, got {self.gamma}")
        if self.executor not in EXECUTORS:
            raise ConfigError(f"Unknown executor '{self.executor}', expected one of {EXECUTORS}")
        if self.tone_mapping not in TONE_MAPPINGS:
            raise ConfigError(
                f"Unknown tone mapping '{self.tone_mapping}', expected one of {TONE_MAPPINGS}"
            )

    def worker_count(self) -> int:
        return self.num_threads or os.cpu_count() or 4


class Renderer:
    """Tile-parallel ray tracing renderer."""

    def __init__(self, settings: Optional[RenderSettings] = None):
        """Create a renderer with the given settings.

        Args:
            settings: Render configuration (uses defaults if None)
        """
        self.settings = settings if settings else RenderSettings()
        self._active = self.settings.effective()
        self._progress_callback: Optional[Callable[[float], None]] = None
        self._cancel = threading.Event()

    def set_progress_callback(self, callback: Callable[[float], None]) -> None:
        """Set a callback function for progress updates.

        Args:
            callback: Function that takes progress as float (0.0 to 1.0)
        """
        self._progress_callback = callback

    def cancel(self) -> None:
        """Ask a running render to stop; unrendered pixels stay black."""
        self._cancel.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    def render(self, scene: Scene) -> FrameBuffer:
        """Render the scene into a new frame buffer.

        Args:
            scene: The scene to render (its camera is used)

        Returns:
            Linear HDR frame buffer of settings.width x settings.height

        Raises:
            ConfigError: If the settings are invalid
        """
        self._active = settings = self.settings.effective()
        settings.validate()
        self._cancel.clear()

        width, height = settings.width, settings.height
        buffer = FrameBuffer(width, height)
        if buffer.is_empty:
            logger.info("Zero resolution %dx%d, nothing to render", width, height)
            return buffer

        tiles = self._generate_tiles(width, height)
        workers = min(settings.worker_count(), len(tiles))
        logger.info(
            "Rendering %dx%d, %d spp, depth %d: %d tiles on %d %s worker(s)",
            width, height, settings.samples_per_pixel, settings.max_depth,
            len(tiles), workers, settings.executor
        )
        start_time = time.perf_counter()

        if workers <= 1:
            for done, tile in enumerate(tiles, start=1):
                buffer.write_tile(tile[0], tile[1], self.render_tile(scene, tile))
                self._report(done, len(tiles))
        elif settings.executor == "process":
            with ProcessPoolExecutor(
                max_workers=workers,
                initializer=_init_worker,
                initargs=(scene, settings)
            ) as executor:
                futures = [executor.submit(_render_tile_in_worker, tile) for tile in tiles]
                self._collect(futures, buffer, len(tiles))
        else:
            with ThreadPoolExecutor(max_workers=workers) as executor:
                futures = [executor.submit(self._render_tile_pair, scene, tile) for tile in tiles]
                self._collect(futures, buffer, len(tiles))

        elapsed = time.perf_counter() - start_time
        if self.cancelled:
            logger.warning("Render cancelled after %.2f seconds; image is partial", elapsed)
        else:
            logger.info("Render completed in %.2f seconds", elapsed)
        return buffer

    def _collect(self, futures, buffer: FrameBuffer, total: int) -> None:
        """Write finished tiles into the buffer as they complete."""
        for done, future in enumerate(as_completed(futures), start=1):
            if future.cancelled():
                continue
            tile, tile_image = future.result()
            buffer.write_tile(tile[0], tile[1], tile_image)
            self._report(done, total)
            if self.cancelled:
                for pending in futures:
                    pending.cancel()

    def _report(self, done: int, total: int) -> None:
        if self._progress_callback:
            self._progress_callback(done / total)

    def _render_tile_pair(self, scene: Scene, tile: Tile) -> Tuple[Tile, np.ndarray]:
        return tile, self.render_tile(scene, tile)

    def render_tile(self, scene: Scene, tile: Tile) -> np.ndarray:
        """Render the pixels of one tile.

        The cancel flag is checked before every pixel; pixels not rendered
        are left at zero.
        """
        x0, y0, x1, y1 = tile
        settings = self._active
        sampler = Sampler(settings.samples_per_pixel, settings.seed)
        tile_image = np.zeros((y1 - y0, x1 - x0, 3), dtype=np.float64)

        for y in range(y0, y1):
            for x in range(x0, x1):
                if self._cancel.is_set():
                    return tile_image
                tile_image[y - y0, x - x0] = self.render_pixel(scene, x, y, sampler).to_array()

        return tile_image

    def render_pixel(self, scene: Scene, x: int, y: int, sampler: Sampler) -> Color:
        """Average the radiance of every sample ray through pixel (x, y)."""
        settings = self._active
        samples = sampler.for_pixel(x, y)
        rng = sampler.rng(x, y)

        total = np.zeros(3)
        for offset in samples:
            ray = scene.camera.generate_ray(x, y, offset, settings.width, settings.height)
            total += self.trace(scene, ray, 0, rng).to_array()

        return Color.from_array(total / len(samples))

    def trace(self, scene: Scene, ray: Ray, depth: int, rng: np.random.Generator) -> Color:
        """Radiance arriving along ray.

        Args:
            scene: The scene to trace against
            ray: The ray to follow
            depth: Bounce count of this ray (0 for camera rays)
            rng: Per-pixel generator for light and occlusion samples

        Returns:
            Black once depth exceeds max_depth, the background on a miss
            or on a surface without material, otherwise the material's shaded color
        """
        settings = self._active
        if depth > settings.max_depth:
            return BLACK

        hit_record = scene.intersect(ray)
        if hit_record is None or hit_record.material is None:
            return scene.background

        ctx = ShadeContext(
            ray=ray,
            hit=hit_record,
            scene=scene,
            depth=depth,
            tracer=self,
            rng=rng,
            light_samples=settings.light_samples
        )
        return hit_record.material.shade(ctx)

    def _generate_tiles(self, width: int, height: int) -> list[Tile]:
        """Generate tiles for parallel rendering.

        Args:
            width: Image width
            height: Image height

        Returns:
            List of tiles as (x0, y0, x1, y1) tuples
        """
        tile_size = self._active.tile_size
        tiles = []

        for y in range(0, height, tile_size):
            for x in range(0, width, tile_size):
                x1 = min(x + tile_size, width)
                y1 = min(y + tile_size, height)
                tiles.append((x, y, x1, y1))

        return tiles


# Per-process state for the process pool; set once by the initializer
_worker_scene: Optional[Scene] = None
_worker_renderer: Optional[Renderer] = None


def _init_worker(scene: Scene, settings: RenderSettings) -> None:
    global _worker_scene, _worker_renderer
    _worker_scene = scene
    _worker_renderer = Renderer(settings)


def _render_tile_in_worker(tile: Tile) -> Tuple[Tile, np.ndarray]:
    return tile, _worker_renderer.render_tile(_worker_scene, tile)


def render(
    scene: Scene,
    width: int,
    height: int,
    samples_per_pixel: int,
    **overrides
) -> FrameBuffer:
    """Render scene at the given resolution and sample count.

    Any other RenderSettings field can be passed as a keyword argument.
    """
    settings = RenderSettings(
        width=width,
        height=height,
        samples_per_pixel=samples_per_pixel,
        **overrides
    )
    return Renderer(settings).render(scene)
