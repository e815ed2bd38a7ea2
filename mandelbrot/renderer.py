"""Tile-parallel rendering of Mandelbrot frames."""

from __future__ import annotations

import enum
import threading
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

import numpy as np

from .escape import escape_grid
from .palette import BRIGHTNESS, INSIDE_COLOR, SATURATION, Palette, is_colormap
from .tiles import TILE_EDGE, Tile, assign_round_robin, partition, worker_count
from .viewport import Viewport, tile_axes

MAX_ITERATIONS = 100
BACKENDS = ("numpy", "tensorflow")


@dataclass(frozen=True)
class RenderConfig:
    """Tunables of the render engine. None of them affect correctness."""

    max_iterations: int = MAX_ITERATIONS
    tile_edge: int = TILE_EDGE
    workers: Optional[int] = None
    saturation: float = SATURATION
    brightness: float = BRIGHTNESS
    inside_color: tuple[int, int, int] = INSIDE_COLOR
    colormap: Optional[str] = None
    backend: str = "numpy"
    device: Optional[str] = None

    def __post_init__(self) -> None:
        if self.max_iterations <= 0:
            raise ValueError(f"max_iterations must be positive, got {self.max_iterations}")
        if self.tile_edge <= 0:
            raise ValueError(f"tile_edge must be positive, got {self.tile_edge}")
        if self.workers is not None and self.workers < 1:
            raise ValueError(f"workers must be at least 1, got {self.workers}")
        if self.backend not in BACKENDS:
            raise ValueError(f"unknown backend '{self.backend}', expected one of {', '.join(BACKENDS)}")
        if self.colormap is not None and not is_colormap(self.colormap):
            raise ValueError(f"unknown matplotlib colormap '{self.colormap}'")


@dataclass(frozen=True)
class PixelBuffer:
    """A completed frame. Both arrays are read-only."""

    rgb: np.ndarray
    iterations: np.ndarray
    viewport: Viewport
    max_iterations: int

    @property
    def width(self) -> int:
        return self.rgb.shape[1]

    @property
    def height(self) -> int:
        return self.rgb.shape[0]

    @property
    def flat(self) -> np.ndarray:
        """Row-major ``(width * height, 3)`` view; pixel (x, y) is at ``y * width + x``."""

        return self.rgb.reshape(-1, 3)

    def pixel(self, x: int, y: int) -> tuple[int, int, int]:
        r, g, b = self.rgb[y, x]
        return int(r), int(g), int(b)


class RenderState(enum.Enum):
    IDLE = "idle"
    RENDERING = "rendering"


class RenderEngine:
    """Renders one frame at a time on a persistent pool of tile workers.

    ``render`` is single-flight: a call made while a pass is running records
    its request as the pending redraw (later requests replace earlier ones)
    and returns ``None``. The running call renders the pending request as
    soon as its own pass completes.
    """

    def __init__(
        self,
        config: Optional[RenderConfig] = None,
        *,
        on_frame: Optional[Callable[[PixelBuffer], None]] = None,
    ) -> None:
        self.config = config if config is not None else RenderConfig()
        self.workers = worker_count(self.config.workers)
        self.palette = Palette(
            self.config.max_iterations,
            saturation=self.config.saturation,
            brightness=self.config.brightness,
            inside_color=self.config.inside_color,
            colormap=self.config.colormap,
        )
        self._kernel = self._select_kernel()
        self._on_frame = on_frame
        self._executor = ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix="mandelbrot-tile")
        self._lock = threading.Lock()
        self._state = RenderState.IDLE
        self._pending: Optional[tuple[Viewport, int, int]] = None
        self._latest: Optional[PixelBuffer] = None

    def _select_kernel(self) -> Callable[[np.ndarray, np.ndarray, int], np.ndarray]:
        if self.config.backend == "tensorflow":
            from .tf_kernel import escape_tile

            device = self.config.device

            def kernel(real, imag, max_iter):
                return escape_tile(real, imag, max_iter, device=device)

            return kernel

        def kernel(real, imag, max_iter):
            return escape_grid(real[np.newaxis, :], imag[:, np.newaxis], max_iter)

        return kernel

    @property
    def state(self) -> RenderState:
        with self._lock:
            return self._state

    @property
    def is_rendering(self) -> bool:
        return self.state is RenderState.RENDERING

    @property
    def latest(self) -> Optional[PixelBuffer]:
        with self._lock:
            return self._latest

    def render(self, viewport: Viewport, width: int, height: int) -> Optional[PixelBuffer]:
        """Render ``viewport`` onto a ``width`` x ``height`` raster and block until done."""

        if width <= 0 or height <= 0:
            raise ValueError(f"raster must be non-empty, got {width}x{height}")
        request = (viewport, int(width), int(height))

        with self._lock:
            if self._state is RenderState.RENDERING:
                self._pending = request
                return None
            self._state = RenderState.RENDERING

        try:
            while True:
                buffer = self._render_pass(*request)
                with self._lock:
                    self._latest = buffer
                if self._on_frame is not None:
                    self._on_frame(buffer)
                with self._lock:
                    request, self._pending = self._pending, None
                    if request is None:
                        self._state = RenderState.IDLE
                        return buffer
        except BaseException:
            with self._lock:
                self._pending = None
                self._state = RenderState.IDLE
            raise

    def _render_pass(self, viewport: Viewport, width: int, height: int) -> PixelBuffer:
        tiles = partition(width, height, self.config.tile_edge)
        rgb = np.empty((height, width, 3), dtype=np.uint8)
        iterations = np.empty((height, width), dtype=np.int32)

        futures = [
            self._executor.submit(self._render_tiles, share, viewport, width, height, rgb, iterations)
            for share in assign_round_robin(tiles, self.workers)
            if share
        ]
        wait(futures)
        for future in futures:
            future.result()

        rgb.flags.writeable = False
        iterations.flags.writeable = False
        return PixelBuffer(rgb=rgb, iterations=iterations, viewport=viewport, max_iterations=self.config.max_iterations)

    def _render_tiles(
        self,
        tiles: Sequence[Tile],
        viewport: Viewport,
        width: int,
        height: int,
        rgb: np.ndarray,
        iterations: np.ndarray,
    ) -> None:
        # tiles are disjoint, so workers write without locking
        max_iter = self.config.max_iterations
        for tile in tiles:
            real, imag = tile_axes(tile, width, height, viewport)
            counts = self._kernel(real, imag, max_iter)
            iterations[tile.y0:tile.y1, tile.x0:tile.x1] = counts
            rgb[tile.y0:tile.y1, tile.x0:tile.x1] = self.palette.apply(counts)

    def close(self) -> None:
        self._executor.shutdown(wait=True)

    def __enter__(self) -> "RenderEngine":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def render_frame(
    viewport: Viewport,
    width: int,
    height: int,
    config: Optional[RenderConfig] = None,
) -> PixelBuffer:
    """Render a single frame with a throwaway engine."""

    with RenderEngine(config) as engine:
        return engine.render(viewport, width, height)
