"""Public API for Mandelbrot rendering utilities."""

from .escape import escape, escape_grid
from .palette import Palette, colorize
from .renderer import PixelBuffer, RenderConfig, RenderEngine, RenderState, render_frame
from .tiles import Tile, assign_round_robin, partition, tile_grid, worker_count
from .viewport import (
    DEFAULT_VIEWPORT,
    Viewport,
    pan,
    reset_view,
    resize,
    tile_axes,
    to_complex,
    zoom_at,
    zoom_by,
)

__all__ = [
    "DEFAULT_VIEWPORT",
    "Palette",
    "PixelBuffer",
    "RenderConfig",
    "RenderEngine",
    "RenderState",
    "Tile",
    "Viewport",
    "assign_round_robin",
    "colorize",
    "escape",
    "escape_grid",
    "pan",
    "partition",
    "render_frame",
    "reset_view",
    "resize",
    "tile_axes",
    "tile_grid",
    "to_complex",
    "worker_count",
    "zoom_at",
    "zoom_by",
]
