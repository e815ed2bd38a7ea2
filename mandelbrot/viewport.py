"""Viewport over the complex plane and the pixel <-> plane mapping."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

import numpy as np

ZOOM_IN_FACTOR = 0.8
ZOOM_OUT_FACTOR = 1.25
DRAG_SENSITIVITY = 1.0
MIN_MOVEMENT = 2.0


@dataclass(frozen=True)
class Viewport:
    """Visible rectangle of the complex plane."""

    real_min: float
    real_max: float
    imag_min: float
    imag_max: float

    def __post_init__(self) -> None:
        if not self.real_min < self.real_max:
            raise ValueError(f"real_min ({self.real_min}) must be below real_max ({self.real_max})")
        if not self.imag_min < self.imag_max:
            raise ValueError(f"imag_min ({self.imag_min}) must be below imag_max ({self.imag_max})")

    @property
    def real_range(self) -> float:
        return self.real_max - self.real_min

    @property
    def imag_range(self) -> float:
        return self.imag_max - self.imag_min

    @property
    def center(self) -> tuple[float, float]:
        return (self.real_min + self.real_max) / 2.0, (self.imag_min + self.imag_max) / 2.0


DEFAULT_VIEWPORT = Viewport(real_min=-2.0, real_max=1.5, imag_min=-1.5, imag_max=1.5)


def to_complex(x: float, y: float, width: int, height: int, viewport: Viewport) -> tuple[float, float]:
    """Map pixel ``(x, y)`` of a ``width`` x ``height`` raster onto the plane.

    Row 0 is the top of the raster, so the imaginary axis runs downwards from
    ``imag_max``.
    """

    real = viewport.real_min + (x / width) * (viewport.real_max - viewport.real_min)
    imag = viewport.imag_max - (y / height) * (viewport.imag_max - viewport.imag_min)
    return real, imag


def tile_axes(tile, width: int, height: int, viewport: Viewport) -> tuple[np.ndarray, np.ndarray]:
    """Real coordinate of every column and imaginary coordinate of every row of ``tile``.

    Uses the same operation order as :func:`to_complex` so each pixel maps to
    the bit-identical value.
    """

    xs = np.arange(tile.x0, tile.x1, dtype=np.float64)
    ys = np.arange(tile.y0, tile.y1, dtype=np.float64)
    real = viewport.real_min + (xs / np.float64(width)) * (viewport.real_max - viewport.real_min)
    imag = viewport.imag_max - (ys / np.float64(height)) * (viewport.imag_max - viewport.imag_min)
    return real, imag


def reset_view() -> Viewport:
    return DEFAULT_VIEWPORT


def pan(
    viewport: Viewport,
    dx: float,
    dy: float,
    width: int,
    height: int,
    *,
    sensitivity: float = DRAG_SENSITIVITY,
    min_movement: float = MIN_MOVEMENT,
) -> Viewport:
    """Drag the view by a pixel delta.

    Deltas shorter than ``min_movement`` pixels are ignored. Dragging right
    moves the plane right with the cursor, so the bounds shift left.
    """

    if math.hypot(dx, dy) < min_movement:
        return viewport
    real_delta = -dx * viewport.real_range / width * sensitivity
    imag_delta = dy * viewport.imag_range / height * sensitivity
    return Viewport(
        real_min=viewport.real_min + real_delta,
        real_max=viewport.real_max + real_delta,
        imag_min=viewport.imag_min + imag_delta,
        imag_max=viewport.imag_max + imag_delta,
    )


def zoom_by(viewport: Viewport, factor: float, *, anchor: Optional[tuple[float, float]] = None) -> Viewport:
    """Scale both axis ranges by ``factor`` keeping ``anchor`` fixed on screen.

    ``anchor`` defaults to the plane center. ``factor < 1`` zooms in.
    """

    if factor <= 0:
        raise ValueError(f"zoom factor must be positive, got {factor}")
    a_real, a_imag = anchor if anchor is not None else viewport.center
    return Viewport(
        real_min=a_real - (a_real - viewport.real_min) * factor,
        real_max=a_real + (viewport.real_max - a_real) * factor,
        imag_min=a_imag - (a_imag - viewport.imag_min) * factor,
        imag_max=a_imag + (viewport.imag_max - a_imag) * factor,
    )


def zoom_at(
    viewport: Viewport,
    px: float,
    py: float,
    width: int,
    height: int,
    wheel: float,
    *,
    zoom_in: float = ZOOM_IN_FACTOR,
    zoom_out: float = ZOOM_OUT_FACTOR,
) -> Viewport:
    """Wheel zoom anchored at the complex coordinate under pixel ``(px, py)``."""

    if wheel == 0:
        return viewport
    factor = zoom_in if wheel > 0 else zoom_out
    return zoom_by(viewport, factor, anchor=to_complex(px, py, width, height, viewport))


def resize(viewport: Viewport, old_size: tuple[int, int], new_size: tuple[int, int]) -> Viewport:
    """Rescale the axis ranges to follow a raster resize around a fixed center."""

    old_width, old_height = old_size
    new_width, new_height = new_size
    if min(old_width, old_height, new_width, new_height) <= 0:
        raise ValueError(f"raster sizes must be positive, got {old_size} -> {new_size}")

    center_real, center_imag = viewport.center
    real_range = viewport.real_range * (new_width / old_width)
    imag_range = viewport.imag_range * (new_height / old_height)
    return Viewport(
        real_min=center_real - real_range / 2.0,
        real_max=center_real + real_range / 2.0,
        imag_min=center_imag - imag_range / 2.0,
        imag_max=center_imag + imag_range / 2.0,
    )
