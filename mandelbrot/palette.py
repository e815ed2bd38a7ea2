"""Iteration count to RGB color mapping."""

from __future__ import annotations

from typing import Optional

import numpy as np
from matplotlib import colormaps as _mpl_colormaps
from matplotlib.colors import hsv_to_rgb

INSIDE_COLOR = (0, 0, 0)
SATURATION = 0.5
# Above 1.0 on purpose: over-bright, high-contrast palette with clipped channels.
BRIGHTNESS = 1.2


def _exterior_rgb(
    counts: np.ndarray,
    max_iter: int,
    saturation: float,
    brightness: float,
    colormap: Optional[str],
) -> np.ndarray:
    counts = np.asarray(counts, dtype=np.int64)
    if colormap is not None:
        rgba = _mpl_colormaps[colormap](counts / max_iter)
        return np.uint8(np.clip(rgba[..., :3] * 255.0, 0, 255))

    # integer hue in degrees
    hue = (255 * counts / max_iter).astype(np.int64)
    hsv = np.stack(
        (
            hue / 360.0,
            np.full(hue.shape, saturation, dtype=np.float64),
            np.ones(hue.shape, dtype=np.float64),
        ),
        axis=-1,
    )
    # HSV -> RGB is linear in the value channel, so scale after converting.
    rgb = hsv_to_rgb(hsv) * brightness * 255.0
    return np.uint8(np.clip(rgb, 0, 255))


def is_colormap(name: str) -> bool:
    return name in _mpl_colormaps


def colorize(
    n: int,
    max_iter: int,
    *,
    saturation: float = SATURATION,
    brightness: float = BRIGHTNESS,
    inside_color: tuple[int, int, int] = INSIDE_COLOR,
    colormap: Optional[str] = None,
) -> tuple[int, int, int]:
    """Color of a single escape count."""

    if n == max_iter:
        return tuple(int(c) for c in inside_color)
    rgb = _exterior_rgb(np.array([n]), max_iter, saturation, brightness, colormap)[0]
    return int(rgb[0]), int(rgb[1]), int(rgb[2])


class Palette:
    """Lookup table with one color per possible escape count."""

    def __init__(
        self,
        max_iter: int,
        *,
        saturation: float = SATURATION,
        brightness: float = BRIGHTNESS,
        inside_color: tuple[int, int, int] = INSIDE_COLOR,
        colormap: Optional[str] = None,
    ) -> None:
        self.max_iter = max_iter
        table = _exterior_rgb(np.arange(max_iter + 1), max_iter, saturation, brightness, colormap)
        table[max_iter] = np.asarray(inside_color, dtype=np.uint8)
        table.flags.writeable = False
        self.table = table

    def __len__(self) -> int:
        return len(self.table)

    def apply(self, iterations: np.ndarray) -> np.ndarray:
        """Colorize an array of escape counts, adding a trailing RGB axis."""

        return self.table[iterations]
