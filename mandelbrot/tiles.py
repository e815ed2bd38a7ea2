"""Partitioning of a raster into tiles and distribution of tiles over workers."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional, Sequence

TILE_EDGE = 64


@dataclass(frozen=True)
class Tile:
    """Half-open pixel rectangle ``[x0, x1) x [y0, y1)`` of the raster."""

    index: int
    x0: int
    y0: int
    x1: int
    y1: int

    @property
    def width(self) -> int:
        return self.x1 - self.x0

    @property
    def height(self) -> int:
        return self.y1 - self.y0

    @property
    def area(self) -> int:
        return self.width * self.height


def tile_grid(width: int, height: int, tile_edge: int = TILE_EDGE) -> tuple[int, int]:
    """Number of tile columns and rows needed to cover the raster."""

    return -(-width // tile_edge), -(-height // tile_edge)


def partition(width: int, height: int, tile_edge: int = TILE_EDGE) -> list[Tile]:
    """Split the raster into row-major tiles, clipping the last row and column."""

    if width <= 0 or height <= 0:
        raise ValueError(f"raster must be non-empty, got {width}x{height}")
    if tile_edge <= 0:
        raise ValueError(f"tile_edge must be positive, got {tile_edge}")

    tiles_x, tiles_y = tile_grid(width, height, tile_edge)
    tiles = []
    for index in range(tiles_x * tiles_y):
        tile_x = index % tiles_x
        tile_y = index // tiles_x
        x0 = tile_x * tile_edge
        y0 = tile_y * tile_edge
        tiles.append(Tile(index, x0, y0, min(x0 + tile_edge, width), min(y0 + tile_edge, height)))
    return tiles


def assign_round_robin(tiles: Sequence[Tile], workers: int) -> list[list[Tile]]:
    """Interleave tiles over workers: worker ``t`` gets tiles ``t, t+W, t+2W, ...``.

    Neighbouring tiles tend to cost the same, so interleaving spreads the
    expensive boundary regions over all workers.
    """

    if workers < 1:
        raise ValueError(f"need at least one worker, got {workers}")
    return [list(tiles[t::workers]) for t in range(workers)]


def worker_count(requested: Optional[int] = None) -> int:
    """Worker threads to use, never more than the available CPUs."""

    available = max(1, os.cpu_count() or 1)
    if requested is not None:
        return max(1, min(int(requested), available))
    return available
