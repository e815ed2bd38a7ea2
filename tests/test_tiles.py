import numpy as np
import pytest

from mandelbrot.tiles import Tile, assign_round_robin, partition, tile_grid, worker_count


@pytest.mark.parametrize(
    "width,height,edge",
    [(900, 900, 64), (64, 64, 64), (65, 1, 64), (1, 1, 8), (130, 70, 32), (37, 23, 5), (10, 10, 100)],
)
def test_tiles_cover_raster_exactly_once(width, height, edge):
    tiles = partition(width, height, edge)
    coverage = np.zeros((height, width), dtype=np.int32)
    for tile in tiles:
        assert 0 < tile.width <= edge
        assert 0 < tile.height <= edge
        coverage[tile.y0:tile.y1, tile.x0:tile.x1] += 1

    assert np.all(coverage == 1)
    tiles_x, tiles_y = tile_grid(width, height, edge)
    assert len(tiles) == tiles_x * tiles_y
    assert sum(tile.area for tile in tiles) == width * height


def test_tile_indices_are_row_major():
    tiles = partition(130, 70, 64)
    assert tile_grid(130, 70, 64) == (3, 2)
    assert [t.index for t in tiles] == list(range(6))
    assert tiles[2] == Tile(index=2, x0=128, y0=0, x1=130, y1=64)
    assert tiles[3] == Tile(index=3, x0=0, y0=64, x1=64, y1=70)


@pytest.mark.parametrize("args", [(0, 10, 8), (10, -1, 8), (10, 10, 0)])
def test_invalid_partition_rejected(args):
    with pytest.raises(ValueError):
        partition(*args)


def test_round_robin_interleaves_tiles():
    tiles = partition(300, 100, 50)
    shares = assign_round_robin(tiles, 4)

    assert [[t.index for t in share] for share in shares] == [[0, 4, 8], [1, 5, 9], [2, 6, 10], [3, 7, 11]]


def test_round_robin_with_more_workers_than_tiles():
    tiles = partition(10, 10, 8)
    shares = assign_round_robin(tiles, 6)
    assert len(shares) == 6
    assert sorted(t.index for share in shares for t in share) == [0, 1, 2, 3]
    assert shares[4] == [] and shares[5] == []
    with pytest.raises(ValueError):
        assign_round_robin(tiles, 0)


def test_worker_count(monkeypatch):
    monkeypatch.setattr("os.cpu_count", lambda: 4)
    assert worker_count() == 4
    assert worker_count(3) == 3
    assert worker_count(0) == 1


def test_worker_count_is_bounded_by_cpus(monkeypatch):
    monkeypatch.setattr("os.cpu_count", lambda: 2)
    assert worker_count(8) == 2
    monkeypatch.setattr("os.cpu_count", lambda: None)
    assert worker_count() == 1
    assert worker_count(5) == 1
