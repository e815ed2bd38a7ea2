import numpy as np
import pytest

from mandelbrot.palette import Palette, colorize, is_colormap


def test_interior_is_black():
    assert colorize(100, 100) == (0, 0, 0)
    assert colorize(7, 7, inside_color=(10, 20, 30)) == (10, 20, 30)


def test_zero_iterations_is_over_bright_red():
    r, g, b = colorize(0, 100)
    # value 1.2 pushes the dominant channel past 255, which saturates
    assert r == 255
    assert abs(g - 153) <= 1
    assert g == b


def test_same_count_same_color():
    assert colorize(37, 100) == colorize(37, 100)
    assert colorize(37, 100) != colorize(80, 100)


def test_hue_is_truncated():
    # 255 * 2 / 1000 and 255 * 3 / 1000 both truncate to hue 0
    assert colorize(2, 1000) == colorize(3, 1000)


def test_lookup_table_matches_colorize():
    palette = Palette(60)
    assert len(palette) == 61
    for n in range(61):
        assert tuple(int(c) for c in palette.table[n]) == colorize(n, 60)


def test_apply_adds_rgb_axis():
    palette = Palette(20)
    counts = np.array([[0, 5], [20, 19]], dtype=np.int32)
    rgb = palette.apply(counts)
    assert rgb.shape == (2, 2, 3)
    assert rgb.dtype == np.uint8
    assert tuple(rgb[1, 0]) == (0, 0, 0)


def test_lookup_table_is_read_only():
    palette = Palette(10)
    with pytest.raises(ValueError):
        palette.table[0] = (1, 2, 3)


def test_colormap_names_are_checked():
    assert is_colormap("viridis")
    assert not is_colormap("nosuchmap")


def test_matplotlib_colormap_replaces_hue_wheel():
    viridis = Palette(50, colormap="viridis")
    hue = Palette(50)
    assert not np.array_equal(viridis.table[:50], hue.table[:50])
    assert tuple(viridis.table[50]) == (0, 0, 0)
    assert colorize(12, 50, colormap="viridis") == tuple(int(c) for c in viridis.table[12])
