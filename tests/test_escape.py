import numpy as np

from mandelbrot.escape import escape, escape_grid


def test_points_outside_radius_two_escape_immediately():
    rng = np.random.default_rng(7)
    radius = rng.uniform(2.001, 50.0, size=200)
    angle = rng.uniform(0.0, 2 * np.pi, size=200)
    for r, a in zip(radius, angle):
        assert escape(r * np.cos(a), r * np.sin(a), 100) == 0


def test_cardioid_and_bulb_centers_are_interior():
    assert escape(-1.0, 0.0, 100) == 100
    assert escape(0.0, 0.0, 100) == 100
    assert escape(-0.1, 0.3, 250) == 250


def test_escape_count_follows_orbit():
    # 0 -> 1 -> 2 -> 5 -> 26: |z3|^2 > 4 is seen on the fourth step
    assert escape(1.0, 0.0, 100) == 4
    # 0, .5, .75, 1.0625, 1.6289, 3.1533
    assert escape(0.5, 0.0, 100) == 6


def test_iteration_cap_classifies_interior():
    # boundary of the cardioid and bulb: not caught by the closed-form tests
    assert escape(-0.75, 0.0, 50) == 50
    # period-4 component
    assert escape(-1.3, 0.0, 80) == 80
    # just right of the cardioid cusp, slow to leave
    assert escape(0.3, 0.0, 3) == 3


def test_conjugate_symmetry():
    reals = np.linspace(-2.1, 0.6, 41)
    imags = np.linspace(0.0, 1.3, 27)
    for cr in reals:
        for ci in imags:
            assert escape(cr, ci, 60) == escape(cr, -ci, 60)


def test_grid_matches_scalar_evaluation():
    real = np.linspace(-2.2, 0.8, 61)
    imag = np.linspace(-1.3, 1.3, 43)
    counts = escape_grid(real[np.newaxis, :], imag[:, np.newaxis], 75)

    assert counts.shape == (43, 61)
    assert counts.dtype == np.int32
    expected = np.array([[escape(cr, ci, 75) for cr in real] for ci in imag])
    np.testing.assert_array_equal(counts, expected)


def test_grid_results_stay_in_range():
    real = np.linspace(-2.5, 2.5, 50)
    imag = np.linspace(-2.5, 2.5, 50)
    counts = escape_grid(real[np.newaxis, :], imag[:, np.newaxis], 40)
    assert counts.min() >= 0
    assert counts.max() <= 40
    assert np.any(counts == 0)
    assert np.any(counts == 40)
