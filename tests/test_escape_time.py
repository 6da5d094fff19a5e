"""Tests for the TensorFlow escape-time evaluator."""

import numpy as np
import pytest

from fractal_engine import DEFAULT_JULIA_C, FractalKind, JuliaConstant, escape_counts


def _count(x, y, kind=FractalKind.MANDELBROT, max_iterations=50, escape_radius=2.0, julia_c=None):
    counts = escape_counts(np.array([x]), np.array([y]), kind, max_iterations, escape_radius, julia_c)
    assert counts.shape == (1, 1)
    return int(counts[0, 0])


class TestMandelbrot:
    def test_origin_never_escapes(self):
        assert _count(0.0, 0.0, max_iterations=75) == 75

    def test_far_point_escapes_after_one_step(self):
        assert _count(-2.0, -2.0) == 1

    def test_orbit_on_the_radius_keeps_iterating(self):
        # z: 0 -> 1 -> 2 -> 5; |2|^2 == 4 is not an escape.
        assert _count(1.0, 0.0) == 3

    def test_escape_radius_is_respected(self):
        # z: 0 -> 1 -> 2 -> 5 -> 26
        assert _count(1.0, 0.0, escape_radius=10.0) == 4

    def test_iteration_cap(self):
        assert _count(0.0, 0.0, max_iterations=1) == 1

    def test_grid_orientation(self):
        xs = np.array([-2.0, 0.0, 1.0])
        ys = np.array([0.0, 3.0])
        counts = escape_counts(xs, ys, FractalKind.MANDELBROT, 20, 2.0)
        assert counts.shape == (2, 3)
        assert counts.dtype == np.int32
        # (-2, 0) lands on the fixed point 2 and stays on the radius.
        assert counts[0, 0] == 20
        assert counts[0, 1] == 20
        assert counts[0, 2] == 3
        assert np.all(counts[1] == 1)


class TestJulia:
    def test_seed_outside_radius_is_zero(self):
        assert _count(3.0, 0.0, kind=FractalKind.JULIA) == 0

    def test_default_constant(self):
        xs = np.linspace(-1.5, 1.5, 17)
        ys = np.linspace(-1.0, 1.0, 11)
        implicit = escape_counts(xs, ys, FractalKind.JULIA, 60, 2.0)
        explicit = escape_counts(xs, ys, FractalKind.JULIA, 60, 2.0, DEFAULT_JULIA_C)
        np.testing.assert_array_equal(implicit, explicit)

    def test_constant_drives_the_orbit(self):
        # c = 0: |z| stays 1 on the unit circle, grows outside it.
        c = JuliaConstant(0.0, 0.0)
        assert _count(1.0, 0.0, kind=FractalKind.JULIA, max_iterations=30, julia_c=c) == 30
        # z: 1.5 -> 2.25
        assert _count(1.5, 0.0, kind=FractalKind.JULIA, julia_c=c) == 1


def test_deterministic():
    xs = np.linspace(-2.0, 1.0, 40)
    ys = np.linspace(-1.2, 1.2, 30)
    first = escape_counts(xs, ys, FractalKind.MANDELBROT, 120, 2.0)
    second = escape_counts(xs, ys, FractalKind.MANDELBROT, 120, 2.0)
    np.testing.assert_array_equal(first, second)


def test_rejects_non_escape_time_kind():
    with pytest.raises(ValueError):
        escape_counts(np.zeros(1), np.zeros(1), FractalKind.SIERPINSKI, 10, 2.0)
