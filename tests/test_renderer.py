"""Tests for render orchestration."""

import dataclasses

import numpy as np
import pytest

from fractal_engine import (
    DEFAULT_JULIA_C,
    CancellationToken,
    ColorScheme,
    FractalKind,
    FractalParameters,
    FractalRenderer,
    InvalidParameterError,
    RenderCancelledError,
    RenderState,
    UnsupportedFractalKindError,
    render_fractal,
)
from fractal_engine import renderer as renderer_module


def _small(**overrides):
    values = dict(width=48, height=40, max_iterations=60)
    values.update(overrides)
    return FractalParameters(**values)


class CancelAfter(CancellationToken):
    """Token that cancels itself after a number of polls."""

    def __init__(self, polls):
        super().__init__()
        self.polls = polls
        self.seen = 0

    def raise_if_cancelled(self):
        self.seen += 1
        if self.seen > self.polls:
            self.cancel()
        super().raise_if_cancelled()


class TestMandelbrotScenario:
    """Default 256x256 monochrome view."""

    def setup_method(self):
        self.params = FractalParameters(
            kind=FractalKind.MANDELBROT,
            width=256,
            height=256,
            max_iterations=100,
            zoom=1.0,
            center_x=0.0,
            center_y=0.0,
            escape_radius=2.0,
            color_scheme=ColorScheme.MONOCHROME,
        )
        self.result = render_fractal(self.params)

    def test_buffer_layout(self):
        assert self.result.buffer.shape == (256, 256, 4)
        assert self.result.buffer.dtype == np.uint8
        assert self.result.buffer.flags["C_CONTIGUOUS"]
        assert np.all(self.result.buffer[..., 3] == 255)

    def test_corner_escapes_quickly_and_is_dark_gray(self):
        assert self.result.iterations[0, 0] < 10
        r, g, b, _ = (int(v) for v in self.result.buffer[0, 0])
        assert r == g == b
        assert 0 < r < 32

    def test_center_is_in_set_and_black(self):
        assert self.result.iterations[128, 128] == 100
        assert tuple(self.result.buffer[128, 128, :3]) == (0, 0, 0)

    def test_metadata(self):
        assert self.result.parameters_used is self.params
        assert self.result.elapsed_time >= 0
        assert self.result.elapsed_ms == pytest.approx(self.result.elapsed_time * 1000.0)
        assert self.result.density is None


class TestEscapeTimeRenders:
    def test_identical_parameters_give_identical_buffers(self):
        params = _small(zoom=1.5, center_x=-0.5, color_scheme=ColorScheme.RAINBOW)
        first = render_fractal(params)
        second = render_fractal(params)
        assert first.buffer.tobytes() == second.buffer.tobytes()

    def test_band_size_does_not_change_output(self):
        params = _small(kind=FractalKind.JULIA)
        banded = FractalRenderer(rows_per_band=7).render(params)
        whole = FractalRenderer(rows_per_band=1000).render(params)
        np.testing.assert_array_equal(banded.buffer, whole.buffer)
        np.testing.assert_array_equal(banded.iterations, whole.iterations)

    @pytest.mark.parametrize("scheme", list(ColorScheme))
    def test_in_set_pixels_are_black(self, scheme):
        params = _small(zoom=2.0, center_x=-0.25, color_scheme=scheme)
        result = render_fractal(params)
        inside = result.iterations == params.max_iterations
        assert inside.any()
        assert np.all(result.buffer[inside][:, :3] == 0)

    def test_julia_default_constant(self):
        implicit = render_fractal(_small(kind=FractalKind.JULIA))
        explicit = render_fractal(_small(kind=FractalKind.JULIA, julia_c=DEFAULT_JULIA_C))
        assert implicit.buffer.tobytes() == explicit.buffer.tobytes()

    def test_buffers_are_read_only(self):
        result = render_fractal(_small())
        with pytest.raises(ValueError):
            result.buffer[0, 0, 0] = 1
        with pytest.raises(ValueError):
            result.iterations[0, 0] = 1

    def test_result_is_immutable(self):
        result = render_fractal(_small())
        with pytest.raises(dataclasses.FrozenInstanceError):
            result.elapsed_time = 0.0

    def test_cost_grows_with_iterations(self):
        renderer = FractalRenderer()
        base = _small(width=64, height=64, zoom=4.0, center_x=-0.1)
        renderer.render(dataclasses.replace(base, max_iterations=16))
        fast = renderer.render(dataclasses.replace(base, max_iterations=16))
        slow = renderer.render(dataclasses.replace(base, max_iterations=4000))
        assert slow.elapsed_time >= fast.elapsed_time


class TestSierpinskiRenders:
    def test_point_count(self):
        result = render_fractal(_small(kind=FractalKind.SIERPINSKI, max_iterations=50), seed=11)
        assert int(result.density.sum()) == 5000
        assert result.iterations is None

    def test_seeded_renders_are_identical(self):
        params = _small(kind=FractalKind.SIERPINSKI)
        first = render_fractal(params, seed=123)
        second = render_fractal(params, seed=123)
        assert first.buffer.tobytes() == second.buffer.tobytes()


class TestFailures:
    def setup_method(self):
        self.renderer = FractalRenderer()

    def test_zero_width_fails_before_rendering(self, monkeypatch):
        def forbidden(*args, **kwargs):
            raise AssertionError("no computation expected")

        monkeypatch.setattr(renderer_module, "escape_counts", forbidden)
        with pytest.raises(InvalidParameterError):
            self.renderer.render(_small(width=0))
        assert self.renderer.state is RenderState.FAILED

    def test_oversized_iteration_cap_fails_before_rendering(self, monkeypatch):
        def forbidden(*args, **kwargs):
            raise AssertionError("no computation expected")

        monkeypatch.setattr(renderer_module, "escape_counts", forbidden)
        with pytest.raises(InvalidParameterError):
            self.renderer.render(_small(width=2, height=2, max_iterations=2**31))
        assert self.renderer.state is RenderState.FAILED

    def test_interrupt_marks_render_failed(self, monkeypatch):
        def interrupted(*args, **kwargs):
            raise KeyboardInterrupt()

        monkeypatch.setattr(renderer_module, "escape_counts", interrupted)
        with pytest.raises(KeyboardInterrupt):
            self.renderer.render(_small())
        assert self.renderer.state is RenderState.FAILED

    @pytest.mark.parametrize("kind", [FractalKind.KOCH, FractalKind.DRAGON])
    def test_kinds_without_algorithm_fail(self, kind):
        with pytest.raises(UnsupportedFractalKindError, match=kind.value):
            self.renderer.render(_small(kind=kind))
        assert self.renderer.state is RenderState.FAILED

    def test_state_after_success(self):
        assert self.renderer.state is RenderState.IDLE
        self.renderer.render(_small(width=8, height=8))
        assert self.renderer.state is RenderState.COMPLETE

    def test_rows_per_band_must_be_positive(self):
        with pytest.raises(ValueError):
            FractalRenderer(rows_per_band=0)


class TestCancellation:
    def test_pre_cancelled_escape_time(self):
        token = CancellationToken()
        token.cancel()
        renderer = FractalRenderer()
        with pytest.raises(RenderCancelledError):
            renderer.render(_small(), cancel=token)
        assert renderer.state is RenderState.FAILED

    def test_cancel_between_bands(self):
        token = CancelAfter(polls=1)
        renderer = FractalRenderer(rows_per_band=8)
        with pytest.raises(RenderCancelledError):
            renderer.render(_small(height=32), cancel=token)
        assert token.seen == 2

    def test_pre_cancelled_chaos_game(self):
        token = CancellationToken()
        token.cancel()
        with pytest.raises(RenderCancelledError):
            render_fractal(_small(kind=FractalKind.SIERPINSKI), seed=1, cancel=token)

    def test_untouched_token_completes(self):
        token = CancellationToken()
        result = render_fractal(_small(), cancel=token)
        assert not token.cancelled
        assert result.buffer.shape == (40, 48, 4)
