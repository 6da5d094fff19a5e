"""Render orchestration: validation, dispatch and result assembly."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import numpy as np

from .chaos_game import render_sierpinski
from .colors import colorize
from .coordinates import sampling_axes
from .errors import RenderCancelledError, UnsupportedFractalKindError
from .escape_time import ESCAPE_TIME_KINDS, escape_counts
from .parameters import FractalKind, FractalParameters, validate_parameters

DEFAULT_ROWS_PER_BAND = 64


class RenderState(Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    RENDERING = "rendering"
    COMPLETE = "complete"
    FAILED = "failed"


class CancellationToken:
    """Cooperative cancellation flag shared between a caller and a render."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise RenderCancelledError("render cancelled")


@dataclass(frozen=True)
class RenderResult:
    """Container for a finished render.

    ``buffer`` is a read-only ``(height, width, 4)`` RGBA array in row-major
    order. ``iterations`` holds escape counts for escape-time kinds and
    ``density`` the per-pixel hit counts of the chaos game.
    """

    buffer: np.ndarray
    elapsed_time: float
    parameters_used: FractalParameters
    iterations: Optional[np.ndarray] = None
    density: Optional[np.ndarray] = None

    @property
    def elapsed_ms(self) -> float:
        return self.elapsed_time * 1000.0


def _freeze(array: Optional[np.ndarray]) -> Optional[np.ndarray]:
    if array is not None:
        array.flags.writeable = False
    return array


class FractalRenderer:
    """Render fractal rasters and track the state of the latest call."""

    def __init__(self, *, device: Optional[str] = None, rows_per_band: int = DEFAULT_ROWS_PER_BAND) -> None:
        if rows_per_band <= 0:
            raise ValueError("rows_per_band must be positive")
        self.device = device
        self.rows_per_band = rows_per_band
        self.state = RenderState.IDLE

    def render(
        self,
        params: FractalParameters,
        *,
        seed: Optional[int] = None,
        cancel: Optional[CancellationToken] = None,
    ) -> RenderResult:
        """Render ``params`` to completion or raise a :class:`FractalError`.

        ``seed`` drives the chaos game's random source; escape-time kinds
        ignore it. ``cancel`` is polled between row bands and sample blocks.
        """

        self.state = RenderState.VALIDATING
        try:
            validate_parameters(params)
            if params.kind not in ESCAPE_TIME_KINDS and params.kind is not FractalKind.SIERPINSKI:
                raise UnsupportedFractalKindError(params.kind)

            self.state = RenderState.RENDERING
            start = time.perf_counter()
            if params.kind is FractalKind.SIERPINSKI:
                rng = np.random.default_rng(seed)
                check = cancel.raise_if_cancelled if cancel is not None else None
                buffer, density = render_sierpinski(params, rng, check=check)
                iterations = None
            else:
                buffer, iterations = self._render_escape_time(params, cancel)
                density = None
            elapsed = time.perf_counter() - start
        except BaseException:
            self.state = RenderState.FAILED
            raise

        self.state = RenderState.COMPLETE
        return RenderResult(
            buffer=_freeze(buffer),
            elapsed_time=elapsed,
            parameters_used=params,
            iterations=_freeze(iterations),
            density=_freeze(density),
        )

    def _render_escape_time(
        self,
        params: FractalParameters,
        cancel: Optional[CancellationToken],
    ) -> tuple[np.ndarray, np.ndarray]:
        width, height = params.width, params.height
        iterations = np.empty((height, width), dtype=np.int32)
        julia_c = params.resolved_julia_c() if params.kind is FractalKind.JULIA else None

        for row_start in range(0, height, self.rows_per_band):
            if cancel is not None:
                cancel.raise_if_cancelled()
            row_stop = min(row_start + self.rows_per_band, height)
            xs, ys = sampling_axes(params, row_start, row_stop)
            iterations[row_start:row_stop] = escape_counts(
                xs,
                ys,
                params.kind,
                params.max_iterations,
                params.escape_radius,
                julia_c,
                device=self.device,
            )

        buffer = np.empty((height, width, 4), dtype=np.uint8)
        buffer[..., :3] = colorize(iterations, params.max_iterations, params.color_scheme)
        buffer[..., 3] = 255
        return buffer, iterations


def render_fractal(
    params: FractalParameters,
    *,
    seed: Optional[int] = None,
    cancel: Optional[CancellationToken] = None,
    device: Optional[str] = None,
) -> RenderResult:
    """Render ``params`` once with a throwaway :class:`FractalRenderer`."""

    renderer = FractalRenderer(device=device)
    return renderer.render(params, seed=seed, cancel=cancel)
