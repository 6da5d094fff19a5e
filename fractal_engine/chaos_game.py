"""Chaos-game construction of the Sierpinski triangle."""

from __future__ import annotations

from typing import Callable, Optional

import numpy as np

from .colors import colorize
from .parameters import FractalParameters

SAMPLES_PER_ITERATION = 100
# Samples drawn between cancellation checks.
SAMPLE_BLOCK = 10_000


def sierpinski_vertices(width: int, height: int) -> np.ndarray:
    """Apex at top-centre, base corners at bottom-left and bottom-right."""

    return np.array(
        [
            [width / 2.0, 0.0],
            [0.0, float(height)],
            [float(width), float(height)],
        ],
        dtype=np.float64,
    )


def chaos_game_points(
    width: int,
    height: int,
    samples: int,
    rng: np.random.Generator,
    *,
    check: Optional[Callable[[], None]] = None,
) -> np.ndarray:
    """Play the chaos game for ``samples`` steps and return every visited point.

    The moving point starts at the raster centre and each step jumps halfway
    to a vertex chosen uniformly at random. No initial transient is dropped.
    ``check`` is called between blocks of samples and may raise to abort.
    """

    vertices = sierpinski_vertices(width, height).tolist()
    points = np.empty((samples, 2), dtype=np.float64)

    x = width / 2.0
    y = height / 2.0
    for start in range(0, samples, SAMPLE_BLOCK):
        if check is not None:
            check()
        stop = min(start + SAMPLE_BLOCK, samples)
        choices = rng.integers(0, len(vertices), size=stop - start).tolist()
        for i, choice in enumerate(choices, start):
            vx, vy = vertices[choice]
            x = (x + vx) / 2
            y = (y + vy) / 2
            points[i, 0] = x
            points[i, 1] = y
    return points


def render_sierpinski(
    params: FractalParameters,
    rng: np.random.Generator,
    *,
    check: Optional[Callable[[], None]] = None,
) -> tuple[np.ndarray, np.ndarray]:
    """Plot ``max_iterations * 100`` chaos-game samples onto a black raster.

    Sample ``i`` takes the palette colour of iteration ``i // 100``; later
    samples paint over earlier ones. Returns the RGBA raster and the per-pixel
    hit counts.
    """

    width, height = params.width, params.height
    samples = params.max_iterations * SAMPLES_PER_ITERATION
    points = chaos_game_points(width, height, samples, rng, check=check)

    cols = np.clip(np.floor(points[:, 0]).astype(np.int64), 0, width - 1)
    rows = np.clip(np.floor(points[:, 1]).astype(np.int64), 0, height - 1)

    pixel_index = rows * width + cols
    density = np.bincount(pixel_index, minlength=width * height).reshape(height, width)

    last_sample = np.full(width * height, -1, dtype=np.int64)
    np.maximum.at(last_sample, pixel_index, np.arange(samples, dtype=np.int64))
    hit = last_sample >= 0

    sample_iterations = last_sample[hit] // SAMPLES_PER_ITERATION
    rgba = np.zeros((height * width, 4), dtype=np.uint8)
    rgba[:, 3] = 255
    rgba[hit, :3] = colorize(sample_iterations, params.max_iterations, params.color_scheme)
    return rgba.reshape(height, width, 4), density.astype(np.int64)
