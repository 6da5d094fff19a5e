"""Mapping between raster pixels and the complex plane."""

from __future__ import annotations

from typing import Optional

import numpy as np

from .parameters import FractalParameters


def pixel_to_complex(params: FractalParameters, px: float, py: float) -> tuple[np.float64, np.float64]:
    """Map pixel ``(px, py)`` to the complex-plane point ``(x0, y0)``.

    A quarter of the raster side is one unit at ``zoom=1``, so the default
    view spans ``[-2, 2]`` on both axes around the centre.
    """

    width = np.float64(params.width)
    height = np.float64(params.height)
    x0 = (np.float64(px) - width / 2) / (width / 4) / np.float64(params.zoom) + np.float64(params.center_x)
    y0 = (np.float64(py) - height / 2) / (height / 4) / np.float64(params.zoom) + np.float64(params.center_y)
    return np.float64(x0), np.float64(y0)


def sampling_axes(
    params: FractalParameters,
    row_start: int = 0,
    row_stop: Optional[int] = None,
) -> tuple[np.ndarray, np.ndarray]:
    """Return the real samples of every column and the imaginary samples of rows ``[row_start, row_stop)``."""

    if row_stop is None:
        row_stop = params.height

    width = np.float64(params.width)
    height = np.float64(params.height)
    cols = np.arange(params.width, dtype=np.float64)
    rows = np.arange(row_start, row_stop, dtype=np.float64)

    xs = (cols - width / 2) / (width / 4) / np.float64(params.zoom) + np.float64(params.center_x)
    ys = (rows - height / 2) / (height / 4) / np.float64(params.zoom) + np.float64(params.center_y)
    return xs, ys


def view_bounds(params: FractalParameters) -> tuple[float, float, float, float]:
    """Complex-plane extent ``(x_min, x_max, y_min, y_max)`` covered by the raster's pixel origins."""

    x_min, y_min = pixel_to_complex(params, 0, 0)
    x_max, y_max = pixel_to_complex(params, params.width - 1, params.height - 1)
    return float(x_min), float(x_max), float(y_min), float(y_max)
