"""Palettes turning iteration counts into RGB colours."""

from __future__ import annotations

from typing import Callable

import numpy as np

from .errors import InvalidParameterError
from .parameters import ColorScheme

INSIDE_COLOR = (0, 0, 0)


def _rainbow(t: np.ndarray) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    phase = t * np.pi * 4
    return (
        np.sin(phase) * 127 + 128,
        np.sin(phase + 2) * 127 + 128,
        np.sin(phase + 4) * 127 + 128,
    )


def _fire(t: np.ndarray) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    return t * 255, t * t * 255, np.zeros_like(t)


def _ocean(t: np.ndarray) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    return np.zeros_like(t), t * 128, t * 255


def _monochrome(t: np.ndarray) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    gray = t * 255
    return gray, gray, gray


def _neon(t: np.ndarray) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    on = np.float64(255.0)
    off = np.float64(0.0)
    return (
        np.where(t < 0.5, on, off),
        np.where((t > 0.25) & (t < 0.75), on, off),
        np.where(t > 0.5, on, off),
    )


_PALETTES: dict[ColorScheme, Callable[[np.ndarray], tuple[np.ndarray, np.ndarray, np.ndarray]]] = {
    ColorScheme.RAINBOW: _rainbow,
    ColorScheme.FIRE: _fire,
    ColorScheme.OCEAN: _ocean,
    ColorScheme.MONOCHROME: _monochrome,
    ColorScheme.NEON: _neon,
}


def colorize(iterations: np.ndarray, max_iterations: int, scheme: ColorScheme) -> np.ndarray:
    """Colour an array of iteration counts, returning ``uint8`` RGB with a trailing axis of 3.

    Counts equal to ``max_iterations`` are in-set points and are always black.
    """

    try:
        palette = _PALETTES[scheme]
    except KeyError:
        raise InvalidParameterError(f"unknown color scheme {scheme!r}") from None

    counts = np.asarray(iterations)
    t = np.clip(counts.astype(np.float64) / np.float64(max_iterations), 0.0, 1.0)
    channels = np.stack(palette(t), axis=-1)
    rgb = np.clip(np.rint(channels), 0, 255).astype(np.uint8)

    inside = counts == max_iterations
    rgb[inside] = INSIDE_COLOR
    return rgb


def map_color(iteration: int, max_iterations: int, scheme: ColorScheme) -> tuple[int, int, int]:
    """Colour a single iteration count."""

    r, g, b = colorize(np.asarray(iteration), max_iterations, scheme)
    return int(r), int(g), int(b)
