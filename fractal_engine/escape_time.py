"""Escape-time iteration for the Mandelbrot and Julia families."""

from __future__ import annotations

from typing import Optional

import numpy as np
import tensorflow as tf

from .parameters import DEFAULT_JULIA_C, FractalKind, JuliaConstant

ESCAPE_TIME_KINDS = frozenset({FractalKind.MANDELBROT, FractalKind.JULIA})


@tf.function
def _escape_step(
    zx: tf.Tensor,
    zy: tf.Tensor,
    cx: tf.Tensor,
    cy: tf.Tensor,
    ns: tf.Tensor,
    active: tf.Tensor,
    radius_sq: tf.Tensor,
    max_iterations: tf.Tensor,
) -> tuple[tf.Tensor, tf.Tensor, tf.Tensor, tf.Tensor]:
    """Advance ``z = z**2 + c`` for points that are still bounded."""

    zx_new = zx * zx - zy * zy + cx
    zy_new = 2 * zx * zy + cy
    zx = tf.where(active, zx_new, zx)
    zy = tf.where(active, zy_new, zy)
    ns = ns + tf.cast(active, tf.int32)
    bounded = zx * zx + zy * zy <= radius_sq
    new_active = tf.logical_and(active, tf.logical_and(bounded, ns < max_iterations))
    return zx, zy, ns, new_active


@tf.function
def _escape_run(
    zx: tf.Tensor,
    zy: tf.Tensor,
    cx: tf.Tensor,
    cy: tf.Tensor,
    radius_sq: tf.Tensor,
    max_iterations: tf.Tensor,
) -> tf.Tensor:
    """Iterate every point until it escapes or reaches ``max_iterations``."""

    max_iterations = tf.cast(max_iterations, tf.int32)
    i = tf.constant(0, dtype=tf.int32)
    ns = tf.zeros_like(zx, tf.int32)
    # A Julia seed may already lie outside the escape radius.
    active = tf.logical_and(zx * zx + zy * zy <= radius_sq, ns < max_iterations)

    def cond(i, zx, zy, ns, active):
        return tf.logical_and(tf.less(i, max_iterations), tf.reduce_any(active))

    def body(i, zx, zy, ns, active):
        zx, zy, ns, active = _escape_step(zx, zy, cx, cy, ns, active, radius_sq, max_iterations)
        return i + 1, zx, zy, ns, active

    _, _, _, ns, _ = tf.while_loop(cond, body, (i, zx, zy, ns, active))
    return ns


def escape_counts(
    xs: np.ndarray,
    ys: np.ndarray,
    kind: FractalKind,
    max_iterations: int,
    escape_radius: float,
    julia_c: Optional[JuliaConstant] = None,
    *,
    device: Optional[str] = None,
) -> np.ndarray:
    """Return the ``(len(ys), len(xs))`` escape counts of the sampled grid.

    Mandelbrot seeds ``z`` at the origin with ``c`` at the sample point. Julia
    seeds ``z`` at the sample point with ``c`` fixed to ``julia_c``.
    """

    if kind not in ESCAPE_TIME_KINDS:
        raise ValueError(f"{kind!r} is not an escape-time fractal")

    radius = np.float64(escape_radius)

    with tf.device(device if device is not None else "/CPU:0"):
        x_tf = tf.convert_to_tensor(np.asarray(xs, dtype=np.float64), dtype=tf.float64)
        y_tf = tf.convert_to_tensor(np.asarray(ys, dtype=np.float64), dtype=tf.float64)
        X, Y = tf.meshgrid(x_tf, y_tf)

        if kind is FractalKind.MANDELBROT:
            zx = tf.zeros_like(X)
            zy = tf.zeros_like(Y)
            cx, cy = X, Y
        else:
            c = julia_c if julia_c is not None else DEFAULT_JULIA_C
            zx, zy = tf.identity(X), tf.identity(Y)
            cx = tf.fill(tf.shape(X), tf.constant(c.real, dtype=tf.float64))
            cy = tf.fill(tf.shape(Y), tf.constant(c.imag, dtype=tf.float64))

        radius_sq = tf.constant(radius * radius, dtype=tf.float64)
        max_tensor = tf.constant(max_iterations, dtype=tf.int32)
        ns = _escape_run(zx, zy, cx, cy, radius_sq, max_tensor)

    return ns.numpy()
