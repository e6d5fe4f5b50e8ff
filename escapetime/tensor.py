"""Whole-image escape-time rendering on TensorFlow devices."""

from __future__ import annotations

from typing import Optional

import tensorflow as tf

from .plane import plane_grid
from .renderer import HORIZON, LIMIT, buffer_view, check_buffer


def select_device() -> str:
    """Pick the first visible GPU, falling back to the CPU."""

    gpus = tf.config.list_physical_devices('GPU')
    if not gpus:
        return '/CPU:0'
    try:
        for gpu in gpus:
            tf.config.experimental.set_memory_growth(gpu, True)
    except RuntimeError:
        # Memory growth must be set before the GPUs are initialized.
        return '/CPU:0'
    return '/GPU:0'


@tf.function
def _escape_step(
    i: tf.Tensor,
    xs: tf.Tensor,
    ys: tf.Tensor,
    cx: tf.Tensor,
    cy: tf.Tensor,
    counts: tf.Tensor,
    active: tf.Tensor,
) -> tuple[tf.Tensor, tf.Tensor, tf.Tensor, tf.Tensor]:
    """Check the horizon, then advance every point that is still inside it."""

    horizon = tf.constant(HORIZON, dtype=xs.dtype)
    escaped = tf.logical_and(active, xs * xs + ys * ys > horizon)
    counts = tf.where(escaped, i, counts)
    active = tf.logical_and(active, tf.logical_not(escaped))

    xs_new = xs * xs - ys * ys + cx
    ys_new = 2.0 * xs * ys + cy
    xs = tf.where(active, xs_new, xs)
    ys = tf.where(active, ys_new, ys)
    return xs, ys, counts, active


@tf.function
def _escape_run(cx: tf.Tensor, cy: tf.Tensor, limit: tf.Tensor) -> tuple[tf.Tensor, tf.Tensor]:
    """Iterate up to ``limit`` times, stopping early once every point has escaped."""

    limit = tf.cast(limit, tf.int32)
    i = tf.constant(0, dtype=tf.int32)
    xs = tf.zeros_like(cx)
    ys = tf.zeros_like(cy)
    counts = tf.zeros(tf.shape(cx), dtype=tf.int32)
    active = tf.ones(tf.shape(cx), dtype=tf.bool)

    def cond(i, xs, ys, counts, active):
        return tf.logical_and(tf.less(i, limit), tf.reduce_any(active))

    def body(i, xs, ys, counts, active):
        xs, ys, counts, active = _escape_step(i, xs, ys, cx, cy, counts, active)
        return i + 1, xs, ys, counts, active

    _, _, _, counts, active = tf.while_loop(cond, body, (i, xs, ys, counts, active))
    return counts, active


def render_tensor(
    pixels,
    bounds: tuple[int, int],
    upper_left: complex,
    lower_right: complex,
    *,
    device: Optional[str] = None,
) -> None:
    """Render into ``pixels`` like :func:`escapetime.renderer.render`, all pixels at once."""

    check_buffer(pixels, bounds)

    real, imag = plane_grid(bounds, upper_left, lower_right)
    limit = tf.constant(LIMIT, dtype=tf.int32)

    with tf.device(device if device is not None else '/CPU:0'):
        cx = tf.convert_to_tensor(real, dtype=tf.float64)
        cy = tf.convert_to_tensor(imag, dtype=tf.float64)
        counts, inside = _escape_run(cx, cy, limit)
        levels = tf.where(inside, tf.zeros_like(counts), limit - counts)
        levels = tf.cast(levels, tf.uint8)

    buffer_view(pixels)[:] = levels.numpy().reshape(-1)
